"""
User-facing model comparison solution types.

Each solution wraps a Result[Params] and provides accessors, an R-style
summary() and a pandas table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from carstats.core.result import Result
from carstats.core.compute.tolerances import SIGNIFICANCE_LEVEL
from carstats.core.formatting import SIGNIF_LEGEND, format_pvalue, significance_stars
from carstats.anova._common import (
    AnovaParams,
    AnovaTableRow,
    ComparisonParams,
    ModelAnovaParams,
    ModelComparisonRow,
)

if TYPE_CHECKING:
    import pandas as pd


# =====================================================================
# ComparisonSolution  (restricted vs full F test)
# =====================================================================


@dataclass(frozen=True)
class ComparisonSolution:
    """
    Result of compare_models(): nested F test of two fits.
    """
    _result: Result[ComparisonParams]

    @property
    def restricted(self) -> str:
        return self._result.params.restricted

    @property
    def full(self) -> str:
        return self._result.params.full

    @property
    def f_statistic(self) -> float:
        return self._result.params.f_value

    @property
    def p_value(self) -> float:
        return self._result.params.p_value

    @property
    def df_numerator(self) -> int:
        """P_full - P_restricted."""
        return self._result.params.df_numerator

    @property
    def df_denominator(self) -> int:
        """N - P_full - 1."""
        return self._result.params.df_denominator

    @property
    def df(self) -> tuple[int, int]:
        return self.df_numerator, self.df_denominator

    @property
    def rss_restricted(self) -> float:
        return self._result.params.rss_restricted

    @property
    def rss_full(self) -> float:
        return self._result.params.rss_full

    @property
    def sum_sq(self) -> float:
        """RSS_restricted - RSS_full."""
        return self._result.params.sum_sq

    @property
    def n_obs(self) -> int:
        return self._result.params.n_obs

    def significant(self, alpha: float = SIGNIFICANCE_LEVEL) -> bool:
        """p < alpha. A reporting convention; nothing else depends on it."""
        return self.p_value < alpha

    @property
    def table(self) -> tuple[ModelComparisonRow, ...]:
        """The two-row table R prints for anova(restricted, full)."""
        p = self._result.params
        return (
            ModelComparisonRow(p.restricted, p.df_restricted, p.rss_restricted,
                               None, None, None, None),
            ModelComparisonRow(p.full, p.df_full, p.rss_full,
                               p.df_numerator, p.sum_sq, p.f_value, p.p_value),
        )

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def to_dataframe(self) -> 'pd.DataFrame':
        return _comparison_frame(self.table)

    def summary(self) -> str:
        """Generate R-style anova(m1, m2) output."""
        lines = _comparison_lines(self.table)
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"ComparisonSolution(F={self.f_statistic:.4f}, "
            f"df=({self.df_numerator}, {self.df_denominator}), p={self.p_value:.4g})"
        )


# =====================================================================
# ModelAnovaSolution  (anova(m1, m2, ...))
# =====================================================================


@dataclass(frozen=True)
class ModelAnovaSolution:
    """Result of anova_models(): sequential comparison of several fits."""
    _result: Result[ModelAnovaParams]

    @property
    def table(self) -> tuple[ModelComparisonRow, ...]:
        return self._result.params.table

    @property
    def scale(self) -> float:
        return self._result.params.scale

    @property
    def n_obs(self) -> int:
        return self._result.params.n_obs

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def to_dataframe(self) -> 'pd.DataFrame':
        return _comparison_frame(self.table)

    def summary(self) -> str:
        return "\n".join(_comparison_lines(self.table))

    def __repr__(self) -> str:
        return f"ModelAnovaSolution(models={len(self.table)}, n={self.n_obs})"


# =====================================================================
# AnovaSolution  (per-term Type I table of one model)
# =====================================================================


@dataclass(frozen=True)
class AnovaSolution:
    """Result of anova_table(): sequential sums of squares of one fit."""
    _result: Result[AnovaParams]

    @property
    def table(self) -> tuple[AnovaTableRow, ...]:
        """ANOVA table (rows: term, df, SS, MS, F, p), residuals last."""
        return self._result.params.table

    @property
    def model(self) -> str:
        return self._result.params.model

    @property
    def n_obs(self) -> int:
        return self._result.params.n_obs

    @property
    def residual_df(self) -> int:
        return self._result.params.residual_df

    @property
    def residual_ss(self) -> float:
        return self._result.params.residual_ss

    @property
    def residual_ms(self) -> float:
        return self._result.params.residual_ms

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def row(self, term: str) -> AnovaTableRow:
        for r in self.table:
            if r.term == term:
                return r
        raise KeyError(f"No term {term!r}. Available: {[r.term for r in self.table]}")

    def to_dataframe(self) -> 'pd.DataFrame':
        import pandas as pd

        return pd.DataFrame(
            {
                'Df': [r.df for r in self.table],
                'Sum Sq': [r.sum_sq for r in self.table],
                'Mean Sq': [r.mean_sq for r in self.table],
                'F value': [_na(r.f_value) for r in self.table],
                'Pr(>F)': [_na(r.p_value) for r in self.table],
            },
            index=[r.term for r in self.table],
        )

    def summary(self) -> str:
        """Generate R-style ANOVA summary table."""
        width = max(len(r.term) for r in self.table)
        lines = [
            "Analysis of Variance Table",
            "",
            f"Response: {self._result.params.response}",
            f"{'':<{width}} {'Df':>4} {'Sum Sq':>12} {'Mean Sq':>12} {'F value':>10} {'Pr(>F)':>10}",
        ]
        for row in self.table:
            if row.f_value is not None:
                lines.append(
                    f"{row.term:<{width}} {row.df:>4} {row.sum_sq:>12.4f} "
                    f"{row.mean_sq:>12.4f} {row.f_value:>10.4f} "
                    f"{format_pvalue(row.p_value):>10} {significance_stars(row.p_value)}"
                )
            else:
                lines.append(
                    f"{row.term:<{width}} {row.df:>4} {row.sum_sq:>12.4f} "
                    f"{row.mean_sq:>12.4f}"
                )
        lines.append("---")
        lines.append(SIGNIF_LEGEND)
        return "\n".join(lines)

    def __repr__(self) -> str:
        terms = [row.term for row in self.table if row.term != 'Residuals']
        return f"AnovaSolution(terms={terms}, n={self.n_obs})"


# =====================================================================
# Helpers
# =====================================================================


def _na(value: float | int | None) -> float:
    return float('nan') if value is None else float(value)


def _comparison_frame(rows: tuple[ModelComparisonRow, ...]) -> 'pd.DataFrame':
    import pandas as pd

    return pd.DataFrame(
        {
            'Model': [r.model for r in rows],
            'Res.Df': [r.res_df for r in rows],
            'RSS': [r.rss for r in rows],
            'Df': [_na(r.df) for r in rows],
            'Sum of Sq': [_na(r.sum_sq) for r in rows],
            'F': [_na(r.f_value) for r in rows],
            'Pr(>F)': [_na(r.p_value) for r in rows],
        },
        index=range(1, len(rows) + 1),
    )


def _comparison_lines(rows: tuple[ModelComparisonRow, ...]) -> list[str]:
    lines = ["Analysis of Variance Table", ""]
    for i, r in enumerate(rows, start=1):
        lines.append(f"Model {i}: {r.model}")
    lines.append(
        f"{'':<3} {'Res.Df':>6} {'RSS':>12} {'Df':>4} {'Sum of Sq':>12} "
        f"{'F':>10} {'Pr(>F)':>10}"
    )
    for i, r in enumerate(rows, start=1):
        if r.df is None:
            lines.append(f"{i:<3} {r.res_df:>6} {r.rss:>12.4f}")
        elif r.f_value is None:
            lines.append(f"{i:<3} {r.res_df:>6} {r.rss:>12.4f} {r.df:>4} {r.sum_sq:>12.4f}")
        else:
            lines.append(
                f"{i:<3} {r.res_df:>6} {r.rss:>12.4f} {r.df:>4} {r.sum_sq:>12.4f} "
                f"{r.f_value:>10.4f} {format_pvalue(r.p_value):>10} "
                f"{significance_stars(r.p_value)}"
            )
    lines.append("---")
    lines.append(SIGNIF_LEGEND)
    return lines
