"""
User-facing candidate comparison table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, TYPE_CHECKING

from carstats.core.result import Result
from carstats.core.formatting import format_pvalue, significance_stars
from carstats.selection._common import CandidateRow, SelectionParams

if TYPE_CHECKING:
    import pandas as pd
    from carstats.regression.solution import LinearSolution


@dataclass(frozen=True)
class SelectionSolution:
    """
    Comparison table produced by compare_candidates().

    Read-only output for presentation: rows in candidate order plus the
    fitted solution of every candidate.
    """
    _result: Result[SelectionParams]
    _solutions: dict[str, 'LinearSolution'] = field(default_factory=dict)

    @property
    def rows(self) -> tuple[CandidateRow, ...]:
        return self._result.params.rows

    @property
    def proposed(self) -> str:
        """Name of the proposed model."""
        return self._result.params.proposed

    @property
    def response(self) -> str:
        return self._result.params.response

    @property
    def n_obs(self) -> int:
        return self._result.params.n_obs

    @property
    def solutions(self) -> Mapping[str, 'LinearSolution']:
        """Candidate name -> fitted model."""
        return MappingProxyType(self._solutions)

    def row(self, name: str) -> CandidateRow:
        for r in self.rows:
            if r.name == name:
                return r
        raise KeyError(f"No candidate {name!r}. Available: {[r.name for r in self.rows]}")

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
        """Table indexed by candidate name; NA p-values become NaN."""
        import pandas as pd

        nan = float('nan')
        return pd.DataFrame(
            {
                'formula': [r.formula for r in self.rows],
                'terms': [r.n_terms for r in self.rows],
                'coefficients': [r.n_coefficients for r in self.rows],
                'r_squared': [r.r_squared for r in self.rows],
                'adj_r_squared': [r.adjusted_r_squared for r in self.rows],
                'F': [nan if r.f_statistic is None else r.f_statistic for r in self.rows],
                'p_value': [nan if r.p_value is None else r.p_value for r in self.rows],
                'direction': [r.direction for r in self.rows],
            },
            index=pd.Index([r.name for r in self.rows], name='model'),
        )

    def summary(self) -> str:
        """Fixed-width text table, proposed model marked with '>'."""
        name_w = max(len(r.name) for r in self.rows)
        lines = [
            f"Candidate models for {self.response} (n = {self.n_obs}); "
            f"F tests against the proposed model",
            "",
            f"  {'Model':<{name_w}} {'Terms':>5} {'R2':>8} {'Adj.R2':>8} {'Pr(>F)':>10}",
        ]
        for r in self.rows:
            marker = '>' if r.name == self.proposed else ' '
            if r.name == self.proposed:
                p_text = '-'
            else:
                p_text = format_pvalue(r.p_value)
            lines.append(
                f"{marker} {r.name:<{name_w}} {r.n_terms:>5} {r.r_squared:>8.4f} "
                f"{r.adjusted_r_squared:>8.4f} {p_text:>10} {significance_stars(r.p_value)}"
            )
        lines.append("")
        lines.append("NA: not nested with the proposed model")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"SelectionSolution(candidates={len(self.rows)}, proposed={self.proposed!r})"
