"""
Regression solution types.

Contains the parameter payload and user-facing solution wrapper.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from carstats.core.result import Result
from carstats.core.compute.linalg.qr import QRResult
from carstats.core.formatting import SIGNIF_LEGEND, format_pvalue, significance_stars
from carstats.core.validation import check_level

if TYPE_CHECKING:
    import pandas as pd
    from carstats.regression.design import RegressionDesign
    from carstats.regression.diagnostics import Diagnostics
    from carstats.regression.terms import ModelSpec


@dataclass(frozen=True)
class LinearParams:
    """
    Parameter payload for linear regression.

    This is the immutable data computed by backends. The QR factor is kept
    so that leverage and covariance never need X'X to be formed.
    """
    coefficients: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    rss: float
    tss: float
    rank: int
    df_residual: int
    qr: QRResult
    unscaled_cov: NDArray[np.floating[Any]]


@dataclass(frozen=True)
class LinearSolution:
    """
    User-facing regression results.

    Wraps the backend Result and provides accessors for every regression
    output: standard errors, t statistics, p-values, R², the overall F
    test, confidence intervals and an R-style summary. All derived values
    are recomputed from the stored payload on access.
    """
    _result: Result[LinearParams]
    _design: 'RegressionDesign'

    # === Payload ===

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def rss(self) -> float:
        return self._result.params.rss

    @property
    def tss(self) -> float:
        return self._result.params.tss

    @property
    def rank(self) -> int:
        return self._result.params.rank

    @property
    def df_residual(self) -> int:
        return self._result.params.df_residual

    @property
    def qr(self) -> QRResult:
        return self._result.params.qr

    # === Model ===

    @property
    def design(self) -> 'RegressionDesign':
        return self._design

    @property
    def spec(self) -> 'ModelSpec | None':
        return self._design.spec

    @property
    def name(self) -> str:
        """Display name: the model's name or formula, else 'X'."""
        return self.spec.display_name if self.spec is not None else 'X'

    @property
    def column_names(self) -> tuple[str, ...]:
        return self._design.column_names

    @property
    def n_observations(self) -> int:
        return self._design.n

    @property
    def n_coefficients(self) -> int:
        """P + 1: number of columns of X."""
        return self._design.p

    @property
    def n_regressors(self) -> int:
        """P: number of non-intercept columns of X."""
        return self._design.n_regressors

    @property
    def coef(self) -> 'pd.Series':
        """Coefficients as a Series indexed by column name."""
        import pandas as pd
        return pd.Series(self.coefficients, index=list(self.column_names), name='Estimate')

    # === Fit statistics ===

    @property
    def r_squared(self) -> float:
        if self.tss == 0:
            return 1.0 if self.rss == 0 else 0.0
        return 1.0 - (self.rss / self.tss)

    @property
    def adjusted_r_squared(self) -> float:
        """1 - (1 - R²)(N - 1)/(N - P - 1) for models with an intercept."""
        n = self._design.n
        df_int = 1 if self._design.has_intercept else 0
        return 1.0 - (1.0 - self.r_squared) * (n - df_int) / self.df_residual

    @property
    def residual_std_error(self) -> float:
        """σ̂ = sqrt(RSS / (N - P - 1))."""
        return float(np.sqrt(self.rss / self.df_residual))

    @property
    def sigma(self) -> float:
        return self.residual_std_error

    @property
    def vcov(self) -> NDArray[np.floating[Any]]:
        """Coefficient covariance σ̂² (X'X)⁻¹."""
        return (self.rss / self.df_residual) * self._result.params.unscaled_cov

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        """
        Standard errors of coefficients.

        Computed as SE(β) = sqrt(diag(σ² (X'X)⁻¹)) with (X'X)⁻¹ taken from
        the QR factor.
        """
        return np.sqrt(np.diag(self.vcov))

    @property
    def t_statistics(self) -> NDArray[np.floating[Any]]:
        """t-statistics for coefficients (infinite on a perfect fit)."""
        with np.errstate(divide='ignore', invalid='ignore'):
            return self.coefficients / self.standard_errors

    @property
    def p_values(self) -> NDArray[np.floating[Any]]:
        """Two-sided p-values from Student t with df_residual degrees of freedom."""
        return 2.0 * stats.t.sf(np.abs(self.t_statistics), self.df_residual)

    @property
    def f_df(self) -> tuple[int, int]:
        """(numerator, denominator) degrees of freedom of the overall F test."""
        return self.n_regressors, self.df_residual

    @property
    def f_statistic(self) -> float:
        """
        Overall regression F statistic against the intercept-only model.

        NaN for the intercept-only model itself.
        """
        df_model = self.n_regressors
        if df_model == 0:
            return float('nan')
        with np.errstate(divide='ignore', invalid='ignore'):
            return float(((self.tss - self.rss) / df_model) / (self.rss / self.df_residual))

    @property
    def f_p_value(self) -> float:
        if self.n_regressors == 0:
            return float('nan')
        return float(stats.f.sf(self.f_statistic, *self.f_df))

    # === Tables ===

    def conf_int(self, level: float = 0.95) -> 'pd.DataFrame':
        """
        Coefficient confidence intervals β ± t_{1-α/2, df} · SE.

        Columns are labelled like R's confint(): "2.5 %", "97.5 %".
        """
        import pandas as pd

        check_level(level)
        alpha = 1.0 - level
        lower, upper = t_interval(self.coefficients, self.standard_errors, self.df_residual, level)
        return pd.DataFrame(
            {
                f"{100 * alpha / 2:.3g} %": lower,
                f"{100 * (1 - alpha / 2):.3g} %": upper,
            },
            index=list(self.column_names),
        )

    def coef_table(self) -> 'pd.DataFrame':
        """Coefficient table with R's column names."""
        import pandas as pd

        return pd.DataFrame(
            {
                'Estimate': self.coefficients,
                'Std. Error': self.standard_errors,
                't value': self.t_statistics,
                'Pr(>|t|)': self.p_values,
            },
            index=list(self.column_names),
        )

    def diagnostics(self) -> 'Diagnostics':
        """Leverage, Cook's distance and residual diagnostics for this fit."""
        from carstats.regression.diagnostics import diagnose
        return diagnose(self)

    # === Metadata ===

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

    def summary(self) -> str:
        """Generate R-style summary output."""
        if self.spec is not None:
            call = f"lm(formula = {self.spec.formula})"
        else:
            call = "fit(X, y)"

        q = np.quantile(self.residuals, [0.0, 0.25, 0.5, 0.75, 1.0])
        width = max(len(name) for name in self.column_names)

        lines = [
            "Call:",
            call,
            "",
            "Residuals:",
            f"{'Min':>10} {'1Q':>10} {'Median':>10} {'3Q':>10} {'Max':>10}",
            " ".join(f"{v:>10.4f}" for v in q),
            "",
            "Coefficients:",
            f"{'':<{width}} {'Estimate':>12} {'Std. Error':>12} {'t value':>9} {'Pr(>|t|)':>10}",
        ]
        for name, b, se, t, p in zip(
            self.column_names, self.coefficients, self.standard_errors,
            self.t_statistics, self.p_values,
        ):
            lines.append(
                f"{name:<{width}} {b:>12.5f} {se:>12.5f} {t:>9.3f} "
                f"{format_pvalue(p):>10} {significance_stars(p)}"
            )
        lines.append("---")
        lines.append(SIGNIF_LEGEND)
        lines.append("")
        lines.append(
            f"Residual standard error: {self.residual_std_error:.4g} "
            f"on {self.df_residual} degrees of freedom"
        )
        lines.append(
            f"Multiple R-squared:  {self.r_squared:.4f},\t"
            f"Adjusted R-squared:  {self.adjusted_r_squared:.4f}"
        )
        if self.n_regressors > 0:
            df1, df2 = self.f_df
            lines.append(
                f"F-statistic: {self.f_statistic:.4g} on {df1} and {df2} DF,  "
                f"p-value: {self.f_p_value:.4g}"
            )
        for w in self.warnings:
            lines.append(f"Warning: {w}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"LinearSolution({self.name!r}, n={self.n_observations}, "
            f"p={self.n_coefficients}, r_squared={self.r_squared:.4f})"
        )


def t_interval(
    estimate: NDArray,
    se: NDArray,
    df: int,
    level: float,
) -> tuple[NDArray, NDArray]:
    """Two-sided Student-t interval estimate ± t_{(1+level)/2, df} · se."""
    crit = stats.t.ppf(0.5 + level / 2.0, df)
    return estimate - crit * se, estimate + crit * se
