"""
Regression diagnostics.

Per-observation influence measures computed from a fitted LinearSolution:

    leverage                 h_i = sum_j Q_ij²  (diagonal of the hat matrix)
    Cook's distance          D_i = e_i² / (p σ̂²) · h_i / (1 - h_i)²
    standardized residuals   r_i = e_i / (σ̂ sqrt(1 - h_i))
    studentized residuals    t_i = r_i sqrt((df - 1) / (df - r_i²))

where p = P + 1 is the number of coefficients and df = N - p. The hat
diagonal comes from the stored reduced Q factor, so neither X'X nor the
N x N hat matrix is ever formed.

Flags follow the usual reporting conventions (h_i > 2p/N, D_i > 4/N);
they are labels for presentation, nothing is removed or refitted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from carstats.core.compute.tolerances import COOKS_DISTANCE_FACTOR, HIGH_LEVERAGE_FACTOR
from carstats.core.validation import check_level
from carstats.regression.solution import t_interval

if TYPE_CHECKING:
    import pandas as pd
    from carstats.regression.solution import LinearSolution


@dataclass(frozen=True)
class Diagnostics:
    """
    Influence diagnostics of one fitted model.

    Attributes:
        leverage: Hat values h_i, 0 <= h_i <= 1, summing to p
        cooks_distance: Cook's distance D_i
        standardized_residuals: Internally studentized residuals
        studentized_residuals: Externally studentized (leave-one-out) residuals
        residuals: Raw residuals e_i
        fitted_values: Fitted values
        row_labels: Observation labels
        n_coefficients: p = P + 1
        df_residual: N - p
        coefficients: Coefficient estimates, for confidence intervals
        standard_errors: Coefficient standard errors
        column_names: Coefficient names
    """
    leverage: NDArray[np.floating[Any]]
    cooks_distance: NDArray[np.floating[Any]]
    standardized_residuals: NDArray[np.floating[Any]]
    studentized_residuals: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    row_labels: tuple[str, ...]
    n_coefficients: int
    df_residual: int
    coefficients: NDArray[np.floating[Any]]
    standard_errors: NDArray[np.floating[Any]]
    column_names: tuple[str, ...]

    @property
    def n_observations(self) -> int:
        return len(self.leverage)

    @property
    def leverage_threshold(self) -> float:
        """2(P + 1)/N."""
        return HIGH_LEVERAGE_FACTOR * self.n_coefficients / self.n_observations

    @property
    def cooks_threshold(self) -> float:
        """4/N."""
        return COOKS_DISTANCE_FACTOR / self.n_observations

    @property
    def high_leverage(self) -> NDArray[np.bool_]:
        return self.leverage > self.leverage_threshold

    @property
    def influential(self) -> NDArray[np.bool_]:
        return self.cooks_distance > self.cooks_threshold

    def influential_observations(self) -> list[str]:
        """Labels of observations with D_i > 4/N, largest distance first."""
        return self._flagged(self.influential, self.cooks_distance)

    def high_leverage_observations(self) -> list[str]:
        """Labels of observations with h_i > 2p/N, largest leverage first."""
        return self._flagged(self.high_leverage, self.leverage)

    def _flagged(self, mask: NDArray[np.bool_], score: NDArray) -> list[str]:
        idx = np.flatnonzero(mask)
        order = idx[np.argsort(-score[idx], kind='stable')]
        return [self.row_labels[i] for i in order]

    def conf_int(self, level: float = 0.95) -> NDArray[np.floating[Any]]:
        """
        Coefficient confidence intervals as a (p, 2) array of [lower, upper].

        Raises:
            ValidationError: If level is not in (0, 1)
        """
        check_level(level)
        lower, upper = t_interval(self.coefficients, self.standard_errors, self.df_residual, level)
        return np.column_stack([lower, upper])

    def to_dataframe(self) -> 'pd.DataFrame':
        """One row per observation, indexed by row label."""
        import pandas as pd

        return pd.DataFrame(
            {
                'fitted': self.fitted_values,
                'residual': self.residuals,
                'leverage': self.leverage,
                'cooks_distance': self.cooks_distance,
                'std_residual': self.standardized_residuals,
                'student_residual': self.studentized_residuals,
                'high_leverage': self.high_leverage,
                'influential': self.influential,
            },
            index=list(self.row_labels),
        )


def diagnose(solution: 'LinearSolution') -> Diagnostics:
    """
    Compute influence diagnostics for a fitted model.

    Pure function of the solution's stored state; every call returns new
    arrays.
    """
    Q = solution.qr.Q
    e = solution.residuals
    p = solution.n_coefficients
    df = solution.df_residual
    sigma2 = solution.rss / df

    h = np.sum(Q * Q, axis=1)
    # Rounding can push h a hair outside [0, 1]
    h = np.clip(h, 0.0, 1.0)
    one_minus_h = 1.0 - h

    with np.errstate(divide='ignore', invalid='ignore'):
        cooks = (e ** 2 / (p * sigma2)) * (h / one_minus_h ** 2)
        standardized = e / (np.sqrt(sigma2) * np.sqrt(one_minus_h))
        if df > 1:
            studentized = standardized * np.sqrt((df - 1) / (df - standardized ** 2))
        else:
            studentized = np.full_like(standardized, np.nan)

    return Diagnostics(
        leverage=h,
        cooks_distance=cooks,
        standardized_residuals=standardized,
        studentized_residuals=studentized,
        residuals=np.array(e),
        fitted_values=np.array(solution.fitted_values),
        row_labels=solution.design.row_labels,
        n_coefficients=p,
        df_residual=df,
        coefficients=np.array(solution.coefficients),
        standard_errors=solution.standard_errors,
        column_names=solution.column_names,
    )
