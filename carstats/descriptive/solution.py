"""
Descriptive statistics solution types.

Contains the parameter payloads and user-facing solution wrappers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from carstats.core.result import Result

if TYPE_CHECKING:
    import pandas as pd


@dataclass(frozen=True)
class DescriptiveParams:
    """
    Parameter payload for describe().

    Per-field statistics are arrays of shape (p,), in field order.
    """
    columns: tuple[str, ...]
    n: int
    mean: NDArray[np.floating[Any]]
    sd: NDArray[np.floating[Any]]
    # Rows: Min, Q1, Median, Q3, Max (R quantile type 7); shape (5, p)
    quantiles: NDArray[np.floating[Any]]


@dataclass(frozen=True)
class GroupMeansParams:
    """Parameter payload for group_means()."""
    response: str
    by: str
    levels: tuple[str, ...]
    n: NDArray[np.integer[Any]]
    mean: NDArray[np.floating[Any]]
    sd: NDArray[np.floating[Any]]


@dataclass(frozen=True)
class CorrelationParams:
    """Parameter payload for correlations()."""
    response: str
    columns: tuple[str, ...]
    r: NDArray[np.floating[Any]]
    p_value: NDArray[np.floating[Any]]
    n: int


@dataclass(frozen=True)
class DescriptiveSolution:
    """
    User-facing descriptive statistics results.

    Wraps Result[DescriptiveParams] and provides convenient accessors.
    """
    _result: Result[DescriptiveParams]

    @property
    def columns(self) -> tuple[str, ...]:
        return self._result.params.columns

    @property
    def n(self) -> int:
        return self._result.params.n

    @property
    def mean(self) -> NDArray[np.floating[Any]]:
        return self._result.params.mean

    @property
    def sd(self) -> NDArray[np.floating[Any]]:
        return self._result.params.sd

    @property
    def quantiles(self) -> NDArray[np.floating[Any]]:
        return self._result.params.quantiles

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    def to_dataframe(self) -> 'pd.DataFrame':
        """One row per field: count, mean, sd, min, 25%, 50%, 75%, max."""
        import pandas as pd

        q = self.quantiles
        return pd.DataFrame(
            {
                'count': np.full(len(self.columns), self.n),
                'mean': self.mean,
                'sd': self.sd,
                'min': q[0],
                '25%': q[1],
                '50%': q[2],
                '75%': q[3],
                'max': q[4],
            },
            index=list(self.columns),
        )

    def summary(self) -> str:
        """R-style summary output."""
        table = self.to_dataframe()
        return table.to_string(float_format=lambda v: f"{v:.3f}")

    def __repr__(self) -> str:
        return f"DescriptiveSolution(n={self.n}, columns={list(self.columns)})"


@dataclass(frozen=True)
class GroupMeansSolution:
    """Per-level count, mean and standard deviation of a response."""
    _result: Result[GroupMeansParams]

    @property
    def response(self) -> str:
        return self._result.params.response

    @property
    def by(self) -> str:
        return self._result.params.by

    @property
    def levels(self) -> tuple[str, ...]:
        return self._result.params.levels

    @property
    def n(self) -> NDArray[np.integer[Any]]:
        return self._result.params.n

    @property
    def mean(self) -> NDArray[np.floating[Any]]:
        return self._result.params.mean

    @property
    def sd(self) -> NDArray[np.floating[Any]]:
        return self._result.params.sd

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def to_dataframe(self) -> 'pd.DataFrame':
        import pandas as pd

        return pd.DataFrame(
            {'n': self.n, 'mean': self.mean, 'sd': self.sd},
            index=pd.Index(list(self.levels), name=self.by),
        )

    def summary(self) -> str:
        header = f"{self.response} by {self.by}"
        return header + "\n" + self.to_dataframe().to_string(float_format=lambda v: f"{v:.3f}")

    def __repr__(self) -> str:
        return f"GroupMeansSolution({self.response!r} by {self.by!r}, levels={len(self.levels)})"


@dataclass(frozen=True)
class CorrelationSolution:
    """Pearson correlation of each continuous field with the response."""
    _result: Result[CorrelationParams]

    @property
    def response(self) -> str:
        return self._result.params.response

    @property
    def columns(self) -> tuple[str, ...]:
        return self._result.params.columns

    @property
    def r(self) -> NDArray[np.floating[Any]]:
        return self._result.params.r

    @property
    def p_value(self) -> NDArray[np.floating[Any]]:
        return self._result.params.p_value

    def ranked(self) -> list[tuple[str, float]]:
        """(field, r) sorted by |r|, strongest first."""
        order = np.argsort(-np.abs(self.r), kind='stable')
        return [(self.columns[i], float(self.r[i])) for i in order]

    def to_dataframe(self) -> 'pd.DataFrame':
        import pandas as pd

        return pd.DataFrame(
            {'r': self.r, 'p_value': self.p_value},
            index=list(self.columns),
        )

    def __repr__(self) -> str:
        return f"CorrelationSolution({self.response!r}, columns={list(self.columns)})"
