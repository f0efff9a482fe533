"""
Regression Design.

RegressionDesign turns a ModelSpec plus a Dataset into the numeric
design matrix X and response y. It knows about terms, dummy coding and
interactions; the Dataset only knows about columns.

Column layout:
    column 0             "(Intercept)", all ones
    continuous field     one column, named after the field
    categorical field    k-1 treatment indicators "field[level]"; the first
                         declared level is the reference and gets no column
    I(expr)              the expression evaluated row-wise
    a:b                  every column of a times every column of b,
                         left-major, named "a_col:b_col"

Columns follow the declared term order, so the layout is deterministic
for a given specification.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from carstats.core.dataset import CategoricalField, Dataset
from carstats.core.exceptions import DimensionError, InvalidSpecificationError
from carstats.core.validation import (
    check_array,
    check_finite,
    check_2d,
    check_1d,
    check_consistent_length,
)
from carstats.regression.terms import (
    Derived,
    Interaction,
    ModelSpec,
    Term,
    Variable,
    as_spec,
)


INTERCEPT = '(Intercept)'


@dataclass(frozen=True)
class RegressionDesign:
    """
    Regression design matrix specification.

    Immutable after construction.

    Construction:
        RegressionDesign.from_spec(spec, dataset)     # spec or formula string
        RegressionDesign.from_arrays(X, y)            # X used as given
    """
    _X: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _n: int
    _p: int
    _column_names: tuple[str, ...]
    _term_slices: dict[str, slice] = field(default_factory=dict)
    _has_intercept: bool = True
    _spec: ModelSpec | None = None
    _dataset: Dataset | None = None

    @classmethod
    def from_spec(cls, spec: ModelSpec | str, dataset: Dataset) -> RegressionDesign:
        """
        Build the design for `spec` against `dataset`.

        Raises:
            InvalidSpecificationError: Unknown field, categorical response,
                categorical field inside an arithmetic expression, or an
                expression producing non-finite values
        """
        spec = as_spec(spec)
        schema = dataset.schema

        if spec.response not in schema:
            raise InvalidSpecificationError(
                f"Response {spec.response!r} is not a field of the dataset. "
                f"Available: {schema.names}",
                field=spec.response,
            )
        if isinstance(schema[spec.response], CategoricalField):
            raise InvalidSpecificationError(
                f"Response {spec.response!r} is categorical; OLS needs a continuous response",
                field=spec.response,
            )

        n = dataset.n_observations
        names = [INTERCEPT]
        blocks = [np.ones((n, 1), dtype=np.float64)]
        term_slices: dict[str, slice] = {}

        for term in spec.terms:
            cols, col_names = _term_columns(term, dataset)
            start = len(names)
            blocks.append(cols)
            names.extend(col_names)
            term_slices[term.label] = slice(start, len(names))

        X = np.hstack(blocks)
        y = np.array(dataset.numeric(spec.response), dtype=np.float64)

        return cls._build(
            X, y,
            column_names=tuple(names),
            term_slices=term_slices,
            has_intercept=True,
            spec=spec,
            dataset=dataset,
        )

    @classmethod
    def from_arrays(
        cls,
        X: Any,
        y: Any,
        *,
        column_names: tuple[str, ...] | list[str] | None = None,
    ) -> RegressionDesign:
        """
        Build a design directly from arrays.

        X is used exactly as given: include a column of ones if an
        intercept is wanted. Column 0 counts as the intercept when it is
        constant 1.
        """
        X_arr = check_array(X, 'X')
        y_arr = check_array(y, 'y')
        if X_arr.ndim == 1:
            X_arr = X_arr.reshape(-1, 1)
        if y_arr.ndim == 2 and y_arr.shape[1] == 1:
            y_arr = y_arr.ravel()

        check_2d(X_arr, 'X')
        p = X_arr.shape[1]
        if p == 0:
            raise DimensionError("X: design matrix has no columns")

        if column_names is None:
            has_intercept = bool(np.all(X_arr[:, 0] == 1.0))
            if has_intercept:
                column_names = (INTERCEPT,) + tuple(f"x{j}" for j in range(1, p))
            else:
                column_names = tuple(f"x{j}" for j in range(1, p + 1))
        else:
            column_names = tuple(str(c) for c in column_names)
            if len(column_names) != p:
                raise DimensionError(
                    f"column_names: expected {p} names, got {len(column_names)}"
                )
            has_intercept = bool(np.all(X_arr[:, 0] == 1.0))

        term_slices = {
            name: slice(j, j + 1)
            for j, name in enumerate(column_names)
            if not (has_intercept and j == 0)
        }
        return cls._build(
            X_arr.copy(), y_arr.copy(),
            column_names=column_names,
            term_slices=term_slices,
            has_intercept=has_intercept,
            spec=None,
            dataset=None,
        )

    @classmethod
    def _build(
        cls,
        X: NDArray,
        y: NDArray,
        *,
        column_names: tuple[str, ...],
        term_slices: dict[str, slice],
        has_intercept: bool,
        spec: ModelSpec | None,
        dataset: Dataset | None,
    ) -> RegressionDesign:
        """Internal builder with validation."""
        check_2d(X, 'X')
        check_1d(y, 'y')
        check_finite(X, 'X')
        check_finite(y, 'y')
        check_consistent_length(X, y, names=('X', 'y'))

        X.setflags(write=False)
        y.setflags(write=False)
        n, p = X.shape
        return cls(
            _X=X, _y=y, _n=n, _p=p,
            _column_names=column_names,
            _term_slices=term_slices,
            _has_intercept=has_intercept,
            _spec=spec,
            _dataset=dataset,
        )

    # === Properties ===

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Design matrix (n x p), read-only."""
        return self._X

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,), read-only."""
        return self._y

    @property
    def n(self) -> int:
        """Number of observations."""
        return self._n

    @property
    def p(self) -> int:
        """Number of columns, intercept included."""
        return self._p

    @property
    def n_regressors(self) -> int:
        """Number of non-intercept columns."""
        return self._p - 1 if self._has_intercept else self._p

    @property
    def column_names(self) -> tuple[str, ...]:
        return self._column_names

    @property
    def term_slices(self) -> dict[str, slice]:
        """Term label -> columns of X holding that term."""
        return dict(self._term_slices)

    @property
    def has_intercept(self) -> bool:
        return self._has_intercept

    @property
    def spec(self) -> ModelSpec | None:
        """Specification the design was built from, if any."""
        return self._spec

    @property
    def dataset(self) -> Dataset | None:
        return self._dataset

    @property
    def row_labels(self) -> tuple[str, ...]:
        if self._dataset is not None:
            return self._dataset.row_labels
        return tuple(str(i) for i in range(self._n))

    def __repr__(self) -> str:
        source = self._spec.formula if self._spec is not None else 'arrays'
        return f"RegressionDesign({source!r}, n={self._n}, p={self._p})"


# =====================================================================
# Term expansion
# =====================================================================


def encode_treatment(
    values: NDArray,
    levels: tuple[str, ...],
) -> tuple[NDArray, tuple[str, ...]]:
    """
    Treatment (dummy) coding for a single categorical column.

    Drops the first declared level (the reference) and creates k-1
    indicator columns, in declared level order. Levels with no observations
    still get a (zero) column so the layout depends only on the schema.

    Returns:
        (indicators, non-reference levels)
    """
    kept = levels[1:]
    indicators = np.column_stack(
        [(values == level).astype(np.float64) for level in kept]
    )
    return indicators, kept


def _term_columns(term: Term, dataset: Dataset) -> tuple[NDArray, list[str]]:
    """Numeric columns and column names for one term."""
    schema = dataset.schema
    n = dataset.n_observations

    if isinstance(term, Variable):
        _require_field(term.name, dataset)
        f = schema[term.name]
        if isinstance(f, CategoricalField):
            indicators, kept = encode_treatment(dataset[term.name], f.levels)
            return indicators, [f"{term.name}[{level}]" for level in kept]
        return dataset.numeric(term.name).reshape(-1, 1).astype(np.float64), [term.name]

    if isinstance(term, Derived):
        for name in sorted(term.fields()):
            _require_field(name, dataset)
            if isinstance(schema[name], CategoricalField):
                raise InvalidSpecificationError(
                    f"Categorical field {name!r} cannot be used in the "
                    f"arithmetic expression {term.label}",
                    field=name,
                )
        columns = {name: dataset.numeric(name) for name in term.fields()}
        values = term.evaluate(columns, n)
        if not np.all(np.isfinite(values)):
            bad = int(np.sum(~np.isfinite(values)))
            raise InvalidSpecificationError(
                f"{term.label} produced {bad} non-finite value(s)"
            )
        return values.reshape(-1, 1), [term.label]

    if isinstance(term, Interaction):
        left, left_names = _term_columns(term.left, dataset)
        right, right_names = _term_columns(term.right, dataset)
        cols = []
        names = []
        for i, ln in enumerate(left_names):
            for j, rn in enumerate(right_names):
                cols.append(left[:, i] * right[:, j])
                names.append(f"{ln}:{rn}")
        return np.column_stack(cols), names

    raise InvalidSpecificationError(f"Unsupported term type: {type(term).__name__}")


def _require_field(name: str, dataset: Dataset) -> None:
    if name not in dataset.schema:
        raise InvalidSpecificationError(
            f"Unknown field {name!r}. Available: {dataset.schema.names}",
            field=name,
        )
