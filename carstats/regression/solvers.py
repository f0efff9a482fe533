"""
Solver dispatch for regression.

This module provides the public fitting functions:

    fit(X, y)              arrays, or an already-built RegressionDesign
    lm(formula, dataset)   model specification against a Dataset
"""

from __future__ import annotations

from typing import Any

from carstats.core.dataset import Dataset
from carstats.regression.design import RegressionDesign
from carstats.regression.solution import LinearSolution
from carstats.regression.terms import ModelSpec
from carstats.regression.backends.cpu import CPUQRBackend


def fit(
    X: RegressionDesign | Any,
    y: Any = None,
    *,
    tol: float | None = None,
) -> LinearSolution:
    """
    Fit a linear regression model.

    Solves the ordinary least squares problem:
        min_β ||y - Xβ||²

    Args:
        X: A RegressionDesign, or a design matrix (n x p). An array X is
            used as given; include a column of ones for the intercept.
        y: Response vector (n,). Must be omitted when X is a design.
        tol: Relative rank tolerance for the QR pivots. Defaults to
            RANK_TOLERANCE (1e-7, as R's lm()).

    Returns:
        LinearSolution with coefficients, inference and summary methods

    Raises:
        ValidationError: If inputs are invalid
        DimensionError: If X and y have inconsistent dimensions
        InsufficientDegreesOfFreedomError: If n <= p
        SingularMatrixError: If X is rank-deficient

    Example:
        >>> import numpy as np
        >>> from carstats.regression import fit
        >>>
        >>> X = np.column_stack([np.ones(100), np.random.randn(100, 2)])
        >>> y = X @ [1, 2, 3] + np.random.randn(100) * 0.1
        >>>
        >>> result = fit(X, y)
        >>> print(result.summary())
    """
    if isinstance(X, RegressionDesign):
        if y is not None:
            raise TypeError("fit(design) takes no y: the design already holds the response")
        design = X
    else:
        if y is None:
            raise TypeError("fit(X, y) requires y when X is an array")
        design = RegressionDesign.from_arrays(X, y)

    backend = CPUQRBackend(tol=tol)
    result = backend.solve(design)
    return LinearSolution(_result=result, _design=design)


def lm(
    formula: ModelSpec | str,
    dataset: Dataset,
    *,
    tol: float | None = None,
) -> LinearSolution:
    """
    Fit a model specification against a dataset.

    Args:
        formula: ModelSpec or R-style formula string, e.g. "mpg ~ wt + I(hp/wt)"
        dataset: Dataset holding every field the formula names
        tol: Relative rank tolerance, see fit()

    Raises:
        InvalidSpecificationError: If the formula cannot be built on the dataset
        InsufficientDegreesOfFreedomError: If n <= number of coefficients
        SingularMatrixError: If the design matrix is rank-deficient

    Example:
        >>> from carstats.datasets import load_mtcars
        >>> from carstats.regression import lm
        >>> sol = lm("mpg ~ wt", load_mtcars())
        >>> sol.coef["wt"]
        -5.344471...
    """
    design = RegressionDesign.from_spec(formula, dataset)
    return fit(design, tol=tol)
