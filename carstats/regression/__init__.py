"""
Linear models.

Public API:
    lm(formula, dataset, ...) -> LinearSolution
    fit(X, y, ...) -> LinearSolution
    diagnose(solution) -> Diagnostics

Model specifications are ModelSpec objects or R-style formula strings:

    >>> from carstats.datasets import load_mtcars
    >>> from carstats.regression import lm
    >>> sol = lm("mpg ~ wt + I(hp/wt)", load_mtcars())
    >>> print(sol.summary())
    >>> sol.diagnostics().influential_observations()
"""

from carstats.regression.terms import (
    Derived,
    Interaction,
    ModelSpec,
    Term,
    Variable,
)
from carstats.regression.formula import parse_formula
from carstats.regression.design import RegressionDesign
from carstats.regression.solution import LinearSolution, LinearParams
from carstats.regression.diagnostics import Diagnostics, diagnose
from carstats.regression.solvers import fit, lm

__all__ = [
    "fit",
    "lm",
    "diagnose",
    "parse_formula",
    "ModelSpec",
    "Term",
    "Variable",
    "Derived",
    "Interaction",
    "RegressionDesign",
    "LinearSolution",
    "LinearParams",
    "Diagnostics",
]
