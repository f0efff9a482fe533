"""
Model comparison by F tests.

Public API:
    compare_models(restricted, full) -> ComparisonSolution
    anova_models(m1, m2, ...) -> ModelAnovaSolution
    anova_table(solution) -> AnovaSolution

Example:
    >>> from carstats.anova import compare_models
    >>> from carstats.regression import lm
    >>> small = lm("mpg ~ wt + I(hp/wt)", mtcars)
    >>> big = lm("mpg ~ wt * I(hp/wt)", mtcars)
    >>> result = compare_models(small, big)
    >>> print(result.summary())
"""

from carstats.anova.solvers import anova_models, anova_table, compare_models
from carstats.anova.solution import (
    AnovaSolution,
    ComparisonSolution,
    ModelAnovaSolution,
)
from carstats.anova._common import AnovaTableRow, ModelComparisonRow

__all__ = [
    "compare_models",
    "anova_models",
    "anova_table",
    "ComparisonSolution",
    "ModelAnovaSolution",
    "AnovaSolution",
    "AnovaTableRow",
    "ModelComparisonRow",
]
