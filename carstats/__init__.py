"""
carstats: regression and model comparison for the mtcars report.

OLS fitting by QR, nested-model F tests, adjusted R² tables and
leverage / Cook's distance diagnostics over a typed, immutable dataset.

Submodules:
    core: Dataset, Result envelope, exceptions, numerics
    datasets: The built-in mtcars dataset
    regression: Model specifications, design matrices, OLS fits, diagnostics
    anova: Nested-model F tests and ANOVA tables
    selection: Candidate model comparison tables
    descriptive: Descriptive summaries
    plotting / report: Presentation
"""

__version__ = "0.1.0"

from carstats import anova
from carstats import datasets
from carstats import descriptive
from carstats import regression
from carstats import selection
from carstats.datasets import load_mtcars
from carstats.regression import ModelSpec, diagnose, fit, lm
from carstats.anova import compare_models
from carstats.selection import compare_candidates

__all__ = [
    "__version__",
    "anova",
    "datasets",
    "descriptive",
    "regression",
    "selection",
    "load_mtcars",
    "ModelSpec",
    "fit",
    "lm",
    "diagnose",
    "compare_models",
    "compare_candidates",
]
