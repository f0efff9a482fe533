"""
Core infrastructure for carstats.

Shared abstractions used by every subpackage (regression, anova,
selection, descriptive).

Key components:
    dataset: Schema, field kinds and the immutable Dataset container
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing, tolerances, linear algebra primitives
"""

from carstats.core.dataset import (
    CategoricalField,
    ContinuousField,
    Dataset,
    Schema,
)
from carstats.core.result import Result
from carstats.core.exceptions import (
    CarStatsError,
    ValidationError,
    DimensionError,
    InvalidSpecificationError,
    InsufficientDegreesOfFreedomError,
    NotNestedError,
    NumericalError,
    SingularMatrixError,
)

__all__ = [
    # Data
    "CategoricalField",
    "ContinuousField",
    "Dataset",
    "Schema",
    # Result
    "Result",
    # Exceptions
    "CarStatsError",
    "ValidationError",
    "DimensionError",
    "InvalidSpecificationError",
    "InsufficientDegreesOfFreedomError",
    "NotNestedError",
    "NumericalError",
    "SingularMatrixError",
]
