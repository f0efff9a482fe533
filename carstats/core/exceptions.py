"""
Exception hierarchy for carstats.

All exceptions inherit from CarStatsError to allow catching any
library-specific error. Domain-specific exceptions inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class CarStatsError(Exception):
    """
    Base exception for all carstats errors.

    Attributes:
        candidate: Name of the candidate model whose fit raised the error.
            Set by the model selector; None everywhere else.
    """

    candidate: str | None = None

    def tag_candidate(self, candidate: str) -> 'CarStatsError':
        """
        Record which candidate model triggered this error.

        Returns the same instance so the caller can re-raise it without
        changing the exception type.
        """
        self.candidate = candidate
        if self.args and isinstance(self.args[0], str):
            self.args = (f"[candidate {candidate!r}] {self.args[0]}",) + self.args[1:]
        return self


class ValidationError(CarStatsError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class InvalidSpecificationError(ValidationError):
    """
    A model specification cannot be built against the dataset.

    Raised when a specification references an unknown field, reuses the
    response as a regressor, declares zero terms, or cannot be parsed.

    Attributes:
        field: The offending field name, if one is known
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class InsufficientDegreesOfFreedomError(ValidationError):
    """
    Number of observations does not exceed number of parameters.

    Attributes:
        n_observations: Rows in the design matrix
        n_parameters: Columns in the design matrix (intercept included)
    """

    def __init__(
        self,
        message: str,
        n_observations: int | None = None,
        n_parameters: int | None = None,
    ):
        super().__init__(message)
        self.n_observations = n_observations
        self.n_parameters = n_parameters

    @property
    def df_residual(self) -> int | None:
        if self.n_observations is None or self.n_parameters is None:
            return None
        return self.n_observations - self.n_parameters


class NotNestedError(ValidationError):
    """
    Two fitted models cannot be compared as restricted/full pair.

    Raised when the degrees-of-freedom relationship is inconsistent with
    nesting (including comparing a model with itself), or when the models
    were not fit to the same observations.

    Attributes:
        df_restricted: Residual degrees of freedom of the restricted model
        df_full: Residual degrees of freedom of the full model
    """

    def __init__(
        self,
        message: str,
        df_restricted: int | None = None,
        df_full: int | None = None,
    ):
        super().__init__(message)
        self.df_restricted = df_restricted
        self.df_full = df_full


class NumericalError(CarStatsError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Raised when the design matrix lacks full column rank (perfectly
    collinear regressors) and OLS cannot proceed.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank (number of design columns)
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank
