"""
Common data types for model comparison.

Contains the frozen parameter payloads that go inside Result[P] envelopes.
Each payload is a pure data container with no computation.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class AnovaTableRow:
    """One row of a per-term ANOVA table (one term or residuals)."""
    term: str
    df: int
    sum_sq: float
    mean_sq: float
    f_value: float | None    # None for Residuals row
    p_value: float | None    # None for Residuals row


@dataclass(frozen=True)
class ModelComparisonRow:
    """
    One row of a model-comparison table, as printed by R's anova(m1, m2, ...).

    The first model has no predecessor, so its df / sum_sq / F / p are None.
    """
    model: str
    res_df: int
    rss: float
    df: int | None
    sum_sq: float | None
    f_value: float | None
    p_value: float | None


@dataclass(frozen=True)
class ComparisonParams:
    """
    Parameter payload for a nested-model F test.

    F = [(RSS_r - RSS_f) / df_numerator] / [RSS_f / df_denominator]
    with df_numerator = P_f - P_r and df_denominator = N - P_f - 1.
    """
    restricted: str
    full: str
    n_obs: int
    rss_restricted: float
    rss_full: float
    df_restricted: int       # residual df of the restricted model
    df_full: int             # residual df of the full model
    df_numerator: int
    df_denominator: int
    sum_sq: float
    f_value: float
    p_value: float


@dataclass(frozen=True)
class ModelAnovaParams:
    """Parameter payload for a sequential comparison of several models."""
    table: tuple[ModelComparisonRow, ...]
    n_obs: int
    scale: float             # residual mean square of the largest model
    scale_df: int


@dataclass(frozen=True)
class AnovaParams:
    """Parameter payload for a Type I (sequential) per-term ANOVA table."""
    table: tuple[AnovaTableRow, ...]
    model: str
    response: str
    n_obs: int
    residual_df: int
    residual_ss: float
    residual_ms: float
