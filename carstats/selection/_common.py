"""
Common data types for candidate-model comparison tables.
"""

from dataclasses import dataclass


# Direction of the F test between a candidate and the proposed model
PROPOSED = 'proposed'
NESTED_IN_PROPOSED = 'nested_in_proposed'        # candidate is the restricted model
CONTAINS_PROPOSED = 'contains_proposed'          # proposed is the restricted model


@dataclass(frozen=True)
class CandidateRow:
    """
    One row of the comparison table.

    p_value / f_statistic are None ("NA") when the candidate and the
    proposed model are not nested, and for the proposed model itself.
    """
    name: str
    formula: str
    n_terms: int
    n_coefficients: int
    r_squared: float
    adjusted_r_squared: float
    f_statistic: float | None
    p_value: float | None
    direction: str | None


@dataclass(frozen=True)
class SelectionParams:
    """Parameter payload for compare_candidates()."""
    rows: tuple[CandidateRow, ...]
    proposed: str
    response: str
    n_obs: int
