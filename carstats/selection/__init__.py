"""
Candidate model comparison tables.

Public API:
    compare_candidates(dataset, candidates, *, proposed) -> SelectionSolution
"""

from carstats.selection.solvers import compare_candidates
from carstats.selection.solution import SelectionSolution
from carstats.selection._common import (
    CONTAINS_PROPOSED,
    NESTED_IN_PROPOSED,
    PROPOSED,
    CandidateRow,
)

__all__ = [
    "compare_candidates",
    "SelectionSolution",
    "CandidateRow",
    "PROPOSED",
    "NESTED_IN_PROPOSED",
    "CONTAINS_PROPOSED",
]
