"""
Descriptive statistics over a Dataset.

Public API:
    describe(dataset, fields=None) -> DescriptiveSolution
    group_means(dataset, response, by) -> GroupMeansSolution
    correlations(dataset, response) -> CorrelationSolution
"""

from carstats.descriptive.solvers import correlations, describe, group_means
from carstats.descriptive.solution import (
    CorrelationSolution,
    DescriptiveSolution,
    GroupMeansSolution,
)

__all__ = [
    "describe",
    "group_means",
    "correlations",
    "DescriptiveSolution",
    "GroupMeansSolution",
    "CorrelationSolution",
]
