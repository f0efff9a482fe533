"""
Shared compute infrastructure for carstats.

Timing utilities, numeric tolerances and linear algebra kernels shared by
the regression and comparison backends.

Submodules:
    timing: Execution timing utilities
    tolerances: Rank tolerance, diagnostic thresholds, test tolerance tiers
    linalg: Linear algebra kernels (QR)
"""

from carstats.core.compute.timing import Timer, timed

__all__ = [
    "Timer",
    "timed",
]
