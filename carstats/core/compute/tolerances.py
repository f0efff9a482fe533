"""
Numeric tolerances and reporting thresholds.

Single place for the constants that configure fitting and diagnostics:
- rank determination for the QR factorisation
- leverage / Cook's distance flags used by the diagnostics engine
- the conventional significance level used when narrating comparisons

ToleranceTier records are used by the test suite when comparing against
R reference values.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Double precision against R's lm(): agreement to printed precision and beyond
CPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='cpu_fp64',
    description='CPU double precision, matches R exactly',
)

# Reference values transcribed from printed R output (4-6 significant digits)
R_PRINTED = ToleranceTier(
    rtol=1e-4,
    atol=1e-4,
    name='r_printed',
    description='Agreement with rounded values printed by R',
)

# Relative threshold on |R_jj| / max|R_jj| below which a column counts as
# linearly dependent. Same default as R's lm(tol = 1e-07).
RANK_TOLERANCE = 1e-7

# Observation is flagged as high leverage when h_i > factor * (P + 1) / N
HIGH_LEVERAGE_FACTOR = 2.0

# Observation is flagged as influential when D_i > factor / N
COOKS_DISTANCE_FACTOR = 4.0

# Conventional alpha used when reporting comparisons (never enforced)
SIGNIFICANCE_LEVEL = 0.05

# Residual variance below factor * (mean(fitted)^2 + var(fitted)) counts as
# an essentially perfect fit, as in R's summary.lm()
PERFECT_FIT_TOLERANCE = 1e-30
