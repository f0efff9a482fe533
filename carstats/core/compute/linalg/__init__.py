"""
Linear algebra kernels for carstats.

All functions follow these conventions:
    - NumPy/SciPy (LAPACK under the hood)
    - Each operation returns a structured result dataclass
    - Errors are raised immediately with clear messages
"""

from carstats.core.compute.linalg.qr import (
    QRResult,
    check_full_rank,
    qr_cpu,
    qr_solve_cpu,
    unscaled_covariance,
)

__all__ = [
    "QRResult",
    "check_full_rank",
    "qr_cpu",
    "qr_solve_cpu",
    "unscaled_covariance",
]
