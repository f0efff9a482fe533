"""
QR decomposition for least squares.

Reduced QR via LAPACK (through NumPy) with numerical rank determination,
plus the triangular solves used by the OLS backend. Every call allocates
its own outputs; nothing is cached at module level, so the functions are
safe to call from several threads at once.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import solve_triangular

from carstats.core.exceptions import SingularMatrixError
from carstats.core.compute.tolerances import RANK_TOLERANCE


@dataclass(frozen=True)
class QRResult:
    """
    Result of a reduced QR decomposition.

    Attributes:
        Q: Orthonormal columns (n x p)
        R: Upper triangular factor (p x p)
        rank: Numerical rank determined from the R diagonal
        tol: Relative tolerance used for the rank decision
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    rank: int
    tol: float


def qr_cpu(
    X: NDArray[np.floating[Any]],
    tol: float | None = None,
) -> QRResult:
    """
    Reduced QR decomposition using LAPACK (via NumPy).

    Computes X = QR where Q has orthonormal columns and R is upper
    triangular. A column counts towards the rank when its pivot satisfies
    |R_jj| > tol * max|R_jj|.

    Args:
        X: Matrix to decompose (n x p), n >= p
        tol: Relative rank tolerance. Defaults to RANK_TOLERANCE.

    Returns:
        QRResult with Q, R, and numerical rank
    """
    if tol is None:
        tol = RANK_TOLERANCE

    Q, R = np.linalg.qr(X, mode='reduced')

    diag_R = np.abs(np.diag(R))
    if len(diag_R) > 0 and diag_R.max() > 0:
        rank = int(np.sum(diag_R > tol * diag_R.max()))
    else:
        rank = 0

    return QRResult(Q=Q, R=R, rank=rank, tol=tol)


def check_full_rank(qr_result: QRResult, matrix_name: str = 'X') -> None:
    """
    Raise SingularMatrixError unless the factorised matrix has full column rank.

    The condition number reported is the ratio of the largest to the
    smallest |R_jj|, a cheap lower bound for cond(X).
    """
    p = qr_result.R.shape[1]
    if qr_result.rank < p:
        diag_R = np.abs(np.diag(qr_result.R))
        with np.errstate(divide='ignore'):
            cond = float(diag_R.max() / diag_R.min()) if diag_R.size else float('inf')
        raise SingularMatrixError(
            f"Design matrix is rank-deficient: rank={qr_result.rank}, expected={p}. "
            f"This indicates perfectly collinear regressors.",
            matrix_name=matrix_name,
            condition_number=cond,
            rank=qr_result.rank,
            expected_rank=p,
        )


def qr_solve_cpu(
    qr_result: QRResult,
    y: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """
    Solve least squares from an existing QR factorisation.

    The solution is computed as:
        X = QR
        β = R⁻¹ Q'y
    by back substitution, never forming (X'X)⁻¹.

    Args:
        qr_result: Full-rank factorisation of the design matrix
        y: Response vector (n,)

    Returns:
        Coefficient vector β (p,)
    """
    Qty = qr_result.Q.T @ y
    return solve_triangular(qr_result.R, Qty, lower=False)


def unscaled_covariance(qr_result: QRResult) -> NDArray[np.floating[Any]]:
    """
    (X'X)⁻¹ computed as R⁻¹ R⁻ᵀ.

    Only the triangular factor is inverted (by back substitution against
    the identity), which avoids squaring the condition number.
    """
    p = qr_result.R.shape[1]
    R_inv = solve_triangular(qr_result.R, np.eye(p), lower=False)
    return R_inv @ R_inv.T
