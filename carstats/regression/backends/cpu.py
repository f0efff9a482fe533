"""
CPU reference backend for linear regression.

Uses QR decomposition via LAPACK (through NumPy/SciPy). This is the
reference implementation that replicates R's lm() for full-rank designs.
"""

import warnings
from typing import Any

import numpy as np

from carstats.core.result import Result
from carstats.core.exceptions import InsufficientDegreesOfFreedomError
from carstats.core.compute.timing import Timer
from carstats.core.compute.tolerances import PERFECT_FIT_TOLERANCE, RANK_TOLERANCE
from carstats.core.compute.linalg.qr import (
    check_full_rank,
    qr_cpu,
    qr_solve_cpu,
    unscaled_covariance,
)
from carstats.regression.design import RegressionDesign
from carstats.regression.solution import LinearParams


class CPUQRBackend:
    """
    CPU backend using QR decomposition.

    Maps RegressionDesign -> Result[LinearParams]. Holds no state between
    calls besides the rank tolerance, so one instance may serve any number
    of fits.
    """

    def __init__(self, tol: float | None = None):
        self.tol = RANK_TOLERANCE if tol is None else float(tol)

    @property
    def name(self) -> str:
        return 'cpu_qr'

    def solve(self, design: RegressionDesign) -> Result[LinearParams]:
        """
        Solve OLS via QR decomposition.

        Algorithm:
            1. Compute QR decomposition: X = QR, decide rank from diag(R)
            2. Solve: β = R⁻¹ Q'y
            3. Residuals, fitted values, sums of squares
            4. Unscaled covariance (X'X)⁻¹ = R⁻¹ R⁻ᵀ

        Raises:
            InsufficientDegreesOfFreedomError: If n <= p
            SingularMatrixError: If X is rank-deficient
        """
        n, p = design.n, design.p
        if n - p <= 0:
            raise InsufficientDegreesOfFreedomError(
                f"Need more observations than coefficients: n={n}, p={p} "
                f"(residual df = {n - p})",
                n_observations=n,
                n_parameters=p,
            )

        timer = Timer()
        timer.start()

        X = design.X
        y = design.y

        with timer.section('qr_decomposition'):
            qr_result = qr_cpu(X, tol=self.tol)
            check_full_rank(qr_result, matrix_name='X')

        with timer.section('solve'):
            coefficients = qr_solve_cpu(qr_result, y)

        with timer.section('residuals'):
            fitted_values = X @ coefficients
            residuals = y - fitted_values

        with timer.section('statistics'):
            rss = float(residuals @ residuals)
            if design.has_intercept:
                tss = float(np.sum((y - np.mean(y)) ** 2))
            else:
                tss = float(y @ y)
            cov_unscaled = unscaled_covariance(qr_result)

        timer.stop()

        df_residual = n - qr_result.rank
        fit_warnings: list[str] = []
        resvar = rss / df_residual
        scale = np.mean(fitted_values) ** 2 + np.var(fitted_values, ddof=1)
        if resvar <= scale * PERFECT_FIT_TOLERANCE:
            msg = (
                "essentially perfect fit: residual sum of squares is zero, "
                "t statistics are infinite and the summary may be unreliable"
            )
            warnings.warn(msg, RuntimeWarning, stacklevel=3)
            fit_warnings.append(msg)

        for arr in (coefficients, residuals, fitted_values, cov_unscaled):
            arr.setflags(write=False)

        params = LinearParams(
            coefficients=coefficients,
            residuals=residuals,
            fitted_values=fitted_values,
            rss=rss,
            tss=tss,
            rank=qr_result.rank,
            df_residual=df_residual,
            qr=qr_result,
            unscaled_cov=cov_unscaled,
        )

        info: dict[str, Any] = {
            'method': 'qr',
            'rank': qr_result.rank,
            'tol': qr_result.tol,
        }

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(fit_warnings),
        )
