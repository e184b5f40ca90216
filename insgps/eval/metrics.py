"""
Accuracy and consistency metrics for filter runs.

Accuracy: position errors against a reference trajectory and their RMSE.
Consistency: normalized innovation squared (NIS) and its chi-square band,
and a positive semi-definiteness check for covariance matrices.
"""

from typing import Optional, Tuple, Union

import numpy as np
from scipy import stats

from insgps.estimators.state import PSD_TOLERANCE


def compute_position_errors(
    truth: np.ndarray, estimated: np.ndarray
) -> np.ndarray:
    """
    Compute position errors between true and estimated positions.

    Args:
        truth: True positions, shape (N, 3)
        estimated: Estimated positions, shape (N, 3)

    Returns:
        errors: estimated - truth, shape (N, 3)

    Raises:
        ValueError: If inputs have incompatible shapes
    """
    truth = np.asarray(truth, dtype=np.float64)
    estimated = np.asarray(estimated, dtype=np.float64)

    if truth.shape != estimated.shape:
        raise ValueError(
            f"Shape mismatch: truth {truth.shape} vs estimated {estimated.shape}"
        )

    return estimated - truth


def compute_rmse(errors: np.ndarray, axis: Optional[int] = None) -> Union[float, np.ndarray]:
    """
    Compute Root Mean Square Error (RMSE).

    Args:
        errors: Error vectors, shape (N, d) or (N,)
        axis: None for a scalar over everything, 0 for per-axis.

    Returns:
        rmse: RMSE value(s)
    """
    errors = np.asarray(errors, dtype=np.float64)

    if axis is None:
        return float(np.sqrt(np.mean(errors**2)))
    return np.sqrt(np.mean(errors**2, axis=axis))


def compute_nis(innovation: np.ndarray, S: np.ndarray) -> np.ndarray:
    """
    Compute Normalized Innovation Squared (NIS) for a sequence of updates.

        NIS = yᵀ S⁻¹ y

    Args:
        innovation: Innovation vectors, shape (N, m)
        S: Innovation covariances, shape (N, m, m)

    Returns:
        nis: NIS values, shape (N,). NaN where S is singular.

    Raises:
        ValueError: If inputs have incompatible shapes
    """
    innovation = np.asarray(innovation, dtype=np.float64)
    S = np.asarray(S, dtype=np.float64)

    if innovation.ndim == 1:
        innovation = innovation.reshape(1, -1)

    N, m = innovation.shape

    if S.shape != (N, m, m):
        raise ValueError(f"S must have shape ({N}, {m}, {m}), got {S.shape}")

    nis = np.full(N, np.nan)
    for i in range(N):
        try:
            nis[i] = innovation[i] @ np.linalg.solve(S[i], innovation[i])
        except np.linalg.LinAlgError:
            continue

    return nis


def nis_bounds(dof: int, confidence: float = 0.95) -> Tuple[float, float]:
    """
    Two-sided chi-square band for a single NIS value.

    Args:
        dof: Measurement dimension (3 for a position fix).
        confidence: Central probability mass of the band, in (0, 1).

    Returns:
        (lower, upper) chi-square quantiles.

    Raises:
        ValueError: If dof < 1 or confidence is outside (0, 1).

    Example:
        >>> lo, hi = nis_bounds(3, 0.95)
        >>> round(lo, 3), round(hi, 3)
        (0.216, 9.348)
    """
    if dof < 1:
        raise ValueError(f"dof must be >= 1, got {dof}")
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")

    lower = float(stats.chi2.ppf((1.0 - confidence) / 2.0, dof))
    upper = float(stats.chi2.ppf((1.0 + confidence) / 2.0, dof))
    return lower, upper


def covariance_is_psd(P: np.ndarray, tol: float = PSD_TOLERANCE) -> bool:
    """
    Check that P is symmetric with no eigenvalue below -tol.

    Args:
        P: Square covariance matrix.
        tol: Allowed negative eigenvalue magnitude from round-off.

    Returns:
        True if P is symmetric positive semi-definite within tolerance.
    """
    P = np.asarray(P, dtype=np.float64)
    if P.ndim != 2 or P.shape[0] != P.shape[1]:
        return False
    if not np.allclose(P, P.T, rtol=0.0, atol=tol * max(1.0, float(np.max(np.abs(P))))):
        return False
    return bool(np.min(np.linalg.eigvalsh(P)) >= -tol)
