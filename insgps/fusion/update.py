"""Kalman measurement-update building blocks for the error-state filter.

The correction step is the standard linear update applied to the error state:

    y = z - h(x̂)                          innovation
    S = H P Hᵀ + V                        innovation covariance
    K = P Hᵀ S⁻¹                          gain
    δx = K y                              error-state estimate
    P⁺ = (I - KH) P (I - KH)ᵀ + K V Kᵀ    Joseph form

followed by injection of δx into the nominal state and an implicit reset of
the error state to zero.

The Joseph form stays symmetric positive semi-definite under round-off for
any gain, which the short form (I - KH)P does not.
"""

import numpy as np

from insgps.coords.rotations import quat_from_rotvec, quat_multiply, quat_normalize
from insgps.estimators.state import (
    ACC_BIAS,
    ATT,
    ERROR_STATE_DIM,
    GYRO_BIAS,
    POS,
    VEL,
    symmetrize,
)
from insgps.sensors.types import NominalState

# Innovation covariances worse conditioned than this are treated as singular
MAX_INNOVATION_CONDITION = 1e12


class InnovationCovarianceError(np.linalg.LinAlgError):
    """Raised when the innovation covariance cannot be inverted reliably."""


def innovation(z: np.ndarray, z_pred: np.ndarray) -> np.ndarray:
    """Compute measurement innovation y = z - h(x̂).

    Args:
        z: Actual measurement vector (m,).
        z_pred: Predicted measurement (m,).

    Returns:
        Innovation vector (m,).

    Raises:
        ValueError: If z and z_pred have different shapes.

    Example:
        >>> innovation(np.array([5.2, 3.1]), np.array([5.0, 3.0]))
        array([0.2, 0.1])
    """
    z = np.asarray(z, dtype=np.float64)
    z_pred = np.asarray(z_pred, dtype=np.float64)

    if z.shape != z_pred.shape:
        raise ValueError(
            f"Measurement z and prediction z_pred must have same shape, "
            f"got {z.shape} and {z_pred.shape}"
        )

    return z - z_pred


def innovation_covariance(H: np.ndarray, P: np.ndarray, V: np.ndarray) -> np.ndarray:
    """Compute innovation covariance S = H P Hᵀ + V.

    Args:
        H: Observation matrix (m × n).
        P: Predicted error covariance (n × n).
        V: Measurement noise covariance (m × m).

    Returns:
        Innovation covariance S (m × m), symmetrized.

    Raises:
        ValueError: If matrix dimensions are incompatible.
    """
    H = np.asarray(H, dtype=np.float64)
    P = np.asarray(P, dtype=np.float64)
    V = np.asarray(V, dtype=np.float64)

    if H.ndim != 2:
        raise ValueError(f"H must be 2D matrix, got shape {H.shape}")

    m, n = H.shape

    if P.shape != (n, n):
        raise ValueError(
            f"P shape {P.shape} incompatible with H shape {H.shape}, "
            f"expected ({n}, {n})"
        )
    if V.shape != (m, m):
        raise ValueError(
            f"V shape {V.shape} incompatible with H shape {H.shape}, "
            f"expected ({m}, {m})"
        )

    return symmetrize(H @ P @ H.T + V)


def kalman_gain(P: np.ndarray, H: np.ndarray, S: np.ndarray) -> np.ndarray:
    """Compute the Kalman gain K = P Hᵀ S⁻¹ by a linear solve.

    Args:
        P: Predicted error covariance (n × n).
        H: Observation matrix (m × n).
        S: Innovation covariance (m × m).

    Returns:
        Gain K (n × m).

    Raises:
        InnovationCovarianceError: If S has non-finite entries, is singular,
            or its condition number exceeds MAX_INNOVATION_CONDITION.
    """
    S = np.asarray(S, dtype=np.float64)
    if not np.all(np.isfinite(S)):
        raise InnovationCovarianceError("Innovation covariance has non-finite entries")

    cond = np.linalg.cond(S)
    if not np.isfinite(cond) or cond > MAX_INNOVATION_CONDITION:
        raise InnovationCovarianceError(
            f"Innovation covariance is singular or ill-conditioned "
            f"(condition number {cond:.3e})"
        )

    PHt = P @ H.T
    try:
        # K S = P Hᵀ  <=>  Sᵀ Kᵀ = (P Hᵀ)ᵀ
        return np.linalg.solve(S.T, PHt.T).T
    except np.linalg.LinAlgError as e:
        raise InnovationCovarianceError(f"Innovation covariance solve failed: {e}") from e


def joseph_update(
    P: np.ndarray,
    K: np.ndarray,
    H: np.ndarray,
    V: np.ndarray,
) -> np.ndarray:
    """Joseph-form covariance update.

    P⁺ = (I - KH) P (I - KH)ᵀ + K V Kᵀ

    Args:
        P: Predicted error covariance (n × n).
        K: Kalman gain (n × m).
        H: Observation matrix (m × n).
        V: Measurement noise covariance (m × m).

    Returns:
        Updated covariance (n × n), symmetrized.
    """
    I_KH = np.eye(P.shape[0]) - K @ H
    return symmetrize(I_KH @ P @ I_KH.T + K @ V @ K.T)


def inject_error_state(state: NominalState, dx: np.ndarray) -> NominalState:
    """Fold an error-state estimate into the nominal state.

    Position, velocity and biases are corrected additively; attitude takes
    the local multiplicative correction q ← q ⊗ Exp(δθ), renormalized.

    Args:
        state: Nominal state before injection. Not modified.
        dx: Error-state estimate, shape (15,).

    Returns:
        Corrected NominalState.

    Raises:
        ValueError: If dx is not a finite 15-vector.
    """
    dx = np.asarray(dx, dtype=np.float64)
    if dx.shape != (ERROR_STATE_DIM,):
        raise ValueError(f"dx must have shape ({ERROR_STATE_DIM},), got {dx.shape}")
    if not np.all(np.isfinite(dx)):
        raise ValueError("dx must be finite")

    q = quat_normalize(quat_multiply(state.q, quat_from_rotvec(dx[ATT])))
    return NominalState(
        p=state.p + dx[POS],
        v=state.v + dx[VEL],
        q=q,
        a_b=state.a_b + dx[ACC_BIAS],
        w_b=state.w_b + dx[GYRO_BIAS],
    )
