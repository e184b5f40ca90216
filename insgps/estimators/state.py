"""
Error-state layout and covariance helpers.

Nominal state (16 scalars, see insgps.sensors.types.NominalState):
    x = [p (3), v (3), q (4), a_b (3), w_b (3)]^T

Error state (15 scalars):
    δx = [δp (3), δv (3), δθ (3), δa_b (3), δw_b (3)]^T

    Where:
        δp: Position error in navigation frame (m)
        δv: Velocity error in navigation frame (m/s)
        δθ: Attitude error, local (body-frame) rotation vector (rad)
        δa_b: Accelerometer bias error (m/s²)
        δw_b: Gyroscope bias error (rad/s)

The error state itself is never stored; it is zero after every injection.
Only its 15x15 covariance P is carried by the filter.
"""

import numpy as np

NOMINAL_STATE_DIM = 16
ERROR_STATE_DIM = 15
NOISE_DIM = 12

# Error-state block slices
POS = slice(0, 3)
VEL = slice(3, 6)
ATT = slice(6, 9)
ACC_BIAS = slice(9, 12)
GYRO_BIAS = slice(12, 15)

# Nominal-state block slices
NOMINAL_POS = slice(0, 3)
NOMINAL_VEL = slice(3, 6)
NOMINAL_QUAT = slice(6, 10)
NOMINAL_ACC_BIAS = slice(10, 13)
NOMINAL_GYRO_BIAS = slice(13, 16)

# Smallest eigenvalue still accepted as positive semi-definite
PSD_TOLERANCE = 1e-9


def zero_covariance() -> np.ndarray:
    """Initial error covariance (all zeros, 15x15)."""
    return np.zeros((ERROR_STATE_DIM, ERROR_STATE_DIM))


def symmetrize(P: np.ndarray) -> np.ndarray:
    """Return ½(P + Pᵀ)."""
    return 0.5 * (P + P.T)


def block_std(P: np.ndarray, block: slice) -> np.ndarray:
    """
    Standard deviations of one 3-element error-state block.

    Args:
        P: Error covariance, shape (15, 15).
        block: One of POS, VEL, ATT, ACC_BIAS, GYRO_BIAS.

    Returns:
        sqrt of the block's diagonal, shape (3,). Tiny negative round-off
        on the diagonal is clipped to zero.
    """
    diag = np.diag(P)[block]
    return np.sqrt(np.clip(diag, 0.0, None))
