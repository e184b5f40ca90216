"""
Absolute position measurement model.

The measurement is the nominal position p in the local ENU frame:
    h(x) = p

Its Jacobian with respect to the 15-dim error state is built in two stages:
    H = H_x · X_δx

    H_x (3x16): ∂h/∂x, the position selector on the nominal vector
    X_δx (16x15): ∂x/∂δx, identity everywhere except the quaternion rows,
                  where a local rotation error δθ enters as
                  ∂q/∂δθ = ½ · [[-x, -y, -z],
                                [ w, -z,  y],
                                [ z,  w, -x],
                                [-y,  x,  w]]

For a pure position fix the product is [I₃, 0, 0, 0, 0]. Keeping the two
factors separate lets observation types that touch the attitude reuse
X_δx unchanged.
"""

import numpy as np

from insgps.estimators.state import (
    ACC_BIAS,
    ATT,
    ERROR_STATE_DIM,
    NOMINAL_POS,
    NOMINAL_QUAT,
    NOMINAL_STATE_DIM,
    POS,
    VEL,
)
from insgps.sensors.types import AbsoluteFixSample

MEASUREMENT_DIM = 3


def quaternion_error_jacobian(q: np.ndarray) -> np.ndarray:
    """
    ∂q/∂δθ for a right-multiplied local rotation error.

    Args:
        q: Scalar-first quaternion [w, x, y, z].

    Returns:
        Shape (4, 3).
    """
    w, x, y, z = np.asarray(q, dtype=np.float64)
    return 0.5 * np.array([
        [-x, -y, -z],
        [w, -z, y],
        [z, w, -x],
        [-y, x, w],
    ])


def state_to_error_jacobian(q: np.ndarray) -> np.ndarray:
    """
    X_δx: Jacobian of the nominal state with respect to the error state.

    Args:
        q: Current nominal attitude quaternion.

    Returns:
        Shape (16, 15).
    """
    X = np.zeros((NOMINAL_STATE_DIM, ERROR_STATE_DIM))
    # p, v pass straight through
    X[0:6, POS.start:VEL.stop] = np.eye(6)
    X[NOMINAL_QUAT, ATT] = quaternion_error_jacobian(q)
    # a_b, w_b pass straight through
    X[10:16, ACC_BIAS.start:] = np.eye(6)
    return X


def position_selection() -> np.ndarray:
    """H_x: selects p from the 16-element nominal vector, shape (3, 16)."""
    Hx = np.zeros((MEASUREMENT_DIM, NOMINAL_STATE_DIM))
    Hx[:, NOMINAL_POS] = np.eye(3)
    return Hx


def observation_matrix(q: np.ndarray) -> np.ndarray:
    """
    Observation matrix H = H_x · X_δx for an absolute position fix.

    Args:
        q: Current nominal attitude quaternion.

    Returns:
        H, shape (3, 15).
    """
    return position_selection() @ state_to_error_jacobian(q)


def fix_noise(fix: AbsoluteFixSample) -> np.ndarray:
    """Measurement noise V: the fix covariance, copied verbatim (3x3)."""
    return np.array(fix.cov, dtype=np.float64)
