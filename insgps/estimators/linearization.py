"""
Discrete-time error-state transition model.

Error-state propagation over one IMU interval:
    δx_k = F δx_{k-1} + F_i n

    F (15x15), evaluated with the later sample of the pair and the
    already-mechanized nominal state:

              δp    δv         δθ                δa_b     δw_b
        δp  [ I     I·dt       0                 0        0     ]
        δv  [ 0     I          -R[f - a_b]ₓ dt   -R dt    0     ]
        δθ  [ 0     0          Rot((ω - w_b)dt)  0        -I dt ]
        δa_b[ 0     0          0                 I        0     ]
        δw_b[ 0     0          0                 0        I     ]

    F_i (15x12) maps the four noise groups onto δv, δθ, δa_b, δw_b.

    Q_i (12x12) = blockdiag(σ_an·dt²·I, σ_wn·dt²·I, σ_aw·dt·I, σ_ww·dt·I)

The noise values in Q_i are the configured numbers used as given. Callers
who think in standard deviations pass the variances they want.
"""

import numpy as np

from insgps.config import NoiseDensities
from insgps.coords.rotations import (
    quat_to_rotation_matrix,
    rotvec_to_rotation_matrix,
    skew,
)
from insgps.estimators.state import (
    ACC_BIAS,
    ATT,
    ERROR_STATE_DIM,
    GYRO_BIAS,
    NOISE_DIM,
    POS,
    VEL,
)
from insgps.sensors.types import InertialSample, NominalState


def transition_matrix(
    state: NominalState,
    sample: InertialSample,
    dt: float,
) -> np.ndarray:
    """
    Error-state transition matrix F for one step.

    Args:
        state: Nominal state after mechanization to sample.t.
        sample: Later IMU sample of the interval.
        dt: Interval length in seconds (≥ 0).

    Returns:
        F, shape (15, 15).

    Raises:
        ValueError: If dt is negative.
    """
    if dt < 0.0:
        raise ValueError(f"dt must be non-negative, got {dt}")

    R = quat_to_rotation_matrix(state.q)
    f_corrected = sample.accel - state.a_b
    w_corrected = sample.gyro - state.w_b

    F = np.eye(ERROR_STATE_DIM)
    F[POS, VEL] = np.eye(3) * dt
    F[VEL, ATT] = -R @ skew(f_corrected) * dt
    F[VEL, ACC_BIAS] = -R * dt
    F[ATT, ATT] = rotvec_to_rotation_matrix(w_corrected * dt)
    F[ATT, GYRO_BIAS] = -np.eye(3) * dt

    return F


def noise_input_matrix() -> np.ndarray:
    """
    Noise input matrix F_i.

    Returns:
        Shape (15, 12): zeros on the δp rows, identity on the remaining
        twelve rows (δv, δθ, δa_b, δw_b).
    """
    Fi = np.zeros((ERROR_STATE_DIM, NOISE_DIM))
    Fi[VEL.start:, :] = np.eye(NOISE_DIM)
    return Fi


def process_noise(noise: NoiseDensities, dt: float) -> np.ndarray:
    """
    Discrete process noise Q_i for one step.

    Args:
        noise: Configured noise values.
        dt: Interval length in seconds (≥ 0).

    Returns:
        Q_i, shape (12, 12), block diagonal.

    Raises:
        ValueError: If dt is negative.

    Example:
        >>> Qi = process_noise(NoiseDensities(1e-2, 0.0, 0.0, 0.0), 0.1)
        >>> float(Qi[0, 0])
        0.0001
    """
    if dt < 0.0:
        raise ValueError(f"dt must be non-negative, got {dt}")

    I3 = np.eye(3)
    Qi = np.zeros((NOISE_DIM, NOISE_DIM))
    Qi[0:3, 0:3] = noise.sigma_an * dt * dt * I3
    Qi[3:6, 3:6] = noise.sigma_wn * dt * dt * I3
    Qi[6:9, 6:9] = noise.sigma_aw * dt * I3
    Qi[9:12, 9:12] = noise.sigma_ww * dt * I3
    return Qi
