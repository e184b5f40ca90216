"""
Error-state Kalman filter: state layout, transition model, measurement model.

Modules:
    state: Error-state dimensions, block slices and covariance helpers
    linearization: F, F_i and Q_i for one IMU interval
    measurement: Two-stage observation Jacobian for position fixes
    eskf: ErrorStateKalmanFilter (predict / correct / recover)
"""

from insgps.estimators.state import (
    ACC_BIAS,
    ATT,
    ERROR_STATE_DIM,
    GYRO_BIAS,
    NOMINAL_STATE_DIM,
    POS,
    VEL,
    block_std,
    symmetrize,
    zero_covariance,
)
from insgps.estimators.linearization import (
    noise_input_matrix,
    process_noise,
    transition_matrix,
)
from insgps.estimators.measurement import (
    fix_noise,
    observation_matrix,
    position_selection,
    quaternion_error_jacobian,
    state_to_error_jacobian,
)
from insgps.estimators.eskf import (
    CorrectionResult,
    ErrorStateKalmanFilter,
    FilterPhase,
)

__all__ = [
    # State layout
    "ERROR_STATE_DIM",
    "NOMINAL_STATE_DIM",
    "POS",
    "VEL",
    "ATT",
    "ACC_BIAS",
    "GYRO_BIAS",
    "zero_covariance",
    "symmetrize",
    "block_std",
    # Transition model
    "transition_matrix",
    "noise_input_matrix",
    "process_noise",
    # Measurement model
    "quaternion_error_jacobian",
    "state_to_error_jacobian",
    "position_selection",
    "observation_matrix",
    "fix_noise",
    # Filter
    "ErrorStateKalmanFilter",
    "FilterPhase",
    "CorrectionResult",
]
