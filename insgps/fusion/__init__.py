"""Kalman measurement-update helpers (innovation, gain, Joseph form, injection)."""

from insgps.fusion.update import (
    MAX_INNOVATION_CONDITION,
    InnovationCovarianceError,
    inject_error_state,
    innovation,
    innovation_covariance,
    joseph_update,
    kalman_gain,
)

__all__ = [
    "MAX_INNOVATION_CONDITION",
    "InnovationCovarianceError",
    "innovation",
    "innovation_covariance",
    "kalman_gain",
    "joseph_update",
    "inject_error_state",
]
