"""
Stationary coarse alignment: initial attitude and IMU biases from rest data.

With the platform at rest the accelerometer measures only the reaction to
gravity and the gyroscope only its bias (Earth rate is neglected). From the
batch means of N stationary samples:

    w_b = mean(ω)                           gyroscope bias
    q   = FromTwoVectors(mean(f), -g_n)     two-vector alignment
    a_b = R(q)ᵀ g_n + mean(f)               accelerometer bias

q is the minimal rotation aligning the measured specific force with the
negated gravity vector, expressed body-to-navigation so that
R(q) mean(f) points straight up. R(q)ᵀ g_n is gravity seen in the body frame.

The two-vector alignment only fixes roll and pitch; yaw comes out as the
minimal rotation and is unobservable from gravity alone.

The bias residual is measured along the sensed specific force direction:
a platform whose accelerometers read |f| ≠ g gets a bias of (|f| - g) along
that direction.
"""

import warnings
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from insgps.coords.rotations import (
    quat_from_two_vectors,
    quat_to_euler,
    quat_to_rotation_matrix,
)
from insgps.sensors.mechanization import GRAVITY_MAGNITUDE, gravity_vector
from insgps.sensors.types import InertialSample, NominalState
from insgps.sensors.units import (
    format_accel_bias,
    format_attitude_deg,
    format_gyro_bias,
    format_quaternion,
)

# Stationarity sanity limits (warnings only)
MAX_GRAVITY_MISMATCH = 0.1  # relative deviation of |mean f| from g
MAX_GYRO_SPREAD_RAD_S = 0.05  # per-axis std of angular rate


@dataclass(frozen=True)
class AlignmentResult:
    """
    Outcome of a stationary alignment.

    Attributes:
        state: Initial nominal state (origin, at rest, aligned, biased).
        mean_accel: Batch mean specific force, shape (3,). Units: m/s².
        mean_gyro: Batch mean angular rate, shape (3,). Units: rad/s.
        n_samples: Number of samples averaged.
    """

    state: NominalState
    mean_accel: np.ndarray
    mean_gyro: np.ndarray
    n_samples: int

    def format_summary(self) -> str:
        """Human-readable initialization report."""
        lines = [
            f"use {self.n_samples} imu samples to init imu pose and bias",
            f"  init gyro bias  : {format_gyro_bias(self.state.w_b)}",
            f"  init accel bias : {format_accel_bias(self.state.a_b)}",
            f"  init attitude   : {format_quaternion(self.state.q)}",
            f"                    {format_attitude_deg(quat_to_euler(self.state.q))}",
        ]
        return "\n".join(lines)


def stationary_alignment(
    samples: Sequence[InertialSample],
    g: float = GRAVITY_MAGNITUDE,
) -> AlignmentResult:
    """
    Derive initial attitude and biases from a batch of stationary samples.

    Args:
        samples: Non-empty sequence of InertialSample captured at rest.
        g: Gravity magnitude in m/s².

    Returns:
        AlignmentResult with the initial NominalState at the origin with zero
        velocity.

    Raises:
        ValueError: If samples is empty or the mean specific force is zero.

    Warns:
        UserWarning: If the batch does not look stationary.

    Example:
        >>> rest = [InertialSample(t=0.01 * k, accel=[0, 0, 9.81], gyro=[0, 0, 0])
        ...         for k in range(10)]
        >>> result = stationary_alignment(rest)
        >>> bool(np.allclose(result.state.q, [1, 0, 0, 0]))
        True
    """
    if len(samples) == 0:
        raise ValueError("Alignment requires at least one stationary IMU sample")

    accel = np.array([s.accel for s in samples])
    gyro = np.array([s.gyro for s in samples])
    mean_accel = accel.mean(axis=0)
    mean_gyro = gyro.mean(axis=0)

    f_norm = np.linalg.norm(mean_accel)
    if f_norm == 0.0:
        raise ValueError("Mean specific force is zero; cannot determine attitude")
    if abs(f_norm - g) > MAX_GRAVITY_MISMATCH * g:
        warnings.warn(
            f"Mean specific force {f_norm:.3f} m/s² differs from gravity {g:.3f} m/s² "
            f"by more than {MAX_GRAVITY_MISMATCH:.0%}; platform may not be stationary.",
            UserWarning,
        )
    if len(samples) > 1 and np.any(gyro.std(axis=0) > MAX_GYRO_SPREAD_RAD_S):
        warnings.warn(
            "Angular rate spread during alignment exceeds "
            f"{MAX_GYRO_SPREAD_RAD_S} rad/s; platform may be rotating.",
            UserWarning,
        )

    g_n = gravity_vector(g)
    q0 = quat_from_two_vectors(mean_accel, -g_n)
    a_b = quat_to_rotation_matrix(q0).T @ g_n + mean_accel

    state = NominalState(
        p=np.zeros(3),
        v=np.zeros(3),
        q=q0,
        a_b=a_b,
        w_b=mean_gyro.copy(),
    )

    return AlignmentResult(
        state=state,
        mean_accel=mean_accel,
        mean_gyro=mean_gyro,
        n_samples=len(samples),
    )
