"""
Synthetic IMU and position-fix streams for a level ground vehicle.

The platform sits still for an initial alignment period, then ramps up to a
cruise speed and drives a constant-rate turn. The truth is defined
analytically (speed s(t), heading ψ(t)) and the IMU readings follow the
forward model:

    a_n = ṡ [cos ψ, sin ψ, 0] + s ψ̇ [-sin ψ, cos ψ, 0]
    f_b = R(q)ᵀ (a_n - g_n) + b_a + n_a
    ω_b = [0, 0, ψ̇] + b_w + n_w

so that a level platform at rest reads f_b = [0, 0, +g].

Position fixes are true positions plus white noise, converted to geodetic
coordinates about the reference origin.
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from insgps.coords.transforms import enu_to_geodetic
from insgps.sensors.mechanization import GRAVITY_MAGNITUDE, gravity_vector
from insgps.sensors.types import AbsoluteFixSample, InertialSample


@dataclass(frozen=True)
class SimulatedRun:
    """
    A simulated run with truth.

    Attributes:
        t: IMU timestamps, shape (N,).
        imu: IMU samples, length N.
        truth_p: True ENU positions at the IMU timestamps, shape (N, 3).
        truth_v: True ENU velocities, shape (N, 3).
        truth_q: True attitude quaternions, shape (N, 4).
        fixes: Position fixes, each at an IMU timestamp.
        fix_indices: IMU index of each fix.
        reference: ENU origin [lat deg, lon deg, alt m].
        n_static: Number of leading stationary IMU samples.
    """

    t: np.ndarray
    imu: List[InertialSample]
    truth_p: np.ndarray
    truth_v: np.ndarray
    truth_q: np.ndarray
    fixes: List[AbsoluteFixSample]
    fix_indices: List[int]
    reference: np.ndarray
    n_static: int


def _speed_profile(tau: np.ndarray, cruise_speed: float, ramp_time: float):
    """Raised-cosine ramp from 0 to cruise_speed; returns (s, ṡ)."""
    s = np.full_like(tau, cruise_speed)
    s_dot = np.zeros_like(tau)
    ramp = (tau >= 0.0) & (tau < ramp_time)
    phase = np.pi * tau[ramp] / ramp_time
    s[ramp] = 0.5 * cruise_speed * (1.0 - np.cos(phase))
    s_dot[ramp] = 0.5 * cruise_speed * np.pi / ramp_time * np.sin(phase)
    s[tau < 0.0] = 0.0
    return s, s_dot


def simulate_run(
    duration: float = 60.0,
    imu_rate_hz: float = 100.0,
    fix_rate_hz: float = 1.0,
    static_duration: float = 5.0,
    cruise_speed: float = 5.0,
    ramp_time: float = 5.0,
    yaw_rate: float = 0.05,
    accel_bias: Sequence[float] = (0.0, 0.0, 0.0),
    gyro_bias: Sequence[float] = (0.0, 0.0, 0.0),
    accel_noise_std: float = 0.0,
    gyro_noise_std: float = 0.0,
    fix_noise_std: float = 1.0,
    reference: Sequence[float] = (22.3193, 114.1694, 10.0),
    g: float = GRAVITY_MAGNITUDE,
    seed: int = 0,
) -> SimulatedRun:
    """
    Generate a deterministic IMU + fix run.

    Args:
        duration: Total run length (s).
        imu_rate_hz: IMU sample rate (Hz).
        fix_rate_hz: Position fix rate (Hz); must divide imu_rate_hz.
        static_duration: Leading stationary period (s).
        cruise_speed: Speed after the ramp (m/s).
        ramp_time: Duration of the speed ramp (s).
        yaw_rate: Turn rate once cruising (rad/s).
        accel_bias: Constant accelerometer bias (m/s²).
        gyro_bias: Constant gyroscope bias (rad/s).
        accel_noise_std: Accelerometer white noise std per sample (m/s²).
        gyro_noise_std: Gyroscope white noise std per sample (rad/s).
        fix_noise_std: Per-axis fix noise std (m); also used for the fix
            covariance.
        reference: ENU origin [lat deg, lon deg, alt m].
        g: Gravity magnitude (m/s²).
        seed: Random seed for the noise.

    Returns:
        SimulatedRun.

    Raises:
        ValueError: On non-positive rates or duration, or if the fix rate
            does not divide the IMU rate.
    """
    if duration <= 0.0 or imu_rate_hz <= 0.0 or fix_rate_hz <= 0.0:
        raise ValueError("duration and rates must be positive")
    step = imu_rate_hz / fix_rate_hz
    if abs(step - round(step)) > 1e-9 or round(step) < 2:
        raise ValueError(
            f"fix rate {fix_rate_hz} Hz must divide IMU rate {imu_rate_hz} Hz "
            f"with at least 2 IMU intervals per fix"
        )
    step = int(round(step))

    rng = np.random.default_rng(seed)
    n = int(round(duration * imu_rate_hz)) + 1
    t = np.arange(n) / imu_rate_hz
    n_static = int(round(static_duration * imu_rate_hz))

    # Truth: speed along heading, constant-rate turn after the ramp
    tau = t - static_duration
    s, s_dot = _speed_profile(tau, cruise_speed, ramp_time)
    psi_dot = np.where(tau >= ramp_time, yaw_rate, 0.0)
    psi = np.where(tau >= ramp_time, yaw_rate * (tau - ramp_time), 0.0)

    c, sn = np.cos(psi), np.sin(psi)
    zeros = np.zeros(n)
    truth_v = np.column_stack([s * c, s * sn, zeros])
    a_n = np.column_stack([
        s_dot * c - s * psi_dot * sn,
        s_dot * sn + s * psi_dot * c,
        zeros,
    ])
    truth_q = np.column_stack([np.cos(psi / 2.0), zeros, zeros, np.sin(psi / 2.0)])

    # Position by trapezoidal integration of velocity
    dt = 1.0 / imu_rate_hz
    truth_p = np.zeros((n, 3))
    truth_p[1:] = np.cumsum(0.5 * (truth_v[1:] + truth_v[:-1]) * dt, axis=0)

    # IMU forward model: rotate (a_n - g_n) into the body frame (yaw only)
    g_n = gravity_vector(g)
    f_n = a_n - g_n
    f_b = np.column_stack([
        c * f_n[:, 0] + sn * f_n[:, 1],
        -sn * f_n[:, 0] + c * f_n[:, 1],
        f_n[:, 2],
    ])
    w_b = np.column_stack([zeros, zeros, psi_dot])

    accel = f_b + np.asarray(accel_bias, dtype=float) + accel_noise_std * rng.standard_normal((n, 3))
    gyro = w_b + np.asarray(gyro_bias, dtype=float) + gyro_noise_std * rng.standard_normal((n, 3))
    imu = [InertialSample(t=t[k], accel=accel[k], gyro=gyro[k]) for k in range(n)]

    reference = np.asarray(reference, dtype=float)
    cov = fix_noise_std**2 * np.eye(3)
    fixes = []
    fix_indices = []
    for k in range(n_static + step, n, step):
        noisy = truth_p[k] + fix_noise_std * rng.standard_normal(3)
        fixes.append(AbsoluteFixSample(t=t[k], llh=enu_to_geodetic(noisy, reference), cov=cov))
        fix_indices.append(k)

    return SimulatedRun(
        t=t,
        imu=imu,
        truth_p=truth_p,
        truth_v=truth_v,
        truth_q=truth_q,
        fixes=fixes,
        fix_indices=fix_indices,
        reference=reference,
        n_static=n_static,
    )
