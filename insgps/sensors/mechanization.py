"""
Strapdown mechanization of the nominal state between two IMU samples.

One integration step over the interval [t1, t2] of two consecutive samples:
    - Midpoint specific force:  f̄ = ½(f1 + f2) - a_b
    - Midpoint angular rate:    ω̄ = ½(ω1 + ω2) - w_b
    - Navigation acceleration:  a_n = R(q) f̄ + g_n
    - Position:  p ← p + v Δt + ½ a_n Δt²
    - Velocity:  v ← v + a_n Δt
    - Attitude:  q ← q ⊗ Exp(ω̄ Δt)

Averaging the two samples approximates a trapezoidal rule and is smoother
than forward-Euler on the first sample alone. Attitude composes on the right
(body-frame increment) and is renormalized after every step.

Frame Conventions:
    - q rotates body vectors into ENU: v_n = R(q) @ v_b
    - g_n = [0, 0, -g] (gravity points down in ENU)
    - A level platform at rest reads f_b = [0, 0, +g], so a_n = 0
"""

import numpy as np

from insgps.coords.rotations import (
    quat_from_rotvec,
    quat_multiply,
    quat_normalize,
    quat_to_rotation_matrix,
)
from insgps.sensors.types import InertialSample, NominalState

GRAVITY_MAGNITUDE = 9.81  # m/s²


def gravity_vector(g: float = GRAVITY_MAGNITUDE) -> np.ndarray:
    """
    Gravity vector in the ENU navigation frame.

    Args:
        g: Gravity magnitude in m/s². Default: 9.81.

    Returns:
        [0, 0, -g], shape (3,).
    """
    return np.array([0.0, 0.0, -g])


def time_step(prev: InertialSample, curr: InertialSample) -> float:
    """
    Time delta between two samples, rejecting backward steps.

    Returns:
        dt = curr.t - prev.t in seconds (≥ 0).

    Raises:
        ValueError: If dt is negative or not finite.
    """
    dt = curr.t - prev.t
    if not np.isfinite(dt):
        raise ValueError(f"Non-finite time step between t={prev.t} and t={curr.t}")
    if dt < 0.0:
        raise ValueError(
            f"IMU samples out of order: t={curr.t} precedes t={prev.t} (dt={dt})"
        )
    return dt


def mechanize(
    state: NominalState,
    prev: InertialSample,
    curr: InertialSample,
    g: float = GRAVITY_MAGNITUDE,
) -> NominalState:
    """
    Integrate the nominal state from prev.t to curr.t.

    Args:
        state: Nominal state at prev.t. Not modified.
        prev: Earlier IMU sample.
        curr: Later IMU sample.
        g: Gravity magnitude in m/s².

    Returns:
        New NominalState at curr.t. Biases are carried over unchanged
        (random-walk model has zero mean drift). When curr.t == prev.t
        the returned state is a bit-identical copy of the input.

    Raises:
        ValueError: If curr.t < prev.t.

    Example:
        >>> s0 = NominalState.zeros()
        >>> a = InertialSample(t=0.00, accel=[0.0, 0.0, 9.81], gyro=[0.0, 0.0, 0.0])
        >>> b = InertialSample(t=0.01, accel=[0.0, 0.0, 9.81], gyro=[0.0, 0.0, 0.0])
        >>> s1 = mechanize(s0, a, b)
        >>> bool(np.allclose(s1.p, 0.0))
        True
    """
    dt = time_step(prev, curr)
    if dt == 0.0:
        return state.copy()

    f_mid = 0.5 * (prev.accel + curr.accel) - state.a_b
    w_mid = 0.5 * (prev.gyro + curr.gyro) - state.w_b

    R = quat_to_rotation_matrix(state.q)
    a_n = R @ f_mid + gravity_vector(g)

    p_next = state.p + state.v * dt + 0.5 * a_n * dt * dt
    v_next = state.v + a_n * dt
    q_next = quat_normalize(quat_multiply(state.q, quat_from_rotvec(w_mid * dt)))

    return NominalState(
        p=p_next,
        v=v_next,
        q=q_next,
        a_b=state.a_b.copy(),
        w_b=state.w_b.copy(),
    )
