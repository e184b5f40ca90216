"""
Unit tests for midpoint strapdown mechanization.

Validates:
    - A level platform at rest does not drift
    - Constant acceleration integrates exactly (midpoint rule)
    - Bias correction is applied before integration
    - Attitude integrates the bias-corrected midpoint rate
    - dt == 0 returns a bit-identical state; dt < 0 raises
"""

import numpy as np
import pytest

from insgps.coords.rotations import quat_from_rotvec
from insgps.sensors.mechanization import gravity_vector, mechanize, time_step
from insgps.sensors.types import InertialSample, NominalState

G = 9.81


class TestMechanization:
    """Test suite for mechanize()."""

    def test_gravity_vector(self) -> None:
        np.testing.assert_array_equal(gravity_vector(9.81), [0.0, 0.0, -9.81])

    def test_stationary_level_no_drift(self) -> None:
        state = NominalState.zeros()
        prev = InertialSample(t=0.0, accel=[0.0, 0.0, G], gyro=[0.0, 0.0, 0.0])
        for k in range(1, 1001):
            curr = InertialSample(t=k * 0.01, accel=[0.0, 0.0, G], gyro=[0.0, 0.0, 0.0])
            state = mechanize(state, prev, curr, g=G)
            prev = curr

        np.testing.assert_allclose(state.p, np.zeros(3), atol=1e-9)
        np.testing.assert_allclose(state.v, np.zeros(3), atol=1e-9)
        np.testing.assert_allclose(state.q, [1.0, 0.0, 0.0, 0.0], atol=1e-12)

    def test_constant_acceleration(self) -> None:
        """p = ½at², v = at for constant horizontal acceleration."""
        a = 0.5
        dt = 0.01
        n = 200
        state = NominalState.zeros()
        prev = InertialSample(t=0.0, accel=[a, 0.0, G], gyro=[0.0, 0.0, 0.0])
        for k in range(1, n + 1):
            curr = InertialSample(t=k * dt, accel=[a, 0.0, G], gyro=[0.0, 0.0, 0.0])
            state = mechanize(state, prev, curr, g=G)
            prev = curr

        T = n * dt
        np.testing.assert_allclose(state.v, [a * T, 0.0, 0.0], atol=1e-10)
        np.testing.assert_allclose(state.p, [0.5 * a * T**2, 0.0, 0.0], atol=1e-10)

    def test_midpoint_average(self) -> None:
        """One step uses the average of the two samples."""
        state = NominalState.zeros()
        prev = InertialSample(t=0.0, accel=[0.0, 0.0, G], gyro=[0.0, 0.0, 0.0])
        curr = InertialSample(t=0.1, accel=[1.0, 0.0, G], gyro=[0.0, 0.0, 0.0])
        out = mechanize(state, prev, curr, g=G)
        np.testing.assert_allclose(out.v, [0.05, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(out.p, [0.5 * 0.5 * 0.01, 0.0, 0.0], atol=1e-12)

    def test_bias_is_removed(self) -> None:
        state = NominalState.zeros()
        state.a_b = np.array([0.2, 0.0, 0.0])
        state.w_b = np.array([0.0, 0.0, 0.01])
        prev = InertialSample(t=0.0, accel=[0.2, 0.0, G], gyro=[0.0, 0.0, 0.01])
        curr = InertialSample(t=0.01, accel=[0.2, 0.0, G], gyro=[0.0, 0.0, 0.01])
        out = mechanize(state, prev, curr, g=G)
        np.testing.assert_allclose(out.v, np.zeros(3), atol=1e-12)
        np.testing.assert_allclose(out.q, [1.0, 0.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_array_equal(out.a_b, state.a_b)
        np.testing.assert_array_equal(out.w_b, state.w_b)

    def test_attitude_integration(self) -> None:
        """Constant yaw rate for 1 s gives the expected yaw."""
        rate = 0.3
        state = NominalState.zeros()
        prev = InertialSample(t=0.0, accel=[0.0, 0.0, G], gyro=[0.0, 0.0, rate])
        for k in range(1, 101):
            curr = InertialSample(t=k * 0.01, accel=[0.0, 0.0, G], gyro=[0.0, 0.0, rate])
            state = mechanize(state, prev, curr, g=G)
            prev = curr
            assert abs(np.linalg.norm(state.q) - 1.0) < 1e-9

        expected = quat_from_rotvec(np.array([0.0, 0.0, rate * 1.0]))
        np.testing.assert_allclose(state.q, expected, atol=1e-9)

    def test_input_not_modified(self) -> None:
        state = NominalState.zeros()
        snapshot = state.to_vector()
        prev = InertialSample(t=0.0, accel=[1.0, 0.0, G], gyro=[0.1, 0.0, 0.0])
        curr = InertialSample(t=0.01, accel=[1.0, 0.0, G], gyro=[0.1, 0.0, 0.0])
        mechanize(state, prev, curr, g=G)
        np.testing.assert_array_equal(state.to_vector(), snapshot)

    def test_zero_dt_is_identity(self) -> None:
        state = NominalState(
            p=[1.0, 2.0, 3.0], v=[0.1, 0.2, 0.3],
            q=quat_from_rotvec(np.array([0.1, 0.2, 0.3])),
            a_b=[0.01, 0.02, 0.03], w_b=[1e-3, 2e-3, 3e-3],
        )
        sample = InertialSample(t=5.0, accel=[3.0, -1.0, 9.0], gyro=[0.5, 0.1, -0.2])
        out = mechanize(state, sample, sample, g=G)
        np.testing.assert_array_equal(out.to_vector(), state.to_vector())

    def test_negative_dt_raises(self) -> None:
        prev = InertialSample(t=1.0, accel=[0.0, 0.0, G], gyro=[0.0, 0.0, 0.0])
        curr = InertialSample(t=0.9, accel=[0.0, 0.0, G], gyro=[0.0, 0.0, 0.0])
        with pytest.raises(ValueError):
            mechanize(NominalState.zeros(), prev, curr)
        with pytest.raises(ValueError):
            time_step(prev, curr)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
