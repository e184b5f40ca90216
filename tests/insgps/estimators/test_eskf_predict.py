"""
Unit tests for ErrorStateKalmanFilter.predict.

The stationary test compares the propagated position covariance against
its closed form. For a level platform at rest with only accelerometer white
noise q = σ_an·dt² per step, and P₀ = 0, each horizontal/vertical axis obeys

    P_vv[k] = k q
    P_pp[k] = dt² q (k-1) k (2k-1) / 6

since attitude and bias uncertainty stay exactly zero.
"""

import numpy as np
import pytest

from insgps.estimators.eskf import ErrorStateKalmanFilter, FilterPhase
from insgps.estimators.state import POS, VEL
from insgps.eval.metrics import covariance_is_psd
from insgps.sensors.types import InertialSample

G = 9.81
DT = 0.01


def _level(k, accel=(0.0, 0.0, G), gyro=(0.0, 0.0, 0.0)):
    return InertialSample(t=k * DT, accel=accel, gyro=gyro)


class TestPredict:
    """Test suite for the prediction step."""

    def test_stationary_closed_form_covariance(self) -> None:
        sigma_an = 1e-2
        ekf = ErrorStateKalmanFilter()
        ekf.set_noise(sigma_an, 0.0, 0.0, 0.0)
        ekf.initialize([_level(k) for k in range(10)])

        q = sigma_an * DT**2
        traces = []
        prev = _level(0)
        for k in range(1, 101):
            curr = _level(k)
            ekf.predict(prev, curr)
            prev = curr

            P = ekf.covariance
            traces.append(np.trace(P[POS, POS]))
            np.testing.assert_allclose(np.diag(P[VEL, VEL]), [k * q] * 3, rtol=1e-8)
            expected_pp = DT**2 * q * (k - 1) * k * (2 * k - 1) / 6.0
            np.testing.assert_allclose(
                np.diag(P[POS, POS]), [expected_pp] * 3, rtol=1e-8, atol=1e-30
            )

        assert all(b >= a for a, b in zip(traces, traces[1:]))
        assert traces[-1] > traces[0]

    def test_quaternion_unit_and_covariance_psd(self) -> None:
        ekf = ErrorStateKalmanFilter()
        ekf.set_noise(1e-3, 1e-5, 1e-7, 1e-9)
        prev = _level(0, accel=(0.4, -0.2, G), gyro=(0.1, -0.05, 0.3))
        for k in range(1, 300):
            curr = _level(k, accel=(0.4, -0.2, G), gyro=(0.1, -0.05, 0.3))
            ekf.predict(prev, curr)
            prev = curr
            assert abs(np.linalg.norm(ekf.nominal_state.q) - 1.0) < 1e-9
            P = ekf.covariance
            np.testing.assert_array_equal(P, P.T)
            assert covariance_is_psd(P)

    def test_zero_dt_is_bit_identical(self) -> None:
        ekf = ErrorStateKalmanFilter()
        ekf.set_noise(1e-3, 1e-5, 1e-7, 1e-9)
        ekf.predict(_level(0, accel=(0.3, 0.0, G)), _level(1, accel=(0.3, 0.0, G)))

        nominal = ekf.nominal_state.to_vector()
        accepted = ekf.state.to_vector()
        P = ekf.covariance
        phase = ekf.phase

        sample = _level(1, accel=(5.0, 1.0, 3.0), gyro=(1.0, 2.0, 3.0))
        ekf.predict(sample, sample)

        np.testing.assert_array_equal(ekf.nominal_state.to_vector(), nominal)
        np.testing.assert_array_equal(ekf.state.to_vector(), accepted)
        np.testing.assert_array_equal(ekf.covariance, P)
        assert ekf.phase == phase

    def test_negative_dt_raises_without_mutation(self) -> None:
        ekf = ErrorStateKalmanFilter()
        ekf.set_noise(1e-3, 0.0, 0.0, 0.0)
        nominal = ekf.nominal_state.to_vector()
        with pytest.raises(ValueError):
            ekf.predict(_level(5), _level(4))
        np.testing.assert_array_equal(ekf.nominal_state.to_vector(), nominal)
        np.testing.assert_array_equal(ekf.covariance, np.zeros((15, 15)))

    def test_predict_leaves_accepted_state(self) -> None:
        ekf = ErrorStateKalmanFilter()
        ekf.predict(_level(0, accel=(1.0, 0.0, G)), _level(1, accel=(1.0, 0.0, G)))
        assert ekf.nominal_state.v[0] > 0.0
        np.testing.assert_array_equal(ekf.state.v, np.zeros(3))
        assert ekf.phase == FilterPhase.PREDICTING

    def test_zero_noise_keeps_zero_covariance(self) -> None:
        """Missing set_noise gives degenerate zero-noise behaviour."""
        ekf = ErrorStateKalmanFilter()
        prev = _level(0)
        for k in range(1, 20):
            curr = _level(k)
            ekf.predict(prev, curr)
            prev = curr
        np.testing.assert_array_equal(ekf.covariance, np.zeros((15, 15)))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
