"""Unit tests for filter construction, initialization, recovery and accessors."""

import numpy as np
import pytest

from insgps.config import FilterConfig, GeodeticReference, NoiseDensities
from insgps.coords.rotations import quat_from_rotvec
from insgps.estimators.eskf import ErrorStateKalmanFilter, FilterPhase
from insgps.sensors.types import InertialSample, NominalState

G = 9.81


def _rest(n=50):
    return [InertialSample(t=0.01 * k, accel=[0.0, 0.0, G], gyro=[1e-4, 0.0, -1e-4])
            for k in range(n)]


class TestLifecycle:
    """Test suite for ErrorStateKalmanFilter state handling."""

    def test_fresh_filter(self) -> None:
        ekf = ErrorStateKalmanFilter()
        assert ekf.phase == FilterPhase.UNINITIALIZED
        np.testing.assert_array_equal(ekf.state.to_vector(), NominalState.zeros().to_vector())
        np.testing.assert_array_equal(ekf.covariance, np.zeros((15, 15)))
        assert ekf.last_correction is None
        np.testing.assert_array_equal(ekf.position_std, np.zeros(3))

    def test_initialize_sets_both_states(self) -> None:
        ekf = ErrorStateKalmanFilter()
        result = ekf.initialize(_rest())
        assert ekf.phase == FilterPhase.INITIALIZED
        np.testing.assert_allclose(ekf.state.w_b, [1e-4, 0.0, -1e-4], atol=1e-15)
        np.testing.assert_array_equal(ekf.state.to_vector(), ekf.nominal_state.to_vector())
        np.testing.assert_array_equal(result.state.to_vector(), ekf.state.to_vector())

    def test_initialize_empty_raises(self) -> None:
        ekf = ErrorStateKalmanFilter()
        with pytest.raises(ValueError):
            ekf.initialize([])
        assert ekf.phase == FilterPhase.UNINITIALIZED

    def test_recover_round_trip(self) -> None:
        ekf = ErrorStateKalmanFilter()
        ekf.set_noise(1e-3, 1e-5, 0.0, 0.0)
        ekf.predict(_rest(2)[0], _rest(2)[1])
        P_before = ekf.covariance

        target = NominalState(
            p=[1.5, -2.5, 0.25], v=[0.1, 0.2, -0.3],
            q=quat_from_rotvec(np.array([0.1, -0.2, 0.3])),
            a_b=[0.01, 0.02, -0.03], w_b=[1e-4, -2e-4, 3e-4],
        )
        ekf.recover_state(target)

        np.testing.assert_array_equal(ekf.state.to_vector(), target.to_vector())
        np.testing.assert_array_equal(ekf.get_nominal_state().to_vector(), target.to_vector())
        np.testing.assert_array_equal(ekf.covariance, P_before)

        # The filter keeps its own copy
        target.p[0] = 99.0
        assert ekf.get_state().p[0] == 1.5

    def test_accessors_return_copies(self) -> None:
        ekf = ErrorStateKalmanFilter()
        ekf.state.p[0] = 10.0
        ekf.covariance[0, 0] = 10.0
        assert ekf.state.p[0] == 0.0
        assert ekf.covariance[0, 0] == 0.0

    def test_from_config(self) -> None:
        config = FilterConfig(
            noise=NoiseDensities(1e-4, 1e-6, 1e-8, 1e-10),
            reference=GeodeticReference(22.3, 114.2, 10.0),
            gravity=9.8,
        )
        ekf = ErrorStateKalmanFilter.from_config(config)
        assert ekf.noise == config.noise
        assert ekf.reference == config.reference
        assert ekf.gravity == 9.8
        np.testing.assert_allclose(ekf.geodetic_position(), [22.3, 114.2, 10.0], atol=1e-8)

    def test_setters_validate(self) -> None:
        ekf = ErrorStateKalmanFilter()
        with pytest.raises(ValueError):
            ekf.set_noise(-1.0, 0.0, 0.0, 0.0)
        with pytest.raises(ValueError):
            ekf.set_reference(100.0, 0.0, 0.0)
        with pytest.raises(ValueError):
            ErrorStateKalmanFilter(gravity=0.0)

    def test_verbose_prints_summary(self, capsys) -> None:
        ekf = ErrorStateKalmanFilter(verbose=True)
        ekf.set_noise(1e-4, 1e-6, 1e-8, 1e-10)
        ekf.initialize(_rest())
        out = capsys.readouterr().out
        assert "Process noise" in out
        assert "init gyro bias" in out
        assert "init accel bias" in out

    def test_std_properties(self) -> None:
        ekf = ErrorStateKalmanFilter()
        ekf.set_noise(1e-2, 1e-4, 0.0, 0.0)
        samples = _rest(20)
        for prev, curr in zip(samples[:-1], samples[1:]):
            ekf.predict(prev, curr)
        assert np.all(ekf.velocity_std > 0.0)
        assert np.all(ekf.attitude_std > 0.0)
        np.testing.assert_allclose(ekf.velocity_std ** 2, np.diag(ekf.covariance)[3:6])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
