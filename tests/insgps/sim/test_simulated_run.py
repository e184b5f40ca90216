"""
Tests for the simulated run generator and an end-to-end filter pass.

With noise-free IMU samples the filter should track the truth to well
within the fix noise, and stay consistent throughout.
"""

import numpy as np
import pytest

from insgps.config import FilterConfig, GeodeticReference, NoiseDensities
from insgps.coords.transforms import geodetic_to_enu
from insgps.estimators.eskf import ErrorStateKalmanFilter
from insgps.eval.metrics import compute_position_errors, compute_rmse, covariance_is_psd
from insgps.sensors.mechanization import mechanize
from insgps.sensors.types import NominalState
from insgps.sim.trajectory import simulate_run


class TestSimulatedRun:
    """Test suite for simulate_run."""

    def test_shapes_and_static_period(self) -> None:
        run = simulate_run(duration=20.0, static_duration=5.0)
        n = len(run.t)
        assert n == 2001
        assert run.truth_p.shape == (n, 3)
        assert run.truth_q.shape == (n, 4)
        assert run.n_static == 500
        np.testing.assert_allclose(run.truth_v[:run.n_static], 0.0)
        np.testing.assert_allclose(run.imu[0].accel, [0.0, 0.0, 9.81])
        assert all(run.t[idx] == fix.t for fix, idx in zip(run.fixes, run.fix_indices))
        assert run.fix_indices[0] == run.n_static + 100

    def test_fixes_match_truth_without_noise(self) -> None:
        run = simulate_run(duration=20.0, fix_noise_std=0.0)
        for fix, idx in zip(run.fixes, run.fix_indices):
            enu = geodetic_to_enu(fix.llh, run.reference)
            np.testing.assert_allclose(enu, run.truth_p[idx], atol=1e-6)

    def test_forward_model_consistent_with_mechanization(self) -> None:
        """Dead reckoning on ideal samples reproduces the truth closely."""
        run = simulate_run(duration=30.0)
        state = NominalState.zeros()
        for prev, curr in zip(run.imu[:-1], run.imu[1:]):
            state = mechanize(state, prev, curr)
        assert np.linalg.norm(state.p - run.truth_p[-1]) < 0.5
        assert np.linalg.norm(state.v - run.truth_v[-1]) < 0.05

    def test_invalid_rates(self) -> None:
        with pytest.raises(ValueError):
            simulate_run(imu_rate_hz=100.0, fix_rate_hz=3.0)
        with pytest.raises(ValueError):
            simulate_run(duration=-1.0)


class TestEndToEnd:
    """Filter pass over a simulated run."""

    def test_filter_tracks_truth(self) -> None:
        run = simulate_run(duration=40.0, fix_noise_std=0.5, seed=7)
        config = FilterConfig(
            noise=NoiseDensities(1e-4, 1e-8, 1e-8, 1e-12),
            reference=GeodeticReference(*run.reference),
        )
        ekf = ErrorStateKalmanFilter.from_config(config)
        ekf.initialize(run.imu[:run.n_static])

        last = run.n_static - 1
        est, truth = [], []
        for fix, idx in zip(run.fixes, run.fix_indices):
            ekf.correct(fix, run.imu[last:idx + 1])
            last = idx
            est.append(ekf.state.p)
            truth.append(run.truth_p[idx])
            assert covariance_is_psd(ekf.covariance)
            assert abs(np.linalg.norm(ekf.state.q) - 1.0) < 1e-9

        errors = compute_position_errors(np.array(truth), np.array(est))
        assert compute_rmse(errors) < 1.0
