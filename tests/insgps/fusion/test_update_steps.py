"""Unit tests for the Kalman update helpers."""

import unittest

import numpy as np

from insgps.coords.rotations import quat_from_rotvec, quat_multiply
from insgps.fusion.update import (
    MAX_INNOVATION_CONDITION,
    InnovationCovarianceError,
    inject_error_state,
    innovation,
    innovation_covariance,
    joseph_update,
    kalman_gain,
)
from insgps.sensors.types import NominalState


class TestInnovation(unittest.TestCase):

    def test_difference(self) -> None:
        np.testing.assert_allclose(innovation([5.2, 3.1], [5.0, 3.0]), [0.2, 0.1])

    def test_shape_mismatch(self) -> None:
        with self.assertRaises(ValueError):
            innovation(np.zeros(3), np.zeros(2))

    def test_innovation_covariance(self) -> None:
        H = np.array([[1.0, 0.0], [0.0, 1.0]])
        S = innovation_covariance(H, np.diag([0.5, 0.3]), np.diag([0.1, 0.1]))
        np.testing.assert_allclose(S, [[0.6, 0.0], [0.0, 0.4]])

    def test_innovation_covariance_bad_dims(self) -> None:
        with self.assertRaises(ValueError):
            innovation_covariance(np.eye(2), np.eye(3), np.eye(2))
        with self.assertRaises(ValueError):
            innovation_covariance(np.eye(2), np.eye(2), np.eye(3))


class TestGain(unittest.TestCase):

    def test_scalar_gain(self) -> None:
        P = np.array([[4.0]])
        H = np.array([[1.0]])
        K = kalman_gain(P, H, innovation_covariance(H, P, np.array([[1.0]])))
        np.testing.assert_allclose(K, [[0.8]])

    def test_matches_explicit_inverse(self) -> None:
        rng = np.random.default_rng(3)
        A = rng.standard_normal((6, 6))
        P = A @ A.T + np.eye(6)
        H = rng.standard_normal((3, 6))
        V = np.diag([0.5, 1.0, 2.0])
        S = innovation_covariance(H, P, V)
        np.testing.assert_allclose(kalman_gain(P, H, S), P @ H.T @ np.linalg.inv(S), rtol=1e-10)

    def test_singular_raises(self) -> None:
        with self.assertRaises(InnovationCovarianceError):
            kalman_gain(np.eye(3), np.eye(3), np.zeros((3, 3)))

    def test_ill_conditioned_raises(self) -> None:
        S = np.diag([1.0, 1.0, 1.0 / (10.0 * MAX_INNOVATION_CONDITION)])
        with self.assertRaises(InnovationCovarianceError):
            kalman_gain(np.eye(3), np.eye(3), S)

    def test_non_finite_raises(self) -> None:
        S = np.eye(3)
        S[1, 1] = np.inf
        with self.assertRaises(InnovationCovarianceError):
            kalman_gain(np.eye(3), np.eye(3), S)


class TestJoseph(unittest.TestCase):

    def test_matches_short_form_for_optimal_gain(self) -> None:
        P = np.diag([2.0, 3.0, 1.0])
        H = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        V = np.diag([1.0, 0.5])
        S = innovation_covariance(H, P, V)
        K = kalman_gain(P, H, S)
        P_joseph = joseph_update(P, K, H, V)
        np.testing.assert_allclose(P_joseph, (np.eye(3) - K @ H) @ P, atol=1e-12)
        np.testing.assert_array_equal(P_joseph, P_joseph.T)

    def test_psd_for_suboptimal_gain(self) -> None:
        P = np.diag([1.0, 1.0])
        H = np.eye(2)
        V = np.eye(2)
        K = np.array([[1.5, 0.0], [0.0, -0.3]])
        self.assertGreaterEqual(np.min(np.linalg.eigvalsh(joseph_update(P, K, H, V))), 0.0)


class TestInjection(unittest.TestCase):

    def test_additive_and_multiplicative_parts(self) -> None:
        state = NominalState(
            p=[1.0, 2.0, 3.0], v=[0.1, 0.0, -0.1],
            q=quat_from_rotvec(np.array([0.0, 0.0, 0.5])),
            a_b=[0.01, 0.0, 0.0], w_b=[0.0, 1e-3, 0.0],
        )
        dx = np.arange(15, dtype=float) * 1e-3
        out = inject_error_state(state, dx)

        np.testing.assert_allclose(out.p, state.p + dx[0:3])
        np.testing.assert_allclose(out.v, state.v + dx[3:6])
        np.testing.assert_allclose(out.a_b, state.a_b + dx[9:12])
        np.testing.assert_allclose(out.w_b, state.w_b + dx[12:15])
        np.testing.assert_allclose(out.q, quat_multiply(state.q, quat_from_rotvec(dx[6:9])), atol=1e-15)
        self.assertAlmostEqual(np.linalg.norm(out.q), 1.0, places=12)

    def test_zero_correction(self) -> None:
        state = NominalState.zeros()
        out = inject_error_state(state, np.zeros(15))
        np.testing.assert_array_equal(out.to_vector(), state.to_vector())

    def test_bad_shape(self) -> None:
        with self.assertRaises(ValueError):
            inject_error_state(NominalState.zeros(), np.zeros(16))


if __name__ == "__main__":
    unittest.main()
