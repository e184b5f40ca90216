"""Unit tests for the position-fix measurement model."""

import unittest

import numpy as np

from insgps.coords.rotations import quat_from_rotvec, quat_multiply
from insgps.estimators.measurement import (
    fix_noise,
    observation_matrix,
    position_selection,
    quaternion_error_jacobian,
    state_to_error_jacobian,
)
from insgps.sensors.types import AbsoluteFixSample


class TestObservationMatrix(unittest.TestCase):

    def setUp(self) -> None:
        self.q = quat_from_rotvec(np.array([0.3, -0.1, 1.2]))

    def test_position_only(self) -> None:
        H = observation_matrix(self.q)
        expected = np.zeros((3, 15))
        expected[:, 0:3] = np.eye(3)
        self.assertEqual(H.shape, (3, 15))
        np.testing.assert_array_equal(H, expected)

    def test_two_stage_shapes(self) -> None:
        self.assertEqual(position_selection().shape, (3, 16))
        X = state_to_error_jacobian(self.q)
        self.assertEqual(X.shape, (16, 15))
        np.testing.assert_array_equal(X[0:6, 0:6], np.eye(6))
        np.testing.assert_array_equal(X[10:16, 9:15], np.eye(6))

    def test_quaternion_block_matches_finite_difference(self) -> None:
        """q ⊗ Exp(δθ) ≈ q + J δθ for small δθ."""
        J = quaternion_error_jacobian(self.q)
        d = np.array([1e-6, -2e-6, 1.5e-6])
        q_pert = quat_multiply(self.q, quat_from_rotvec(d))
        np.testing.assert_allclose(q_pert - self.q, J @ d, atol=1e-11)
        np.testing.assert_allclose(state_to_error_jacobian(self.q)[6:10, 6:9], J)


class TestFixNoise(unittest.TestCase):

    def test_verbatim_copy(self) -> None:
        cov = np.array([[2.0, 0.1, 0.0], [0.1, 3.0, 0.0], [0.0, 0.0, 9.0]])
        fix = AbsoluteFixSample(t=0.0, llh=[22.3, 114.2, 10.0], cov=cov)
        V = fix_noise(fix)
        np.testing.assert_array_equal(V, cov)
        V[0, 0] = 100.0
        self.assertEqual(fix.cov[0, 0], 2.0)


if __name__ == "__main__":
    unittest.main()
