"""
Sensor sample types consumed by the error-state filter.

    - InertialSample: one IMU epoch (specific force + angular rate)
    - AbsoluteFixSample: one absolute position fix (geodetic + covariance)
    - NominalState: position, velocity, attitude and IMU biases (16 scalars)

Time Base Convention:
    All timestamps are float seconds on a common monotonic clock. Streams are
    expected in strictly increasing timestamp order; the filter rejects
    backward steps.

Frame Conventions:
    - B: Body frame (IMU sensor frame)
    - N: Navigation frame, local ENU anchored at the geodetic reference
    - Specific force is the accelerometer reading (reaction force): a level
      platform at rest reads f_b = [0, 0, +g].
"""

import warnings
from dataclasses import dataclass
from typing import List

import numpy as np


@dataclass(frozen=True)
class InertialSample:
    """
    One IMU measurement epoch.

    Attributes:
        t: Timestamp in seconds.
        accel: Specific force in body frame B, shape (3,). Units: m/s².
               Raw reading (accelerometer bias not removed).
        gyro: Angular rate in body frame B, shape (3,). Units: rad/s.
              Raw reading (gyroscope bias not removed).

    Example:
        >>> s = InertialSample(t=0.0, accel=[0.0, 0.0, 9.81], gyro=[0.0, 0.0, 0.0])
        >>> s.accel.shape
        (3,)
    """

    t: float
    accel: np.ndarray
    gyro: np.ndarray

    def __post_init__(self) -> None:
        """Coerce vectors to float arrays and validate shapes."""
        accel = np.asarray(self.accel, dtype=np.float64)
        gyro = np.asarray(self.gyro, dtype=np.float64)

        if accel.shape != (3,):
            raise ValueError(
                f"InertialSample.accel must have shape (3,), got {accel.shape}"
            )
        if gyro.shape != (3,):
            raise ValueError(
                f"InertialSample.gyro must have shape (3,), got {gyro.shape}"
            )
        if not np.isfinite(self.t):
            raise ValueError(f"InertialSample.t must be finite, got {self.t}")

        object.__setattr__(self, "t", float(self.t))
        object.__setattr__(self, "accel", accel)
        object.__setattr__(self, "gyro", gyro)


@dataclass(frozen=True)
class AbsoluteFixSample:
    """
    Absolute position fix (e.g. a GNSS solution).

    Attributes:
        t: Timestamp in seconds.
        llh: Geodetic position [latitude deg, longitude deg, altitude m].
        cov: Position measurement covariance, shape (3, 3). Units: m², in the
             local ENU axes (matching post-conversion position units).

    Notes:
        - The covariance is used verbatim as the measurement noise V.
        - It must be symmetric positive semi-definite; an all-zero covariance
          is legal here but makes the innovation covariance depend entirely
          on the filter's own position uncertainty.
    """

    t: float
    llh: np.ndarray
    cov: np.ndarray

    def __post_init__(self) -> None:
        """Coerce arrays and validate shape, symmetry and semi-definiteness."""
        llh = np.asarray(self.llh, dtype=np.float64)
        cov = np.asarray(self.cov, dtype=np.float64)

        if llh.shape != (3,):
            raise ValueError(
                f"AbsoluteFixSample.llh must have shape (3,), got {llh.shape}"
            )
        if not -90.0 <= llh[0] <= 90.0:
            raise ValueError(
                f"AbsoluteFixSample latitude must be in [-90, 90] deg, got {llh[0]}"
            )
        if cov.shape != (3, 3):
            raise ValueError(
                f"AbsoluteFixSample.cov must have shape (3, 3), got {cov.shape}"
            )
        if not np.all(np.isfinite(cov)):
            raise ValueError("AbsoluteFixSample.cov must be finite")
        if not np.allclose(cov, cov.T):
            raise ValueError("AbsoluteFixSample.cov must be symmetric")

        eigvals = np.linalg.eigvalsh(cov)
        if np.any(eigvals < -1e-10 * max(1.0, float(np.max(np.abs(eigvals))))):
            raise ValueError(
                f"AbsoluteFixSample.cov must be positive semi-definite, "
                f"got eigenvalues {eigvals}"
            )

        object.__setattr__(self, "t", float(self.t))
        object.__setattr__(self, "llh", llh)
        object.__setattr__(self, "cov", cov)


@dataclass(eq=False)
class NominalState:
    """
    Nominal navigation state: position, velocity, attitude and IMU biases.

    Attributes:
        p: Position in navigation frame N (ENU), shape (3,). Units: m.
        v: Velocity in navigation frame N, shape (3,). Units: m/s.
        q: Attitude quaternion (body to navigation), shape (4,).
           Scalar-first [qw, qx, qy, qz]; kept at unit norm by the filter.
        a_b: Accelerometer bias in body frame, shape (3,). Units: m/s².
        w_b: Gyroscope bias in body frame, shape (3,). Units: rad/s.

    Notes:
        - 16 scalar parameters; vector layout [p, v, q, a_b, w_b].
        - MUTABLE so the filter can update it in place; use copy() when a
          snapshot is needed.

    Example:
        >>> s = NominalState.zeros()
        >>> s.to_vector().shape
        (16,)
    """

    p: np.ndarray
    v: np.ndarray
    q: np.ndarray
    a_b: np.ndarray
    w_b: np.ndarray

    def __post_init__(self) -> None:
        """Coerce to float arrays, validate shapes, warn on non-unit q."""
        for name, size in (("p", 3), ("v", 3), ("q", 4), ("a_b", 3), ("w_b", 3)):
            value = np.array(getattr(self, name), dtype=np.float64)
            if value.shape != (size,):
                raise ValueError(
                    f"NominalState.{name} must have shape ({size},), got {value.shape}"
                )
            setattr(self, name, value)

        q_norm = np.linalg.norm(self.q)
        if not np.isclose(q_norm, 1.0, atol=1e-3):
            warnings.warn(
                f"NominalState initialized with non-unit quaternion "
                f"(||q|| = {q_norm:.6f}). Consider normalizing.",
                UserWarning,
            )

    @classmethod
    def zeros(cls) -> "NominalState":
        """State at the origin, at rest, level, with zero biases."""
        return cls(
            p=np.zeros(3),
            v=np.zeros(3),
            q=np.array([1.0, 0.0, 0.0, 0.0]),
            a_b=np.zeros(3),
            w_b=np.zeros(3),
        )

    def copy(self) -> "NominalState":
        """Deep copy (arrays are not shared)."""
        return NominalState(
            p=self.p.copy(),
            v=self.v.copy(),
            q=self.q.copy(),
            a_b=self.a_b.copy(),
            w_b=self.w_b.copy(),
        )

    def __eq__(self, other: object) -> bool:
        """Element-wise equality of all five blocks."""
        if not isinstance(other, NominalState):
            return NotImplemented
        return all(
            np.array_equal(getattr(self, name), getattr(other, name))
            for name in ("p", "v", "q", "a_b", "w_b")
        )

    def to_vector(self) -> np.ndarray:
        """Stack into the 16-element vector [p, v, q, a_b, w_b]."""
        return np.concatenate([self.p, self.v, self.q, self.a_b, self.w_b])

    @classmethod
    def from_vector(cls, x: np.ndarray) -> "NominalState":
        """Inverse of to_vector()."""
        x = np.asarray(x, dtype=np.float64)
        if x.shape != (16,):
            raise ValueError(f"State vector must have shape (16,), got {x.shape}")
        return cls(p=x[0:3], v=x[3:6], q=x[6:10], a_b=x[10:13], w_b=x[13:16])


def samples_from_arrays(
    t: np.ndarray,
    accel: np.ndarray,
    gyro: np.ndarray,
) -> List[InertialSample]:
    """
    Build a list of InertialSample from stacked arrays.

    Args:
        t: Timestamps, shape (N,).
        accel: Specific force, shape (N, 3). Units: m/s².
        gyro: Angular rate, shape (N, 3). Units: rad/s.

    Returns:
        List of N InertialSample in input order.

    Raises:
        ValueError: If array shapes are inconsistent.
    """
    t = np.asarray(t, dtype=np.float64)
    accel = np.asarray(accel, dtype=np.float64)
    gyro = np.asarray(gyro, dtype=np.float64)

    if t.ndim != 1:
        raise ValueError(f"t must be 1D array, got shape {t.shape}")

    n_samples = t.shape[0]
    if accel.shape != (n_samples, 3):
        raise ValueError(f"accel must have shape ({n_samples}, 3), got {accel.shape}")
    if gyro.shape != (n_samples, 3):
        raise ValueError(f"gyro must have shape ({n_samples}, 3), got {gyro.shape}")

    return [InertialSample(t=t[i], accel=accel[i], gyro=gyro[i]) for i in range(n_samples)]
