"""
Error-state Kalman filter fusing IMU samples with absolute position fixes.

Nominal state (16):  x = [p, v, q, a_b, w_b]
Error state (15):    δx = [δp, δv, δθ, δa_b, δw_b]   (only P is stored)

Lifecycle:
    UNINITIALIZED --initialize--> INITIALIZED --predict--> PREDICTING
    PREDICTING --correct--> CORRECTED --predict--> PREDICTING ...
    any phase --recover_state--> INITIALIZED

Prediction (per consecutive IMU pair):
    x ← mechanize(x, imu_{k-1}, imu_k)
    P ← F P Fᵀ + F_i Q_i F_iᵀ

Correction (per fix, with the IMU samples bracketing it):
    predict over every consecutive pair of the bracket
    z = geodetic_to_enu(fix, reference)
    K = P Hᵀ (H P Hᵀ + V)⁻¹,  δx = K (z - p)
    P ← (I - KH) P (I - KH)ᵀ + K V Kᵀ
    x ← x ⊞ δx,  accepted ← x,  δx ← 0

Two copies of the nominal state are kept: the *nominal* state, advanced by
every predict, and the *accepted* state, set only by a correction (or by
initialize / recover_state). Callers read the accepted state.

A correction works on copies and commits only on success, so a raised error
leaves the filter exactly as it was.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

import numpy as np

from insgps.config import (
    DEFAULT_GRAVITY,
    FilterConfig,
    GeodeticReference,
    NoiseDensities,
)
from insgps.coords.transforms import enu_to_geodetic, geodetic_to_enu
from insgps.estimators.linearization import (
    noise_input_matrix,
    process_noise,
    transition_matrix,
)
from insgps.estimators.measurement import fix_noise, observation_matrix
from insgps.estimators.state import (
    ATT,
    POS,
    VEL,
    block_std,
    symmetrize,
    zero_covariance,
)
from insgps.fusion.update import (
    inject_error_state,
    innovation,
    innovation_covariance,
    joseph_update,
    kalman_gain,
)
from insgps.sensors.alignment import AlignmentResult, stationary_alignment
from insgps.sensors.mechanization import mechanize, time_step
from insgps.sensors.types import AbsoluteFixSample, InertialSample, NominalState

MIN_BRACKET_SAMPLES = 3


class FilterPhase(Enum):
    """Where the filter is in its lifecycle."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    PREDICTING = "predicting"
    CORRECTED = "corrected"


@dataclass(frozen=True)
class CorrectionResult:
    """
    Report of one position correction.

    Attributes:
        t: Fix timestamp (s).
        z_enu: Fix position in local ENU, shape (3,). Units: m.
        innovation: z - p before the update, shape (3,). Units: m.
        S: Innovation covariance, shape (3, 3). Units: m².
        K: Kalman gain, shape (15, 3).
        dx: Injected error-state estimate, shape (15,).
        nis: Normalized innovation squared yᵀ S⁻¹ y.
    """

    t: float
    z_enu: np.ndarray
    innovation: np.ndarray
    S: np.ndarray
    K: np.ndarray
    dx: np.ndarray
    nis: float


class ErrorStateKalmanFilter:
    """
    IMU + absolute position error-state Kalman filter.

    The filter owns its nominal state, accepted state and 15x15 error
    covariance. It is single-threaded; callers serialize access.

    Args:
        noise: Process noise values. Default: all zero.
        reference: Local ENU origin. Default: (0°, 0°, 0 m).
        gravity: Gravity magnitude (m/s²). Default: 9.81.
        verbose: Print initialization and correction diagnostics.

    Example:
        >>> ekf = ErrorStateKalmanFilter()
        >>> ekf.set_noise(1e-4, 1e-6, 1e-8, 1e-10)
        >>> ekf.set_reference(22.3, 114.2, 10.0)
        >>> ekf.phase
        <FilterPhase.UNINITIALIZED: 'uninitialized'>
    """

    def __init__(
        self,
        noise: Optional[NoiseDensities] = None,
        reference: Optional[GeodeticReference] = None,
        gravity: float = DEFAULT_GRAVITY,
        verbose: bool = False,
    ):
        if gravity <= 0.0:
            raise ValueError(f"Gravity magnitude must be positive, got {gravity}")

        self.noise = noise if noise is not None else NoiseDensities()
        self.reference = reference if reference is not None else GeodeticReference()
        self.gravity = float(gravity)
        self.verbose = verbose

        self._nominal = NominalState.zeros()
        self._accepted = NominalState.zeros()
        self._P = zero_covariance()
        self._phase = FilterPhase.UNINITIALIZED
        self._last_correction: Optional[CorrectionResult] = None

    @classmethod
    def from_config(
        cls, config: FilterConfig, verbose: bool = False
    ) -> "ErrorStateKalmanFilter":
        """Build a filter from a FilterConfig."""
        return cls(
            noise=config.noise,
            reference=config.reference,
            gravity=config.gravity,
            verbose=verbose,
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_noise(
        self,
        sigma_an: float,
        sigma_wn: float,
        sigma_aw: float,
        sigma_ww: float,
    ) -> None:
        """
        Set the four process noise values (used as given, not squared).

        Raises:
            ValueError: If any value is negative or not finite.
        """
        self.noise = NoiseDensities(sigma_an, sigma_wn, sigma_aw, sigma_ww)
        if self.verbose:
            print("Process noise:")
            print(self.noise.format_specs())

    def set_reference(self, lat_deg: float, lon_deg: float, alt_m: float) -> None:
        """
        Set the geodetic origin of the local ENU frame.

        Raises:
            ValueError: If latitude or longitude is out of range.
        """
        self.reference = GeodeticReference(lat_deg, lon_deg, alt_m)
        if self.verbose:
            print(
                f"ENU origin: lat={lat_deg:.8f}° lon={lon_deg:.8f}° alt={alt_m:.3f} m"
            )

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    def initialize(self, samples: Sequence[InertialSample]) -> AlignmentResult:
        """
        Stationary alignment: set attitude and biases from samples at rest.

        Overwrites both nominal and accepted state. The covariance is left
        as it is.

        Args:
            samples: Non-empty batch of stationary IMU samples.

        Returns:
            AlignmentResult (also printed when verbose).

        Raises:
            ValueError: If samples is empty.
        """
        result = stationary_alignment(samples, g=self.gravity)
        self._nominal = result.state.copy()
        self._accepted = result.state.copy()
        self._phase = FilterPhase.INITIALIZED

        if self.verbose:
            print(result.format_summary())

        return result

    def predict(self, prev: InertialSample, curr: InertialSample) -> None:
        """
        Propagate nominal state and covariance from prev.t to curr.t.

        A zero-length interval is a no-op. The accepted state is not touched.

        Raises:
            ValueError: If curr.t < prev.t (nothing is modified).
        """
        dt = time_step(prev, curr)
        if dt == 0.0:
            return

        self._nominal, self._P = self._propagate(self._nominal, self._P, prev, curr)
        self._phase = FilterPhase.PREDICTING

    def correct(
        self,
        fix: AbsoluteFixSample,
        imu_samples: Sequence[InertialSample],
    ) -> CorrectionResult:
        """
        Predict across the bracketing IMU samples, then apply the fix.

        Args:
            fix: Absolute position fix with its 3x3 covariance (m²).
            imu_samples: IMU samples bracketing the fix, at least 3, with
                strictly increasing timestamps.

        Returns:
            CorrectionResult for this epoch (also stored as last_correction).

        Raises:
            ValueError: On fewer than 3 samples or non-increasing timestamps.
            InnovationCovarianceError: If H P Hᵀ + V is singular or
                ill-conditioned.

        On any exception the nominal state, accepted state and covariance
        are unchanged.
        """
        if len(imu_samples) < MIN_BRACKET_SAMPLES:
            raise ValueError(
                f"Correction requires at least {MIN_BRACKET_SAMPLES} bracketing "
                f"IMU samples, got {len(imu_samples)}"
            )
        times = np.array([s.t for s in imu_samples])
        if np.any(np.diff(times) <= 0.0):
            raise ValueError(
                "Bracketing IMU samples must have strictly increasing timestamps"
            )

        nominal = self._nominal
        P = self._P
        for prev, curr in zip(imu_samples[:-1], imu_samples[1:]):
            nominal, P = self._propagate(nominal, P, prev, curr)

        z = geodetic_to_enu(fix.llh, self.reference.as_array())
        H = observation_matrix(nominal.q)
        V = fix_noise(fix)

        y = innovation(z, nominal.p)
        S = innovation_covariance(H, P, V)
        K = kalman_gain(P, H, S)
        dx = K @ y
        P_new = joseph_update(P, K, H, V)
        nominal = inject_error_state(nominal, dx)
        nis = float(y @ np.linalg.solve(S, y))

        # Commit
        self._nominal = nominal
        self._accepted = nominal.copy()
        self._P = P_new
        self._phase = FilterPhase.CORRECTED
        self._last_correction = CorrectionResult(
            t=fix.t, z_enu=z, innovation=y, S=S, K=K, dx=dx, nis=nis
        )

        if self.verbose:
            print(
                f"  t={fix.t:.3f}s  innovation=[{y[0]:+.3f}, {y[1]:+.3f}, {y[2]:+.3f}] m"
                f"  NIS={nis:.2f}"
            )

        return self._last_correction

    def recover_state(self, state: NominalState) -> None:
        """Overwrite nominal and accepted state (copied). P is unchanged."""
        self._nominal = state.copy()
        self._accepted = state.copy()
        self._phase = FilterPhase.INITIALIZED

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> NominalState:
        """Accepted state (copy)."""
        return self._accepted.copy()

    def get_state(self) -> NominalState:
        """Accepted state (copy)."""
        return self.state

    @property
    def nominal_state(self) -> NominalState:
        """Nominal (predicted) state (copy)."""
        return self._nominal.copy()

    def get_nominal_state(self) -> NominalState:
        """Nominal (predicted) state (copy)."""
        return self.nominal_state

    @property
    def covariance(self) -> np.ndarray:
        """Error covariance P, shape (15, 15) (copy)."""
        return self._P.copy()

    @property
    def phase(self) -> FilterPhase:
        return self._phase

    @property
    def last_correction(self) -> Optional[CorrectionResult]:
        return self._last_correction

    @property
    def position_std(self) -> np.ndarray:
        """1-sigma position uncertainty [E, N, U] (m)."""
        return block_std(self._P, POS)

    @property
    def velocity_std(self) -> np.ndarray:
        """1-sigma velocity uncertainty [E, N, U] (m/s)."""
        return block_std(self._P, VEL)

    @property
    def attitude_std(self) -> np.ndarray:
        """1-sigma attitude error uncertainty (rad, body axes)."""
        return block_std(self._P, ATT)

    def geodetic_position(self) -> np.ndarray:
        """Accepted position as [lat deg, lon deg, alt m]."""
        return enu_to_geodetic(self._accepted.p, self.reference.as_array())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _propagate(
        self,
        nominal: NominalState,
        P: np.ndarray,
        prev: InertialSample,
        curr: InertialSample,
    ) -> Tuple[NominalState, np.ndarray]:
        """One prediction step without touching the filter's own state."""
        dt = time_step(prev, curr)
        if dt == 0.0:
            return nominal, P

        nominal_next = mechanize(nominal, prev, curr, g=self.gravity)

        F = transition_matrix(nominal_next, curr, dt)
        Fi = noise_input_matrix()
        Qi = process_noise(self.noise, dt)

        P_next = symmetrize(F @ P @ F.T + Fi @ Qi @ Fi.T)
        return nominal_next, P_next
