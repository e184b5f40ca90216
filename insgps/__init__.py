"""Inertial + absolute-position navigation with an error-state Kalman filter.

This package fuses high-rate IMU samples with lower-rate absolute position
fixes (e.g. GNSS) to estimate position, attitude, velocity and IMU biases:
- coords: Geodetic/ECEF/ENU transforms and quaternion algebra
- sensors: Sample types, stationary alignment and strapdown mechanization
- estimators: Nominal state, linearization, measurement model and the ESKF
- fusion: Generic Kalman update helpers (innovation, gain, Joseph form)
- eval: Error metrics, consistency statistics and plots
- sim: Synthetic IMU/fix generation for tests and demos
"""

from insgps.config import FilterConfig, GeodeticReference, NoiseDensities
from insgps.estimators.eskf import ErrorStateKalmanFilter

__all__ = [
    "ErrorStateKalmanFilter",
    "FilterConfig",
    "GeodeticReference",
    "NoiseDensities",
]

__version__ = "0.1.0"
