"""
Inertial sensor types, stationary alignment and strapdown mechanization.

Modules:
    types: InertialSample, AbsoluteFixSample, NominalState
    units: Bias unit conversions and display formatting
    mechanization: Midpoint strapdown integration of the nominal state
    alignment: Initial attitude and bias from stationary samples

Frame conventions: B (body/IMU), N (navigation, local ENU).
"""

from insgps.sensors.types import (
    AbsoluteFixSample,
    InertialSample,
    NominalState,
    samples_from_arrays,
)
from insgps.sensors.mechanization import (
    GRAVITY_MAGNITUDE,
    gravity_vector,
    mechanize,
    time_step,
)
from insgps.sensors.alignment import AlignmentResult, stationary_alignment

__all__ = [
    # Data types
    "InertialSample",
    "AbsoluteFixSample",
    "NominalState",
    "samples_from_arrays",
    # Mechanization
    "GRAVITY_MAGNITUDE",
    "gravity_vector",
    "time_step",
    "mechanize",
    # Alignment
    "AlignmentResult",
    "stationary_alignment",
]
