"""Coordinate frames and rotation algebra.

- Geodetic (LLH) <-> ECEF <-> local ENU conversions
- Quaternion / rotation-vector / rotation-matrix operations

Navigation frame: ENU anchored at the filter's reference origin.
"""

from insgps.coords.rotations import (
    quat_from_rotvec,
    quat_from_two_vectors,
    quat_multiply,
    quat_normalize,
    quat_to_euler,
    quat_to_rotation_matrix,
    rotvec_to_rotation_matrix,
    skew,
)
from insgps.coords.transforms import (
    ecef_to_enu,
    ecef_to_llh,
    enu_to_ecef,
    enu_to_geodetic,
    geodetic_to_enu,
    llh_to_ecef,
)

__all__ = [
    # Transforms
    "llh_to_ecef",
    "ecef_to_llh",
    "ecef_to_enu",
    "enu_to_ecef",
    "geodetic_to_enu",
    "enu_to_geodetic",
    # Rotations
    "skew",
    "quat_multiply",
    "quat_normalize",
    "quat_from_rotvec",
    "rotvec_to_rotation_matrix",
    "quat_to_rotation_matrix",
    "quat_from_two_vectors",
    "quat_to_euler",
]
