"""Geodetic (LLH) <-> ECEF <-> local ENU conversions.

The filter works in a local East-North-Up tangent plane anchored at a
configured geodetic reference. Absolute position fixes arrive as
latitude/longitude in degrees and height in metres; `geodetic_to_enu`
maps them into that plane and `enu_to_geodetic` maps estimates back.

WGS84 ellipsoid parameters:
- Semi-major axis (a): 6378137.0 m
- Flattening (f): 1/298.257223563
- First eccentricity squared (e²): 0.00669437999014

Low-level functions (`llh_to_ecef`, `ecef_to_llh`, `ecef_to_enu`,
`enu_to_ecef`) take angles in radians; the geodetic helpers take degrees.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

# WGS84 ellipsoid parameters
WGS84_A = 6378137.0  # Semi-major axis (m)
WGS84_F = 1.0 / 298.257223563  # Flattening
WGS84_B = WGS84_A * (1.0 - WGS84_F)  # Semi-minor axis (m)
WGS84_E2 = 1.0 - (WGS84_B / WGS84_A) ** 2  # First eccentricity squared


def llh_to_ecef(lat: float, lon: float, height: float) -> NDArray[np.float64]:
    """Convert geodetic coordinates to ECEF.

    Args:
        lat: Latitude in radians (positive north).
        lon: Longitude in radians (positive east).
        height: Height above the WGS84 ellipsoid in meters.

    Returns:
        ECEF coordinates [x, y, z] in meters.
    """
    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    # Prime-vertical radius of curvature
    N = WGS84_A / np.sqrt(1.0 - WGS84_E2 * sin_lat**2)

    x = (N + height) * cos_lat * np.cos(lon)
    y = (N + height) * cos_lat * np.sin(lon)
    z = (N * (1.0 - WGS84_E2) + height) * sin_lat

    return np.array([x, y, z], dtype=np.float64)


def ecef_to_llh(
    x: float,
    y: float,
    z: float,
    tol: float = 1e-12,
    max_iter: int = 10,
) -> NDArray[np.float64]:
    """Convert ECEF coordinates to geodetic [lat, lon, height].

    Uses the fixed-point latitude iteration; converges in a few steps for
    terrestrial heights.

    Args:
        x, y, z: ECEF coordinates in meters.
        tol: Latitude convergence tolerance (radians).
        max_iter: Maximum number of iterations.

    Returns:
        [lat, lon, height] with angles in radians and height in meters.
    """
    lon = np.arctan2(y, x)
    p = np.sqrt(x**2 + y**2)

    # Pole: latitude is ±90° and the iteration below is singular
    if p < 1e-10:
        lat = np.copysign(np.pi / 2.0, z)
        return np.array([lat, lon, abs(z) - WGS84_B], dtype=np.float64)

    lat = np.arctan2(z, p * (1.0 - WGS84_E2))
    for _ in range(max_iter):
        N = WGS84_A / np.sqrt(1.0 - WGS84_E2 * np.sin(lat) ** 2)
        height = p / np.cos(lat) - N
        lat_new = np.arctan2(z, p * (1.0 - WGS84_E2 * N / (N + height)))
        converged = abs(lat_new - lat) < tol
        lat = lat_new
        if converged:
            break

    N = WGS84_A / np.sqrt(1.0 - WGS84_E2 * np.sin(lat) ** 2)
    height = p / np.cos(lat) - N

    return np.array([lat, lon, height], dtype=np.float64)


def _ecef_to_enu_rotation(lat_ref: float, lon_ref: float) -> NDArray[np.float64]:
    """Rotation matrix R_enu_ecef at the reference latitude/longitude (radians)."""
    sin_lat = np.sin(lat_ref)
    cos_lat = np.cos(lat_ref)
    sin_lon = np.sin(lon_ref)
    cos_lon = np.cos(lon_ref)

    return np.array(
        [
            [-sin_lon, cos_lon, 0.0],
            [-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat],
            [cos_lat * cos_lon, cos_lat * sin_lon, sin_lat],
        ],
        dtype=np.float64,
    )


def ecef_to_enu(
    x: float,
    y: float,
    z: float,
    lat_ref: float,
    lon_ref: float,
    height_ref: float,
) -> NDArray[np.float64]:
    """Convert ECEF coordinates to ENU about a reference point (radians, m).

    Returns:
        [east, north, up] in meters.
    """
    xyz_ref = llh_to_ecef(lat_ref, lon_ref, height_ref)
    d = np.array([x, y, z], dtype=np.float64) - xyz_ref
    return _ecef_to_enu_rotation(lat_ref, lon_ref) @ d


def enu_to_ecef(
    east: float,
    north: float,
    up: float,
    lat_ref: float,
    lon_ref: float,
    height_ref: float,
) -> NDArray[np.float64]:
    """Convert ENU coordinates about a reference point back to ECEF.

    Returns:
        [x, y, z] in meters.
    """
    xyz_ref = llh_to_ecef(lat_ref, lon_ref, height_ref)
    R = _ecef_to_enu_rotation(lat_ref, lon_ref).T
    return xyz_ref + R @ np.array([east, north, up], dtype=np.float64)


def _as_llh_deg(llh: ArrayLike, name: str) -> NDArray[np.float64]:
    llh = np.asarray(llh, dtype=np.float64)
    if llh.shape != (3,):
        raise ValueError(f"{name} must be [lat_deg, lon_deg, alt_m], got shape {llh.shape}")
    if not -90.0 <= llh[0] <= 90.0:
        raise ValueError(f"{name} latitude must be in [-90, 90] deg, got {llh[0]}")
    return llh


def geodetic_to_enu(llh_deg: ArrayLike, ref_llh_deg: ArrayLike) -> NDArray[np.float64]:
    """Map a geodetic position into the local ENU plane of a reference point.

    This is the converter used by the filter's correction step. It is a pure
    function: the same reference always yields the same tangent-plane mapping,
    and a point equal to the reference maps to exactly [0, 0, 0].

    Args:
        llh_deg: [latitude deg, longitude deg, altitude m] of the point.
        ref_llh_deg: [latitude deg, longitude deg, altitude m] of the origin.

    Returns:
        [east, north, up] in meters.

    Example:
        >>> ref = [22.3, 114.2, 10.0]
        >>> geodetic_to_enu(ref, ref)
        array([0., 0., 0.])
    """
    llh = _as_llh_deg(llh_deg, "llh_deg")
    ref = _as_llh_deg(ref_llh_deg, "ref_llh_deg")

    xyz = llh_to_ecef(np.deg2rad(llh[0]), np.deg2rad(llh[1]), llh[2])
    return ecef_to_enu(*xyz, np.deg2rad(ref[0]), np.deg2rad(ref[1]), ref[2])


def enu_to_geodetic(enu: ArrayLike, ref_llh_deg: ArrayLike) -> NDArray[np.float64]:
    """Inverse of `geodetic_to_enu`.

    Args:
        enu: [east, north, up] in meters.
        ref_llh_deg: [latitude deg, longitude deg, altitude m] of the origin.

    Returns:
        [latitude deg, longitude deg, altitude m].
    """
    enu = np.asarray(enu, dtype=np.float64)
    if enu.shape != (3,):
        raise ValueError(f"enu must have shape (3,), got {enu.shape}")
    ref = _as_llh_deg(ref_llh_deg, "ref_llh_deg")

    xyz = enu_to_ecef(*enu, np.deg2rad(ref[0]), np.deg2rad(ref[1]), ref[2])
    lat, lon, height = ecef_to_llh(*xyz)
    return np.array([np.rad2deg(lat), np.rad2deg(lon), height], dtype=np.float64)
