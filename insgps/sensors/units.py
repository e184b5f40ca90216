"""
Unit conversions and display formatting for filter diagnostics.

Bias estimates are carried internally in SI units (m/s², rad/s). For
human-readable summaries they are shown in the units found on IMU data
sheets: mg for accelerometer bias and deg/hr for gyroscope bias.
Function names state both input and output units.
"""

from typing import Union

import numpy as np

Numeric = Union[float, np.ndarray]

STANDARD_GRAVITY = 9.80665  # m/s² (ISO 80000-3:2006)


def mg_to_mps2(mg: Numeric) -> Numeric:
    """
    Convert acceleration from milligravity (mg) to m/s².

    Example:
        >>> round(mg_to_mps2(10.0), 6)
        0.098067
    """
    return mg * 0.001 * STANDARD_GRAVITY


def mps2_to_mg(mps2: Numeric) -> Numeric:
    """Convert acceleration from m/s² to milligravity (mg)."""
    return mps2 / (0.001 * STANDARD_GRAVITY)


def deg_per_hour_to_rad_per_sec(deg_per_hr: Numeric) -> Numeric:
    """Convert angular rate from deg/hr to rad/s."""
    return np.deg2rad(deg_per_hr) / 3600.0


def rad_per_sec_to_deg_per_hour(rad_per_s: Numeric) -> Numeric:
    """Convert angular rate from rad/s to deg/hr."""
    return np.rad2deg(rad_per_s) * 3600.0


def format_gyro_bias(bias_rad_s: np.ndarray) -> str:
    """
    Format a 3-axis gyroscope bias for display.

    Example:
        >>> format_gyro_bias(np.array([deg_per_hour_to_rad_per_sec(10.0), 0.0, 0.0]))
        '[10.00, 0.00, 0.00] deg/hr'
    """
    deg_hr = rad_per_sec_to_deg_per_hour(np.asarray(bias_rad_s, dtype=float))
    return "[" + ", ".join(f"{v:.2f}" for v in deg_hr) + "] deg/hr"


def format_accel_bias(bias_mps2: np.ndarray) -> str:
    """
    Format a 3-axis accelerometer bias for display (mg and m/s²).

    Example:
        >>> format_accel_bias(np.array([mg_to_mps2(10.0), 0.0, 0.0]))
        '[10.00, 0.00, 0.00] mg ([0.0981, 0.0000, 0.0000] m/s²)'
    """
    bias_mps2 = np.asarray(bias_mps2, dtype=float)
    mg = mps2_to_mg(bias_mps2)
    mg_str = ", ".join(f"{v:.2f}" for v in mg)
    si_str = ", ".join(f"{v:.4f}" for v in bias_mps2)
    return f"[{mg_str}] mg ([{si_str}] m/s²)"


def format_quaternion(q: np.ndarray) -> str:
    """Format a scalar-first quaternion as 'w x y z'."""
    return " ".join(f"{v:.6f}" for v in np.asarray(q, dtype=float))


def format_attitude_deg(rpy_rad: np.ndarray) -> str:
    """Format [roll, pitch, yaw] radians as degrees."""
    roll, pitch, yaw = np.rad2deg(np.asarray(rpy_rad, dtype=float))
    return f"roll={roll:.3f}° pitch={pitch:.3f}° yaw={yaw:.3f}°"
