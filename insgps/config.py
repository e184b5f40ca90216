"""
Filter configuration: process noise values, geodetic reference and gravity.

Configurations are frozen dataclasses validated on construction and can be
round-tripped through plain dicts / JSON files, for example:

    {
        "noise": {"sigma_an": 1e-4, "sigma_wn": 1e-6,
                  "sigma_aw": 1e-8, "sigma_ww": 1e-10},
        "reference": {"lat_deg": 22.3, "lon_deg": 114.2, "alt_m": 10.0},
        "gravity": 9.81
    }

Missing sections fall back to zero noise / zero origin / 9.81 m/s², which is
degenerate but well defined.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np

DEFAULT_GRAVITY = 9.81  # m/s²


@dataclass(frozen=True)
class NoiseDensities:
    """
    Process noise values for the four IMU noise sources.

    Each value scales one block of the discrete process noise: the white
    noise terms by dt², the random-walk terms by dt. Values are used as
    given (they are not squared).

    Attributes:
        sigma_an: Accelerometer white noise.
        sigma_wn: Gyroscope white noise.
        sigma_aw: Accelerometer bias random walk.
        sigma_ww: Gyroscope bias random walk.
    """

    sigma_an: float = 0.0
    sigma_wn: float = 0.0
    sigma_aw: float = 0.0
    sigma_ww: float = 0.0

    def __post_init__(self) -> None:
        """Validate that every value is finite and non-negative."""
        for name in ("sigma_an", "sigma_wn", "sigma_aw", "sigma_ww"):
            value = float(getattr(self, name))
            if not np.isfinite(value) or value < 0.0:
                raise ValueError(
                    f"NoiseDensities.{name} must be finite and >= 0, got {value}"
                )
            object.__setattr__(self, name, value)

    def format_specs(self) -> str:
        """One line per noise source, for verbose output."""
        return "\n".join([
            f"  accel white noise : {self.sigma_an:.3e}",
            f"  gyro white noise  : {self.sigma_wn:.3e}",
            f"  accel bias walk   : {self.sigma_aw:.3e}",
            f"  gyro bias walk    : {self.sigma_ww:.3e}",
        ])


@dataclass(frozen=True)
class GeodeticReference:
    """
    Origin of the local ENU navigation frame.

    Attributes:
        lat_deg: Latitude in degrees, [-90, 90].
        lon_deg: Longitude in degrees, [-180, 180].
        alt_m: Height above the WGS84 ellipsoid in metres.
    """

    lat_deg: float = 0.0
    lon_deg: float = 0.0
    alt_m: float = 0.0

    def __post_init__(self) -> None:
        """Validate ranges."""
        lat, lon, alt = float(self.lat_deg), float(self.lon_deg), float(self.alt_m)
        if not np.all(np.isfinite([lat, lon, alt])):
            raise ValueError(
                f"GeodeticReference must be finite, got ({lat}, {lon}, {alt})"
            )
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"Latitude must be in [-90, 90] deg, got {lat}")
        if not -180.0 <= lon <= 180.0:
            raise ValueError(f"Longitude must be in [-180, 180] deg, got {lon}")
        object.__setattr__(self, "lat_deg", lat)
        object.__setattr__(self, "lon_deg", lon)
        object.__setattr__(self, "alt_m", alt)

    def as_array(self) -> np.ndarray:
        """[lat_deg, lon_deg, alt_m]."""
        return np.array([self.lat_deg, self.lon_deg, self.alt_m])


@dataclass(frozen=True)
class FilterConfig:
    """
    Complete filter configuration.

    Attributes:
        noise: Process noise values.
        reference: Local ENU origin.
        gravity: Gravity magnitude in m/s² (> 0).

    Example:
        >>> cfg = FilterConfig.from_dict({"noise": {"sigma_an": 1e-4}})
        >>> cfg.noise.sigma_an
        0.0001
        >>> cfg.gravity
        9.81
    """

    noise: NoiseDensities = field(default_factory=NoiseDensities)
    reference: GeodeticReference = field(default_factory=GeodeticReference)
    gravity: float = DEFAULT_GRAVITY

    def __post_init__(self) -> None:
        """Validate gravity."""
        g = float(self.gravity)
        if not np.isfinite(g) or g <= 0.0:
            raise ValueError(f"Gravity magnitude must be positive, got {g}")
        object.__setattr__(self, "gravity", g)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterConfig":
        """
        Build a configuration from a nested dict.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        unknown = set(data) - {"noise", "reference", "gravity"}
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        try:
            noise = NoiseDensities(**data.get("noise", {}))
            reference = GeodeticReference(**data.get("reference", {}))
        except TypeError as e:
            raise ValueError(f"Invalid configuration section: {e}") from e
        return cls(
            noise=noise,
            reference=reference,
            gravity=data.get("gravity", DEFAULT_GRAVITY),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of from_dict()."""
        return {
            "noise": {
                "sigma_an": self.noise.sigma_an,
                "sigma_wn": self.noise.sigma_wn,
                "sigma_aw": self.noise.sigma_aw,
                "sigma_ww": self.noise.sigma_ww,
            },
            "reference": {
                "lat_deg": self.reference.lat_deg,
                "lon_deg": self.reference.lon_deg,
                "alt_m": self.reference.alt_m,
            },
            "gravity": self.gravity,
        }

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "FilterConfig":
        """Load a configuration from a JSON file."""
        with open(path, "r") as f:
            return cls.from_dict(json.load(f))

    def to_json(self, path: Union[str, Path]) -> None:
        """Write the configuration to a JSON file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
