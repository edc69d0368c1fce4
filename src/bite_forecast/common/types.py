"""Shared type aliases and numeric helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TypeAlias

# JSON-like dict
JsonDict: TypeAlias = dict[str, object]


@dataclass(frozen=True)
class Coordinates:
    """A geographic point in decimal degrees."""

    lat: float
    lon: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, data: dict | None) -> Coordinates | None:
        """Accept {lat, lon}, {lat, lng} or {latitude, longitude} shapes."""
        if not data:
            return None
        for lat_key, lon_key in (("lat", "lon"), ("lat", "lng"), ("latitude", "longitude")):
            lat = data.get(lat_key)
            lon = data.get(lon_key)
            if isinstance(lat, (int, float)) and isinstance(lon, (int, float)):
                return cls(float(lat), float(lon))
        return None


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with .5 going towards +inf, unlike Python's banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def celsius_to_fahrenheit(c: float | None) -> float | None:
    """Convert Celsius to Fahrenheit, rounded to 0.1."""
    if c is None:
        return None
    return round_half_up(c * 9.0 / 5.0 + 32.0, 1)


def mps_to_mph(speed: float | None) -> float | None:
    """Convert metres per second to miles per hour, rounded to 0.1."""
    if speed is None:
        return None
    return round_half_up(speed * 2.23694, 1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_utc(value: object) -> datetime | None:
    """Parse an ISO string, epoch seconds or datetime into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        return datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def isoformat_utc(value: datetime | None) -> str | None:
    """Serialize to an ISO-8601 string with a trailing Z."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
