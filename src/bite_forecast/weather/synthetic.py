"""Deterministic synthetic weather for when the upstream feed is unreachable.

Everything here is a pure function of (lat, lon, base_time): the same inputs
produce the same payload, so cached bundles and tests stay reproducible.
The payload mirrors the Open-Meteo ``timeformat=unixtime`` response shape and
is parsed by the same code path as live data.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np

from bite_forecast.common.types import JsonDict, round_half_up

FORECAST_HORIZON_HOURS = 24

# Reference new moon and mean synodic month
_KNOWN_NEW_MOON = datetime(2000, 1, 6, 18, 14, tzinfo=timezone.utc)
_SYNODIC_PERIOD_DAYS = 29.530588853


def synthetic_utc_offset_hours(lon: float) -> int:
    """Whole-hour offset from longitude, clamped to [-12, 12]."""
    return int(max(-12, min(12, round_half_up(lon / 15.0))))


def synthetic_timezone_label(offset_hours: int) -> str:
    if offset_hours == 0:
        return "UTC"
    return f"UTC{'+' if offset_hours > 0 else ''}{offset_hours}"


def moon_phase_fraction(at: datetime) -> float:
    """Fraction of the synodic month elapsed at *at* (0 = new, 0.5 = full)."""
    days = (at - _KNOWN_NEW_MOON).total_seconds() / 86400.0
    return (days / _SYNODIC_PERIOD_DAYS) % 1.0


def _round_array(values: np.ndarray, digits: int = 0) -> np.ndarray:
    factor = 10.0 ** digits
    return np.floor(values * factor + 0.5) / factor


def generate_synthetic_forecast(lat: float, lon: float, base_time: datetime) -> JsonDict:
    """Build a plausible 24-hour forecast payload for a point.

    Temperature falls off towards the poles with a diurnal swing; pressure,
    wind and precipitation chance are phase-shifted sinusoids seeded by the
    coordinate so neighbouring points look similar. Weather codes follow the
    precipitation chance, switching to snow codes below freezing.

    Args:
        lat: Latitude
        lon: Longitude
        base_time: Start of the series; truncated to the whole UTC hour

    Returns:
        Open-Meteo shaped dict with ``hourly`` and ``daily`` sections
    """
    if base_time.tzinfo is None:
        base_time = base_time.replace(tzinfo=timezone.utc)
    base = base_time.astimezone(timezone.utc).replace(minute=0, second=0, microsecond=0)
    offset_hours = synthetic_utc_offset_hours(lon)

    index = np.arange(FORECAST_HORIZON_HOURS)
    epoch = int(base.timestamp()) + index * 3600
    utc_hours = (base.hour + index) % 24
    day_fraction = utc_hours / 24.0 * 2.0 * np.pi

    latitude_influence = max(-8.0, min(8.0, (abs(lat) / 90.0) * -6.0))
    baseline = 18.0 + latitude_influence
    amplitude = 7.0 - min(5.0, abs(lat) * 0.05)
    humidity_seed = np.sin((lat + lon) * 0.3)

    temperature = baseline + amplitude * np.sin(day_fraction - 0.5)
    feels_like = temperature - 0.6 * np.cos(day_fraction + humidity_seed)
    pressure = 1012.0 + 6.0 * np.sin(day_fraction + lat / 15.0)
    wind_speed = 8.0 + 4.0 * np.abs(np.sin(day_fraction + lon / 20.0))
    wind_direction = np.mod(abs(lon) * 17.0 + index * 25.0, 360.0)
    precipitation = np.clip(
        45.0 + 35.0 * np.sin(day_fraction + humidity_seed + lat / 10.0), 5.0, 95.0,
    )

    codes = np.select(
        [temperature <= 0, precipitation > 70, precipitation > 45],
        [np.where(precipitation > 40, 71, 2), 63, 51],
        default=1,
    )

    day_start = base.replace(hour=0)
    sunrise = day_start + timedelta(hours=6 - offset_hours)
    sunset = day_start + timedelta(hours=18 - offset_hours)

    return {
        "latitude": lat,
        "longitude": lon,
        "timezone": synthetic_timezone_label(offset_hours),
        "utc_offset_seconds": offset_hours * 3600,
        "hourly": {
            "time": [int(t) for t in epoch],
            "temperature_2m": _round_array(temperature, 1).tolist(),
            "apparent_temperature": _round_array(feels_like, 1).tolist(),
            "pressure_msl": _round_array(pressure).tolist(),
            "wind_speed_10m": _round_array(wind_speed, 1).tolist(),
            "wind_direction_10m": _round_array(wind_direction).tolist(),
            "precipitation_probability": _round_array(precipitation).tolist(),
            "weather_code": [int(c) for c in codes],
        },
        "daily": {
            "time": [int(day_start.timestamp())],
            "sunrise": [int(sunrise.timestamp())],
            "sunset": [int(sunset.timestamp())],
            "moon_phase": [moon_phase_fraction(base)],
        },
    }
