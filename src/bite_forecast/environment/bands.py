"""Coarse environment bands and the snapshots they are derived from."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from bite_forecast.common.types import isoformat_utc, parse_utc

PRESSURE_HIGH_HPA = 1015.0
PRESSURE_LOW_HPA = 1008.0
PRESSURE_TREND_THRESHOLD_HPA = 0.3


class TimeOfDayBand(str, Enum):
    NIGHT = "night"
    DAWN = "dawn"
    DAY = "day"
    DUSK = "dusk"


class MoonPhaseBand(str, Enum):
    NEW = "new"
    WAXING = "waxing"
    FULL = "full"
    WANING = "waning"


class PressureBand(str, Enum):
    LOW = "low"
    MID = "mid"
    HIGH = "high"


def time_of_day_band(local_hour: int) -> TimeOfDayBand:
    if 5 <= local_hour < 8:
        return TimeOfDayBand.DAWN
    if 8 <= local_hour < 18:
        return TimeOfDayBand.DAY
    if 18 <= local_hour < 22:
        return TimeOfDayBand.DUSK
    return TimeOfDayBand.NIGHT


def moon_phase_band(phase: float | None) -> MoonPhaseBand:
    """Quarter the synodic cycle around new/full; unknown phase reads as waxing."""
    if phase is None or not math.isfinite(phase):
        return MoonPhaseBand.WAXING
    normalized = phase % 1.0
    if normalized < 0.125 or normalized >= 0.875:
        return MoonPhaseBand.NEW
    if normalized < 0.375:
        return MoonPhaseBand.WAXING
    if normalized < 0.625:
        return MoonPhaseBand.FULL
    return MoonPhaseBand.WANING


def pressure_band(pressure_hpa: float | None) -> PressureBand:
    if pressure_hpa is None or not math.isfinite(pressure_hpa):
        return PressureBand.MID
    if pressure_hpa >= PRESSURE_HIGH_HPA:
        return PressureBand.HIGH
    if pressure_hpa <= PRESSURE_LOW_HPA:
        return PressureBand.LOW
    return PressureBand.MID


def pressure_trend(before: float | None, after: float | None) -> str | None:
    if before is None or after is None:
        return None
    delta = after - before
    if delta > PRESSURE_TREND_THRESHOLD_HPA:
        return "rising"
    if delta < -PRESSURE_TREND_THRESHOLD_HPA:
        return "falling"
    return "steady"


@dataclass(frozen=True)
class EnvironmentBands:
    """The (time-of-day, moon, pressure) triple used as an aggregation key."""

    time_of_day: TimeOfDayBand
    moon_phase: MoonPhaseBand
    pressure: PressureBand

    @property
    def slice_key(self) -> str:
        return f"{self.time_of_day.value}|{self.moon_phase.value}|{self.pressure.value}"

    def to_dict(self) -> dict[str, str]:
        return {
            "timeOfDay": self.time_of_day.value,
            "moonPhase": self.moon_phase.value,
            "pressure": self.pressure.value,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> EnvironmentBands | None:
        """Parse a stored band triple; None if any band is missing or unknown."""
        if not isinstance(data, dict):
            return None
        try:
            return cls(
                time_of_day=TimeOfDayBand(data.get("timeOfDay", data.get("time_of_day"))),
                moon_phase=MoonPhaseBand(data.get("moonPhase", data.get("moon_phase"))),
                pressure=PressureBand(data.get("pressure")),
            )
        except ValueError:
            return None


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """Environment conditions at one instant, with their derived bands."""

    captured_at: datetime
    normalized_at: datetime
    timezone: str
    utc_offset_minutes: float
    local_hour: int
    moon_phase: float | None
    surface_pressure: float | None
    pressure_trend: str | None
    bands: EnvironmentBands
    weather_code: int | None = None
    weather_description: str | None = None
    air_temperature_c: float | None = None
    wind_speed_mph: float | None = None
    wind_direction_degrees: float | None = None
    source: str = "open-meteo"

    def to_dict(self) -> dict:
        return {
            "captureUtc": isoformat_utc(self.captured_at),
            "normalizedCaptureUtc": isoformat_utc(self.normalized_at),
            "timezone": self.timezone,
            "utcOffsetMinutes": self.utc_offset_minutes,
            "localHour": self.local_hour,
            "moonPhase": self.moon_phase,
            "surfacePressure": self.surface_pressure,
            "pressureTrend": self.pressure_trend,
            "timeOfDayBand": self.bands.time_of_day.value,
            "moonPhaseBand": self.bands.moon_phase.value,
            "pressureBand": self.bands.pressure.value,
            "weatherCode": self.weather_code,
            "weatherDescription": self.weather_description,
            "airTemperatureC": self.air_temperature_c,
            "windSpeedMph": self.wind_speed_mph,
            "windDirectionDegrees": self.wind_direction_degrees,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> EnvironmentSnapshot:
        """Parse the environment endpoint's snapshot object.

        Bands present in the payload win; missing bands are derived from the
        raw local hour, moon phase and pressure.

        Raises:
            ValueError: when the capture time is missing or unparseable.
        """
        captured_at = parse_utc(data.get("captureUtc"))
        if captured_at is None:
            raise ValueError("environment snapshot missing captureUtc")
        normalized_at = parse_utc(data.get("normalizedCaptureUtc")) or captured_at.replace(
            minute=0, second=0, microsecond=0,
        )
        offset_minutes = float(data.get("utcOffsetMinutes") or 0.0)
        local_hour_raw = data.get("localHour")
        if isinstance(local_hour_raw, (int, float)):
            local_hour = int(local_hour_raw)
        else:
            local_hour = (captured_at + timedelta(minutes=offset_minutes)).hour
        moon = _optional_float(data.get("moonPhase"))
        pressure = _optional_float(data.get("surfacePressure"))

        derived = EnvironmentBands(
            time_of_day=time_of_day_band(local_hour),
            moon_phase=moon_phase_band(moon),
            pressure=pressure_band(pressure),
        )
        bands = EnvironmentBands(
            time_of_day=_enum_or(TimeOfDayBand, data.get("timeOfDayBand"), derived.time_of_day),
            moon_phase=_enum_or(MoonPhaseBand, data.get("moonPhaseBand"), derived.moon_phase),
            pressure=_enum_or(PressureBand, data.get("pressureBand"), derived.pressure),
        )
        code = _optional_float(data.get("weatherCode"))
        return cls(
            captured_at=captured_at,
            normalized_at=normalized_at,
            timezone=str(data.get("timezone") or "UTC"),
            utc_offset_minutes=offset_minutes,
            local_hour=local_hour,
            moon_phase=moon,
            surface_pressure=pressure,
            pressure_trend=data.get("pressureTrend"),
            bands=bands,
            weather_code=int(code) if code is not None else None,
            weather_description=data.get("weatherDescription"),
            air_temperature_c=_optional_float(data.get("airTemperatureC")),
            wind_speed_mph=_optional_float(data.get("windSpeedMph")),
            wind_direction_degrees=_optional_float(data.get("windDirectionDegrees")),
            source=str(data.get("source") or "open-meteo"),
        )


def build_snapshot(
    target: datetime,
    utc_offset_seconds: int,
    timezone: str,
    moon_phase: float | None,
    pressure: float | None,
    pressure_before: float | None = None,
    pressure_after: float | None = None,
    weather_code: int | None = None,
    weather_description: str | None = None,
    air_temperature_c: float | None = None,
    wind_speed_mph: float | None = None,
    wind_direction_degrees: float | None = None,
    source: str = "open-meteo",
) -> EnvironmentSnapshot:
    """Derive a snapshot and its bands for *target* from raw readings."""
    local_hour = (target + timedelta(seconds=utc_offset_seconds)).hour
    return EnvironmentSnapshot(
        captured_at=target,
        normalized_at=target.replace(minute=0, second=0, microsecond=0),
        timezone=timezone,
        utc_offset_minutes=round(utc_offset_seconds / 60, 2),
        local_hour=local_hour,
        moon_phase=moon_phase,
        surface_pressure=pressure,
        pressure_trend=pressure_trend(pressure_before, pressure_after),
        bands=EnvironmentBands(
            time_of_day=time_of_day_band(local_hour),
            moon_phase=moon_phase_band(moon_phase),
            pressure=pressure_band(pressure),
        ),
        weather_code=weather_code,
        weather_description=weather_description,
        air_temperature_c=air_temperature_c,
        wind_speed_mph=wind_speed_mph,
        wind_direction_degrees=wind_direction_degrees,
        source=source,
    )


def _optional_float(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _enum_or(enum_cls, value, fallback):
    try:
        return enum_cls(value)
    except ValueError:
        return fallback
