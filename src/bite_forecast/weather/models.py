"""Weather data models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from bite_forecast.common.types import isoformat_utc

WEATHER_CODE_DESCRIPTIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Rime fog",
    51: "Light drizzle",
    53: "Drizzle",
    55: "Heavy drizzle",
    56: "Freezing drizzle",
    57: "Heavy freezing drizzle",
    61: "Light rain",
    63: "Rain",
    65: "Heavy rain",
    66: "Freezing rain",
    67: "Heavy freezing rain",
    71: "Light snow",
    73: "Snow",
    75: "Heavy snow",
    77: "Snow grains",
    80: "Rain showers",
    81: "Heavy rain showers",
    82: "Violent rain showers",
    85: "Snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with hail",
    99: "Severe thunderstorm",
}


def describe_weather(code: float | None) -> str | None:
    """Human summary for a WMO weather code, or None if unknown."""
    if code is None:
        return None
    return WEATHER_CODE_DESCRIPTIONS.get(int(round(code)))


@dataclass(frozen=True)
class WeatherHour:
    """One hour of forecast weather.

    Attributes:
        timestamp: valid time (UTC)
        temperature_c / temperature_f: air temperature at 2 m
        apparent_temperature_c / apparent_temperature_f: feels-like temperature
        pressure_hpa: mean sea level pressure
        wind_speed_mph: 10 m wind speed
        wind_direction: 10 m wind direction in degrees
        precipitation_probability: percent, 0-100
        weather_code: WMO weather code
        weather_summary: text from WEATHER_CODE_DESCRIPTIONS
    """

    timestamp: datetime
    temperature_c: float | None = None
    temperature_f: float | None = None
    apparent_temperature_c: float | None = None
    apparent_temperature_f: float | None = None
    pressure_hpa: float | None = None
    wind_speed_mph: float | None = None
    wind_direction: float | None = None
    precipitation_probability: float | None = None
    weather_code: int | None = None
    weather_summary: str | None = None

    def to_dict(self) -> dict:
        return {
            "timestamp": isoformat_utc(self.timestamp),
            "temperature_c": self.temperature_c,
            "temperature_f": self.temperature_f,
            "apparent_temperature_c": self.apparent_temperature_c,
            "apparent_temperature_f": self.apparent_temperature_f,
            "pressure_hpa": self.pressure_hpa,
            "wind_speed_mph": self.wind_speed_mph,
            "wind_direction": self.wind_direction,
            "precipitation_probability": self.precipitation_probability,
            "weather_code": self.weather_code,
            "weather_summary": self.weather_summary,
        }


@dataclass(frozen=True)
class SunCycle:
    """Sunrise, sunset and moon phase fraction for one day."""

    sunrise: datetime | None = None
    sunset: datetime | None = None
    moon_phase: float | None = None


@dataclass(frozen=True)
class ForecastSourceSummary:
    """Provenance of a forecast section.

    ``id`` is stable and machine-readable ("open-meteo", "synthetic-weather",
    "synthetic-harmonic"); the other fields are for display.
    """

    id: str
    label: str
    url: str | None = None
    disclaimer: str | None = None
    confidence: str | None = None
    status: str | None = None
    error: str | None = None
    updated_at: datetime | None = None

    def stamped(self, updated_at: datetime, **changes: object) -> ForecastSourceSummary:
        """Copy with an update time and optional overrides."""
        return replace(self, updated_at=updated_at, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "url": self.url,
            "disclaimer": self.disclaimer,
            "confidence": self.confidence,
            "status": self.status,
            "error": self.error,
            "updated_at": isoformat_utc(self.updated_at),
        }


OPEN_METEO_SOURCE = ForecastSourceSummary(
    id="open-meteo",
    label="Open-Meteo Forecast",
    url="https://open-meteo.com/",
    confidence="high",
    status="ok",
)

SYNTHETIC_WEATHER_SOURCE = ForecastSourceSummary(
    id="synthetic-weather",
    label="Synthetic weather model",
    disclaimer=(
        "Generated locally when upstream weather services are unavailable. "
        "Data is approximate and for preview only."
    ),
    confidence="low",
    status="partial",
)


@dataclass(frozen=True)
class HourlyForecast:
    """Parsed forecast for a point: up to 24 hours plus the day's sun cycle.

    Attributes:
        lat: latitude of forecast point
        lon: longitude of forecast point
        timezone: IANA name or "UTC+N" label
        utc_offset_seconds: offset used to derive local hours
        hours: hourly series, capped at the forecast horizon
        sun: sunrise/sunset/moon phase for the first day
    """

    lat: float
    lon: float
    timezone: str
    utc_offset_seconds: int
    hours: list[WeatherHour] = field(default_factory=list)
    sun: SunCycle = field(default_factory=SunCycle)


@dataclass(frozen=True)
class WeatherResult:
    """Outcome of a weather fetch, live or synthetic."""

    forecast: HourlyForecast
    source: ForecastSourceSummary
    synthetic: bool
    error: str | None = None
    latency_ms: int = 0
