"""Forecast bundle data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from bite_forecast.common.types import isoformat_utc
from bite_forecast.weather.models import ForecastSourceSummary, WeatherHour

FORECAST_BUNDLE_VERSION = "2024-10-05"


class TideTrend(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    SLACK = "slack"


@dataclass(frozen=True)
class TidePrediction:
    """Tide height at a moment, with the direction the water is moving."""

    timestamp: datetime
    height_meters: float
    trend: TideTrend

    def to_dict(self) -> dict:
        return {
            "timestamp": isoformat_utc(self.timestamp),
            "height_meters": self.height_meters,
            "trend": self.trend.value,
        }


@dataclass(frozen=True)
class BiteWindow:
    """A scored feeding window.

    Attributes:
        start: center minus 45 minutes
        end: center plus 60 minutes
        label: "Dawn feed", "Dusk push", "Midday major" or "Midnight bite"
        score: integer 1-5
        rationale: one-line explanation for display
    """

    start: datetime
    end: datetime
    label: str
    score: int
    rationale: str

    def to_dict(self) -> dict:
        return {
            "start": isoformat_utc(self.start),
            "end": isoformat_utc(self.end),
            "label": self.label,
            "score": self.score,
            "rationale": self.rationale,
        }


@dataclass(frozen=True)
class TelemetryEvent:
    provider_id: str
    message: str
    at: datetime

    def to_dict(self) -> dict:
        return {"provider_id": self.provider_id, "message": self.message, "at": isoformat_utc(self.at)}


@dataclass(frozen=True)
class BundleLocation:
    latitude: float
    longitude: float
    timezone: str
    sunrise: datetime | None
    sunset: datetime | None
    moon_phase_fraction: float | None
    moon_phase_label: str | None


@dataclass(frozen=True)
class WeatherSection:
    hours: list[WeatherHour]
    source: ForecastSourceSummary


@dataclass(frozen=True)
class TideSection:
    predictions: list[TidePrediction]
    source: ForecastSourceSummary
    fallback_used: bool = True


@dataclass(frozen=True)
class BiteWindowSection:
    windows: list[BiteWindow]
    basis: str


@dataclass(frozen=True)
class ForecastTelemetry:
    errors: list[TelemetryEvent] = field(default_factory=list)
    warnings: list[TelemetryEvent] = field(default_factory=list)
    provider_latency_ms: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ForecastBundle:
    """Weather, tides and bite windows for one coordinate."""

    version: str
    updated_at: datetime
    location: BundleLocation
    weather: WeatherSection
    tides: TideSection
    bite_windows: BiteWindowSection
    telemetry: ForecastTelemetry = field(default_factory=ForecastTelemetry)

    def to_dict(self) -> dict:
        loc = self.location
        return {
            "version": self.version,
            "updated_at": isoformat_utc(self.updated_at),
            "location": {
                "latitude": loc.latitude,
                "longitude": loc.longitude,
                "timezone": loc.timezone,
                "sunrise": isoformat_utc(loc.sunrise),
                "sunset": isoformat_utc(loc.sunset),
                "moon_phase_fraction": loc.moon_phase_fraction,
                "moon_phase_label": loc.moon_phase_label,
            },
            "weather": {
                "hours": [h.to_dict() for h in self.weather.hours],
                "source": self.weather.source.to_dict(),
            },
            "tides": {
                "predictions": [p.to_dict() for p in self.tides.predictions],
                "source": self.tides.source.to_dict(),
                "fallback_used": self.tides.fallback_used,
            },
            "bite_windows": {
                "windows": [w.to_dict() for w in self.bite_windows.windows],
                "basis": self.bite_windows.basis,
            },
            "telemetry": {
                "errors": [e.to_dict() for e in self.telemetry.errors],
                "warnings": [w.to_dict() for w in self.telemetry.warnings],
                "provider_latency_ms": dict(self.telemetry.provider_latency_ms),
            },
        }
