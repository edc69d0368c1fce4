"""Forward-looking environment slices used to score bite predictions.

Two providers share one contract: the HTTP environment endpoint, and a local
provider that derives slices from the same Open-Meteo/synthetic weather the
forecast bundle uses. Both return None instead of raising when no slices can
be produced, so a failed lookup only empties the prediction list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

import httpx

from bite_forecast.common.http import HttpClient
from bite_forecast.common.types import Coordinates, isoformat_utc, parse_utc, utc_now
from bite_forecast.config import Settings, get_settings
from bite_forecast.environment.bands import EnvironmentSnapshot, build_snapshot
from bite_forecast.weather.models import HourlyForecast
from bite_forecast.weather.openmeteo import fetch_weather

logger = logging.getLogger(__name__)

MAX_FORWARD_HOURS = 6


@dataclass(frozen=True)
class EnvironmentSlice:
    offset_hours: int
    timestamp: datetime
    snapshot: EnvironmentSnapshot

    def to_dict(self) -> dict:
        return {
            "offsetHours": self.offset_hours,
            "timestampUtc": isoformat_utc(self.timestamp),
            "snapshot": self.snapshot.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> EnvironmentSlice:
        timestamp = parse_utc(data.get("timestampUtc"))
        if timestamp is None:
            raise ValueError("environment slice missing timestampUtc")
        return cls(
            offset_hours=int(data.get("offsetHours") or 0),
            timestamp=timestamp,
            snapshot=EnvironmentSnapshot.from_dict(data.get("snapshot") or {}),
        )


class EnvironmentSliceProvider(Protocol):
    """Source of environment slices for a coordinate."""

    async def get_slices(self, coordinates: Coordinates, forward_hours: int) -> list[EnvironmentSlice] | None:
        """Return up to ``forward_hours + 1`` slices starting now, or None if unavailable."""
        ...


def _clamp_forward(forward_hours: int) -> int:
    return max(0, min(MAX_FORWARD_HOURS, int(forward_hours)))


class HttpEnvironmentSliceProvider:
    """Reads slices from the environment endpoint (``?lat&lng&forwardHours``)."""

    def __init__(self, url: str) -> None:
        self.url = url

    async def get_slices(self, coordinates: Coordinates, forward_hours: int) -> list[EnvironmentSlice] | None:
        forward_hours = _clamp_forward(forward_hours)
        params = {
            "lat": coordinates.lat,
            "lng": coordinates.lon,
            "forwardHours": forward_hours,
        }
        try:
            async with HttpClient() as client:
                resp = await client.get(self.url, params=params)
                body = resp.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if 400 <= status < 500:
                logger.debug("Environment endpoint returned %d, no slices", status)
            else:
                logger.warning("Environment endpoint failed with HTTP %d", status)
            return None
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Unable to fetch environment slices: %s", exc)
            return None

        raw_slices = body.get("slices") if isinstance(body, dict) else None
        if not isinstance(raw_slices, list):
            return []
        slices: list[EnvironmentSlice] = []
        for raw in raw_slices[: forward_hours + 1]:
            try:
                slices.append(EnvironmentSlice.from_dict(raw))
            except (ValueError, TypeError, AttributeError) as exc:
                logger.debug("Skipping malformed environment slice: %s", exc)
        return slices


def _nearest_index(forecast: HourlyForecast, target: datetime) -> int | None:
    if not forecast.hours:
        return None
    diffs = [abs((h.timestamp - target).total_seconds()) for h in forecast.hours]
    return diffs.index(min(diffs))


def slices_from_forecast(
    forecast: HourlyForecast,
    base_time: datetime,
    forward_hours: int,
    source: str,
) -> list[EnvironmentSlice]:
    """Snapshot the forecast at base_time + 0..forward_hours hours."""
    slices: list[EnvironmentSlice] = []
    hours = forecast.hours
    for offset in range(_clamp_forward(forward_hours) + 1):
        target = base_time + timedelta(hours=offset)
        idx = _nearest_index(forecast, target)
        hour = hours[idx] if idx is not None else None
        before = hours[idx - 1].pressure_hpa if idx else None
        after = hours[idx + 1].pressure_hpa if idx is not None and idx + 1 < len(hours) else None
        snapshot = build_snapshot(
            target=target,
            utc_offset_seconds=forecast.utc_offset_seconds,
            timezone=forecast.timezone,
            moon_phase=forecast.sun.moon_phase,
            pressure=hour.pressure_hpa if hour else None,
            pressure_before=before,
            pressure_after=after,
            weather_code=hour.weather_code if hour else None,
            weather_description=hour.weather_summary if hour else None,
            air_temperature_c=hour.temperature_c if hour else None,
            wind_speed_mph=hour.wind_speed_mph if hour else None,
            wind_direction_degrees=hour.wind_direction if hour else None,
            source=source,
        )
        slices.append(EnvironmentSlice(offset_hours=offset, timestamp=target, snapshot=snapshot))
    return slices


class ForecastEnvironmentSliceProvider:
    """Derives slices from the Open-Meteo adapter, synthetic fallback included."""

    async def get_slices(self, coordinates: Coordinates, forward_hours: int) -> list[EnvironmentSlice] | None:
        now = utc_now()
        weather = await fetch_weather(coordinates.lat, coordinates.lon, now)
        return slices_from_forecast(weather.forecast, now, forward_hours, weather.source.id)


def get_slice_provider(settings: Settings | None = None) -> EnvironmentSliceProvider:
    """Provider selected by ``environment_source``."""
    settings = settings or get_settings()
    if settings.environment_source == "http":
        if not settings.environment_api_url:
            raise ValueError("environment_source is 'http' but environment_api_url is empty")
        return HttpEnvironmentSliceProvider(settings.environment_api_url)
    return ForecastEnvironmentSliceProvider()
