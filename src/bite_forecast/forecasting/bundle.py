"""Forecast bundle assembly and caching.

Composes weather (live or synthetic), synthetic tides and bite windows into a
ForecastBundle. Bundles are cached per coordinate rounded to three decimals;
concurrent requests for the same coordinate share a single upstream fetch.
"""

from __future__ import annotations

import logging
from datetime import datetime

from bite_forecast.common.cache import ExpiringCache
from bite_forecast.common.types import utc_now
from bite_forecast.config import get_settings
from bite_forecast.forecasting.bite_windows import BITE_WINDOW_BASIS, compute_bite_windows
from bite_forecast.forecasting.models import (
    FORECAST_BUNDLE_VERSION,
    BiteWindowSection,
    BundleLocation,
    ForecastBundle,
    ForecastTelemetry,
    TelemetryEvent,
    TideSection,
    WeatherSection,
)
from bite_forecast.forecasting.tides import SYNTHETIC_TIDES_SOURCE, generate_synthetic_tides
from bite_forecast.weather.models import OPEN_METEO_SOURCE, SYNTHETIC_WEATHER_SOURCE
from bite_forecast.weather.openmeteo import fetch_weather

logger = logging.getLogger(__name__)

_MOON_PHASE_LABELS = (
    (0.0625, "New moon"),
    (0.1875, "Waxing crescent"),
    (0.3125, "First quarter"),
    (0.4375, "Waxing gibbous"),
    (0.5625, "Full moon"),
    (0.6875, "Waning gibbous"),
    (0.8125, "Last quarter"),
    (0.9375, "Waning crescent"),
)


def moon_phase_label(fraction: float | None) -> str | None:
    """Name of the moon phase for a synodic fraction."""
    if fraction is None:
        return None
    normalized = fraction % 1.0
    for upper, label in _MOON_PHASE_LABELS:
        if normalized < upper:
            return label
    return "New moon"


def forecast_cache_key(lat: float, lon: float) -> str:
    return f"{lat:.3f}:{lon:.3f}"


async def build_forecast_bundle(lat: float, lon: float, now: datetime | None = None) -> ForecastBundle:
    """Build a fresh bundle for a coordinate. Never raises for upstream failures."""
    now = now or utc_now()
    errors: list[TelemetryEvent] = []
    warnings: list[TelemetryEvent] = []
    latency: dict[str, int] = {}

    weather = await fetch_weather(lat, lon, now)
    if weather.synthetic:
        errors.append(TelemetryEvent(OPEN_METEO_SOURCE.id, weather.error or "unavailable", utc_now()))
        warnings.append(
            TelemetryEvent(SYNTHETIC_WEATHER_SOURCE.id, "Synthetic weather fallback engaged", utc_now())
        )
    latency[weather.source.id] = weather.latency_ms

    forecast = weather.forecast
    sun = forecast.sun

    windows = compute_bite_windows(
        sunrise=sun.sunrise,
        sunset=sun.sunset,
        moon_phase=sun.moon_phase,
        timezone=forecast.timezone,
        now=now,
    )

    tides = generate_synthetic_tides(lat, lon, now)
    latency[SYNTHETIC_TIDES_SOURCE.id] = 0

    return ForecastBundle(
        version=FORECAST_BUNDLE_VERSION,
        updated_at=utc_now(),
        location=BundleLocation(
            latitude=lat,
            longitude=lon,
            timezone=forecast.timezone,
            sunrise=sun.sunrise,
            sunset=sun.sunset,
            moon_phase_fraction=sun.moon_phase,
            moon_phase_label=moon_phase_label(sun.moon_phase),
        ),
        weather=WeatherSection(hours=forecast.hours, source=weather.source),
        tides=TideSection(
            predictions=tides,
            source=SYNTHETIC_TIDES_SOURCE.stamped(utc_now()),
            fallback_used=True,
        ),
        bite_windows=BiteWindowSection(windows=windows, basis=BITE_WINDOW_BASIS),
        telemetry=ForecastTelemetry(errors=errors, warnings=warnings, provider_latency_ms=latency),
    )


class ForecastService:
    """Cached access to forecast bundles."""

    def __init__(self, cache: ExpiringCache[str, ForecastBundle] | None = None) -> None:
        if cache is None:
            settings = get_settings()
            cache = ExpiringCache(
                ttl_seconds=settings.forecast_cache_ttl_seconds,
                max_entries=settings.forecast_cache_max_entries,
            )
        self._cache = cache

    async def get_forecast_bundle(self, lat: float, lon: float) -> ForecastBundle:
        """Return the cached bundle for (lat, lon) or build one."""
        key = forecast_cache_key(lat, lon)
        return await self._cache.get_or_set(key, lambda: build_forecast_bundle(lat, lon))


_default_service: ForecastService | None = None


async def get_forecast_bundle(lat: float, lon: float) -> ForecastBundle:
    """Module-level entry point backed by a process-wide ForecastService."""
    global _default_service
    if _default_service is None:
        _default_service = ForecastService()
    return await _default_service.get_forecast_bundle(lat, lon)
