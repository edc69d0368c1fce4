"""Open-Meteo hourly forecast client with synthetic fallback."""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime

import httpx

from bite_forecast.common.http import HttpClient
from bite_forecast.common.types import (
    JsonDict,
    celsius_to_fahrenheit,
    mps_to_mph,
    parse_utc,
    utc_now,
)
from bite_forecast.config import get_settings
from bite_forecast.weather.models import (
    OPEN_METEO_SOURCE,
    SYNTHETIC_WEATHER_SOURCE,
    HourlyForecast,
    SunCycle,
    WeatherHour,
    WeatherResult,
    describe_weather,
)
from bite_forecast.weather.synthetic import (
    FORECAST_HORIZON_HOURS,
    generate_synthetic_forecast,
    moon_phase_fraction,
)

logger = logging.getLogger(__name__)

_HOURLY_FIELDS = (
    "temperature_2m,apparent_temperature,pressure_msl,wind_speed_10m,"
    "wind_direction_10m,precipitation_probability,weather_code"
)


async def fetch_forecast(lat: float, lon: float) -> JsonDict:
    """Fetch the raw hourly + daily forecast payload from Open-Meteo."""
    settings = get_settings()
    params = {
        "latitude": lat,
        "longitude": lon,
        "hourly": _HOURLY_FIELDS,
        "daily": "sunrise,sunset,moon_phase",
        "timezone": "auto",
        "timeformat": "unixtime",
        "wind_speed_unit": "ms",
        "forecast_days": 2,
    }

    async with HttpClient(base_url=settings.openmeteo_api_url) as client:
        resp = await client.get("/forecast", params=params)
        data = resp.json()

    if not isinstance(data, dict):
        raise ValueError(f"Open-Meteo returned a non-object payload for ({lat}, {lon})")
    return data


def _value_at(series: list | None, index: int) -> float | None:
    if not series or index >= len(series):
        return None
    value = series[index]
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return float(value)


def _first(series: list | None) -> object:
    if not series:
        return None
    return series[0]


def parse_forecast(payload: JsonDict, lat: float, lon: float) -> HourlyForecast:
    """Map an Open-Meteo payload into an HourlyForecast.

    Raises:
        ValueError: when ``hourly.time`` is missing or empty, or no hour
            carries a parseable timestamp.
    """
    hourly = payload.get("hourly")
    if not isinstance(hourly, dict) or not hourly.get("time"):
        raise ValueError(f"Open-Meteo response missing hourly.time for ({lat}, {lon})")

    times = hourly["time"]
    hours: list[WeatherHour] = []
    for i in range(min(len(times), FORECAST_HORIZON_HOURS)):
        timestamp = parse_utc(times[i])
        if timestamp is None:
            continue
        temperature = _value_at(hourly.get("temperature_2m"), i)
        apparent = _value_at(hourly.get("apparent_temperature"), i)
        code = _value_at(hourly.get("weather_code"), i)
        hours.append(
            WeatherHour(
                timestamp=timestamp,
                temperature_c=temperature,
                temperature_f=celsius_to_fahrenheit(temperature),
                apparent_temperature_c=apparent,
                apparent_temperature_f=celsius_to_fahrenheit(apparent),
                pressure_hpa=_value_at(hourly.get("pressure_msl"), i),
                wind_speed_mph=mps_to_mph(_value_at(hourly.get("wind_speed_10m"), i)),
                wind_direction=_value_at(hourly.get("wind_direction_10m"), i),
                precipitation_probability=_value_at(hourly.get("precipitation_probability"), i),
                weather_code=int(round(code)) if code is not None else None,
                weather_summary=describe_weather(code),
            )
        )
    if not hours:
        raise ValueError(f"Open-Meteo hourly series had no usable timestamps for ({lat}, {lon})")

    daily = payload.get("daily") if isinstance(payload.get("daily"), dict) else {}
    moon_raw = _first(daily.get("moon_phase"))
    moon_phase = float(moon_raw) if isinstance(moon_raw, (int, float)) and math.isfinite(moon_raw) else None
    if moon_phase is None:
        moon_phase = moon_phase_fraction(hours[0].timestamp)

    return HourlyForecast(
        lat=float(payload.get("latitude", lat)),
        lon=float(payload.get("longitude", lon)),
        timezone=str(payload.get("timezone") or "UTC"),
        utc_offset_seconds=int(payload.get("utc_offset_seconds") or 0),
        hours=hours,
        sun=SunCycle(
            sunrise=parse_utc(_first(daily.get("sunrise"))),
            sunset=parse_utc(_first(daily.get("sunset"))),
            moon_phase=moon_phase,
        ),
    )


def synthetic_weather(lat: float, lon: float, now: datetime, reason: str) -> WeatherResult:
    """Synthetic forecast tagged with the synthetic source."""
    forecast = parse_forecast(generate_synthetic_forecast(lat, lon, now), lat, lon)
    return WeatherResult(
        forecast=forecast,
        source=SYNTHETIC_WEATHER_SOURCE.stamped(utc_now(), status="error", error=reason),
        synthetic=True,
        error=reason,
    )


async def fetch_weather(lat: float, lon: float, now: datetime | None = None) -> WeatherResult:
    """Fetch live weather, falling back to the synthetic model.

    Network failures, HTTP errors and malformed or empty payloads never
    propagate; they produce a synthetic result whose ``error`` says why.
    """
    now = now or utc_now()
    started = time.perf_counter()
    try:
        payload = await fetch_forecast(lat, lon)
        forecast = parse_forecast(payload, lat, lon)
    except httpx.HTTPStatusError as exc:
        reason = f"Open-Meteo HTTP {exc.response.status_code}"
        logger.warning("%s for (%.3f, %.3f), using synthetic weather", reason, lat, lon)
        return synthetic_weather(lat, lon, now, reason)
    except httpx.TimeoutException:
        reason = "Open-Meteo timeout"
        logger.warning("%s for (%.3f, %.3f), using synthetic weather", reason, lat, lon)
        return synthetic_weather(lat, lon, now, reason)
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
        reason = f"Open-Meteo unavailable: {exc}"
        logger.warning("%s (%.3f, %.3f), using synthetic weather", reason, lat, lon)
        return synthetic_weather(lat, lon, now, reason)
    except Exception as exc:
        reason = f"Open-Meteo fetch failed: {exc}"
        logger.exception("Unexpected weather fetch failure for (%.3f, %.3f)", lat, lon)
        return synthetic_weather(lat, lon, now, reason)

    latency_ms = int((time.perf_counter() - started) * 1000)
    return WeatherResult(
        forecast=forecast,
        source=OPEN_METEO_SOURCE.stamped(utc_now()),
        synthetic=False,
        latency_ms=latency_ms,
    )
