"""Tests for the Open-Meteo adapter and its synthetic fallback."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import patch

import httpx
import pytest

from bite_forecast.weather.openmeteo import fetch_weather, parse_forecast


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.open-meteo.com/v1/forecast")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestParseForecast:
    def test_caps_at_24_hours(self, openmeteo_response):
        forecast = parse_forecast(openmeteo_response, 27.95, -82.46)
        assert len(forecast.hours) == 24
        assert forecast.hours[0].timestamp == datetime(2024, 6, 1, 0, 0, tzinfo=timezone.utc)

    def test_unit_conversion(self, openmeteo_response):
        hour = parse_forecast(openmeteo_response, 27.95, -82.46).hours[0]
        assert hour.temperature_c == 25.0
        assert hour.temperature_f == 77.0
        assert hour.wind_speed_mph == pytest.approx(11.2)
        assert hour.pressure_hpa == 1016.2
        assert hour.weather_code == 2
        assert hour.weather_summary == "Partly cloudy"

    def test_sun_cycle_from_first_day(self, openmeteo_response):
        forecast = parse_forecast(openmeteo_response, 27.95, -82.46)
        assert forecast.sun.sunrise == datetime(2024, 6, 1, 10, 30, tzinfo=timezone.utc)
        assert forecast.sun.sunset == datetime(2024, 6, 2, 0, 20, tzinfo=timezone.utc)
        assert forecast.sun.moon_phase == 0.52
        assert forecast.timezone == "America/New_York"
        assert forecast.utc_offset_seconds == -14400

    def test_missing_moon_phase_is_calculated(self, openmeteo_response):
        del openmeteo_response["daily"]["moon_phase"]
        forecast = parse_forecast(openmeteo_response, 27.95, -82.46)
        assert forecast.sun.moon_phase is not None
        assert 0.0 <= forecast.sun.moon_phase < 1.0

    def test_missing_series_values_become_none(self, openmeteo_response):
        openmeteo_response["hourly"]["temperature_2m"] = [None] * 48
        del openmeteo_response["hourly"]["pressure_msl"]
        hour = parse_forecast(openmeteo_response, 27.95, -82.46).hours[0]
        assert hour.temperature_c is None
        assert hour.temperature_f is None
        assert hour.pressure_hpa is None

    @pytest.mark.parametrize(
        "payload",
        [{}, {"hourly": {}}, {"hourly": {"time": []}}, {"hourly": "nope"}],
    )
    def test_missing_hourly_time_raises(self, payload):
        with pytest.raises(ValueError):
            parse_forecast(payload, 27.95, -82.46)


class TestFetchWeather:
    @pytest.mark.asyncio
    async def test_live_forecast(self, openmeteo_response, mock_http_client, now):
        with patch("bite_forecast.weather.openmeteo.HttpClient") as MockClient:
            instance = mock_http_client(openmeteo_response)
            MockClient.return_value = instance

            result = await fetch_weather(27.95, -82.46, now)

        assert result.synthetic is False
        assert result.error is None
        assert result.source.id == "open-meteo"
        assert result.source.updated_at is not None
        assert len(result.forecast.hours) == 24

        args, kwargs = instance.get.call_args
        assert args[0] == "/forecast"
        assert kwargs["params"]["timeformat"] == "unixtime"
        assert kwargs["params"]["latitude"] == 27.95
        assert "moon_phase" in kwargs["params"]["daily"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, reason_fragment",
        [
            (_status_error(503), "503"),
            (httpx.ReadTimeout("slow"), "timeout"),
            (httpx.ConnectError("refused"), "unavailable"),
            (RuntimeError("boom"), "boom"),
        ],
    )
    async def test_failures_fall_back_to_synthetic(self, error, reason_fragment, mock_http_client, now):
        with patch("bite_forecast.weather.openmeteo.HttpClient") as MockClient:
            MockClient.return_value = mock_http_client(side_effect=error)

            result = await fetch_weather(27.95, -82.46, now)

        assert result.synthetic is True
        assert result.source.id == "synthetic-weather"
        assert reason_fragment in result.error
        assert len(result.forecast.hours) == 24
        assert result.forecast.sun.sunrise is not None

    @pytest.mark.asyncio
    async def test_empty_hourly_falls_back(self, mock_http_client, now):
        with patch("bite_forecast.weather.openmeteo.HttpClient") as MockClient:
            MockClient.return_value = mock_http_client({"hourly": {"time": []}})

            result = await fetch_weather(27.95, -82.46, now)

        assert result.synthetic is True
        assert len(result.forecast.hours) == 24

    @pytest.mark.asyncio
    async def test_non_object_payload_falls_back(self, mock_http_client, now):
        with patch("bite_forecast.weather.openmeteo.HttpClient") as MockClient:
            MockClient.return_value = mock_http_client(["not", "a", "dict"])

            result = await fetch_weather(27.95, -82.46, now)

        assert result.synthetic is True

    @pytest.mark.asyncio
    async def test_synthetic_fallback_is_deterministic(self, mock_http_client, now):
        with patch("bite_forecast.weather.openmeteo.HttpClient") as MockClient:
            MockClient.return_value = mock_http_client(side_effect=httpx.ConnectError("down"))
            first = await fetch_weather(27.95, -82.46, now)
            second = await fetch_weather(27.95, -82.46, now)

        assert first.forecast == second.forecast
