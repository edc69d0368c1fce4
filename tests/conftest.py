"""Shared test fixtures."""

from __future__ import annotations

import tempfile
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from bite_forecast.config import Settings
from bite_forecast.storage.sqlite import SqliteStore


@pytest.fixture
def now():
    """Fixed reference time: 2024-06-01 12:00 UTC."""
    return datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def tmp_db():
    """Create a temporary database file for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test_bite.db"


@pytest.fixture
def settings(tmp_db):
    return Settings(
        db_path=tmp_db,
        store_timeout=1.0,
        signal_ttl_seconds=3600,
        catch_lookback_days=30,
        max_catch_samples=250,
        prediction_forward_hours=3,
        environment_source="forecast",
    )


@pytest.fixture
def store(tmp_db):
    return SqliteStore(tmp_db)


def _mock_http_client(response_json=None, side_effect=None):
    instance = AsyncMock()
    if side_effect is not None:
        instance.get.side_effect = side_effect
    else:
        resp = MagicMock()
        resp.json.return_value = response_json
        resp.raise_for_status = MagicMock()
        instance.get.return_value = resp
    instance.__aenter__ = AsyncMock(return_value=instance)
    instance.__aexit__ = AsyncMock(return_value=False)
    return instance


@pytest.fixture
def mock_http_client():
    """Factory for an HttpClient replacement usable as ``async with HttpClient(...) as client``."""
    return _mock_http_client


# --- Mock API response fixtures ---


@pytest.fixture
def openmeteo_response():
    """Open-Meteo forecast response (unixtime format), Tampa Bay, 48 hours."""
    base = int(datetime(2024, 6, 1, 0, 0, tzinfo=timezone.utc).timestamp())
    n = 48
    return {
        "latitude": 27.95,
        "longitude": -82.46,
        "timezone": "America/New_York",
        "utc_offset_seconds": -14400,
        "hourly": {
            "time": [base + i * 3600 for i in range(n)],
            "temperature_2m": [25.0] * n,
            "apparent_temperature": [26.5] * n,
            "pressure_msl": [1016.2] * n,
            "wind_speed_10m": [5.0] * n,
            "wind_direction_10m": [180.0] * n,
            "precipitation_probability": [10] * n,
            "weather_code": [2] * n,
        },
        "daily": {
            "time": [base, base + 86400],
            "sunrise": [base + 10 * 3600 + 30 * 60, base + 86400 + 10 * 3600 + 31 * 60],
            "sunset": [base + 24 * 3600 + 20 * 60, base + 2 * 86400 + 20 * 60],
            "moon_phase": [0.52, 0.55],
        },
    }
