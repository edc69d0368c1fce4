"""Tests for environment band discretization and snapshots."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from bite_forecast.environment.bands import (
    EnvironmentBands,
    EnvironmentSnapshot,
    MoonPhaseBand,
    PressureBand,
    TimeOfDayBand,
    build_snapshot,
    moon_phase_band,
    pressure_band,
    pressure_trend,
    time_of_day_band,
)


@pytest.mark.parametrize(
    "hour, band",
    [
        (0, TimeOfDayBand.NIGHT),
        (4, TimeOfDayBand.NIGHT),
        (5, TimeOfDayBand.DAWN),
        (7, TimeOfDayBand.DAWN),
        (8, TimeOfDayBand.DAY),
        (17, TimeOfDayBand.DAY),
        (18, TimeOfDayBand.DUSK),
        (21, TimeOfDayBand.DUSK),
        (22, TimeOfDayBand.NIGHT),
    ],
)
def test_time_of_day_band(hour, band):
    assert time_of_day_band(hour) is band


@pytest.mark.parametrize(
    "phase, band",
    [
        (0.0, MoonPhaseBand.NEW),
        (0.124, MoonPhaseBand.NEW),
        (0.125, MoonPhaseBand.WAXING),
        (0.374, MoonPhaseBand.WAXING),
        (0.375, MoonPhaseBand.FULL),
        (0.5, MoonPhaseBand.FULL),
        (0.625, MoonPhaseBand.WANING),
        (0.874, MoonPhaseBand.WANING),
        (0.875, MoonPhaseBand.NEW),
        (None, MoonPhaseBand.WAXING),
        (float("nan"), MoonPhaseBand.WAXING),
    ],
)
def test_moon_phase_band(phase, band):
    assert moon_phase_band(phase) is band


@pytest.mark.parametrize(
    "pressure, band",
    [
        (1020.0, PressureBand.HIGH),
        (1015.0, PressureBand.HIGH),
        (1014.9, PressureBand.MID),
        (1008.1, PressureBand.MID),
        (1008.0, PressureBand.LOW),
        (995.0, PressureBand.LOW),
        (None, PressureBand.MID),
    ],
)
def test_pressure_band(pressure, band):
    assert pressure_band(pressure) is band


@pytest.mark.parametrize(
    "before, after, trend",
    [
        (1010.0, 1010.5, "rising"),
        (1010.5, 1010.0, "falling"),
        (1010.0, 1010.2, "steady"),
        (None, 1010.0, None),
        (1010.0, None, None),
    ],
)
def test_pressure_trend(before, after, trend):
    assert pressure_trend(before, after) == trend


class TestEnvironmentBands:
    def test_slice_key(self):
        bands = EnvironmentBands(TimeOfDayBand.DAWN, MoonPhaseBand.FULL, PressureBand.HIGH)
        assert bands.slice_key == "dawn|full|high"

    def test_dict_round_trip(self):
        bands = EnvironmentBands(TimeOfDayBand.DUSK, MoonPhaseBand.NEW, PressureBand.LOW)
        assert bands.to_dict() == {"timeOfDay": "dusk", "moonPhase": "new", "pressure": "low"}
        assert EnvironmentBands.from_dict(bands.to_dict()) == bands

    @pytest.mark.parametrize(
        "data",
        [
            None,
            {},
            {"timeOfDay": "dawn", "moonPhase": "full"},
            {"timeOfDay": "brunch", "moonPhase": "full", "pressure": "high"},
            "dawn|full|high",
        ],
    )
    def test_from_dict_rejects_incomplete(self, data):
        assert EnvironmentBands.from_dict(data) is None


class TestSnapshot:
    def test_build_snapshot_uses_local_hour(self):
        target = datetime(2024, 6, 1, 10, 30, tzinfo=timezone.utc)
        snapshot = build_snapshot(
            target=target,
            utc_offset_seconds=-4 * 3600,
            timezone="America/New_York",
            moon_phase=0.52,
            pressure=1016.2,
            pressure_before=1015.5,
            pressure_after=1016.9,
        )
        assert snapshot.local_hour == 6
        assert snapshot.normalized_at == datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)
        assert snapshot.utc_offset_minutes == -240
        assert snapshot.pressure_trend == "rising"
        assert snapshot.bands.slice_key == "dawn|full|high"

    def test_from_dict_prefers_payload_bands(self):
        snapshot = EnvironmentSnapshot.from_dict(
            {
                "captureUtc": "2024-06-01T10:30:00Z",
                "localHour": 6,
                "moonPhase": 0.52,
                "surfacePressure": 1016.2,
                "timeOfDayBand": "day",
            }
        )
        assert snapshot.bands.time_of_day is TimeOfDayBand.DAY
        assert snapshot.bands.moon_phase is MoonPhaseBand.FULL
        assert snapshot.bands.pressure is PressureBand.HIGH

    def test_from_dict_derives_local_hour_from_offset(self):
        snapshot = EnvironmentSnapshot.from_dict(
            {"captureUtc": "2024-06-01T22:00:00Z", "utcOffsetMinutes": 120}
        )
        assert snapshot.local_hour == 0
        assert snapshot.bands.time_of_day is TimeOfDayBand.NIGHT
        assert snapshot.bands.moon_phase is MoonPhaseBand.WAXING
        assert snapshot.bands.pressure is PressureBand.MID

    def test_from_dict_requires_capture_time(self):
        with pytest.raises(ValueError):
            EnvironmentSnapshot.from_dict({"localHour": 6})

    def test_to_dict_round_trip(self):
        snapshot = build_snapshot(
            target=datetime(2024, 6, 1, 19, 0, tzinfo=timezone.utc),
            utc_offset_seconds=0,
            timezone="UTC",
            moon_phase=0.9,
            pressure=1005.0,
            weather_code=63,
            weather_description="Rain",
            source="synthetic-weather",
        )
        data = snapshot.to_dict()
        assert data["captureUtc"] == "2024-06-01T19:00:00Z"
        assert data["timeOfDayBand"] == "dusk"
        assert data["moonPhaseBand"] == "new"
        assert data["pressureBand"] == "low"

        restored = EnvironmentSnapshot.from_dict(data)
        assert restored.bands == snapshot.bands
        assert restored.weather_code == 63
        assert restored.source == "synthetic-weather"
