"""Tests for the synthetic harmonic tide curve."""

from __future__ import annotations

from datetime import timedelta

import pytest

from bite_forecast.forecasting.models import TideTrend
from bite_forecast.forecasting.tides import (
    SYNTHETIC_TIDES_SOURCE,
    TIDE_POINTS,
    generate_synthetic_tides,
    tide_amplitude,
)


def test_ten_points_three_hours_apart(now):
    predictions = generate_synthetic_tides(27.95, -82.46, now)
    assert len(predictions) == TIDE_POINTS == 10
    assert predictions[0].timestamp == now
    for a, b in zip(predictions, predictions[1:]):
        assert b.timestamp - a.timestamp == timedelta(hours=3)


@pytest.mark.parametrize("lat, lon", [(0.0, 0.0), (27.95, -82.46), (-33.87, 151.21), (64.1, -21.9)])
def test_amplitude_bounds(lat, lon):
    amplitude = tide_amplitude(lat, lon)
    assert 0.8 <= amplitude <= 1.9


def test_heights_within_amplitude(now):
    lat, lon = -33.87, 151.21
    amplitude = tide_amplitude(lat, lon)
    for p in generate_synthetic_tides(lat, lon, now):
        assert abs(p.height_meters) <= amplitude + 0.005
        assert round(p.height_meters, 2) == p.height_meters


def test_deterministic(now):
    assert generate_synthetic_tides(27.95, -82.46, now) == generate_synthetic_tides(27.95, -82.46, now)


def test_trend_values(now):
    trends = {p.trend for p in generate_synthetic_tides(27.95, -82.46, now)}
    assert trends <= {TideTrend.RISING, TideTrend.FALLING, TideTrend.SLACK}


def test_curve_changes_direction_over_a_day(now):
    # A 12.42h period sampled every 3h over 27h must both rise and fall
    trends = {p.trend for p in generate_synthetic_tides(10.0, 10.0, now)}
    assert TideTrend.RISING in trends
    assert TideTrend.FALLING in trends


def test_source_marks_fallback():
    assert SYNTHETIC_TIDES_SOURCE.id == "synthetic-harmonic"
    assert SYNTHETIC_TIDES_SOURCE.confidence == "low"


def test_serialized_shape(now):
    data = generate_synthetic_tides(27.95, -82.46, now)[0].to_dict()
    assert data["timestamp"] == "2024-06-01T12:00:00Z"
    assert data["trend"] in ("rising", "falling", "slack")
    assert isinstance(data["height_meters"], float)
