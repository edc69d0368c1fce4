"""Synthetic harmonic tide curve.

Not a tidal-harmonics solver: a single lunar semidiurnal constituent whose
amplitude and phase are seeded by the coordinate, so every point gets a
stable, plausible curve when no live tide feed is used.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np

from bite_forecast.common.types import round_half_up
from bite_forecast.forecasting.models import TidePrediction, TideTrend
from bite_forecast.weather.models import ForecastSourceSummary

TIDE_POINTS = 10
TIDE_INTERVAL_HOURS = 3
TIDE_BASE_AMPLITUDE = 0.8
TIDE_AMPLITUDE_VARIATION = 1.1
LUNAR_TIDE_PERIOD_HOURS = 12.42
SLACK_DERIVATIVE = 0.05

SYNTHETIC_TIDES_SOURCE = ForecastSourceSummary(
    id="synthetic-harmonic",
    label="Harmonic fallback",
    disclaimer="Calculated locally when live tide providers are unavailable.",
    confidence="low",
    status="partial",
)


def tide_amplitude(lat: float, lon: float) -> float:
    """Amplitude in metres, always within [0.8, 1.9]."""
    return TIDE_BASE_AMPLITUDE + abs(np.sin(0.12 * (lat + lon))) * TIDE_AMPLITUDE_VARIATION


def generate_synthetic_tides(lat: float, lon: float, base_time: datetime) -> list[TidePrediction]:
    """Ten tide points, three hours apart, starting at *base_time*."""
    if base_time.tzinfo is None:
        base_time = base_time.replace(tzinfo=timezone.utc)
    amplitude = float(tide_amplitude(lat, lon))
    phase_offset = np.sin(0.4 * lat + 0.17 * lon) * np.pi
    period_ms = LUNAR_TIDE_PERIOD_HOURS * 3600 * 1000

    timestamps = [base_time + timedelta(hours=i * TIDE_INTERVAL_HOURS) for i in range(TIDE_POINTS)]
    epoch_ms = np.array([t.timestamp() * 1000 for t in timestamps])
    phase = (epoch_ms + phase_offset * period_ms) / period_ms * 2.0 * np.pi
    heights = amplitude * np.sin(phase)
    derivatives = amplitude * np.cos(phase)

    predictions: list[TidePrediction] = []
    for timestamp, height, derivative in zip(timestamps, heights, derivatives):
        if abs(derivative) < SLACK_DERIVATIVE:
            trend = TideTrend.SLACK
        elif derivative > 0:
            trend = TideTrend.RISING
        else:
            trend = TideTrend.FALLING
        predictions.append(
            TidePrediction(
                timestamp=timestamp,
                height_meters=round_half_up(float(height), 2),
                trend=trend,
            )
        )
    return predictions
