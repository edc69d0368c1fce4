"""Pure reduction of catch samples into a bite-slice matrix and predictions.

No I/O happens here: the service fetches samples, trust weights and
environment slices, and hands them to these functions.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from bite_forecast.common.types import Coordinates
from bite_forecast.environment.bands import EnvironmentBands, EnvironmentSnapshot
from bite_forecast.environment.slices import EnvironmentSlice
from bite_forecast.signals.models import (
    BitePrediction,
    BiteSliceStats,
    CatchSample,
    PredictionDirection,
)

# Direction thresholds on slice weight-per-sample relative to the spot average
UP_THRESHOLD = 1.25
DOWN_THRESHOLD = 0.75

# Base confidence mixes the slice's share of samples and of weight
SAMPLE_SHARE_WEIGHT = 0.6
WEIGHT_SHARE_WEIGHT = 0.4

# Directional verdicts keep at least this fraction of base confidence
DIRECTIONAL_FLOOR = 0.6

MIN_SAMPLES = 5
MIN_CONFIDENCE = 0.25
MAX_PREDICTIONS = 3


@dataclass
class SliceAggregate:
    """Result of one reduce pass; totals are derived from the matrix."""

    matrix: dict[str, BiteSliceStats] = field(default_factory=dict)
    centroid: Coordinates | None = None

    @property
    def total_weight(self) -> float:
        return sum(stats.weight for stats in self.matrix.values())

    @property
    def sample_size(self) -> int:
        return sum(stats.samples for stats in self.matrix.values())


def select_qualifying_samples(
    samples: Iterable[CatchSample],
    now: datetime,
    lookback: timedelta,
) -> list[CatchSample]:
    """Drop samples with no capture time, older than *lookback*, or without bands.

    Repeated catch ids are kept once.
    """
    cutoff = now - lookback
    seen: set[str] = set()
    selected: list[CatchSample] = []
    for sample in samples:
        if sample.captured_at is None or sample.captured_at < cutoff:
            continue
        if sample.bands is None:
            continue
        if sample.catch_id is not None:
            if sample.catch_id in seen:
                continue
            seen.add(sample.catch_id)
        selected.append(sample)
    return selected


def aggregate_samples(
    samples: Iterable[CatchSample],
    trust: Mapping[str, float],
    centroid: Coordinates | None = None,
) -> SliceAggregate:
    """Accumulate trust weight and counts per slice key.

    Users missing from *trust* weigh 1.0. When no *centroid* is given, the
    first sample carrying coordinates supplies it.
    """
    aggregate = SliceAggregate(centroid=centroid)
    for sample in samples:
        if sample.bands is None:
            continue
        weight = trust.get(sample.user_id, 1.0)
        stats = aggregate.matrix.setdefault(sample.bands.slice_key, BiteSliceStats())
        stats.weight += weight
        stats.samples += 1
        if aggregate.centroid is None and sample.coordinates is not None:
            aggregate.centroid = sample.coordinates
    return aggregate


def compute_prediction(
    bands: EnvironmentBands,
    environment: EnvironmentSnapshot,
    matrix: Mapping[str, BiteSliceStats],
    total_weight: float,
    total_samples: int,
    offset_hours: int = 0,
) -> BitePrediction:
    """Score one environment against the slice matrix.

    The slice's weight-per-sample relative to the spot's average decides the
    direction (>= 1.25 up, <= 0.75 down). Confidence starts from the slice's
    share of samples and weight, then is damped for flat verdicts or held
    above 60% of base for directional ones, scaled by how far the ratio is
    from 1.
    """
    label = "Now" if offset_hours == 0 else f"+{offset_hours}h"
    entry = matrix.get(bands.slice_key)
    if entry is None or entry.samples == 0 or total_weight <= 0 or total_samples <= 0:
        return BitePrediction(
            offset_hours=offset_hours,
            label=label,
            direction=PredictionDirection.FLAT,
            confidence=0.0,
            environment=environment,
            bands=bands,
        )

    slice_weight_per_sample = entry.weight / entry.samples
    global_weight_per_sample = total_weight / total_samples
    relative = slice_weight_per_sample / global_weight_per_sample if global_weight_per_sample > 0 else 1.0

    if relative >= UP_THRESHOLD:
        direction = PredictionDirection.UP
    elif relative <= DOWN_THRESHOLD:
        direction = PredictionDirection.DOWN
    else:
        direction = PredictionDirection.FLAT

    sample_ratio = entry.samples / total_samples
    weight_ratio = entry.weight / total_weight
    base_confidence = min(1.0, sample_ratio * SAMPLE_SHARE_WEIGHT + weight_ratio * WEIGHT_SHARE_WEIGHT)
    strength = min(1.0, abs(relative - 1.0))
    if direction is PredictionDirection.FLAT:
        confidence = base_confidence * (1.0 - strength * 0.5)
    else:
        confidence = base_confidence * (DIRECTIONAL_FLOOR + strength * (1.0 - DIRECTIONAL_FLOOR))

    return BitePrediction(
        offset_hours=offset_hours,
        label=label,
        direction=direction,
        confidence=min(1.0, max(0.0, confidence)),
        environment=environment,
        bands=bands,
        sample_weight=entry.weight,
        sample_size=entry.samples,
    )


def build_predictions(
    slices: Iterable[EnvironmentSlice] | None,
    aggregate: SliceAggregate,
) -> list[BitePrediction]:
    """Predictions for the first three slices (now, +1h, +2h)."""
    if not slices:
        return []
    total_weight = aggregate.total_weight
    total_samples = aggregate.sample_size
    predictions: list[BitePrediction] = []
    for env_slice in list(slices)[:MAX_PREDICTIONS]:
        snapshot = env_slice.snapshot
        predictions.append(
            compute_prediction(
                snapshot.bands,
                snapshot,
                aggregate.matrix,
                total_weight,
                total_samples,
                offset_hours=env_slice.offset_hours,
            )
        )
    return predictions


def is_insufficient(sample_size: int, predictions: list[BitePrediction]) -> bool:
    """True below five samples, or when no prediction reaches 0.25 confidence.

    An empty prediction list counts as "no prediction reaches" the floor.
    """
    if sample_size < MIN_SAMPLES:
        return True
    return all(p.confidence < MIN_CONFIDENCE for p in predictions)
