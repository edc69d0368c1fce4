"""Bite signal data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from bite_forecast.common.types import Coordinates, isoformat_utc, parse_utc
from bite_forecast.environment.bands import EnvironmentBands, EnvironmentSnapshot


class PredictionDirection(str, Enum):
    UP = "up"
    FLAT = "flat"
    DOWN = "down"


@dataclass(frozen=True)
class CatchSample:
    """One historical catch as seen by the aggregator.

    Attributes:
        catch_id: document id, used to count each catch once per pass
        user_id: reporting angler, empty if unknown
        captured_at: capture time normalized to the hour (UTC)
        bands: environment bands recorded with the catch
        coordinates: where the catch was logged
    """

    catch_id: str | None
    user_id: str = ""
    captured_at: datetime | None = None
    bands: EnvironmentBands | None = None
    coordinates: Coordinates | None = None


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    is_pro: bool = False
    trophy_count: int = 0


@dataclass
class BiteSliceStats:
    """Accumulated trust weight and raw catch count for one slice key."""

    weight: float = 0.0
    samples: int = 0

    def to_dict(self) -> dict:
        return {"weight": self.weight, "samples": self.samples}


@dataclass(frozen=True)
class BitePrediction:
    """Directional bite outlook for one forward hour.

    Attributes:
        offset_hours: 0 for now, 1 for +1h, ...
        label: "Now", "+1h", "+2h"
        direction: up, flat or down relative to the spot's average
        confidence: 0-1
        environment: snapshot the prediction was evaluated against
        bands: bands of that snapshot
        sample_weight: weight of the matching slice
        sample_size: catch count of the matching slice
    """

    offset_hours: int
    label: str
    direction: PredictionDirection
    confidence: float
    environment: EnvironmentSnapshot
    bands: EnvironmentBands
    sample_weight: float = 0.0
    sample_size: int = 0

    def to_dict(self) -> dict:
        return {
            "offsetHours": self.offset_hours,
            "label": self.label,
            "direction": self.direction.value,
            "confidence": self.confidence,
            "environment": self.environment.to_dict(),
            "bands": self.bands.to_dict(),
            "sampleWeight": self.sample_weight,
            "sampleSize": self.sample_size,
        }

    @classmethod
    def from_dict(cls, data: dict) -> BitePrediction:
        environment = EnvironmentSnapshot.from_dict(data["environment"])
        return cls(
            offset_hours=int(data["offsetHours"]),
            label=str(data["label"]),
            direction=PredictionDirection(data["direction"]),
            confidence=float(data["confidence"]),
            environment=environment,
            bands=EnvironmentBands.from_dict(data.get("bands")) or environment.bands,
            sample_weight=float(data.get("sampleWeight", 0.0)),
            sample_size=int(data.get("sampleSize", 0)),
        )


@dataclass(frozen=True)
class BiteSignal:
    """Per-location aggregate, replaced wholesale on every recompute."""

    location_key: str
    sample_size: int
    total_weight: float
    matrix: dict[str, BiteSliceStats]
    predictions: list[BitePrediction]
    insufficient: bool
    updated_at: datetime
    expires_at: datetime
    centroid: Coordinates | None = None
    persisted: bool = field(default=True, compare=False)

    def is_fresh(self, now: datetime) -> bool:
        return self.expires_at > now

    def to_dict(self) -> dict:
        return {
            "locationKey": self.location_key,
            "sampleSize": self.sample_size,
            "totalWeight": self.total_weight,
            "matrix": {key: stats.to_dict() for key, stats in self.matrix.items()},
            "predictions": [p.to_dict() for p in self.predictions],
            "insufficient": self.insufficient,
            "updatedAt": isoformat_utc(self.updated_at),
            "expiresAt": isoformat_utc(self.expires_at),
            "centroid": self.centroid.to_dict() if self.centroid else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> BiteSignal:
        """Rebuild a stored signal.

        Raises:
            ValueError, KeyError, TypeError: for documents that do not match
                the stored shape.
        """
        updated_at = parse_utc(data.get("updatedAt"))
        expires_at = parse_utc(data.get("expiresAt"))
        if updated_at is None or expires_at is None:
            raise ValueError("bite signal document missing updatedAt/expiresAt")
        matrix = {
            key: BiteSliceStats(weight=float(v["weight"]), samples=int(v["samples"]))
            for key, v in (data.get("matrix") or {}).items()
        }
        return cls(
            location_key=str(data["locationKey"]),
            sample_size=int(data["sampleSize"]),
            total_weight=float(data["totalWeight"]),
            matrix=matrix,
            predictions=[BitePrediction.from_dict(p) for p in data.get("predictions") or []],
            insufficient=bool(data["insufficient"]),
            updated_at=updated_at,
            expires_at=expires_at,
            centroid=Coordinates.from_dict(data.get("centroid")),
        )
