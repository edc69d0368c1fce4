"""Bite signal recompute and read-through refresh.

A recompute is a two-phase pipeline: fetch a bounded batch of catch samples
and the anglers' trust weights, then reduce them in memory (see
``aggregator``) and score the next few hours against fresh environment
slices. Catches inserted while a pass is running may or may not be counted;
each catch is counted at most once per pass.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TypeVar

from bite_forecast.common.types import Coordinates, utc_now
from bite_forecast.config import Settings, get_settings
from bite_forecast.environment.slices import (
    EnvironmentSlice,
    EnvironmentSliceProvider,
    get_slice_provider,
)
from bite_forecast.signals.aggregator import (
    aggregate_samples,
    build_predictions,
    is_insufficient,
    select_qualifying_samples,
)
from bite_forecast.signals.models import BiteSignal
from bite_forecast.signals.sources import BiteSignalStore, CatchSampleSource, UserProfileSource
from bite_forecast.signals.trust import TrustResolver

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BiteSignalService:
    """Computes, persists and serves bite signals per location key."""

    def __init__(
        self,
        samples: CatchSampleSource,
        profiles: UserProfileSource,
        store: BiteSignalStore,
        slices: EnvironmentSliceProvider | None = None,
        trust: TrustResolver | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._settings = settings or get_settings()
        self._samples = samples
        self._store = store
        self._slices = slices or get_slice_provider(self._settings)
        self._trust = trust or TrustResolver(profiles, timeout=self._settings.store_timeout)
        self._clock = clock

    async def _with_timeout(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self._settings.store_timeout)

    async def _fetch_slices(self, centroid: Coordinates) -> list[EnvironmentSlice] | None:
        try:
            return await self._slices.get_slices(centroid, self._settings.prediction_forward_hours)
        except Exception as exc:
            logger.warning("Environment slices unavailable for (%.3f, %.3f): %s", centroid.lat, centroid.lon, exc)
            return None

    async def _persist(self, signal: BiteSignal) -> bool:
        try:
            await self._with_timeout(self._store.put_signal(signal))
        except Exception as exc:
            logger.warning("Failed to persist bite signal for %s: %s", signal.location_key, exc)
            return False
        return True

    async def _read(self, location_key: str) -> BiteSignal | None:
        try:
            return await self._with_timeout(self._store.get_signal(location_key))
        except Exception as exc:
            logger.warning("Failed to read bite signal for %s: %s", location_key, exc)
            return None

    async def recompute_bite_signal(
        self,
        location_key: str,
        coordinates: Coordinates | None = None,
    ) -> BiteSignal:
        """Rebuild the signal for a location from its recent catches and persist it.

        A failed write is logged and the in-memory signal is still returned
        (with ``persisted=False``).

        Raises:
            Exception: whatever the catch sample source raises, including
                ``asyncio.TimeoutError`` when it exceeds ``store_timeout``.
        """
        settings = self._settings
        raw_samples = await self._with_timeout(
            self._samples.list_samples(location_key, settings.max_catch_samples)
        )
        now = self._clock()
        qualifying = select_qualifying_samples(
            raw_samples[: settings.max_catch_samples],
            now=now,
            lookback=timedelta(days=settings.catch_lookback_days),
        )
        trust = await self._trust.resolve_many(s.user_id for s in qualifying)
        aggregate = aggregate_samples(qualifying, trust, centroid=coordinates)

        slices = await self._fetch_slices(aggregate.centroid) if aggregate.centroid else None
        predictions = build_predictions(slices, aggregate)
        sample_size = aggregate.sample_size

        signal = BiteSignal(
            location_key=location_key,
            sample_size=sample_size,
            total_weight=aggregate.total_weight,
            matrix=aggregate.matrix,
            predictions=predictions,
            insufficient=is_insufficient(sample_size, predictions),
            updated_at=now,
            expires_at=now + timedelta(seconds=settings.signal_ttl_seconds),
            centroid=aggregate.centroid,
        )
        logger.debug(
            "Recomputed bite signal %s: %d samples, %d slices, %d predictions",
            location_key, sample_size, len(signal.matrix), len(predictions),
        )

        if not await self._persist(signal):
            return replace(signal, persisted=False)
        return signal

    async def get_or_refresh_bite_signal(
        self,
        location_key: str,
        coordinates: Coordinates | None = None,
    ) -> BiteSignal | None:
        """Serve the stored signal while fresh, otherwise recompute.

        Without coordinates a stale signal is returned as-is; if the
        recompute fails the stale signal (or None) is returned instead of
        raising.
        """
        existing = await self._read(location_key)
        if existing is not None and existing.is_fresh(self._clock()):
            return existing

        if coordinates is None:
            if existing is not None:
                logger.info("Serving stale bite signal for %s (no coordinates to refresh)", location_key)
            return existing

        try:
            return await self.recompute_bite_signal(location_key, coordinates)
        except Exception as exc:
            logger.warning("Bite signal refresh failed for %s, serving stale: %s", location_key, exc)
            return existing

    async def refresh_bite_signal_for_catch(
        self,
        location_key: str,
        coordinates: Coordinates | None = None,
    ) -> None:
        """Recompute after a new catch; failures are logged, not raised."""
        try:
            await self.recompute_bite_signal(location_key, coordinates)
        except Exception as exc:
            logger.warning("Unable to refresh bite signal for %s: %s", location_key, exc)


def build_bite_signal_service(settings: Settings | None = None) -> BiteSignalService:
    """Service wired to the SQLite store and the configured slice provider."""
    from bite_forecast.storage.sqlite import SqliteStore

    settings = settings or get_settings()
    store = SqliteStore(settings.db_path)
    return BiteSignalService(
        samples=store,
        profiles=store,
        store=store,
        slices=get_slice_provider(settings),
        settings=settings,
    )


_default_service: BiteSignalService | None = None


async def get_or_refresh_bite_signal(
    location_key: str,
    coordinates: Coordinates | None = None,
) -> BiteSignal | None:
    """Module-level entry point backed by a process-wide BiteSignalService."""
    global _default_service
    if _default_service is None:
        _default_service = build_bite_signal_service()
    return await _default_service.get_or_refresh_bite_signal(location_key, coordinates)
