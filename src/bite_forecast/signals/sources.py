"""Protocols for the stores the bite signal service reads and writes."""

from __future__ import annotations

from typing import Protocol

from bite_forecast.signals.models import BiteSignal, CatchSample, UserProfile


class CatchSampleSource(Protocol):
    """Historical catches tagged with a location key."""

    async def list_samples(self, location_key: str, limit: int) -> list[CatchSample]:
        """Return up to *limit* catches recorded for *location_key*."""
        ...


class UserProfileSource(Protocol):
    """Angler profiles used for trust weighting."""

    async def get_profile(self, user_id: str) -> UserProfile | None:
        """Return the profile for *user_id*, or None if there is none."""
        ...


class BiteSignalStore(Protocol):
    """Persisted bite signals keyed by location."""

    async def get_signal(self, location_key: str) -> BiteSignal | None:
        """Return the stored signal, fresh or stale, or None."""
        ...

    async def put_signal(self, signal: BiteSignal) -> None:
        """Replace the stored signal for ``signal.location_key``."""
        ...
