"""Per-angler trust weights, memoized in a bounded expiring cache."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from bite_forecast.common.cache import ExpiringCache
from bite_forecast.config import get_settings
from bite_forecast.signals.models import UserProfile
from bite_forecast.signals.sources import UserProfileSource

logger = logging.getLogger(__name__)

BASE_TRUST = 1.0
PRO_BONUS = 0.5
TROPHY_BONUS = 0.25


def trust_for_profile(profile: UserProfile | None) -> float:
    """1.0, plus 0.5 for pro anglers, plus 0.25 with at least one trophy."""
    trust = BASE_TRUST
    if profile is None:
        return trust
    if profile.is_pro:
        trust += PRO_BONUS
    if profile.trophy_count > 0:
        trust += TROPHY_BONUS
    return trust


class TrustResolver:
    """Looks up trust weights, sharing lookups across concurrent passes.

    Each profile lookup is bounded by *timeout* (``store_timeout`` by
    default). Failed or timed-out lookups weigh BASE_TRUST and are not
    memoized, so the next pass retries them.
    """

    def __init__(
        self,
        profiles: UserProfileSource,
        cache: ExpiringCache[str, float] | None = None,
        timeout: float | None = None,
    ) -> None:
        if cache is None or timeout is None:
            settings = get_settings()
            if cache is None:
                cache = ExpiringCache(
                    ttl_seconds=settings.trust_cache_ttl_seconds,
                    max_entries=settings.trust_cache_max_entries,
                )
            if timeout is None:
                timeout = settings.store_timeout
        self._profiles = profiles
        self._cache = cache
        self._timeout = timeout

    async def _load(self, user_id: str) -> float:
        profile = await asyncio.wait_for(self._profiles.get_profile(user_id), timeout=self._timeout)
        return trust_for_profile(profile)

    async def resolve(self, user_id: str) -> float:
        if not user_id:
            return BASE_TRUST
        try:
            return await self._cache.get_or_set(user_id, lambda: self._load(user_id))
        except Exception as exc:
            logger.warning("Unable to load trust score for %s: %s", user_id, exc)
            return BASE_TRUST

    async def resolve_many(self, user_ids: Iterable[str]) -> dict[str, float]:
        """Trust weight for each distinct user id."""
        unique = list(dict.fromkeys(user_ids))
        weights = await asyncio.gather(*(self.resolve(uid) for uid in unique))
        return dict(zip(unique, weights))
