"""Tests for angler trust weights."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from bite_forecast.common.cache import ExpiringCache
from bite_forecast.signals.models import UserProfile
from bite_forecast.signals.trust import TrustResolver, trust_for_profile


@pytest.mark.parametrize(
    "profile, expected",
    [
        (None, 1.0),
        (UserProfile("a"), 1.0),
        (UserProfile("a", is_pro=True), 1.5),
        (UserProfile("a", trophy_count=3), 1.25),
        (UserProfile("a", is_pro=True, trophy_count=1), 1.75),
    ],
)
def test_trust_for_profile(profile, expected):
    assert trust_for_profile(profile) == expected


def _profiles(mapping):
    source = AsyncMock()
    source.get_profile.side_effect = lambda user_id: mapping.get(user_id)
    return source


@pytest.fixture
def trust_cache():
    return ExpiringCache(ttl_seconds=60, max_entries=100)


@pytest.mark.asyncio
async def test_resolve_many_dedupes_and_skips_empty(trust_cache):
    source = _profiles({"pro": UserProfile("pro", is_pro=True)})
    resolver = TrustResolver(source, cache=trust_cache)

    weights = await resolver.resolve_many(["pro", "pro", "casual", ""])

    assert weights == {"pro": 1.5, "casual": 1.0, "": 1.0}
    called_with = sorted(call.args[0] for call in source.get_profile.call_args_list)
    assert called_with == ["casual", "pro"]


@pytest.mark.asyncio
async def test_lookups_memoized(trust_cache):
    source = _profiles({"pro": UserProfile("pro", is_pro=True)})
    resolver = TrustResolver(source, cache=trust_cache)

    assert await resolver.resolve("pro") == 1.5
    assert await resolver.resolve("pro") == 1.5
    assert source.get_profile.await_count == 1


@pytest.mark.asyncio
async def test_failed_lookup_weighs_one_and_is_retried(trust_cache):
    source = AsyncMock()
    source.get_profile.side_effect = RuntimeError("profile store down")
    resolver = TrustResolver(source, cache=trust_cache)

    assert await resolver.resolve("angler") == 1.0
    assert "angler" not in trust_cache

    source.get_profile.side_effect = None
    source.get_profile.return_value = UserProfile("angler", trophy_count=2)
    assert await resolver.resolve("angler") == 1.25
    assert source.get_profile.await_count == 2


@pytest.mark.asyncio
async def test_slow_lookup_times_out_to_base_weight(trust_cache):
    async def _stalled(user_id):
        await asyncio.sleep(3600)

    source = AsyncMock()
    source.get_profile.side_effect = _stalled
    resolver = TrustResolver(source, cache=trust_cache, timeout=0.05)

    assert await asyncio.wait_for(resolver.resolve("angler"), timeout=2.0) == 1.0
    assert "angler" not in trust_cache
