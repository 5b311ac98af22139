"""Unit tests for the AI forecast cache."""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.cache import AI_CACHE_TTL_SECONDS, ForecastCache, InMemoryCacheStore, build_cache_key
from core.models import TrendFilters

START = datetime(2024, 3, 10, 8, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self) -> None:
        self.now = START
        self.ticks = 0.0

    def utc(self) -> datetime:
        return self.now

    def monotonic(self) -> float:
        return self.ticks

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)
        self.ticks += seconds


class BrokenStore:
    async def get(self, key):
        raise ConnectionError("cache offline")

    async def set(self, key, value, ttl_seconds):
        raise ConnectionError("cache offline")

    async def delete(self, key):
        raise ConnectionError("cache offline")

    async def keys(self):
        raise ConnectionError("cache offline")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock) -> ForecastCache:
    return ForecastCache(InMemoryCacheStore(monotonic=clock.monotonic), clock=clock.utc)


async def _store_sample(cache: ForecastCache, key: str):
    return await cache.set(
        key,
        daily_income=[0.0, 100.0],
        daily_expense=[20.0, 30.0],
        daily_capital=[980.0, 1050.0],
        base_capital=1000.0,
    )


def test_cache_key_encodes_every_parameter():
    key = build_cache_key(7, 30, 14, True, TrendFilters())

    assert key == "ai:7:h30:f14:useAItrue:ritrue:retrue:pitrue:petrue:blfalse"
    assert key != build_cache_key(7, 30, 14, True, TrendFilters(include_budget_limits=True))
    assert key != build_cache_key(7, 31, 14, True, TrendFilters())


def test_cache_round_trip_counts_hits(cache):
    async def scenario():
        stored = await _store_sample(cache, "ai:1:h30:f2")
        loaded = await cache.get("ai:1:h30:f2")
        missing = await cache.get("ai:1:h30:f3")
        return stored, loaded, missing, await cache.stats()

    stored, loaded, missing, stats = asyncio.run(scenario())

    assert loaded == stored
    assert loaded.daily_income == (0.0, 100.0)
    assert loaded.expires_at - loaded.generated_at == timedelta(seconds=AI_CACHE_TTL_SECONDS)
    assert missing is None
    assert stats == {"keys": 1, "hits": 1, "misses": 1}


def test_cache_entry_expires_after_ttl(cache, clock):
    async def scenario():
        await _store_sample(cache, "ai:1:h30:f2")
        clock.advance(AI_CACHE_TTL_SECONDS - 1)
        before = await cache.get("ai:1:h30:f2")
        clock.advance(1)
        after = await cache.get("ai:1:h30:f2")
        return before, after

    before, after = asyncio.run(scenario())

    assert before is not None
    assert after is None


def test_expired_entry_is_a_miss_even_if_store_keeps_it(clock):
    # Store clock frozen so only the read-time expiry check applies.
    cache = ForecastCache(InMemoryCacheStore(monotonic=lambda: 0.0), clock=clock.utc)

    async def scenario():
        await _store_sample(cache, "ai:1:h30:f2")
        clock.advance(AI_CACHE_TTL_SECONDS + 60)
        return await cache.get("ai:1:h30:f2")

    assert asyncio.run(scenario()) is None


def test_store_failures_behave_like_a_miss(clock):
    cache = ForecastCache(BrokenStore(), clock=clock.utc)

    async def scenario():
        entry = await _store_sample(cache, "ai:1:h30:f2")
        loaded = await cache.get("ai:1:h30:f2")
        cleared = await cache.clear_user(1)
        return entry, loaded, cleared, await cache.stats()

    entry, loaded, cleared, stats = asyncio.run(scenario())

    assert entry.base_capital == 1000.0
    assert loaded is None
    assert cleared == 0
    assert stats == {"keys": 0, "hits": 0, "misses": 1}


def test_clear_user_only_drops_that_users_entries(cache):
    async def scenario():
        await _store_sample(cache, build_cache_key(1, 30, 7, True, TrendFilters()))
        await _store_sample(cache, build_cache_key(1, 60, 7, True, TrendFilters()))
        await _store_sample(cache, build_cache_key(12, 30, 7, True, TrendFilters()))
        cleared = await cache.clear_user(1)
        remaining = await cache.get(build_cache_key(12, 30, 7, True, TrendFilters()))
        return cleared, remaining

    cleared, remaining = asyncio.run(scenario())

    assert cleared == 2
    assert remaining is not None
