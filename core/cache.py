"""TTL-bound cache for raw AI forecasts."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Protocol, Sequence

from core.models import CacheEntry, TrendFilters

logger = logging.getLogger(__name__)

__all__ = [
    "AI_CACHE_TTL_SECONDS",
    "CacheStore",
    "ForecastCache",
    "InMemoryCacheStore",
    "build_cache_key",
    "utc_now",
]

AI_CACHE_TTL_SECONDS = 12 * 60 * 60
_KEY_PREFIX = "ai"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheStore(Protocol):
    """Async key-value store with per-key expiry."""

    async def get(self, key: str) -> CacheEntry | None: ...

    async def set(self, key: str, value: CacheEntry, ttl_seconds: float) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def keys(self) -> list[str]: ...


class InMemoryCacheStore:
    """Process-local store that evicts keys once their TTL has elapsed."""

    def __init__(self, *, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._items: dict[str, tuple[float, CacheEntry]] = {}
        self._monotonic = monotonic

    async def get(self, key: str) -> CacheEntry | None:
        item = self._items.get(key)
        if item is None:
            return None
        deadline, value = item
        if self._monotonic() >= deadline:
            self._items.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: CacheEntry, ttl_seconds: float) -> None:
        self._items[key] = (self._monotonic() + ttl_seconds, value)

    async def delete(self, key: str) -> None:
        self._items.pop(key, None)

    async def keys(self) -> list[str]:
        now = self._monotonic()
        expired = [key for key, (deadline, _) in self._items.items() if now >= deadline]
        for key in expired:
            self._items.pop(key, None)
        return list(self._items)


def build_cache_key(
    user_id: int | str,
    history_days: int,
    forecast_days: int,
    use_ai: bool,
    filters: TrendFilters,
) -> str:
    """Encode every parameter that selects a cached forecast.

    Filter toggles are part of the key even though cached payloads are
    filter-independent, so toggling a filter never reuses another entry.
    """

    flags = (
        f"ri{_flag(filters.include_recurring_income)}"
        f":re{_flag(filters.include_recurring_expense)}"
        f":pi{_flag(filters.include_planned_income)}"
        f":pe{_flag(filters.include_planned_expenses)}"
        f":bl{_flag(filters.include_budget_limits)}"
    )
    return (
        f"{_KEY_PREFIX}:{user_id}:h{history_days}:f{forecast_days}"
        f":useAI{_flag(use_ai)}:{flags}"
    )


def _flag(value: bool) -> str:
    return "true" if value else "false"


class ForecastCache:
    """Reads and writes raw AI forecasts through an injected store.

    Store failures are logged and behave like a miss; they never propagate
    into trend computation.
    """

    def __init__(
        self,
        store: CacheStore,
        *,
        ttl_seconds: float = AI_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    async def get(self, key: str) -> CacheEntry | None:
        try:
            entry = await self._store.get(key)
        except Exception as exc:
            logger.warning("Forecast cache read failed for %s: %s", key, exc)
            self._misses += 1
            return None

        if entry is None or entry.is_expired(self._clock()):
            self._misses += 1
            logger.debug("Forecast cache MISS for %s", key)
            return None

        self._hits += 1
        logger.debug("Forecast cache HIT for %s (expires %s)", key, entry.expires_at.isoformat())
        return entry

    async def set(
        self,
        key: str,
        *,
        daily_income: Sequence[float],
        daily_expense: Sequence[float],
        daily_capital: Sequence[float],
        base_capital: float,
    ) -> CacheEntry:
        now = self._clock()
        entry = CacheEntry(
            daily_income=tuple(float(value) for value in daily_income),
            daily_expense=tuple(float(value) for value in daily_expense),
            daily_capital=tuple(float(value) for value in daily_capital),
            base_capital=float(base_capital),
            generated_at=now,
            expires_at=now + timedelta(seconds=self._ttl_seconds),
        )
        try:
            await self._store.set(key, entry, self._ttl_seconds)
        except Exception as exc:
            logger.warning("Forecast cache write failed for %s: %s", key, exc)
        else:
            logger.debug("Forecast cache SET for %s (expires %s)", key, entry.expires_at.isoformat())
        return entry

    async def clear_user(self, user_id: int | str) -> int:
        """Drop every cached forecast for ``user_id`` and return the count."""

        prefix = f"{_KEY_PREFIX}:{user_id}:"
        try:
            keys = [key for key in await self._store.keys() if key.startswith(prefix)]
            for key in keys:
                await self._store.delete(key)
        except Exception as exc:
            logger.warning("Forecast cache clear failed for user %s: %s", user_id, exc)
            return 0
        logger.info("Cleared %d cached forecasts for user %s", len(keys), user_id)
        return len(keys)

    async def stats(self) -> dict[str, int]:
        """Live key count plus hit and miss counters since construction."""

        try:
            keys = len(await self._store.keys())
        except Exception as exc:
            logger.warning("Forecast cache key listing failed: %s", exc)
            keys = 0
        return {"keys": keys, "hits": self._hits, "misses": self._misses}
