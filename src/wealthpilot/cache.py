"""
Result cache — per-user memoisation around the orchestrator entry points.

The coordination core stays cache-agnostic; ``ResultCache`` wraps its async
entry points from the outside:

- Values live in a pluggable store (``MemoryStore`` by default) with a TTL.
- At most one compute runs per key at a time; concurrent callers for the
  same key wait and then read the stored result.
- A compute that raises stores nothing, so the next call retries.
- A compute that overlaps an ``invalidate`` or ``clear`` for its key returns
  its value to the caller but does not store it.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from typing import Any, Awaitable, Callable, Protocol, TypeVar

logger = logging.getLogger("wealthpilot.cache")

T = TypeVar("T")

ANALYSIS_KEY = "holistic_analysis_{user_id}"
PLAN_KEY = "holistic_plan_{user_id}"

_MISSING = object()


class CacheStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any, ttl: float | None) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


class MemoryStore:
    """Dict-backed store with per-entry expiry.

    ``get`` returns the module-level ``_MISSING`` sentinel for absent or
    expired keys so that ``None`` can be cached like any other value.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float | None, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not _MISSING

    def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        expires_at, value = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return _MISSING
        return value

    def set(self, key: str, value: Any, ttl: float | None) -> None:
        expires_at = None if ttl is None else self._clock() + ttl
        self._entries[key] = (expires_at, value)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()


class ResultCache:
    """Memoise async computations by key with single-flight semantics.

    Usage::

        cache = ResultCache()
        analysis = await cache.get_or_compute(
            ResultCache.analysis_key(user_id), 3600,
            lambda: coordinator.orchestrate_analysis(user_id),
        )
    """

    def __init__(self, store: CacheStore | None = None, enabled: bool = True) -> None:
        self.store: CacheStore = store if store is not None else MemoryStore()
        self.enabled = enabled
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        # bumped on invalidation; a compute only stores if these are unchanged
        self._generations: dict[str, int] = {}
        self._epoch = 0

    def _generation(self, key: str) -> tuple[int, int]:
        return self._epoch, self._generations.get(key, 0)

    @staticmethod
    def analysis_key(user_id: str | int) -> str:
        return ANALYSIS_KEY.format(user_id=user_id)

    @staticmethod
    def plan_key(user_id: str | int) -> str:
        return PLAN_KEY.format(user_id=user_id)

    async def get_or_compute(
        self,
        key: str,
        ttl: float | None,
        compute: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the stored value for ``key`` or compute and store it.

        A ``ttl`` of 0 computes without storing; ``None`` never expires.
        """
        if not self.enabled:
            return await compute()

        cached = self.store.get(key)
        if cached is not _MISSING:
            logger.debug("Cache hit: %s", key)
            return cached

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                # another caller may have filled it while we waited
                cached = self.store.get(key)
                if cached is not _MISSING:
                    logger.debug("Cache hit after wait: %s", key)
                    return cached

                logger.debug("Cache miss: %s", key)
                generation = self._generation(key)
                value = await compute()
                if self._generation(key) != generation:
                    logger.debug("Not storing %s: invalidated during compute", key)
                elif ttl is None or ttl > 0:
                    self.store.set(key, value, ttl)
                return value
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    def cached(
        self,
        key_template: str,
        ttl: float | None,
    ) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
        """Decorator form for coroutines whose first argument is ``user_id``."""

        def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
            @functools.wraps(func)
            async def wrapper(user_id: str | int, *args: Any, **kwargs: Any) -> T:
                key = key_template.format(user_id=user_id)
                return await self.get_or_compute(key, ttl, lambda: func(user_id, *args, **kwargs))

            return wrapper

        return decorator

    def invalidate(self, user_id: str | int) -> None:
        """Drop the stored analysis and plan for one user."""
        for key in (self.analysis_key(user_id), self.plan_key(user_id)):
            self._generations[key] = self._generations.get(key, 0) + 1
            self.store.delete(key)
        logger.info("Invalidated cached results for %s", user_id)

    def clear(self) -> None:
        self._epoch += 1
        self._generations.clear()
        self.store.clear()
