"""In-process time-to-live cache.

Lookups are advisory: a miss never blocks, the caller computes the value.
``get_or_compute`` serializes writers per key so one key is computed once
even when many tasks ask for it at the same time.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")


def make_cache_key(prefix: str, *parts: Any) -> str:
    """Deterministic key from query parameters, e.g. ``fields:41.0,42.0,-94.0,-93.0,50``."""
    return f"{prefix}:" + ",".join(str(p) for p in parts)


class TTLCache:
    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiting: dict[str, int] = {}

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry[0] <= self._clock():
            del self._entries[key]
            return False
        return True

    def __len__(self) -> int:
        return sum(1 for key in list(self._entries) if key in self)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self:
            return self._entries[key][1]
        return default

    def set(self, key: str, value: Any) -> None:
        self.purge_expired()
        self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_compute(self, key: str, compute: Callable[[], Awaitable[T]]) -> T:
        if key in self:
            return self._entries[key][1]
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiting[key] = self._waiting.get(key, 0) + 1
        try:
            async with lock:
                # Another task may have filled the slot while we waited.
                if key in self:
                    return self._entries[key][1]
                value = await compute()
                self.set(key, value)
                return value
        finally:
            self._waiting[key] -= 1
            if not self._waiting[key]:
                del self._waiting[key]
                del self._locks[key]
