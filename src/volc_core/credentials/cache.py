"""Single-flight cache for short-lived credentials.

Concurrent callers asking for the same key while a refresh is in flight all
await that one refresh. The in-flight entry is removed when the refresh
settles, successfully or not, so a failed refresh is retried by the next
caller.

Example:
    >>> cache = CredentialCache(clock)
    >>> credentials = await cache.get_or_refresh(key, provider.fetch)
"""

from __future__ import annotations

import asyncio
import hashlib
from dataclasses import dataclass
from typing import Awaitable, Callable

from volc_core.models.config import AssumeRoleParams, Credentials
from volc_core.transport.clock import Clock, RealClock, now_ms

RefreshFunction = Callable[[], Awaitable["CredentialCacheEntry"]]


@dataclass(frozen=True)
class CredentialCacheEntry:
    """Cached credentials and the epoch-millisecond time they go stale."""

    credentials: Credentials
    expires_at: int

    def is_fresh(self, at_ms: int) -> bool:
        return self.expires_at > at_ms


def assume_role_cache_key(params: AssumeRoleParams) -> str:
    """Cache key for a role assumption; hashed so secrets are not kept as keys."""
    raw = f"{params.access_key_id}-{params.secret_access_key}-{params.account_id}-{params.role_name}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class CredentialCache:
    """Keyed credential cache with at most one refresh in flight per key."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or RealClock()
        self._entries: dict[str, CredentialCacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task[CredentialCacheEntry]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> CredentialCacheEntry | None:
        """Return the entry for ``key`` whether or not it is still fresh."""
        return self._entries.get(key)

    def in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def invalidate(self, key: str | None = None) -> None:
        """Drop one cached entry, or all of them when ``key`` is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    async def get_or_refresh(self, key: str, refresh: RefreshFunction) -> Credentials:
        """Return fresh credentials for ``key``, running ``refresh`` if needed.

        Raises:
            Exception: Whatever ``refresh`` raised, to every waiting caller
        """
        async with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_fresh(now_ms(self._clock)):
                return entry.credentials

            task = self._in_flight.get(key)
            if task is None:
                task = asyncio.ensure_future(self._run_refresh(key, refresh))
                self._in_flight[key] = task

        # A cancelled caller must not cancel the refresh other callers share
        entry = await asyncio.shield(task)
        return entry.credentials

    async def _run_refresh(self, key: str, refresh: RefreshFunction) -> CredentialCacheEntry:
        try:
            entry = await refresh()
            self._entries[key] = entry
            return entry
        finally:
            self._in_flight.pop(key, None)


__all__ = [
    "CredentialCache",
    "CredentialCacheEntry",
    "assume_role_cache_key",
]
