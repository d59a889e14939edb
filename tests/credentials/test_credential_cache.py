"""Tests for CredentialCache single-flight refresh and expiry."""

from __future__ import annotations

import asyncio

import pytest

from volc_core.credentials.cache import (
    CredentialCache,
    CredentialCacheEntry,
    assume_role_cache_key,
)
from volc_core.models.config import AssumeRoleParams, Credentials
from volc_core.testing.clock import MockClock
from volc_core.transport.clock import now_ms

KEY = "role-key"


def entry(clock: MockClock, ttl_ms: int = 60_000, access_key_id: str = "STS_AK") -> CredentialCacheEntry:
    return CredentialCacheEntry(
        credentials=Credentials(access_key_id=access_key_id, secret_access_key="STS_SK", session_token="T"),
        expires_at=now_ms(clock) + ttl_ms,
    )


class TestCredentialCache:
    """Tests for get_or_refresh."""

    @pytest.mark.asyncio
    async def test_first_call_refreshes_and_caches(self) -> None:
        clock = MockClock()
        cache = CredentialCache(clock)
        calls = 0

        async def refresh() -> CredentialCacheEntry:
            nonlocal calls
            calls += 1
            return entry(clock)

        first = await cache.get_or_refresh(KEY, refresh)
        second = await cache.get_or_refresh(KEY, refresh)
        assert first == second
        assert calls == 1
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self) -> None:
        clock = MockClock()
        cache = CredentialCache(clock)
        release = asyncio.Event()
        calls = 0

        async def refresh() -> CredentialCacheEntry:
            nonlocal calls
            calls += 1
            await release.wait()
            return entry(clock)

        tasks = [asyncio.create_task(cache.get_or_refresh(KEY, refresh)) for _ in range(5)]
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert cache.in_flight(KEY)
        release.set()
        results = await asyncio.gather(*tasks)

        assert calls == 1
        assert all(result.access_key_id == "STS_AK" for result in results)
        assert not cache.in_flight(KEY)

    @pytest.mark.asyncio
    async def test_failed_refresh_reaches_every_waiter_and_clears_in_flight(self) -> None:
        clock = MockClock()
        cache = CredentialCache(clock)
        release = asyncio.Event()

        async def failing() -> CredentialCacheEntry:
            await release.wait()
            raise RuntimeError("sts down")

        tasks = [asyncio.create_task(cache.get_or_refresh(KEY, failing)) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(result, RuntimeError) for result in results)
        assert not cache.in_flight(KEY)
        assert cache.get(KEY) is None

        async def working() -> CredentialCacheEntry:
            return entry(clock)

        credentials = await cache.get_or_refresh(KEY, working)
        assert credentials.access_key_id == "STS_AK"

    @pytest.mark.asyncio
    async def test_stale_entry_is_refreshed(self) -> None:
        clock = MockClock()
        cache = CredentialCache(clock)
        generations = iter(["FIRST", "SECOND"])

        async def refresh() -> CredentialCacheEntry:
            return entry(clock, ttl_ms=10_000, access_key_id=next(generations))

        assert (await cache.get_or_refresh(KEY, refresh)).access_key_id == "FIRST"
        clock.advance(9_999)
        assert (await cache.get_or_refresh(KEY, refresh)).access_key_id == "FIRST"
        clock.advance(1)
        assert (await cache.get_or_refresh(KEY, refresh)).access_key_id == "SECOND"

    @pytest.mark.asyncio
    async def test_keys_are_independent(self) -> None:
        clock = MockClock()
        cache = CredentialCache(clock)

        async def refresh_a() -> CredentialCacheEntry:
            return entry(clock, access_key_id="A")

        async def refresh_b() -> CredentialCacheEntry:
            return entry(clock, access_key_id="B")

        assert (await cache.get_or_refresh("a", refresh_a)).access_key_id == "A"
        assert (await cache.get_or_refresh("b", refresh_b)).access_key_id == "B"
        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_invalidate(self) -> None:
        clock = MockClock()
        cache = CredentialCache(clock)

        async def refresh() -> CredentialCacheEntry:
            return entry(clock)

        await cache.get_or_refresh("a", refresh)
        await cache.get_or_refresh("b", refresh)
        cache.invalidate("a")
        assert cache.get("a") is None
        assert cache.get("b") is not None
        cache.invalidate()
        assert len(cache) == 0

    def test_entry_freshness(self) -> None:
        credentials = Credentials(access_key_id="a", secret_access_key="b")
        cached = CredentialCacheEntry(credentials=credentials, expires_at=1_000)
        assert cached.is_fresh(999)
        assert not cached.is_fresh(1_000)


class TestCacheKey:
    def _params(self, **overrides: str) -> AssumeRoleParams:
        values = {
            "access_key_id": "AK",
            "secret_access_key": "SK",
            "role_name": "reader",
            "account_id": "2100000000",
        }
        values.update(overrides)
        return AssumeRoleParams(**values)

    def test_key_is_stable_and_hides_secret(self) -> None:
        key = assume_role_cache_key(self._params())
        assert key == assume_role_cache_key(self._params())
        assert "SK" not in key
        assert len(key) == 64

    def test_key_changes_with_role(self) -> None:
        assert assume_role_cache_key(self._params()) != assume_role_cache_key(
            self._params(role_name="writer")
        )
