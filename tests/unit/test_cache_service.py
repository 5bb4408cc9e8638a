from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import AsyncIterator, Sequence

import pytest

from src.adapters.cache import InMemoryCacheStore
from src.app.ports.output import ICacheStore
from src.app.ports.output.cache_store import ConnectionListener, ErrorListener
from src.app.services.cache_service import CacheService
from src.domain.exceptions import CacheStoreError, UpstreamUnavailable
from src.domain.models import GeoPoint, Stop


@dataclass(slots=True)
class FakeClock:
    now: float = 1000.0

    def __call__(self) -> float:
        return self.now


@dataclass(slots=True)
class CountingFetcher:
    value: object
    calls: int = 0

    async def __call__(self) -> object:
        self.calls += 1
        return self.value


@dataclass(slots=True)
class FlakyStore(ICacheStore):
    """In-memory store that can be switched into an outage."""

    inner: InMemoryCacheStore = field(default_factory=InMemoryCacheStore)
    down: bool = False
    reads: int = 0
    _on_error: list[ErrorListener] = field(default_factory=list)
    _on_ready: list[ConnectionListener] = field(default_factory=list)

    def subscribe(self, *, on_error: ErrorListener, on_ready: ConnectionListener) -> None:
        self._on_error.append(on_error)
        self._on_ready.append(on_ready)

    def fail(self) -> None:
        self.down = True

    def recover(self) -> None:
        self.down = False
        for listener in self._on_ready:
            listener()

    def _check(self) -> None:
        if self.down:
            exc = CacheStoreError("connection refused")
            for listener in self._on_error:
                listener(exc)
            raise exc

    async def connect(self) -> bool:
        if self.down:
            return False
        self.recover()
        return True

    async def get(self, key: str) -> bytes | None:
        self.reads += 1
        self._check()
        return await self.inner.get(key)

    async def get_many(self, keys: Sequence[str]) -> list[bytes | None]:
        self._check()
        return await self.inner.get_many(keys)

    async def set(self, key: str, value: bytes, *, ttl_s: float) -> None:
        self._check()
        await self.inner.set(key, value, ttl_s=ttl_s)

    async def delete(self, *keys: str) -> int:
        self._check()
        return await self.inner.delete(*keys)

    async def scan(
        self, pattern: str, *, batch_size: int = 100
    ) -> AsyncIterator[list[str]]:
        self._check()
        async for batch in self.inner.scan(pattern, batch_size=batch_size):
            yield batch

    async def aclose(self, *, timeout_s: float = 5.0) -> None:
        await self.inner.aclose(timeout_s=timeout_s)


def test_get_cached_serves_second_call_from_cache() -> None:
    async def _run() -> None:
        cache = CacheService(store=InMemoryCacheStore())
        fetch = CountingFetcher({"a": 1})

        first = await cache.get_cached("k", fetch, 60, value_type=dict[str, int])
        second = await cache.get_cached("k", fetch, 60, value_type=dict[str, int])

        assert first == second == {"a": 1}
        assert fetch.calls == 1
        assert cache.is_available

    asyncio.run(_run())


def test_get_cached_round_trips_domain_records() -> None:
    async def _run() -> None:
        cache = CacheService(store=InMemoryCacheStore())
        stops = (
            Stop(id="1", name="Central", location=GeoPoint(lat=14.6, lon=120.98)),
            Stop(id="2", name="Market", location=GeoPoint(lat=14.59, lon=121.0)),
        )
        fetch = CountingFetcher(stops)

        await cache.get_cached("stops", fetch, 60, value_type=tuple[Stop, ...])
        cached = await cache.get_cached("stops", fetch, 60, value_type=tuple[Stop, ...])

        assert cached == stops
        assert fetch.calls == 1

    asyncio.run(_run())


def test_entry_expires_after_ttl() -> None:
    async def _run() -> None:
        clock = FakeClock()
        cache = CacheService(store=InMemoryCacheStore(clock=clock))
        fetch = CountingFetcher([1, 2, 3])

        await cache.get_cached("k", fetch, 30, value_type=list[int])
        clock.now += 29
        await cache.get_cached("k", fetch, 30, value_type=list[int])
        assert fetch.calls == 1

        clock.now += 2
        await cache.get_cached("k", fetch, 30, value_type=list[int])
        assert fetch.calls == 2

    asyncio.run(_run())


def test_jittered_ttl_stays_within_bounds() -> None:
    cache = CacheService(rng=random.Random(7))

    ttls = [cache.jittered_ttl(10, 20) for _ in range(500)]

    assert all(8.0 <= t <= 12.0 for t in ttls)
    assert len({round(t, 6) for t in ttls}) > 1


def test_jitter_applies_to_stored_expiry() -> None:
    async def _run() -> None:
        clock = FakeClock()
        store = InMemoryCacheStore(clock=clock)
        cache = CacheService(store=store, rng=random.Random(1))

        for i in range(20):
            await cache.get_cached_with_jitter(
                f"v:{i}", CountingFetcher(i), 10, 20, value_type=int
            )

        lifetimes = [store.expires_at(f"v:{i}") - clock.now for i in range(20)]
        assert all(8.0 <= life <= 12.0 for life in lifetimes)

    asyncio.run(_run())


def test_without_store_every_call_fetches() -> None:
    async def _run() -> None:
        cache = CacheService(store=None)
        fetch = CountingFetcher("x")

        await cache.get_cached("k", fetch, 60)
        await cache.get_cached("k", fetch, 60)

        assert fetch.calls == 2
        assert not cache.is_available
        assert await cache.get_cached_batch(["k"]) == {}
        assert await cache.delete_pattern("*") == 0

    asyncio.run(_run())


def test_unreadable_entry_is_evicted_and_refetched() -> None:
    async def _run() -> None:
        store = InMemoryCacheStore()
        cache = CacheService(store=store)
        await store.set("k", b"{not json", ttl_s=60)
        fetch = CountingFetcher({"ok": True})

        value = await cache.get_cached("k", fetch, 60, value_type=dict[str, bool])

        assert value == {"ok": True}
        assert fetch.calls == 1
        assert await store.get("k") == b'{"ok":true}'

    asyncio.run(_run())


def test_oversized_value_is_returned_but_not_stored() -> None:
    async def _run() -> None:
        store = InMemoryCacheStore()
        cache = CacheService(store=store, max_value_bytes=16)
        fetch = CountingFetcher("x" * 100)

        value = await cache.get_cached("big", fetch, 60, value_type=str)

        assert value == "x" * 100
        assert store.size() == 0

    asyncio.run(_run())


def test_fetcher_errors_propagate() -> None:
    async def _run() -> None:
        cache = CacheService(store=InMemoryCacheStore())

        async def _boom() -> object:
            raise UpstreamUnavailable("provider down")

        with pytest.raises(UpstreamUnavailable):
            await cache.get_cached("k", _boom, 60)

    asyncio.run(_run())


def test_batch_returns_only_present_entries() -> None:
    async def _run() -> None:
        store = InMemoryCacheStore()
        cache = CacheService(store=store)
        await cache.get_cached("a", CountingFetcher(1), 60, value_type=int)
        await cache.get_cached("c", CountingFetcher(3), 60, value_type=int)
        await store.set("d", b"oops", ttl_s=60)

        got = await cache.get_cached_batch(["a", "b", "c", "d"], value_type=int)

        assert got == {"a": 1, "c": 3}

    asyncio.run(_run())


def test_delete_pattern_removes_matching_keys_in_batches() -> None:
    async def _run() -> None:
        store = InMemoryCacheStore()
        cache = CacheService(store=store)
        for i in range(250):
            await store.set(f"departures:{i}", b"1", ttl_s=60)
        await store.set("routes:all", b"[]", ttl_s=60)

        deleted = await cache.delete_pattern("departures:*")

        assert deleted == 250
        assert store.size() == 1
        assert await store.get("routes:all") == b"[]"

    asyncio.run(_run())


def test_outage_degrades_then_recovers() -> None:
    async def _run() -> None:
        store = FlakyStore()
        cache = CacheService(store=store)
        fetch = CountingFetcher(5)

        assert await cache.get_cached("k", fetch, 60, value_type=int) == 5
        assert cache.is_available

        store.fail()
        assert await cache.get_cached("k", fetch, 60, value_type=int) == 5
        assert not cache.is_available
        assert cache.health.last_error == "connection refused"

        reads = store.reads
        assert await cache.get_cached("k", fetch, 60, value_type=int) == 5
        assert store.reads == reads  # bypassed while degraded
        assert await cache.delete_pattern("*") == 0

        store.recover()
        assert cache.is_available
        before = fetch.calls
        assert await cache.get_cached("k", fetch, 60, value_type=int) == 5
        assert fetch.calls == before  # served from the store again

    asyncio.run(_run())


def test_store_that_never_connects_leaves_cache_degraded() -> None:
    async def _run() -> None:
        store = FlakyStore(down=True)
        cache = CacheService(store=store)
        fetch = CountingFetcher("v")

        assert await cache.start() is False
        assert await cache.get_cached("k", fetch, 60, value_type=str) == "v"
        assert fetch.calls == 1
        assert store.reads == 0

    asyncio.run(_run())
