from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Awaitable, Callable, Iterable, TypeVar

from pydantic import TypeAdapter, ValidationError

from src.app.ports.output import ICacheStore
from src.domain.exceptions import CacheStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[T]]

DEFAULT_MAX_VALUE_BYTES = 100 * 1024 * 1024
DELETE_BATCH_SIZE = 100
MIN_TTL_S = 0.001


@lru_cache(maxsize=64)
def _adapter(value_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(value_type)


@dataclass(slots=True)
class CacheHealth:
    """Availability of the backing store as last reported by the store itself.

    Written only by the store's connection lifecycle callbacks. A stale read
    costs at most one extra direct fetch.
    """

    available: bool = False
    last_error: str | None = None

    def on_ready(self) -> None:
        if not self.available:
            logger.info("Cache store ready")
        self.available = True
        self.last_error = None

    def on_error(self, exc: BaseException) -> None:
        if self.available:
            logger.warning("Cache store degraded, bypassing cache: %s", exc)
        self.available = False
        self.last_error = str(exc) or exc.__class__.__name__


@dataclass(slots=True)
class CacheService:
    """Cache-aside wrapper around async fetch functions.

    Fails open: when the store is missing, not ready or erroring, callers get
    `fetcher()` directly. Only errors raised by the fetcher itself propagate.
    Concurrent misses on the same key each run the fetcher; TTL jitter is the
    only mitigation for synchronized expiry.
    """

    store: ICacheStore | None = None
    max_value_bytes: int = DEFAULT_MAX_VALUE_BYTES
    health: CacheHealth = field(default_factory=CacheHealth)
    rng: random.Random = field(default_factory=random.Random, repr=False)
    _started: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.store is not None:
            self.store.subscribe(
                on_error=self.health.on_error, on_ready=self.health.on_ready
            )

    @property
    def is_available(self) -> bool:
        return self.store is not None and self.health.available

    async def start(self) -> bool:
        """Connect the store; a failure only leaves the tier degraded."""

        if self.store is None:
            return False
        self._started = True
        try:
            return await self.store.connect()
        except CacheStoreError as exc:
            self.health.on_error(exc)
            return False

    async def _ready(self) -> bool:
        if self.store is None:
            return False
        if not self._started:
            # Lazy first connection; later recoveries come from the store's
            # own reconnect callbacks.
            await self.start()
        return self.health.available

    async def aclose(self, *, timeout_s: float = 5.0) -> None:
        if self.store is not None:
            await self.store.aclose(timeout_s=timeout_s)

    async def get_cached(
        self,
        key: str,
        fetcher: Fetcher[T],
        ttl_s: float,
        *,
        value_type: Any = None,
    ) -> T:
        store = self.store
        if store is None or not await self._ready():
            return await fetcher()

        adapter = _adapter(value_type if value_type is not None else Any)

        try:
            raw = await store.get(key)
        except CacheStoreError as exc:
            logger.error("Cache read failed for %s: %s", key, exc)
            return await fetcher()

        if raw is not None:
            try:
                value = adapter.validate_json(raw)
                logger.debug("Cache hit: %s", key)
                return value
            except ValidationError as exc:
                logger.error("Evicting unreadable cache entry %s: %s", key, exc)
                await self._evict(key)

        logger.debug("Cache miss: %s", key)
        data = await fetcher()

        if self.health.available:
            await self._write(key, data, ttl_s, adapter)
        return data

    async def get_cached_with_jitter(
        self,
        key: str,
        fetcher: Fetcher[T],
        ttl_s: float,
        jitter_percent: float = 10.0,
        *,
        value_type: Any = None,
    ) -> T:
        return await self.get_cached(
            key,
            fetcher,
            self.jittered_ttl(ttl_s, jitter_percent),
            value_type=value_type,
        )

    def jittered_ttl(self, ttl_s: float, jitter_percent: float) -> float:
        jitter = ttl_s * (jitter_percent / 100.0) * self.rng.uniform(-1.0, 1.0)
        return max(MIN_TTL_S, ttl_s + jitter)

    async def get_cached_batch(
        self, keys: Iterable[str], *, value_type: Any = None
    ) -> dict[str, Any]:
        keys = list(keys)
        store = self.store
        if not keys or store is None or not await self._ready():
            return {}

        try:
            raws = await store.get_many(keys)
        except CacheStoreError as exc:
            logger.error("Cache batch read failed (%d keys): %s", len(keys), exc)
            return {}

        adapter = _adapter(value_type if value_type is not None else Any)
        out: dict[str, Any] = {}
        for key, raw in zip(keys, raws):
            if raw is None:
                continue
            try:
                out[key] = adapter.validate_json(raw)
            except ValidationError as exc:
                logger.error("Skipping unreadable cache entry %s: %s", key, exc)
        logger.debug("Cache batch: %d/%d hits", len(out), len(keys))
        return out

    async def delete_cached(self, key: str) -> None:
        if not await self._ready():
            return
        try:
            await self.store.delete(key)  # type: ignore[union-attr]
            logger.debug("Deleted cache key %s", key)
        except CacheStoreError as exc:
            logger.error("Error deleting cache key %s: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching a glob, batch by batch. Returns keys deleted."""

        store = self.store
        if store is None or not await self._ready():
            return 0

        deleted = 0
        try:
            async for batch in store.scan(pattern, batch_size=DELETE_BATCH_SIZE):
                if not batch:
                    continue
                try:
                    deleted += await store.delete(*batch)
                except CacheStoreError as exc:
                    logger.error("Error deleting batch for %s: %s", pattern, exc)
        except CacheStoreError as exc:
            logger.error("Error scanning pattern %s: %s", pattern, exc)

        logger.info("Deleted %d keys matching %s", deleted, pattern)
        return deleted

    async def _write(
        self, key: str, data: Any, ttl_s: float, adapter: TypeAdapter[Any]
    ) -> None:
        try:
            payload = adapter.dump_json(data)
        except Exception as exc:  # pydantic raises several serializer errors
            logger.error("Failed to serialize value for %s: %s", key, exc)
            return

        if len(payload) > self.max_value_bytes:
            logger.warning(
                "Value too large to cache (%d bytes): %s", len(payload), key
            )
            return

        try:
            await self.store.set(key, payload, ttl_s=ttl_s)  # type: ignore[union-attr]
        except CacheStoreError as exc:
            logger.error("Cache write failed for %s: %s", key, exc)

    async def _evict(self, key: str) -> None:
        try:
            await self.store.delete(key)  # type: ignore[union-attr]
        except CacheStoreError as exc:
            logger.error("Error evicting cache key %s: %s", key, exc)
