from __future__ import annotations

import asyncio
import logging
import os
import re
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Sequence
from urllib.parse import urlparse

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from src.app.ports.output import ICacheStore
from src.app.ports.output.cache_store import ConnectionListener, ErrorListener
from src.domain.exceptions import CacheStoreError

logger = logging.getLogger(__name__)

_CONNECTION_ERRORS = (
    RedisConnectionError,
    RedisTimeoutError,
    OSError,
    asyncio.TimeoutError,
)


def validate_redis_url(url: str) -> str:
    """Return the URL unchanged if it is a usable redis:// or rediss:// URL."""

    parsed = urlparse(url)
    if parsed.scheme not in {"redis", "rediss"}:
        raise ValueError(
            f"Invalid REDIS_URL protocol: {parsed.scheme or '(none)'}. "
            "Use redis:// or rediss://"
        )
    try:
        port = parsed.port or 6379
    except ValueError as exc:
        raise ValueError(f"Invalid REDIS_URL: {exc}") from exc
    if not 1 <= port <= 65535:
        raise ValueError(f"Invalid REDIS_URL port: {port}")
    return url


def redact_url(url: str) -> str:
    return re.sub(r":[^:@/]+@", ":****@", url)


@dataclass(slots=True)
class RedisCacheStore(ICacheStore):
    """Redis-backed cache store.

    The client is created lazily on first use and shared by every operation
    of this store. Connection failures are reported to subscribers and start
    a background reconnect loop that reports readiness once PING succeeds.

    Env vars:
      - REDIS_URL (default: redis://localhost:6379)
      - REDIS_COMMAND_TIMEOUT_S (default: 2.0)
    """

    url: str | None = None
    connect_timeout_s: float = 10.0
    command_timeout_s: float = 2.0
    max_reconnect_delay_s: float = 2.0

    _client: Any = field(default=None, init=False, repr=False)
    _on_error: list[ErrorListener] = field(default_factory=list, init=False, repr=False)
    _on_ready: list[ConnectionListener] = field(
        default_factory=list, init=False, repr=False
    )
    _reconnect_task: asyncio.Task[None] | None = field(
        default=None, init=False, repr=False
    )
    _in_flight: int = field(default=0, init=False, repr=False)
    _idle: asyncio.Event | None = field(default=None, init=False, repr=False)
    _closing: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.url is None:
            self.url = os.getenv("REDIS_URL", "redis://localhost:6379")
        validate_redis_url(self.url)
        if os.getenv("REDIS_COMMAND_TIMEOUT_S"):
            self.command_timeout_s = float(os.environ["REDIS_COMMAND_TIMEOUT_S"])

    def subscribe(self, *, on_error: ErrorListener, on_ready: ConnectionListener) -> None:
        self._on_error.append(on_error)
        self._on_ready.append(on_ready)

    def _get_client(self) -> Any:
        if self._client is None:
            logger.info("Connecting to Redis at %s", redact_url(str(self.url)))
            self._client = aioredis.from_url(
                str(self.url),
                socket_connect_timeout=self.connect_timeout_s,
                socket_timeout=self.command_timeout_s,
                retry_on_timeout=False,
                health_check_interval=30,
            )
        return self._client

    def _emit_error(self, exc: BaseException) -> None:
        for listener in self._on_error:
            listener(exc)
        if not self._closing and (
            self._reconnect_task is None or self._reconnect_task.done()
        ):
            self._reconnect_task = asyncio.get_running_loop().create_task(
                self._reconnect()
            )

    def _emit_ready(self) -> None:
        for listener in self._on_ready:
            listener()

    async def _ping(self, client: Any) -> None:
        # Bounded even when a server accepts the socket and never answers.
        await asyncio.wait_for(
            client.ping(), timeout=self.connect_timeout_s + self.command_timeout_s
        )

    async def _reconnect(self) -> None:
        attempt = 0
        while not self._closing:
            attempt += 1
            delay = min(attempt * 0.05, self.max_reconnect_delay_s)
            await asyncio.sleep(delay)
            try:
                await self._ping(self._get_client())
            except (RedisError, OSError, asyncio.TimeoutError) as exc:
                logger.debug("Redis reconnect attempt %d failed: %s", attempt, exc)
                continue
            logger.info("Redis reconnected after %d attempt(s)", attempt)
            self._emit_ready()
            return

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[Any]:
        if self._closing:
            raise CacheStoreError("Redis store is shutting down")
        if self._idle is None:
            self._idle = asyncio.Event()
        self._in_flight += 1
        self._idle.clear()
        try:
            yield self._get_client()
        except _CONNECTION_ERRORS as exc:
            logger.error("Redis connection error during %s: %s", name, exc)
            self._emit_error(exc)
            raise CacheStoreError(str(exc)) from exc
        except RedisError as exc:
            raise CacheStoreError(str(exc)) from exc
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

    async def connect(self) -> bool:
        try:
            async with self._operation("ping") as client:
                await self._ping(client)
        except CacheStoreError:
            return False
        self._emit_ready()
        return True

    async def get(self, key: str) -> bytes | None:
        async with self._operation("get") as client:
            return await client.get(key)

    async def get_many(self, keys: Sequence[str]) -> list[bytes | None]:
        if not keys:
            return []
        async with self._operation("mget") as client:
            return list(await client.mget(list(keys)))

    async def set(self, key: str, value: bytes, *, ttl_s: float) -> None:
        ttl_ms = max(1, int(round(float(ttl_s) * 1000)))
        async with self._operation("set") as client:
            await client.set(key, value, px=ttl_ms)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        async with self._operation("delete") as client:
            return int(await client.delete(*keys))

    async def scan(
        self, pattern: str, *, batch_size: int = 100
    ) -> AsyncIterator[list[str]]:
        batch: list[str] = []
        async with self._operation("scan") as client:
            async for key in client.scan_iter(match=pattern, count=batch_size):
                batch.append(key.decode() if isinstance(key, bytes) else str(key))
                if len(batch) >= batch_size:
                    yield batch
                    batch = []
        if batch:
            yield batch

    async def aclose(self, *, timeout_s: float = 5.0) -> None:
        """Drain in-flight operations, then disconnect.

        If draining plus the graceful close exceeds `timeout_s`, the pool is
        torn down without waiting for the server.
        """

        if self._client is None or self._closing:
            return

        self._closing = True
        client = self._client
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

        async def _graceful() -> None:
            if self._idle is not None and self._in_flight:
                await self._idle.wait()
            await client.aclose()

        try:
            await asyncio.wait_for(_graceful(), timeout=timeout_s)
            logger.info("Redis client disconnected gracefully")
        except (asyncio.TimeoutError, RedisError, OSError) as exc:
            logger.error("Error during Redis disconnect, forcing: %r", exc)
            await client.connection_pool.disconnect(inuse_connections=True)
        finally:
            self._client = None
            self._closing = False
