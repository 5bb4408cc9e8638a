from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, Callable, Sequence

ConnectionListener = Callable[[], None]
ErrorListener = Callable[[BaseException], None]


class ICacheStore(ABC):
    """Port for a networked key-value store holding serialized cache entries.

    Implementations raise `CacheStoreError` for any backend failure and report
    connection lifecycle changes to the subscribed listeners.
    """

    @abstractmethod
    def subscribe(self, *, on_error: ErrorListener, on_ready: ConnectionListener) -> None:
        """Register connection lifecycle callbacks."""

    @abstractmethod
    async def connect(self) -> bool:
        """Make sure the store is usable; return whether it is ready."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        raise NotImplementedError

    @abstractmethod
    async def get_many(self, keys: Sequence[str]) -> list[bytes | None]:
        """Read many keys in one round trip, preserving order."""

    @abstractmethod
    async def set(self, key: str, value: bytes, *, ttl_s: float) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def scan(self, pattern: str, *, batch_size: int = 100) -> AsyncIterator[list[str]]:
        """Yield batches of keys matching a glob pattern."""

    @abstractmethod
    async def aclose(self, *, timeout_s: float = 5.0) -> None:
        """Drain in-flight operations and disconnect."""
