from __future__ import annotations

import fnmatch
import time
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Sequence

from src.app.ports.output import ICacheStore
from src.app.ports.output.cache_store import ConnectionListener, ErrorListener


@dataclass(slots=True)
class InMemoryCacheStore(ICacheStore):
    """Per-process TTL map. Entries expire lazily on read or via `cleanup()`.

    Intended for local development and tests; it is always ready.
    """

    clock: Callable[[], float] = time.monotonic
    _entries: dict[str, tuple[bytes, float]] = field(default_factory=dict, init=False)
    _on_ready: list[ConnectionListener] = field(default_factory=list, init=False)

    def subscribe(self, *, on_error: ErrorListener, on_ready: ConnectionListener) -> None:
        self._on_ready.append(on_ready)

    async def connect(self) -> bool:
        for listener in self._on_ready:
            listener()
        return True

    def _live(self, key: str) -> bytes | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def expires_at(self, key: str) -> float | None:
        entry = self._entries.get(key)
        return entry[1] if entry else None

    async def get(self, key: str) -> bytes | None:
        return self._live(key)

    async def get_many(self, keys: Sequence[str]) -> list[bytes | None]:
        return [self._live(k) for k in keys]

    async def set(self, key: str, value: bytes, *, ttl_s: float) -> None:
        self._entries[key] = (bytes(value), self.clock() + float(ttl_s))

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._entries.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan(
        self, pattern: str, *, batch_size: int = 100
    ) -> AsyncIterator[list[str]]:
        matching = [k for k in list(self._entries) if fnmatch.fnmatchcase(k, pattern)]
        for i in range(0, len(matching), batch_size):
            yield matching[i : i + batch_size]

    def cleanup(self) -> int:
        now = self.clock()
        expired = [k for k, (_, exp) in self._entries.items() if now >= exp]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def size(self) -> int:
        """Number of entries, including expired ones not yet swept."""
        return len(self._entries)

    async def aclose(self, *, timeout_s: float = 5.0) -> None:
        self._entries.clear()
