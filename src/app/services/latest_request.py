from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class LatestRequestGate:
    """Last-request-wins guard for overlapping async calls.

    Each `begin()` hands out a new ticket; only the most recent ticket is
    current, so results of older calls can be recognised and dropped.
    """

    _latest: int = 0

    def begin(self) -> int:
        self._latest += 1
        return self._latest

    def is_latest(self, ticket: int) -> bool:
        return ticket == self._latest
