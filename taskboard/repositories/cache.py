from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, TypeVar

from taskboard.ports.clock import Clock

T = TypeVar("T")


@dataclass
class _Entry(Generic[T]):
    value: T
    stored_at: datetime


class TtlCache(Generic[T]):
    """
    Cache per-id z czasem życia wpisu (TTL).

    - Wpis starszy niż TTL traktujemy jak brak i usuwamy przy odczycie.
    - Przechowujemy i oddajemy kopie, więc zmiana zwróconego obiektu nie psuje cache.
    - Wiek wpisu liczymy zegarem z portu Clock (w testach: FakeClock).
    """

    def __init__(self, ttl: timedelta, clock: Clock) -> None:
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[str, _Entry[T]] = {}

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock.now() - entry.stored_at > self.ttl:
            del self._entries[key]
            return None
        return copy.deepcopy(entry.value)

    def put(self, key: str, value: T) -> None:
        self._entries[key] = _Entry(copy.deepcopy(value), self.clock.now())

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        """Czy klucz jest w cache (bez sprawdzania TTL)."""
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
