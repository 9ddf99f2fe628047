from __future__ import annotations

import logging
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E")
Listener = Callable[[E], Any]


class EventBus(Generic[E]):
    """
    Synchroniczna szyna zdarzeń.

    - Słuchacze są wołani w kolejności rejestracji.
    - Wyjątek w jednym słuchaczu jest logowany i pomijany:
      nie przerywa pozostałych i nie wraca do publikującego.
    """

    def __init__(self, name: str = "events") -> None:
        self.name = name
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: E) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Error in %s listener while handling %s", self.name, type(event).__name__)

    def __len__(self) -> int:
        return len(self._listeners)
