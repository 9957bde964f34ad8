"""Synchronous event emitter with independent subscriptions.

An ``Emitter`` owns a set of listeners and exposes ``event``, a
callable that subscribes a listener and returns a disposable. Disposing
one subscription never affects the others.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

from .lifecycle import SupportsDispose, to_disposable

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]
Event = Callable[[Listener[T]], SupportsDispose]


class Emitter(Generic[T]):
    """Fan-out of values to any number of listeners."""

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._listeners: dict[int, Listener[T]] = {}
        self._next_id = 0
        self._disposed = False

    @property
    def event(self) -> Event[T]:
        return self._subscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _subscribe(self, listener: Listener[T]) -> SupportsDispose:
        if self._disposed:
            logger.debug("Listener added to disposed emitter %s", self._name)
            return to_disposable(lambda: None)
        token = self._next_id
        self._next_id += 1
        self._listeners[token] = listener
        return to_disposable(lambda: self._listeners.pop(token, None))

    def fire(self, value: T = None) -> None:  # type: ignore[assignment]
        """Deliver ``value`` to every listener subscribed right now."""
        if self._disposed:
            return
        # Snapshot: listeners may unsubscribe themselves while firing.
        for listener in list(self._listeners.values()):
            try:
                listener(value)
            except Exception as exc:
                logger.error(
                    "Listener error in emitter %s: %s", self._name or "?", exc,
                )

    def dispose(self) -> None:
        self._disposed = True
        self._listeners.clear()
