"""Cooperative cancellation tokens.

Callers create a ``CancellationTokenSource`` and hand its ``token`` to
an operation. The operation checks the token; it never cancels it.
"""
from __future__ import annotations

from ..errors import CancellationError
from .events import Emitter, Event, Listener
from .lifecycle import SupportsDispose, to_disposable


class CancellationToken:
    """Read-only view of a cancellation source."""

    def __init__(self, emitter: Emitter[None] | None = None) -> None:
        self._cancelled = False
        self._emitter = emitter

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled

    @property
    def on_cancellation_requested(self) -> Event[None]:
        if self._emitter is None:
            self._emitter = Emitter("cancellation")
        return self._emitter.event

    def raise_if_cancelled(self, operation: str) -> None:
        if self._cancelled:
            raise CancellationError(operation)

    def _cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._emitter is not None:
            self._emitter.fire(None)


class _NoneToken(CancellationToken):
    @property
    def on_cancellation_requested(self) -> Event[None]:
        return _never

    def _cancel(self) -> None:
        raise RuntimeError("The shared NONE token cannot be cancelled")


def _never(listener: Listener[None]) -> SupportsDispose:
    return to_disposable(lambda: None)


# Token for callers that never cancel.
NONE = _NoneToken()


class CancellationTokenSource:
    """Owns a token and the right to cancel it."""

    def __init__(self) -> None:
        self._token = CancellationToken(Emitter("cancellation"))

    @property
    def token(self) -> CancellationToken:
        return self._token

    def cancel(self) -> None:
        self._token._cancel()

    def dispose(self) -> None:
        if self._token._emitter is not None:
            self._token._emitter.dispose()
