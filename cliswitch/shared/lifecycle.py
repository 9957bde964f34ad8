"""Disposables, disposal groups and reference-counted handles.

Every long-lived object in cliswitch (backends, emitters, event
subscriptions) is released through ``dispose()``. Owners collect the
things they are responsible for in a ``DisposableStore`` and release
them together.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
D = TypeVar("D", bound="SupportsDispose")


class SupportsDispose(Protocol):
    def dispose(self) -> None: ...


class _CallbackDisposable:
    """Runs a callback the first time it is disposed."""

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback: Callable[[], None] | None = callback

    def dispose(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


def to_disposable(callback: Callable[[], None]) -> SupportsDispose:
    """Wrap a callback so it runs at most once on dispose()."""
    return _CallbackDisposable(callback)


class DisposableStore:
    """A disposal group: everything added is disposed together, once."""

    def __init__(self) -> None:
        self._items: list[SupportsDispose] = []
        self._disposed = False

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def add(self, item: D) -> D:
        if self._disposed:
            # Adding to a dead store would leak; release immediately.
            logger.warning(
                "Adding %s to an already disposed store; disposing it now",
                type(item).__name__,
            )
            item.dispose()
            return item
        self._items.append(item)
        return item

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        items, self._items = self._items, []
        for item in items:
            try:
                item.dispose()
            except Exception as exc:
                logger.error(
                    "Error disposing %s: %s", type(item).__name__, exc,
                )

    def __len__(self) -> int:
        return len(self._items)


class Disposable:
    """Base class for objects owning a disposal group."""

    def __init__(self) -> None:
        self._store = DisposableStore()

    def _register(self, item: D) -> D:
        return self._store.add(item)

    @property
    def is_disposed(self) -> bool:
        return self._store.is_disposed

    def dispose(self) -> None:
        self._store.dispose()


class Reference(Generic[T]):
    """A counted handle on a shared object.

    ``release`` is invoked exactly once, on the first ``dispose()``.
    The backend that issued the reference supplies ``release``, so a
    handle always goes back to the backend it came from.
    """

    def __init__(self, obj: T, release: Callable[[], None]) -> None:
        self._object = obj
        self._release: Callable[[], None] | None = release

    @property
    def object(self) -> T:
        return self._object

    @property
    def is_released(self) -> bool:
        return self._release is None

    def dispose(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self) -> T:
        return self._object

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()
