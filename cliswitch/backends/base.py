"""Abstract backend contracts and the shared in-memory session catalogue.

A backend is a pair of services:

- ``CLIModels``: model resolution, listing and the default model.
- ``CLISessions``: session create/get/delete/enumerate, working
  directory lookup, and an ``on_did_change_sessions`` event.

Sessions handed out by a backend are wrapped in ``Reference`` objects.
Each reference holds one count on the live session; releasing the last
count disposes the session but keeps it listed, so ``get_session`` can
revive it later. ``delete_session`` removes it for good.
"""
from __future__ import annotations

import abc
import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from ..config import ConfigKey, ConfigurationService
from ..errors import BackendDisposedError, ModelNotFoundError
from ..models import (
    CLISession,
    ModelInfo,
    SessionDescriptor,
    SessionItem,
    SessionOptions,
    SessionStatus,
)
from ..shared.cancellation import NONE, CancellationToken
from ..shared.events import Emitter, Event
from ..shared.lifecycle import Disposable, Reference, to_disposable
from ..shared.state import StateStore
from .model_registry import ModelRegistry

logger = logging.getLogger(__name__)

SessionFilter = Callable[[str], "bool | None"]


class CLIModels(abc.ABC):
    """Model capability set of a backend."""

    @abc.abstractmethod
    async def resolve_model(self, model_id: str) -> str | None:
        """Map a user-facing model name to a canonical id, or None."""

    @abc.abstractmethod
    async def get_default_model(self) -> str | None:
        """Return the model new sessions use when none is given."""

    @abc.abstractmethod
    async def set_default_model(self, model_id: str | None) -> None:
        """Persist (or with None clear) the default model."""

    @abc.abstractmethod
    async def get_models(self) -> list[ModelInfo]:
        """Return every model this backend can run."""


class RegistryModels(CLIModels):
    """``CLIModels`` backed by a ``ModelRegistry`` and a ``StateStore``."""

    backend_name = "base"
    default_model_key = "base.defaultModel"

    def __init__(self, state: StateStore | None = None) -> None:
        self._state = state if state is not None else StateStore()
        self._registry = self._build_registry()

    @abc.abstractmethod
    def _build_registry(self) -> ModelRegistry:
        """Return this backend's model catalogue."""

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    async def get_default_model(self) -> str | None:
        stored = self._state.get(self.default_model_key)
        if stored and self._registry.get(stored) is not None:
            return stored
        models = self._registry.list_models()
        return models[0].id if models else None

    async def set_default_model(self, model_id: str | None) -> None:
        if model_id is None:
            self._state.update(self.default_model_key, None)
            logger.info("[%s] Default model cleared", self.backend_name)
            return
        resolved = await self.resolve_model(model_id)
        if resolved is None:
            raise ModelNotFoundError(
                model_id,
                self.backend_name,
                [m.id for m in self._registry.list_models()],
            )
        self._state.update(self.default_model_key, resolved)
        logger.info("[%s] Default model set to %s", self.backend_name, resolved)

    async def get_models(self) -> list[ModelInfo]:
        return self._registry.list_models()


class CLISessions(abc.ABC):
    """Session capability set shared by backends and the delegating facade."""

    @property
    @abc.abstractmethod
    def on_did_change_sessions(self) -> Event[None]:
        """Fires whenever the set of sessions changes."""

    @abc.abstractmethod
    async def create_session(
        self,
        options: SessionOptions,
        token: CancellationToken = NONE,
    ) -> Reference[CLISession]:
        """Start a session and return a handle holding one reference."""

    @abc.abstractmethod
    async def get_session(
        self,
        session_id: str,
        options: SessionOptions,
        token: CancellationToken = NONE,
    ) -> Reference[CLISession] | None:
        """Return a handle to a known session, or None."""

    @abc.abstractmethod
    async def delete_session(self, session_id: str) -> None:
        """Forget a session; unknown ids are ignored."""

    @abc.abstractmethod
    async def get_all_sessions(
        self,
        filter: SessionFilter,
        token: CancellationToken = NONE,
    ) -> list[SessionItem]:
        """List sessions whose id passes ``filter``."""

    @abc.abstractmethod
    async def get_session_working_directory(
        self,
        session_id: str,
        token: CancellationToken = NONE,
    ) -> Path | None:
        """Return the directory a session runs in, or None."""

    @abc.abstractmethod
    def dispose(self) -> None:
        """Release every resource held by the service."""


class _LiveSession:
    __slots__ = ("session", "refs")

    def __init__(self, session: CLISession) -> None:
        self.session = session
        self.refs = 0


class CLISessionService(Disposable, CLISessions):
    """In-memory session catalogue shared by both backends."""

    name = "base"

    def __init__(
        self,
        configuration: ConfigurationService,
        state: StateStore | None = None,
    ) -> None:
        super().__init__()
        self._configuration = configuration
        self._models = self._create_models(
            state if state is not None else StateStore()
        )
        self._descriptors: dict[str, SessionDescriptor] = {}
        self._items: dict[str, SessionItem] = {}
        self._live: dict[str, _LiveSession] = {}
        self._on_did_change_sessions = self._register(
            Emitter[None](f"{self.name}.sessions")
        )
        self._register(to_disposable(self._dispose_live_sessions))

    @abc.abstractmethod
    def _create_models(self, state: StateStore) -> CLIModels:
        """Return the models service used to resolve session models."""

    @property
    def on_did_change_sessions(self) -> Event[None]:
        return self._on_did_change_sessions.event

    @property
    def live_session_count(self) -> int:
        return len(self._live)

    # ── Operations ─────────────────────────────────────────────

    async def create_session(
        self,
        options: SessionOptions,
        token: CancellationToken = NONE,
    ) -> Reference[CLISession]:
        self._check("create session", token)
        session_id = str(uuid.uuid4())
        model = await self._resolve_session_model(options.model)
        descriptor = SessionDescriptor(
            id=session_id,
            working_directory=self._working_directory_for(session_id, options),
            readonly=options.readonly,
            model=model,
            agent=options.agent,
            isolation_enabled=options.isolation_enabled,
        )
        self._descriptors[session_id] = descriptor
        self._items[session_id] = SessionItem(
            id=session_id,
            label=self._label_for(descriptor),
            working_directory=descriptor.working_directory,
            model=model,
        )
        ref = self._activate(descriptor)
        logger.info(
            "[%s] Created session %s (model=%s, cwd=%s)",
            self.name, session_id, model, descriptor.working_directory,
        )
        self._on_did_change_sessions.fire(None)
        return ref

    async def get_session(
        self,
        session_id: str,
        options: SessionOptions,
        token: CancellationToken = NONE,
    ) -> Reference[CLISession] | None:
        self._check("get session", token)
        entry = self._live.get(session_id)
        if entry is not None:
            return self._acquire(entry)
        descriptor = self._descriptors.get(session_id)
        if descriptor is None:
            logger.debug("[%s] Session %s not found", self.name, session_id)
            return None
        logger.debug("[%s] Reviving session %s", self.name, session_id)
        return self._activate(replace(descriptor, readonly=options.readonly))

    async def delete_session(self, session_id: str) -> None:
        self._check("delete session")
        item = self._items.pop(session_id, None)
        self._descriptors.pop(session_id, None)
        entry = self._live.pop(session_id, None)
        if entry is not None:
            self._dispose_session(entry.session)
        if item is None and entry is None:
            logger.debug(
                "[%s] Delete ignored; session %s not found",
                self.name, session_id,
            )
            return
        logger.info("[%s] Deleted session %s", self.name, session_id)
        self._on_did_change_sessions.fire(None)

    async def get_all_sessions(
        self,
        filter: SessionFilter,
        token: CancellationToken = NONE,
    ) -> list[SessionItem]:
        self._check("list sessions", token)
        items = [item for item in self._items.values() if filter(item.id)]
        items.sort(key=lambda item: item.created_at, reverse=True)
        return items

    async def get_session_working_directory(
        self,
        session_id: str,
        token: CancellationToken = NONE,
    ) -> Path | None:
        self._check("get session working directory", token)
        descriptor = self._descriptors.get(session_id)
        if descriptor is None:
            return None
        return descriptor.working_directory

    # ── Internals ──────────────────────────────────────────────

    def _check(self, operation: str, token: CancellationToken = NONE) -> None:
        if self.is_disposed:
            raise BackendDisposedError(self.name, operation)
        token.raise_if_cancelled(operation)

    async def _resolve_session_model(self, model: str | None) -> str | None:
        if model is None:
            return await self._models.get_default_model()
        resolved = await self._models.resolve_model(model)
        if resolved is None:
            logger.warning(
                "[%s] Model '%s' not in catalogue; using it as-is",
                self.name, model,
            )
            return model
        return resolved

    def _working_directory_for(
        self, session_id: str, options: SessionOptions,
    ) -> Path | None:
        base = options.working_directory
        if base is None:
            configured = self._configuration.get_config(
                ConfigKey.DEFAULT_WORKING_DIRECTORY
            )
            base = Path(configured).expanduser() if configured else None
        if base is not None and options.isolation_enabled:
            return base / ".worktrees" / session_id
        return base

    def _label_for(self, descriptor: SessionDescriptor) -> str:
        if descriptor.agent is not None:
            agent_name = descriptor.agent.display_name or descriptor.agent.name
            return f"{agent_name} session"
        return "Untitled session"

    def _activate(self, descriptor: SessionDescriptor) -> Reference[CLISession]:
        session = CLISession(descriptor, self.name)
        session.transition(SessionStatus.ACTIVE)
        entry = _LiveSession(session)
        self._live[descriptor.id] = entry
        return self._acquire(entry)

    def _acquire(self, entry: _LiveSession) -> Reference[CLISession]:
        entry.refs += 1
        return Reference(entry.session, lambda: self._release(entry))

    def _release(self, entry: _LiveSession) -> None:
        entry.refs -= 1
        if entry.refs > 0:
            return
        if self._live.get(entry.session.session_id) is entry:
            del self._live[entry.session.session_id]
        self._dispose_session(entry.session)

    def _dispose_session(self, session: CLISession) -> None:
        if session.status is SessionStatus.DISPOSED:
            return
        session.transition(SessionStatus.DISPOSED)
        logger.debug("[%s] Session %s disposed", self.name, session.session_id)

    def _dispose_live_sessions(self) -> None:
        entries, self._live = list(self._live.values()), {}
        for entry in entries:
            self._dispose_session(entry.session)
        logger.info("[%s] Session service disposed", self.name)
