"""Data types shared by backends and delegating services.

Session lifecycle:

    REQUESTED ──> ACTIVE ──> DISPOSED

A session is REQUESTED while its backend builds it, ACTIVE while at
least one reference is held, and DISPOSED once its backend released
it. DISPOSED is terminal; invalid transitions raise ValueError.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ModelInfo:
    """A model a backend can run sessions with."""
    id: str
    name: str
    provider: str = "copilot"
    description: str | None = None


@dataclass(frozen=True)
class CustomAgent:
    """A user-defined agent persona attached to a session."""
    name: str
    display_name: str | None = None
    description: str | None = None
    prompt: str | None = None
    tools: tuple[str, ...] = ()


@dataclass(frozen=True)
class SessionOptions:
    """Options for creating or opening a session."""
    model: str | None = None
    working_directory: Path | None = None
    isolation_enabled: bool = False
    readonly: bool = False
    agent: CustomAgent | None = None


@dataclass(frozen=True)
class SessionDescriptor:
    """Immutable facts about a session, fixed at creation."""
    id: str
    working_directory: Path | None
    readonly: bool = False
    model: str | None = None
    agent: CustomAgent | None = None
    isolation_enabled: bool = False


@dataclass(frozen=True)
class SessionItem:
    """A session as listed by ``get_all_sessions``."""
    id: str
    label: str
    working_directory: Path | None = None
    model: str | None = None
    created_at: datetime = field(default_factory=_utcnow)


class SessionStatus(str, Enum):
    REQUESTED = "requested"
    ACTIVE = "active"
    DISPOSED = "disposed"


VALID_TRANSITIONS: dict[SessionStatus, set[SessionStatus]] = {
    SessionStatus.REQUESTED: {SessionStatus.ACTIVE, SessionStatus.DISPOSED},
    SessionStatus.ACTIVE: {SessionStatus.DISPOSED},
    SessionStatus.DISPOSED: set(),
}


def validate_transition(current: SessionStatus, target: SessionStatus) -> None:
    """Validate a status transition. Raises ValueError if invalid."""
    allowed = VALID_TRANSITIONS.get(current, set())
    if target not in allowed:
        allowed_str = ", ".join(s.value for s in allowed) or "none (terminal)"
        raise ValueError(
            f"Invalid session transition: {current.value} -> {target.value}. "
            f"Allowed from {current.value}: {allowed_str}"
        )


class CLISession:
    """A live CLI agent session owned by exactly one backend."""

    def __init__(self, descriptor: SessionDescriptor, backend: str) -> None:
        self._descriptor = descriptor
        self._backend = backend
        self._status = SessionStatus.REQUESTED
        self.created_at = _utcnow()

    def __repr__(self) -> str:
        return (
            f"CLISession(id={self.session_id!r}, backend={self._backend!r}, "
            f"status={self._status.value})"
        )

    @property
    def descriptor(self) -> SessionDescriptor:
        return self._descriptor

    @property
    def session_id(self) -> str:
        return self._descriptor.id

    @property
    def backend(self) -> str:
        return self._backend

    @property
    def working_directory(self) -> Path | None:
        return self._descriptor.working_directory

    @property
    def model(self) -> str | None:
        return self._descriptor.model

    @property
    def readonly(self) -> bool:
        return self._descriptor.readonly

    @property
    def agent(self) -> CustomAgent | None:
        return self._descriptor.agent

    @property
    def status(self) -> SessionStatus:
        return self._status

    def transition(self, target: SessionStatus) -> None:
        validate_transition(self._status, target)
        self._status = target
