"""Session service that forwards each call to the selected backend.

Both backends live for as long as this service does. Their change
events are merged into one ``on_did_change_sessions`` stream for the
whole lifetime, independent of which backend is currently selected,
while queries only ever go to the selected one. A session created
under one flag value is therefore invisible to ``get_session`` after
the flag flips; there is no cross-backend lookup.
"""
from __future__ import annotations

import logging
from pathlib import Path

from ..backends.base import CLISessions, CLISessionService, SessionFilter
from ..backends.legacy import LegacySessionService
from ..backends.sdk import SdkSessionService
from ..models import CLISession, SessionItem, SessionOptions
from ..shared.cancellation import NONE, CancellationToken
from ..shared.events import Emitter, Event
from ..shared.instantiation import InstantiationService
from ..shared.lifecycle import Disposable, Reference
from .selector import SdkSelector

logger = logging.getLogger(__name__)


class DelegatingSessionService(Disposable, CLISessions):
    """Delegates to LegacySessionService or SdkSessionService per call."""

    legacy_service_class: type[CLISessionService] = LegacySessionService
    sdk_service_class: type[CLISessionService] = SdkSessionService

    def __init__(
        self,
        sdk_selector: SdkSelector,
        instantiation_service: InstantiationService,
    ) -> None:
        super().__init__()
        self._selector = sdk_selector

        self._on_did_change_sessions = self._register(
            Emitter[None]("delegating.sessions")
        )

        self._legacy_service = self._register(
            instantiation_service.create_instance(self.legacy_service_class)
        )
        self._sdk_service = self._register(
            instantiation_service.create_instance(self.sdk_service_class)
        )

        # Forward change events from both services
        self._register(self._legacy_service.on_did_change_sessions(
            lambda _: self._on_did_change_sessions.fire(None)
        ))
        self._register(self._sdk_service.on_did_change_sessions(
            lambda _: self._on_did_change_sessions.fire(None)
        ))

    @property
    def on_did_change_sessions(self) -> Event[None]:
        return self._on_did_change_sessions.event

    async def _get_service(self) -> CLISessionService:
        use_new_sdk = await self._selector.resolve()
        return self._sdk_service if use_new_sdk else self._legacy_service

    async def get_session_working_directory(
        self,
        session_id: str,
        token: CancellationToken = NONE,
    ) -> Path | None:
        service = await self._get_service()
        return await service.get_session_working_directory(session_id, token)

    async def get_all_sessions(
        self,
        filter: SessionFilter,
        token: CancellationToken = NONE,
    ) -> list[SessionItem]:
        service = await self._get_service()
        return await service.get_all_sessions(filter, token)

    async def delete_session(self, session_id: str) -> None:
        service = await self._get_service()
        await service.delete_session(session_id)

    async def get_session(
        self,
        session_id: str,
        options: SessionOptions,
        token: CancellationToken = NONE,
    ) -> Reference[CLISession] | None:
        service = await self._get_service()
        return await service.get_session(session_id, options, token)

    async def create_session(
        self,
        options: SessionOptions,
        token: CancellationToken = NONE,
    ) -> Reference[CLISession]:
        # One flag read for both the trace line and the routing.
        use_new_sdk = await self._selector.resolve()
        logger.debug(
            "[DelegatingSessionService] Creating session with %s SDK",
            "new" if use_new_sdk else "old",
        )
        if use_new_sdk:
            return await self._sdk_service.create_session(options, token)
        return await self._legacy_service.create_session(options, token)
