"""Tests for DelegatingSessionService: per-call routing, merged change
events and disposal of both backends."""
from __future__ import annotations

import logging

import pytest

from cliswitch.backends import CLISessions, LegacySessionService, SdkSessionService
from cliswitch.config import ConfigKey, ConfigurationService
from cliswitch.delegating import DelegatingSessionService, SdkSelector
from cliswitch.errors import CancellationError, ConfigError
from cliswitch.models import SessionOptions, SessionStatus
from cliswitch.shared.cancellation import NONE, CancellationTokenSource
from cliswitch.shared.instantiation import InstantiationService, ServiceCollection
from cliswitch.shared.state import StateStore


class CountingSelector(SdkSelector):
    def __init__(self, configuration) -> None:
        super().__init__(configuration)
        self.calls = 0

    async def resolve(self) -> bool:
        self.calls += 1
        return await super().resolve()


class CountingLegacy(LegacySessionService):
    def __init__(self, configuration, state=None) -> None:
        super().__init__(configuration, state)
        self.dispose_calls = 0
        self.tokens: list = []

    def dispose(self) -> None:
        self.dispose_calls += 1
        super().dispose()

    async def get_all_sessions(self, filter, token=NONE):
        self.tokens.append(token)
        return await super().get_all_sessions(filter, token)


class CountingSdk(SdkSessionService):
    def __init__(self, configuration, state=None) -> None:
        super().__init__(configuration, state)
        self.dispose_calls = 0

    def dispose(self) -> None:
        self.dispose_calls += 1
        super().dispose()


class CountingFacade(DelegatingSessionService):
    legacy_service_class = CountingLegacy
    sdk_service_class = CountingSdk


def _make(new_sdk: bool = False, facade_cls=CountingFacade, environ=None):
    configuration = ConfigurationService(
        {ConfigKey.NEW_SDK_ENABLED.id: new_sdk}, environ=environ or {},
    )
    services = ServiceCollection({
        "configuration": configuration,
        "state": StateStore(),
    })
    instantiation = InstantiationService(services)
    selector = CountingSelector(configuration)
    services.set("sdk_selector", selector)
    facade = instantiation.create_instance(facade_cls)
    return facade, configuration, selector


def _flip(configuration: ConfigurationService, new_sdk: bool) -> None:
    configuration.update(ConfigKey.NEW_SDK_ENABLED, new_sdk)


def _all(_: str) -> bool:
    return True


# ── Routing ──


@pytest.mark.asyncio
async def test_create_then_get_with_constant_flag_returns_same_session():
    facade, _, _ = _make()

    created = await facade.create_session(SessionOptions())
    fetched = await facade.get_session(created.object.session_id, SessionOptions())

    assert fetched is not None
    assert fetched.object is created.object
    assert created.object.backend == "legacy"


@pytest.mark.asyncio
async def test_flag_flip_hides_sessions_of_the_other_backend():
    facade, configuration, _ = _make()
    created = await facade.create_session(SessionOptions(model="gpt"))
    sid = created.object.session_id

    _flip(configuration, True)

    assert await facade.get_session(sid, SessionOptions()) is None
    assert await facade.get_session_working_directory(sid) is None
    assert await facade.get_all_sessions(_all) == []


@pytest.mark.asyncio
async def test_example_scenario():
    facade, configuration, _ = _make(new_sdk=False)

    h1 = await facade.create_session(SessionOptions(model="gpt"))
    assert h1.object.backend == "legacy"
    assert h1.object.model == "gpt-5"

    _flip(configuration, True)
    assert await facade.get_session(h1.object.session_id, SessionOptions()) is None
    assert await facade.get_all_sessions(lambda _: True) == []

    h2 = await facade.create_session(SessionOptions())
    items = await facade.get_all_sessions(lambda _: True)
    assert h2.object.backend == "sdk"
    assert [i.id for i in items] == [h2.object.session_id]


@pytest.mark.asyncio
async def test_get_all_sessions_never_merges_backends():
    facade, configuration, _ = _make()
    await facade.create_session(SessionOptions())
    await facade.create_session(SessionOptions())
    _flip(configuration, True)
    await facade.create_session(SessionOptions())

    sdk_items = await facade.get_all_sessions(_all)
    _flip(configuration, False)
    legacy_items = await facade.get_all_sessions(_all)

    assert len(sdk_items) == 1
    assert len(legacy_items) == 2
    assert legacy_items == await facade._legacy_service.get_all_sessions(_all)


@pytest.mark.asyncio
async def test_delete_routes_to_selected_backend_only():
    facade, configuration, _ = _make()
    created = await facade.create_session(SessionOptions())
    sid = created.object.session_id

    _flip(configuration, True)
    await facade.delete_session(sid)  # asks the sdk backend: no-op
    _flip(configuration, False)

    assert [i.id for i in await facade.get_all_sessions(_all)] == [sid]
    await facade.delete_session(sid)
    assert await facade.get_all_sessions(_all) == []
    assert created.object.status is SessionStatus.DISPOSED


@pytest.mark.asyncio
async def test_working_directory_is_routed(tmp_path):
    facade, configuration, _ = _make()
    created = await facade.create_session(SessionOptions(working_directory=tmp_path))
    sid = created.object.session_id

    assert await facade.get_session_working_directory(sid) == tmp_path
    _flip(configuration, True)
    assert await facade.get_session_working_directory(sid) is None


@pytest.mark.asyncio
async def test_every_call_reads_the_flag_and_create_reads_it_once():
    facade, _, selector = _make()

    await facade.create_session(SessionOptions())
    assert selector.calls == 1

    await facade.get_all_sessions(_all)
    await facade.get_session("x", SessionOptions())
    await facade.get_session_working_directory("x")
    await facade.delete_session("x")
    assert selector.calls == 5


@pytest.mark.asyncio
async def test_create_session_traces_selected_backend(caplog):
    facade, configuration, _ = _make()
    logger_name = "cliswitch.delegating.sessions"

    with caplog.at_level(logging.DEBUG, logger=logger_name):
        await facade.create_session(SessionOptions())
        _flip(configuration, True)
        await facade.create_session(SessionOptions())

    messages = [r.getMessage() for r in caplog.records if r.name == logger_name]
    assert messages == [
        "[DelegatingSessionService] Creating session with old SDK",
        "[DelegatingSessionService] Creating session with new SDK",
    ]


@pytest.mark.asyncio
async def test_token_is_passed_through_unchanged():
    facade, _, _ = _make()
    source = CancellationTokenSource()

    await facade.get_all_sessions(_all, source.token)

    assert facade._legacy_service.tokens == [source.token]


@pytest.mark.asyncio
async def test_backend_errors_propagate_unchanged():
    facade, configuration, _ = _make()
    source = CancellationTokenSource()
    source.cancel()

    with pytest.raises(CancellationError):
        await facade.create_session(SessionOptions(), source.token)

    error = RuntimeError("backend exploded")

    async def fail(*args, **kwargs):
        raise error

    _flip(configuration, True)
    facade._sdk_service.get_all_sessions = fail
    with pytest.raises(RuntimeError) as exc_info:
        await facade.get_all_sessions(_all)
    assert exc_info.value is error

    # No fallback to the other backend
    _flip(configuration, False)
    assert await facade.get_all_sessions(_all) == []


@pytest.mark.asyncio
async def test_flag_errors_reach_the_caller():
    facade, _, _ = _make(environ={"CLISWITCH_NEW_SDK_ENABLED": "maybe"})

    with pytest.raises(ConfigError, match="cli.newSdk.enabled"):
        await facade.get_all_sessions(_all)
    with pytest.raises(ConfigError):
        await facade.create_session(SessionOptions())
    with pytest.raises(ConfigError):
        await facade.get_session_working_directory("s-1")

    assert facade._legacy_service.tokens == []
    assert facade._legacy_service.live_session_count == 0
    assert facade._sdk_service.live_session_count == 0


@pytest.mark.asyncio
async def test_handle_is_released_by_the_backend_that_made_it():
    facade, configuration, selector = _make(new_sdk=False)
    ref = await facade.create_session(SessionOptions())
    assert facade._legacy_service.live_session_count == 1

    _flip(configuration, True)
    calls_before = selector.calls
    ref.dispose()

    assert ref.object.status is SessionStatus.DISPOSED
    assert ref.object.backend == "legacy"
    assert facade._legacy_service.live_session_count == 0
    assert facade._sdk_service.live_session_count == 0
    assert facade._sdk_service._items == {}
    assert facade._sdk_service.dispose_calls == 0
    # Releasing a handle does not consult the flag
    assert selector.calls == calls_before


# ── Change events ──


@pytest.mark.asyncio
async def test_events_from_both_backends_are_forwarded():
    facade, configuration, _ = _make()
    changes: list[None] = []
    facade.on_did_change_sessions(changes.append)

    await facade.create_session(SessionOptions())
    _flip(configuration, True)
    await facade.create_session(SessionOptions())

    assert len(changes) == 2


@pytest.mark.asyncio
async def test_unselected_backend_events_still_delivered():
    facade, configuration, _ = _make()
    created = await facade.create_session(SessionOptions())
    changes: list[None] = []
    facade.on_did_change_sessions(changes.append)

    _flip(configuration, True)
    await facade._legacy_service.delete_session(created.object.session_id)

    assert changes == [None]


@pytest.mark.asyncio
async def test_listener_unsubscribe_is_independent():
    facade, _, _ = _make()
    first: list[None] = []
    second: list[None] = []
    sub = facade.on_did_change_sessions(first.append)
    facade.on_did_change_sessions(second.append)

    sub.dispose()
    await facade.create_session(SessionOptions())

    assert first == []
    assert second == [None]
    assert facade._legacy_service._on_did_change_sessions.listener_count == 1
    assert facade._sdk_service._on_did_change_sessions.listener_count == 1


# ── Disposal ──


@pytest.mark.asyncio
async def test_dispose_disposes_both_backends_exactly_once():
    facade, _, _ = _make()
    created = await facade.create_session(SessionOptions())
    legacy, sdk = facade._legacy_service, facade._sdk_service

    facade.dispose()
    facade.dispose()

    assert legacy.dispose_calls == 1
    assert sdk.dispose_calls == 1
    assert legacy.is_disposed and sdk.is_disposed
    assert facade.is_disposed
    assert created.object.status is SessionStatus.DISPOSED


@pytest.mark.asyncio
async def test_dispose_never_selected_backend_too():
    facade, _, selector = _make()

    facade.dispose()

    assert selector.calls == 0
    assert facade._sdk_service.dispose_calls == 1


def test_dispose_stops_forwarding():
    facade, _, _ = _make()
    changes: list[None] = []
    facade.on_did_change_sessions(changes.append)
    legacy_emitter = facade._legacy_service._on_did_change_sessions

    facade.dispose()
    legacy_emitter.fire(None)

    assert changes == []
    assert legacy_emitter.listener_count == 0


def test_default_backends_are_constructed():
    facade, _, _ = _make(facade_cls=DelegatingSessionService)

    assert isinstance(facade._legacy_service, LegacySessionService)
    assert isinstance(facade._sdk_service, SdkSessionService)
    facade.dispose()


def test_facade_and_backends_share_the_session_contract():
    facade, _, _ = _make(facade_cls=DelegatingSessionService)

    assert isinstance(facade, CLISessions)
    assert isinstance(facade._legacy_service, CLISessions)
    assert isinstance(facade._sdk_service, CLISessions)
    assert DelegatingSessionService.__abstractmethods__ == frozenset()
    facade.dispose()
