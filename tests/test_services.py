"""Tests for create_services wiring and the package's lazy exports."""
from __future__ import annotations

import pytest

import cliswitch
from cliswitch.config import ConfigKey, ConfigurationService
from cliswitch.models import SessionOptions
from cliswitch.services import create_services


def test_lazy_exports():
    assert cliswitch.DelegatingSessionService is not None
    assert cliswitch.DelegatingModels is not None
    assert cliswitch.SdkSelector is not None
    assert cliswitch.create_services is create_services
    with pytest.raises(AttributeError):
        cliswitch.NotAThing  # noqa: B018


@pytest.mark.asyncio
async def test_create_services_routes_models_and_sessions_together():
    configuration = ConfigurationService(environ={})
    services = create_services(configuration)

    assert await services.selector.resolve() is False
    assert await services.models.resolve_model("gpt") == "gpt-5"
    ref = await services.sessions.create_session(SessionOptions(model="gpt"))
    assert ref.object.backend == "legacy"

    configuration.update(ConfigKey.NEW_SDK_ENABLED, True)
    assert await services.models.resolve_model("gpt") is None
    created = await services.sessions.create_session(SessionOptions())
    assert created.object.backend == "sdk"

    services.dispose()
    assert services.sessions.is_disposed
    assert configuration.is_disposed


@pytest.mark.asyncio
async def test_create_services_uses_configured_state_path(tmp_path):
    state_path = tmp_path / "state.json"
    configuration = ConfigurationService(
        {ConfigKey.STATE_PATH.id: str(state_path)}, environ={},
    )
    services = create_services(configuration)

    await services.models.set_default_model("gpt-5")

    assert state_path.exists()
    assert services.state.get("legacy.defaultModel") == "gpt-5"
    services.dispose()
