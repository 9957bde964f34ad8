"""Wires configuration, backends and the delegating facade together."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import ConfigKey, ConfigurationService
from .delegating import DelegatingModels, DelegatingSessionService, SdkSelector
from .shared.instantiation import InstantiationService, ServiceCollection
from .shared.state import StateStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """The facade and the collaborators it was built from."""
    configuration: ConfigurationService
    state: StateStore
    instantiation: InstantiationService
    selector: SdkSelector
    models: DelegatingModels
    sessions: DelegatingSessionService

    def dispose(self) -> None:
        self.sessions.dispose()
        self.configuration.dispose()


def create_services(
    configuration: ConfigurationService | None = None,
    state: StateStore | None = None,
) -> Services:
    """Build the delegating services.

    Without arguments, settings come from ``ConfigurationService.load()``
    and state from ``cli.statePath`` (in memory when unset).
    """
    if configuration is None:
        configuration = ConfigurationService.load()
    if state is None:
        state = StateStore(configuration.get_config(ConfigKey.STATE_PATH))

    collection = ServiceCollection({
        "configuration": configuration,
        "state": state,
    })
    instantiation = InstantiationService(collection)
    selector = instantiation.create_instance(SdkSelector)
    collection.set("sdk_selector", selector)

    models = instantiation.create_instance(DelegatingModels)
    sessions = instantiation.create_instance(DelegatingSessionService)
    logger.debug(
        "Services created (services: %s)", ", ".join(collection.list_names()),
    )
    return Services(
        configuration=configuration,
        state=state,
        instantiation=instantiation,
        selector=selector,
        models=models,
        sessions=sessions,
    )
