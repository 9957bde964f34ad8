"""Service locator and constructor injection.

Services are registered by name. ``create_instance`` builds an object
by matching its constructor parameter names against registered
services, so backends can be constructed without the caller knowing
their dependencies.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceCollection:
    """Named registry of service instances."""

    def __init__(self, services: dict[str, Any] | None = None) -> None:
        self._services: dict[str, Any] = dict(services or {})

    def set(self, name: str, instance: Any) -> None:
        self._services[name] = instance

    def has(self, name: str) -> bool:
        return name in self._services

    def get(self, name: str) -> Any:
        """Get a service by name, raising KeyError if not registered."""
        if name not in self._services:
            available = ", ".join(sorted(self._services))
            raise KeyError(
                f"Service '{name}' not registered. "
                f"Available: {available or 'none'}"
            )
        return self._services[name]

    def list_names(self) -> list[str]:
        return list(self._services.keys())


class InstantiationService:
    """Creates objects whose constructor arguments come from services."""

    def __init__(self, services: ServiceCollection) -> None:
        self._services = services
        services.set("instantiation_service", self)

    @property
    def services(self) -> ServiceCollection:
        return self._services

    def create_instance(self, cls: type[T], *args: Any, **kwargs: Any) -> T:
        """Construct ``cls``, filling remaining parameters from services.

        Explicit ``args``/``kwargs`` win. Parameters with defaults that
        are not registered as services keep their defaults; anything
        else missing raises KeyError.
        """
        signature = inspect.signature(cls)
        params = list(signature.parameters.values())
        for param in params[len(args):]:
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            if param.name in kwargs:
                continue
            if self._services.has(param.name):
                kwargs[param.name] = self._services.get(param.name)
            elif param.default is param.empty:
                raise KeyError(
                    f"Cannot create {cls.__name__}: no service registered "
                    f"for parameter '{param.name}'"
                )
        logger.debug(
            "Creating %s with services: %s",
            cls.__name__, ", ".join(sorted(kwargs)) or "none",
        )
        return cls(*args, **kwargs)
