"""Decides, per call, whether the new SDK backend should serve a request."""
from __future__ import annotations

import logging

from ..config import ConfigKey, ConfigurationService

logger = logging.getLogger(__name__)


class SdkSelector:
    """Reads the new-SDK flag. Never caches: every call re-reads settings."""

    def __init__(self, configuration: ConfigurationService) -> None:
        self._configuration = configuration

    async def resolve(self) -> bool:
        """Return True when the new SDK backend is enabled."""
        enabled = bool(self._configuration.get_config(ConfigKey.NEW_SDK_ENABLED))
        logger.debug("[SdkSelector] New SDK enabled: %s", enabled)
        return enabled
