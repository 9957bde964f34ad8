"""Model catalogue: canonical model ids plus short aliases.

Each backend owns one registry. Aliases let users write ``sonnet``
instead of the full id; all ``get()`` paths resolve aliases
transparently. Lookups never raise; unknown names yield ``None``.
"""
from __future__ import annotations

import logging

from ..models import ModelInfo

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Ordered registry of ``ModelInfo`` entries keyed by model id."""

    def __init__(self, models: list[ModelInfo] | None = None) -> None:
        self._models: dict[str, ModelInfo] = {}
        self._aliases: dict[str, str] = {}  # alias → canonical model_id
        for info in models or []:
            self.register(info)

    def register(self, info: ModelInfo) -> None:
        """Add or replace a model. Order of first registration is kept."""
        self._models[info.id] = info

    def register_alias(self, alias: str, model_id: str) -> None:
        """Map ``alias`` to ``model_id``. The target must be registered."""
        if model_id not in self._models:
            logger.warning(
                "Alias %s points at unregistered model %s; ignoring",
                alias, model_id,
            )
            return
        self._aliases[alias] = model_id

    def resolve_alias(self, name: str) -> str:
        """Return the canonical id for ``name``; unknown names pass through."""
        if name in self._models:
            return name
        return self._aliases.get(name, name)

    def get(self, name: str) -> ModelInfo | None:
        return self._models.get(self.resolve_alias(name))

    def find_by_name(self, name: str) -> ModelInfo | None:
        """Case-insensitive match against ids and display names."""
        wanted = name.strip().lower()
        for info in self._models.values():
            if info.id.lower() == wanted or info.name.lower() == wanted:
                return info
        return None

    def list_models(self) -> list[ModelInfo]:
        return list(self._models.values())

    def list_aliases(self) -> dict[str, str]:
        return dict(self._aliases)

    @property
    def count(self) -> int:
        return len(self._models)
