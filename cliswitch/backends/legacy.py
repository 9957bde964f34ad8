"""Legacy backend: the original CLI session runtime.

Models are addressed by canonical id or by a short alias
(``sonnet``, ``gpt``); matching is exact.
"""
from __future__ import annotations

from ..models import ModelInfo
from ..shared.state import StateStore
from .base import CLIModels, CLISessionService, RegistryModels
from .model_registry import ModelRegistry

LEGACY_MODELS: list[ModelInfo] = [
    ModelInfo("claude-sonnet-4.5", "Claude Sonnet 4.5", "anthropic"),
    ModelInfo("claude-sonnet-4", "Claude Sonnet 4", "anthropic"),
    ModelInfo("claude-haiku-4.5", "Claude Haiku 4.5", "anthropic"),
    ModelInfo("gpt-5", "GPT-5", "openai"),
]

LEGACY_ALIASES: dict[str, str] = {
    "sonnet": "claude-sonnet-4.5",
    "claude-sonnet": "claude-sonnet-4.5",
    "haiku": "claude-haiku-4.5",
    "claude-haiku": "claude-haiku-4.5",
    "gpt": "gpt-5",
}


class LegacyModels(RegistryModels):
    backend_name = "legacy"
    default_model_key = "legacy.defaultModel"

    def _build_registry(self) -> ModelRegistry:
        registry = ModelRegistry(LEGACY_MODELS)
        for alias, model_id in LEGACY_ALIASES.items():
            registry.register_alias(alias, model_id)
        return registry

    async def resolve_model(self, model_id: str) -> str | None:
        info = self._registry.get(model_id)
        return info.id if info is not None else None


class LegacySessionService(CLISessionService):
    name = "legacy"

    def _create_models(self, state: StateStore) -> CLIModels:
        return LegacyModels(state)
