"""New SDK backend.

Exposes a larger model catalogue and matches model names
case-insensitively against ids and display names, so ``"GPT-5"`` and
``"Claude Opus 4.5"`` both resolve. Short aliases are not supported.
"""
from __future__ import annotations

from ..models import ModelInfo
from ..shared.state import StateStore
from .base import CLIModels, CLISessionService, RegistryModels
from .model_registry import ModelRegistry

SDK_MODELS: list[ModelInfo] = [
    ModelInfo(
        "claude-sonnet-4.5", "Claude Sonnet 4.5", "anthropic",
        "Balanced model for everyday coding",
    ),
    ModelInfo(
        "claude-opus-4.5", "Claude Opus 4.5", "anthropic",
        "Frontier model for complex reasoning",
    ),
    ModelInfo("claude-haiku-4.5", "Claude Haiku 4.5", "anthropic", "Fast and cheap"),
    ModelInfo("gpt-5", "GPT-5", "openai"),
    ModelInfo("gpt-5.1-codex", "GPT-5.1 Codex", "openai", "Tuned for agentic coding"),
    ModelInfo("gemini-3-pro-preview", "Gemini 3 Pro (Preview)", "google"),
]


class SdkModels(RegistryModels):
    backend_name = "sdk"
    default_model_key = "sdk.defaultModel"

    def _build_registry(self) -> ModelRegistry:
        return ModelRegistry(SDK_MODELS)

    async def resolve_model(self, model_id: str) -> str | None:
        info = self._registry.find_by_name(model_id)
        return info.id if info is not None else None


class SdkSessionService(CLISessionService):
    name = "sdk"

    def _create_models(self, state: StateStore) -> CLIModels:
        return SdkModels(state)
