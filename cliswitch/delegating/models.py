"""Model service that forwards each call to the selected backend."""
from __future__ import annotations

from ..backends.base import CLIModels
from ..backends.legacy import LegacyModels
from ..backends.sdk import SdkModels
from ..models import ModelInfo
from ..shared.instantiation import InstantiationService
from .selector import SdkSelector


class DelegatingModels(CLIModels):
    """Delegates to LegacyModels or SdkModels based on SdkSelector.resolve().

    Nothing is cached: a default model set while one backend is
    selected is not visible through the other.
    """

    legacy_models_class: type[CLIModels] = LegacyModels
    sdk_models_class: type[CLIModels] = SdkModels

    def __init__(
        self,
        sdk_selector: SdkSelector,
        instantiation_service: InstantiationService,
    ) -> None:
        self._selector = sdk_selector
        self._legacy_models = instantiation_service.create_instance(
            self.legacy_models_class
        )
        self._sdk_models = instantiation_service.create_instance(
            self.sdk_models_class
        )

    async def _get_service(self) -> CLIModels:
        use_new_sdk = await self._selector.resolve()
        return self._sdk_models if use_new_sdk else self._legacy_models

    async def resolve_model(self, model_id: str) -> str | None:
        service = await self._get_service()
        return await service.resolve_model(model_id)

    async def get_default_model(self) -> str | None:
        service = await self._get_service()
        return await service.get_default_model()

    async def set_default_model(self, model_id: str | None) -> None:
        service = await self._get_service()
        await service.set_default_model(model_id)

    async def get_models(self) -> list[ModelInfo]:
        service = await self._get_service()
        return await service.get_models()
