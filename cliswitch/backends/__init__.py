"""Concrete session/model backends the delegating services switch between."""
from .base import CLIModels, CLISessions, CLISessionService, RegistryModels
from .legacy import LegacyModels, LegacySessionService
from .model_registry import ModelRegistry
from .sdk import SdkModels, SdkSessionService

__all__ = [
    "CLIModels",
    "CLISessions",
    "CLISessionService",
    "RegistryModels",
    "LegacyModels",
    "LegacySessionService",
    "ModelRegistry",
    "SdkModels",
    "SdkSessionService",
]
