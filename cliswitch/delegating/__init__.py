"""Facade services that route every call to the legacy or new SDK backend."""
from .models import DelegatingModels
from .selector import SdkSelector
from .sessions import DelegatingSessionService

__all__ = ["DelegatingModels", "DelegatingSessionService", "SdkSelector"]
