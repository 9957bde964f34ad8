"""cliswitch: runtime-switchable facade over two CLI agent backends."""
from .config import ConfigKey, ConfigurationService
from .errors import (
    BackendDisposedError,
    CancellationError,
    CLISwitchError,
    ConfigError,
    ModelNotFoundError,
)
from .models import (
    CLISession,
    CustomAgent,
    ModelInfo,
    SessionItem,
    SessionOptions,
    SessionStatus,
)

__all__ = [
    # Facade (lazy import)
    "DelegatingModels",
    "DelegatingSessionService",
    "SdkSelector",
    "create_services",
    # Config
    "ConfigKey",
    "ConfigurationService",
    # Models
    "CLISession",
    "CustomAgent",
    "ModelInfo",
    "SessionItem",
    "SessionOptions",
    "SessionStatus",
    # Errors
    "BackendDisposedError",
    "CancellationError",
    "CLISwitchError",
    "ConfigError",
    "ModelNotFoundError",
]


def __getattr__(name: str):
    if name == "DelegatingModels":
        from .delegating.models import DelegatingModels
        return DelegatingModels
    if name == "DelegatingSessionService":
        from .delegating.sessions import DelegatingSessionService
        return DelegatingSessionService
    if name == "SdkSelector":
        from .delegating.selector import SdkSelector
        return SdkSelector
    if name == "create_services":
        from .services import create_services
        return create_services
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
