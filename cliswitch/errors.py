"""Exception hierarchy for cliswitch.

Backends and the configuration layer raise these. The delegating
services never translate them; they reach callers unchanged.
"""
from __future__ import annotations


class CLISwitchError(Exception):
    """Base exception for all cliswitch errors."""


class CancellationError(CLISwitchError):
    """The caller's cancellation token was triggered."""
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation cancelled: {operation}")


class BackendDisposedError(CLISwitchError):
    """A backend was used after it had been disposed."""
    def __init__(self, backend: str, operation: str):
        self.backend = backend
        self.operation = operation
        super().__init__(
            f"Backend '{backend}' is disposed; cannot {operation}"
        )


class ModelNotFoundError(CLISwitchError):
    """Requested model is not in the backend's catalogue."""
    def __init__(self, model_id: str, backend: str, available: list[str]):
        self.model_id = model_id
        self.backend = backend
        self.available = available
        avail_str = ", ".join(available) if available else "none"
        super().__init__(
            f"Model '{model_id}' is not known to backend '{backend}'. "
            f"Available models: {avail_str}"
        )


class ConfigError(CLISwitchError):
    """A configuration file or value could not be parsed."""
    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")
