"""Configuration loaded from a YAML settings file and environment variables.

Precedence (highest wins):

1. Command-line choices passed as ``command_line``
2. ``CLISWITCH_*`` environment variables
3. Values set at runtime through ``ConfigurationService.update()``
4. The YAML settings file
5. The key's built-in default

Settings are read on every ``get_config()`` call; nothing is cached
beyond the parsed file contents.

Example YAML (nested sections and dotted keys are equivalent):

    cli:
      newSdk:
        enabled: true
      defaultWorkingDirectory: /home/me/projects
    cli.statePath: ~/.cliswitch/state.json
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar

import yaml

from .errors import ConfigError
from .shared.events import Emitter, Event
from .shared.lifecycle import Disposable

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFIG_ENV_VAR = "CLISWITCH_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".cliswitch" / "settings.yaml"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise ValueError(f"expected a boolean, got {value!r}")


def _coerce_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class SettingKey(Generic[T]):
    """A named setting with a default, an env override and a coercer."""
    id: str
    default: T
    env_var: str
    coerce: Callable[[Any], T]


class ConfigKey:
    """Settings known to cliswitch."""

    # Routes delegated calls to the new SDK backend when true.
    NEW_SDK_ENABLED: SettingKey[bool] = SettingKey(
        "cli.newSdk.enabled", False, "CLISWITCH_NEW_SDK_ENABLED", _coerce_bool,
    )
    DEFAULT_WORKING_DIRECTORY: SettingKey[str | None] = SettingKey(
        "cli.defaultWorkingDirectory", None, "CLISWITCH_DEFAULT_CWD",
        _coerce_optional_str,
    )
    STATE_PATH: SettingKey[str | None] = SettingKey(
        "cli.statePath", None, "CLISWITCH_STATE_PATH", _coerce_optional_str,
    )

    @classmethod
    def all(cls) -> list[SettingKey[Any]]:
        return [
            value for value in vars(cls).values()
            if isinstance(value, SettingKey)
        ]


@dataclass(frozen=True)
class ConfigurationChangeEvent:
    """Which setting ids changed in one update or reload."""
    keys: frozenset[str]

    def affects_configuration(self, key: SettingKey[Any]) -> bool:
        return key.id in self.keys


def _flatten(raw: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for name, value in raw.items():
        key = f"{prefix}{name}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, f"{key}."))
        else:
            flat[key] = value
    return flat


def read_settings_file(path: str | Path) -> dict[str, Any]:
    """Parse a YAML settings file into a flat ``{dotted.key: value}`` map.

    A missing file yields an empty map. Malformed YAML or a non-mapping
    document raises ConfigError.
    """
    path = Path(path).expanduser()
    if not path.exists():
        logger.debug("Settings file not found at %s; using defaults", path)
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        logger.error("YAML parse error in %s: %s", path, exc)
        raise ConfigError(str(path), str(exc)) from exc
    if not isinstance(raw, Mapping):
        raise ConfigError(str(path), "top level must be a mapping")
    flat = _flatten(raw)
    logger.debug(
        "Loaded settings from %s: %s",
        path, ", ".join(sorted(flat)) if flat else "(empty)",
    )
    return flat


class ConfigurationService(Disposable):
    """Typed read access to settings, with change notification."""

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        *,
        path: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
        command_line: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__()
        self._path = Path(path).expanduser() if path is not None else None
        self._environ = environ
        self._command_line: dict[str, Any] = dict(command_line or {})
        self._file_values: dict[str, Any] = (
            read_settings_file(self._path) if self._path is not None else {}
        )
        self._overrides: dict[str, Any] = dict(values or {})
        self._on_did_change = self._register(
            Emitter[ConfigurationChangeEvent]("configuration")
        )

    @classmethod
    def load(
        cls,
        path: str | Path | None = None,
        command_line: Mapping[str, Any] | None = None,
    ) -> ConfigurationService:
        """Build from ``path``, ``$CLISWITCH_CONFIG`` or the default file.

        ``command_line`` values win over everything else, including
        ``CLISWITCH_*`` environment variables.
        """
        if path is None:
            path = os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
        env_vars = {
            k: v for k, v in os.environ.items() if k.startswith("CLISWITCH_")
        }
        if env_vars:
            logger.info(
                "ConfigurationService.load: CLISWITCH_* env overrides: %s",
                ", ".join(f"{k}={v}" for k, v in sorted(env_vars.items())),
            )
        return cls(path=path, command_line=command_line)

    @property
    def on_did_change_configuration(self) -> Event[ConfigurationChangeEvent]:
        return self._on_did_change.event

    @property
    def path(self) -> Path | None:
        return self._path

    def _env(self) -> Mapping[str, str]:
        return self._environ if self._environ is not None else os.environ

    def _raw_value(self, key: SettingKey[Any]) -> tuple[Any, str]:
        if key.id in self._command_line:
            return self._command_line[key.id], "command line"
        env = self._env()
        if key.env_var in env:
            return env[key.env_var], f"env {key.env_var}"
        if key.id in self._overrides:
            return self._overrides[key.id], "runtime"
        if key.id in self._file_values:
            return self._file_values[key.id], str(self._path)
        return key.default, "default"

    def get_config(self, key: SettingKey[T]) -> T:
        """Return the current value of ``key``, coerced to its type."""
        raw, source = self._raw_value(key)
        if raw is None or source == "default":
            return key.default
        try:
            return key.coerce(raw)
        except ValueError as exc:
            raise ConfigError(source, f"{key.id}: {exc}") from exc

    def inspect(self, key: SettingKey[Any]) -> str:
        """Return where the current value of ``key`` comes from."""
        return self._raw_value(key)[1]

    def update(self, key: SettingKey[T], value: T | None) -> None:
        """Set (or with ``None`` clear) a runtime value for ``key``."""
        before = self._raw_value(key)[0]
        if value is None:
            self._overrides.pop(key.id, None)
        else:
            self._overrides[key.id] = value
        source = self._raw_value(key)[1]
        if source != "runtime" and value is not None:
            logger.warning(
                "Setting %s updated but %s overrides it", key.id, source,
            )
        if self._raw_value(key)[0] != before:
            self._on_did_change.fire(
                ConfigurationChangeEvent(frozenset({key.id}))
            )

    def reload(self) -> ConfigurationChangeEvent:
        """Re-read the settings file and fire for keys whose value moved."""
        if self._path is None:
            return ConfigurationChangeEvent(frozenset())
        previous = self._file_values
        self._file_values = read_settings_file(self._path)
        changed = frozenset(
            k for k in set(previous) | set(self._file_values)
            if previous.get(k) != self._file_values.get(k)
        )
        event = ConfigurationChangeEvent(changed)
        if changed:
            logger.info(
                "Settings reloaded from %s; changed: %s",
                self._path, ", ".join(sorted(changed)),
            )
            self._on_did_change.fire(event)
        return event
