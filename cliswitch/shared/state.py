"""Key/value state that outlives a single call (default models, etc.).

With a path the store is a small JSON file, otherwise it lives in
memory only. Corrupt or missing files fall back to an empty store.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class StateStore:
    """Global-state memento used by backends."""

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path).expanduser() if path is not None else None
        self._values: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if self._path is None:
            return {}
        try:
            if self._path.exists():
                data = json.loads(self._path.read_text(encoding="utf-8"))
                if isinstance(data, dict):
                    logger.debug("Loaded state from %s", self._path)
                    return data
                logger.warning("State file %s is not an object; ignoring", self._path)
            else:
                logger.debug("State file not found at %s; starting empty", self._path)
        except (OSError, json.JSONDecodeError):
            logger.warning("Failed to load state from %s; starting empty", self._path)
        return {}

    def _save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._path.write_text(json.dumps(self._values, indent=2), encoding="utf-8")
        except OSError:
            logger.debug("Failed to save state to %s", self._path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def update(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``; ``None`` removes the key."""
        if value is None:
            self._values.pop(key, None)
        else:
            self._values[key] = value
        self._save()

    def keys(self) -> list[str]:
        return list(self._values.keys())
