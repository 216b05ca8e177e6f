"""
Generic key-value stores.

The rule store only needs whole-value get/set under a key. ``JsonFileStore``
keeps every key in one JSON document and rewrites it on each ``set``.
"""

import copy
import json
from pathlib import Path
from typing import Any, Protocol

from loguru import logger


class KeyValueStore(Protocol):
    """Minimal persistence contract."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class InMemoryStore:
    """Process-local store, used in tests and when no data file is configured."""

    def __init__(self, data: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(data) if data else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore:
    """
    Single-file JSON store.

    Storage structure:
    - one JSON object, top-level keys are store keys
    - written with indent=2 after every ``set``
    """

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()
        self._data: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        """Load the document from disk if present."""
        if not self.path.exists():
            self._data = {}
            return
        try:
            self._data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Could not read data store {self.path}: {e}")
            self._data = {}
        if not isinstance(self._data, dict):
            logger.warning(f"Data store {self.path} is not a JSON object, starting empty")
            self._data = {}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)
        self._save()

    def keys(self) -> list[str]:
        return list(self._data)
