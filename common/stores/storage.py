"""Key-value backends for persisted client stores.

Each adapter exposes the same three calls as browser local storage so a
store can be pointed at process memory, a JSON file on disk or the Flask
session cookie without changing its code.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, MutableMapping, Optional
from urllib.parse import quote


class StorageAdapter:
    """Minimal string key-value interface."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(StorageAdapter):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(StorageAdapter):
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        # percent-encoded, so distinct keys never share a file
        return self._directory / f"{quote(key, safe='')}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        text = path.read_text(encoding="utf-8")
        return text if text.strip() else None

    def set_item(self, key: str, value: str) -> None:
        self._path(key).write_text(value + "\n", encoding="utf-8")

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()


class SessionStorage(StorageAdapter):
    """Wraps a mutable mapping such as ``flask.session``.

    Values are kept decoded inside the mapping so the signed cookie does not
    carry doubly-escaped JSON.
    """

    def __init__(self, mapping: MutableMapping) -> None:
        self._mapping = mapping

    def get_item(self, key: str) -> Optional[str]:
        value = self._mapping.get(key)
        if value is None:
            return None
        return json.dumps(value, ensure_ascii=False)

    def set_item(self, key: str, value: str) -> None:
        self._mapping[key] = json.loads(value)

    def remove_item(self, key: str) -> None:
        self._mapping.pop(key, None)
