"""Observable state container with pluggable persistence."""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..services.logging import log_event
from .storage import MemoryStorage, StorageAdapter

Listener = Callable[[Dict[str, Any]], None]

STORAGE_VERSION = 0


class PersistedStore:
    """Holds a state dict, persists selected fields and notifies subscribers.

    Every mutation goes through ``set_state`` which swaps the whole state
    dict, writes the persisted fields to the storage adapter and then calls
    each listener with a snapshot of the new state.
    """

    storage_key: str = ""
    persisted_fields: Tuple[str, ...] = ("items",)

    def __init__(self, storage: Optional[StorageAdapter] = None) -> None:
        self._storage = storage if storage is not None else MemoryStorage()
        self._listeners: List[Listener] = []
        self._state: Dict[str, Any] = self.initial_state()
        self._state.update(self._restore())

    def initial_state(self) -> Dict[str, Any]:
        return {"items": []}

    def decode(self, persisted: Dict[str, Any]) -> Dict[str, Any]:
        """Convert a persisted payload back into state values."""
        return persisted

    def encode(self, state: Dict[str, Any]) -> Dict[str, Any]:
        return {k: state[k] for k in self.persisted_fields}

    def get_state(self) -> Dict[str, Any]:
        return dict(self._state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_state(self, **changes: Any) -> None:
        self._state = {**self._state, **changes}
        if any(k in self.persisted_fields for k in changes):
            self._persist()
        snapshot = self.get_state()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                log_event("error", "store.listener_failed", store=self.storage_key, error=str(exc))

    def _persist(self) -> None:
        payload = {"state": self.encode(self._state), "version": STORAGE_VERSION}
        try:
            self._storage.set_item(self.storage_key, json.dumps(payload, ensure_ascii=False))
        except (OSError, TypeError, ValueError) as exc:
            log_event("error", "store.persist_failed", store=self.storage_key, error=str(exc))

    def _restore(self) -> Dict[str, Any]:
        try:
            raw = self._storage.get_item(self.storage_key)
        except OSError as exc:
            log_event("error", "store.restore_failed", store=self.storage_key, error=str(exc))
            return {}
        if not raw:
            return {}
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            log_event("warning", "store.restore_invalid", store=self.storage_key)
            return {}
        state = payload.get("state") if isinstance(payload, dict) else None
        if not isinstance(state, dict):
            return {}
        persisted = {k: state[k] for k in self.persisted_fields if k in state}
        return self.decode(persisted)


def now_ms() -> int:
    return int(time.time() * 1000)
