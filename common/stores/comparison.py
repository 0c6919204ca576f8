from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Optional

from .base import PersistedStore
from .storage import StorageAdapter


@dataclass
class ComparisonItem:
    product_id: str
    name: str
    slug: str
    price: float
    original_price: Optional[float] = None
    image: Optional[str] = None
    category_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ComparisonStore(PersistedStore):
    """Products picked for side-by-side comparison, capped at ``max_items``."""

    storage_key = "comparison-storage"

    def __init__(self, storage: Optional[StorageAdapter] = None, max_items: int = 4) -> None:
        self.max_items = max_items
        super().__init__(storage)

    def decode(self, persisted: Dict[str, Any]) -> Dict[str, Any]:
        known = {f.name for f in fields(ComparisonItem)}
        items: List[ComparisonItem] = []
        for raw in persisted.get("items") or []:
            if not isinstance(raw, dict):
                continue
            try:
                items.append(ComparisonItem(**{k: v for k, v in raw.items() if k in known}))
            except TypeError:
                continue
        return {"items": items[: self.max_items]}

    def encode(self, state: Dict[str, Any]) -> Dict[str, Any]:
        return {"items": [it.to_dict() for it in state["items"]]}

    @property
    def items(self) -> List[ComparisonItem]:
        return list(self._state["items"])

    def add_item(self, item: ComparisonItem) -> bool:
        """Return False when the product is already listed or the list is full."""
        if self.is_in_comparison(item.product_id):
            return False
        if not self.can_add():
            return False
        self.set_state(items=[*self._state["items"], item])
        return True

    def remove_item(self, product_id: str) -> None:
        self.set_state(items=[i for i in self._state["items"] if i.product_id != product_id])

    def clear_all(self) -> None:
        self.set_state(items=[])

    def get_item_count(self) -> int:
        return len(self._state["items"])

    def is_in_comparison(self, product_id: str) -> bool:
        return any(i.product_id == product_id for i in self._state["items"])

    def can_add(self) -> bool:
        return len(self._state["items"]) < self.max_items
