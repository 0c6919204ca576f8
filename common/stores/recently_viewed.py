from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Callable, Dict, List, Optional

from .base import PersistedStore, now_ms
from .storage import StorageAdapter


@dataclass
class RecentlyViewedItem:
    product_id: str
    name: str
    slug: str
    price: float
    viewed_at: int
    original_price: Optional[float] = None
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ViewedProduct:
    product_id: str
    name: str
    slug: str
    price: float
    original_price: Optional[float] = None
    image: Optional[str] = None


class RecentlyViewedStore(PersistedStore):
    """Most recently viewed products first, one entry per product."""

    storage_key = "recently-viewed-storage"

    def __init__(
        self,
        storage: Optional[StorageAdapter] = None,
        max_items: int = 12,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.max_items = max_items
        self._clock = clock
        super().__init__(storage)

    def decode(self, persisted: Dict[str, Any]) -> Dict[str, Any]:
        known = {f.name for f in fields(RecentlyViewedItem)}
        items: List[RecentlyViewedItem] = []
        for raw in persisted.get("items") or []:
            if not isinstance(raw, dict):
                continue
            try:
                items.append(RecentlyViewedItem(**{k: v for k, v in raw.items() if k in known}))
            except TypeError:
                continue
        return {"items": items[: self.max_items]}

    def encode(self, state: Dict[str, Any]) -> Dict[str, Any]:
        return {"items": [it.to_dict() for it in state["items"]]}

    def add_item(self, product: ViewedProduct) -> None:
        rest = [i for i in self._state["items"] if i.product_id != product.product_id]
        entry = RecentlyViewedItem(viewed_at=self._clock(), **asdict(product))
        self.set_state(items=[entry, *rest][: self.max_items])

    def remove_item(self, product_id: str) -> None:
        self.set_state(items=[i for i in self._state["items"] if i.product_id != product_id])

    def clear_all(self) -> None:
        self.set_state(items=[])

    def get_items(self, exclude_product_id: Optional[str] = None) -> List[RecentlyViewedItem]:
        items = list(self._state["items"])
        if exclude_product_id:
            return [i for i in items if i.product_id != exclude_product_id]
        return items
