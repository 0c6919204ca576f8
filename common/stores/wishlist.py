from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Callable, Dict, List, Optional

from .base import PersistedStore, now_ms
from .storage import StorageAdapter


@dataclass
class WishlistItem:
    id: str
    product_id: str
    name: str
    slug: str
    price: float
    original_price: Optional[float] = None
    image: Optional[str] = None
    is_new: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class WishlistCandidate:
    product_id: str
    name: str
    slug: str
    price: float
    original_price: Optional[float] = None
    image: Optional[str] = None
    is_new: Optional[bool] = None


class WishlistStore(PersistedStore):
    """Saved products, at most one entry per product."""

    storage_key = "wishlist-storage"

    def __init__(
        self,
        storage: Optional[StorageAdapter] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._clock = clock
        super().__init__(storage)

    def decode(self, persisted: Dict[str, Any]) -> Dict[str, Any]:
        known = {f.name for f in fields(WishlistItem)}
        items: List[WishlistItem] = []
        for raw in persisted.get("items") or []:
            if not isinstance(raw, dict):
                continue
            try:
                items.append(WishlistItem(**{k: v for k, v in raw.items() if k in known}))
            except TypeError:
                continue
        return {"items": items}

    def encode(self, state: Dict[str, Any]) -> Dict[str, Any]:
        return {"items": [it.to_dict() for it in state["items"]]}

    @property
    def items(self) -> List[WishlistItem]:
        return list(self._state["items"])

    def add_item(self, candidate: WishlistCandidate) -> None:
        if self.is_in_wishlist(candidate.product_id):
            return
        item = WishlistItem(id=f"wishlist-{candidate.product_id}-{self._clock()}", **asdict(candidate))
        self.set_state(items=[*self._state["items"], item])

    def remove_item(self, product_id: str) -> None:
        self.set_state(items=[i for i in self._state["items"] if i.product_id != product_id])

    def toggle_item(self, candidate: WishlistCandidate) -> None:
        if self.is_in_wishlist(candidate.product_id):
            self.remove_item(candidate.product_id)
        else:
            self.add_item(candidate)

    def clear_wishlist(self) -> None:
        self.set_state(items=[])

    def get_item_count(self) -> int:
        return len(self._state["items"])

    def is_in_wishlist(self, product_id: str) -> bool:
        return any(i.product_id == product_id for i in self._state["items"])
