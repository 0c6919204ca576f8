"""Shopping cart state for one browser session."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Callable, Dict, List, Optional

from .base import PersistedStore, now_ms
from .storage import StorageAdapter


@dataclass
class CartLineItem:
    id: str
    product_id: str
    variant_id: Optional[str]
    name: str
    slug: str
    price: float
    quantity: int
    stock: int
    original_price: Optional[float] = None
    size: Optional[str] = None
    color: Optional[str] = None
    color_hex: Optional[str] = None
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartLineItem":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class CartCandidate:
    """A line item that has not been given an id yet."""

    product_id: str
    variant_id: Optional[str]
    name: str
    slug: str
    price: float
    quantity: int
    stock: int
    original_price: Optional[float] = None
    size: Optional[str] = None
    color: Optional[str] = None
    color_hex: Optional[str] = None
    image: Optional[str] = None


def make_line_id(product_id: str, variant_id: Optional[str], ts: int) -> str:
    return f"{product_id}-{variant_id or 'default'}-{ts}"


class CartStore(PersistedStore):
    """Cart line items plus drawer visibility.

    Only ``items`` is persisted; ``is_open`` always starts closed.
    """

    storage_key = "cart-storage"
    persisted_fields = ("items",)

    def __init__(
        self,
        storage: Optional[StorageAdapter] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._clock = clock
        super().__init__(storage)

    def initial_state(self) -> Dict[str, Any]:
        return {"items": [], "is_open": False}

    def decode(self, persisted: Dict[str, Any]) -> Dict[str, Any]:
        items: List[CartLineItem] = []
        for raw in persisted.get("items") or []:
            if not isinstance(raw, dict):
                continue
            try:
                items.append(CartLineItem.from_dict(raw))
            except TypeError:
                continue
        return {"items": items}

    def encode(self, state: Dict[str, Any]) -> Dict[str, Any]:
        return {"items": [it.to_dict() for it in state["items"]]}

    @property
    def items(self) -> List[CartLineItem]:
        return list(self._state["items"])

    @property
    def is_open(self) -> bool:
        return bool(self._state["is_open"])

    def add_item(self, candidate: CartCandidate) -> None:
        items = self._state["items"]
        existing = self.get_item(candidate.product_id, candidate.variant_id)
        if existing:
            # the stored line keeps the price and details it was added with
            new_quantity = min(existing.quantity + candidate.quantity, candidate.stock)
            self.set_state(
                items=[replace(i, quantity=new_quantity) if i.id == existing.id else i for i in items]
            )
        else:
            line = CartLineItem(
                id=make_line_id(candidate.product_id, candidate.variant_id, self._clock()),
                **asdict(candidate),
            )
            self.set_state(items=[*items, line])
        self.set_state(is_open=True)

    def remove_item(self, line_id: str) -> None:
        self.set_state(items=[i for i in self._state["items"] if i.id != line_id])

    def update_quantity(self, line_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(line_id)
            return
        self.set_state(
            items=[
                replace(i, quantity=min(quantity, i.stock)) if i.id == line_id else i
                for i in self._state["items"]
            ]
        )

    def clear_cart(self) -> None:
        self.set_state(items=[])

    def open_cart(self) -> None:
        self.set_state(is_open=True)

    def close_cart(self) -> None:
        self.set_state(is_open=False)

    def toggle_cart(self) -> None:
        self.set_state(is_open=not self._state["is_open"])

    def get_item_count(self) -> int:
        return sum(i.quantity for i in self._state["items"])

    def get_subtotal(self) -> float:
        return sum(i.price * i.quantity for i in self._state["items"])

    def get_item(self, product_id: str, variant_id: Optional[str]) -> Optional[CartLineItem]:
        for item in self._state["items"]:
            if item.product_id == product_id and item.variant_id == variant_id:
                return item
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [i.to_dict() for i in self._state["items"]],
            "is_open": self.is_open,
            "item_count": self.get_item_count(),
            "subtotal": self.get_subtotal(),
        }
