"""商店前台 API：配送查詢、購物車、願望清單、商品比較與瀏覽紀錄。"""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request, session

from common.stores.cart import CartStore
from common.stores.comparison import ComparisonItem, ComparisonStore
from common.stores.recently_viewed import RecentlyViewedStore, ViewedProduct
from common.stores.storage import SessionStorage
from common.stores.wishlist import WishlistCandidate, WishlistStore
from common.utils.validators import is_valid_pincode


api_bp = Blueprint("storefront_api", __name__, url_prefix="/api")


def _components() -> Dict[str, Any]:
    return current_app.extensions["storefront_components"]


def _app_config():
    return current_app.config["APP_CONFIG"]


DRAWER_KEY = "cart-drawer-open"


def _cart() -> CartStore:
    # 抽屜開關只存在本次瀏覽工作階段，不寫入 cart-storage
    cart = CartStore(SessionStorage(session))
    if session.get(DRAWER_KEY):
        cart.open_cart()
    cart.subscribe(lambda state: session.__setitem__(DRAWER_KEY, state["is_open"]))
    return cart


def _error(message: str, status: int):
    return jsonify({"status": "error", "message": message}), status


def _payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _int_field(payload: Dict[str, Any], key: str, default=None):
    value = payload.get(key, default)
    if isinstance(value, bool):
        raise ValueError(f"{key} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{key} must be an integer") from exc


def _product_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    product_id = str(payload.get("product_id") or "").strip()
    name = str(payload.get("name") or "").strip()
    slug = str(payload.get("slug") or "").strip()
    if not product_id or not name or not slug:
        raise ValueError("product_id, name and slug are required")
    try:
        price = float(payload.get("price"))
        original = payload.get("original_price")
        original_price = float(original) if original is not None else None
    except (TypeError, ValueError) as exc:
        raise ValueError("price must be a number") from exc
    return {
        "product_id": product_id,
        "name": name,
        "slug": slug,
        "price": price,
        "original_price": original_price,
        "image": payload.get("image") or None,
    }


# --- shipping --------------------------------------------------------------

@api_bp.post("/shipping/check-pincode")
def check_pincode():
    pincode = str(_payload().get("pincode", "")).strip()
    if not is_valid_pincode(pincode):
        return _error("Pincode must be 6 digits", 400)
    return jsonify(_components()["shipping_service"].check_pincode(pincode))


# --- cart ------------------------------------------------------------------

@api_bp.get("/cart")
def get_cart():
    return jsonify(_cart().to_dict())


@api_bp.post("/cart/items")
def add_cart_item():
    payload = _payload()
    product_id = str(payload.get("product_id") or "").strip()
    variant_id = str(payload.get("variant_id") or "").strip() or None
    if not product_id:
        return _error("product_id required", 400)
    try:
        quantity = _int_field(payload, "quantity", 1)
    except ValueError as exc:
        return _error(str(exc), 400)
    if quantity <= 0:
        return _error("quantity must be > 0", 400)

    try:
        candidate = _components()["catalog_service"].build_cart_candidate(product_id, variant_id, quantity)
    except LookupError as exc:
        return _error(str(exc), 404)
    if candidate.stock <= 0:
        return _error("out of stock", 409)
    # 新增的品項也不可超過庫存
    candidate.quantity = min(quantity, candidate.stock)

    cart = _cart()
    cart.add_item(candidate)
    return jsonify(cart.to_dict())


@api_bp.patch("/cart/items/<line_id>")
def update_cart_item(line_id: str):
    try:
        quantity = _int_field(_payload(), "quantity")
    except ValueError as exc:
        return _error(str(exc), 400)
    cart = _cart()
    cart.update_quantity(line_id, quantity)
    return jsonify(cart.to_dict())


@api_bp.delete("/cart/items/<line_id>")
def remove_cart_item(line_id: str):
    cart = _cart()
    cart.remove_item(line_id)
    return jsonify(cart.to_dict())


@api_bp.delete("/cart")
def clear_cart():
    cart = _cart()
    cart.clear_cart()
    return jsonify(cart.to_dict())


@api_bp.post("/cart/<action>")
def cart_drawer(action: str):
    cart = _cart()
    transitions = {"open": cart.open_cart, "close": cart.close_cart, "toggle": cart.toggle_cart}
    if action not in transitions:
        return _error("unknown cart action", 404)
    transitions[action]()
    return jsonify({"is_open": cart.is_open})


# --- wishlist --------------------------------------------------------------

def _wishlist() -> WishlistStore:
    return WishlistStore(SessionStorage(session))


def _wishlist_body(store: WishlistStore) -> Dict[str, Any]:
    return {"items": [i.to_dict() for i in store.items], "item_count": store.get_item_count()}


@api_bp.get("/wishlist")
def get_wishlist():
    return jsonify(_wishlist_body(_wishlist()))


@api_bp.post("/wishlist/toggle")
def toggle_wishlist():
    payload = _payload()
    try:
        fields = _product_fields(payload)
    except ValueError as exc:
        return _error(str(exc), 400)
    store = _wishlist()
    store.toggle_item(WishlistCandidate(is_new=payload.get("is_new"), **fields))
    body = _wishlist_body(store)
    body["in_wishlist"] = store.is_in_wishlist(fields["product_id"])
    return jsonify(body)


@api_bp.delete("/wishlist/<product_id>")
def remove_wishlist_item(product_id: str):
    store = _wishlist()
    store.remove_item(product_id)
    return jsonify(_wishlist_body(store))


@api_bp.delete("/wishlist")
def clear_wishlist():
    store = _wishlist()
    store.clear_wishlist()
    return jsonify(_wishlist_body(store))


# --- comparison ------------------------------------------------------------

def _comparison() -> ComparisonStore:
    return ComparisonStore(SessionStorage(session), max_items=_app_config().comparison_max_items)


def _comparison_body(store: ComparisonStore) -> Dict[str, Any]:
    return {
        "items": [i.to_dict() for i in store.items],
        "item_count": store.get_item_count(),
        "can_add": store.can_add(),
        "max_items": store.max_items,
    }


@api_bp.get("/compare")
def get_comparison():
    return jsonify(_comparison_body(_comparison()))


@api_bp.post("/compare")
def add_comparison_item():
    payload = _payload()
    try:
        fields = _product_fields(payload)
    except ValueError as exc:
        return _error(str(exc), 400)
    store = _comparison()
    added = store.add_item(ComparisonItem(category_id=payload.get("category_id"), **fields))
    body = _comparison_body(store)
    body["added"] = added
    return jsonify(body)


@api_bp.delete("/compare/<product_id>")
def remove_comparison_item(product_id: str):
    store = _comparison()
    store.remove_item(product_id)
    return jsonify(_comparison_body(store))


@api_bp.delete("/compare")
def clear_comparison():
    store = _comparison()
    store.clear_all()
    return jsonify(_comparison_body(store))


# --- recently viewed -------------------------------------------------------

def _recently_viewed() -> RecentlyViewedStore:
    return RecentlyViewedStore(SessionStorage(session), max_items=_app_config().recently_viewed_max_items)


@api_bp.get("/recently-viewed")
def get_recently_viewed():
    exclude = request.args.get("exclude") or None
    items = _recently_viewed().get_items(exclude)
    return jsonify({"items": [i.to_dict() for i in items]})


@api_bp.post("/recently-viewed")
def add_recently_viewed():
    try:
        fields = _product_fields(_payload())
    except ValueError as exc:
        return _error(str(exc), 400)
    store = _recently_viewed()
    store.add_item(ViewedProduct(**fields))
    return jsonify({"items": [i.to_dict() for i in store.get_items()]})
