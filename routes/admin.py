"""管理後台 API（配送區域、郵遞區號與系統設定）。"""

from __future__ import annotations

import json
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request, session

from common.config import refresh_non_sensitive, requires_restart
from common.services.logging import log_event
from common.services.shipping_service import PincodeNotFoundError, ZoneNotFoundError
from common.utils.validators import ensure_non_negative_number, is_valid_pincode


admin_bp = Blueprint("storefront_admin", __name__, url_prefix="/admin")

ZONE_FIELDS = (
    "name",
    "description",
    "rate",
    "free_shipping_threshold",
    "estimated_days",
    "is_active",
    "sort_order",
)


def _components() -> Dict[str, Any]:
    return current_app.extensions["storefront_components"]


def _shipping():
    return _components()["shipping_service"]


def _config():
    return current_app.config["STOREFRONT_CONFIG"]


def _is_authenticated() -> bool:
    return bool(session.get("storefront_admin"))


def _error(message: str, status: int):
    return jsonify({"status": "error", "message": message}), status


def _payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


@admin_bp.before_request
def guard_private_routes():
    public = {
        "storefront_admin.login",
        "storefront_admin.logout",
    }
    if request.endpoint and request.endpoint not in public and not _is_authenticated():
        return _error("admin login required", 401)
    return None


@admin_bp.errorhandler(ZoneNotFoundError)
@admin_bp.errorhandler(PincodeNotFoundError)
def handle_not_found(exc: LookupError):
    return _error(str(exc), 404)


@admin_bp.errorhandler(ValueError)
def handle_invalid(exc: ValueError):
    return _error(str(exc), 400)


@admin_bp.post("/login")
def login():
    payload = _payload()
    username = str(payload.get("username", "")).strip()
    password = str(payload.get("password", "")).strip()
    cfg = _config()
    if username == cfg.admin_username and password == cfg.admin_password:
        session["storefront_admin"] = True
        log_event("info", "admin.login", username=username)
        return jsonify({"status": "ok"})
    log_event("warning", "admin.login_failed", username=username)
    return _error("帳號或密碼錯誤，請重新輸入。", 401)


@admin_bp.post("/logout")
def logout():
    session.pop("storefront_admin", None)
    return jsonify({"status": "ok"})


# --- zones -----------------------------------------------------------------

def _zone_fields(payload: Dict[str, Any], *, partial: bool) -> Dict[str, Any]:
    data = {k: payload[k] for k in ZONE_FIELDS if k in payload}
    if not partial:
        if "name" not in data:
            raise ValueError("name required")
        if "rate" not in data:
            raise ValueError("rate required")
    if "name" in data and (not isinstance(data["name"], str) or not data["name"].strip()):
        raise ValueError("name required")
    for key in ("description", "estimated_days"):
        if data.get(key) is not None and not isinstance(data[key], str):
            raise ValueError(f"{key} must be a string")
    if "is_active" in data and not isinstance(data["is_active"], bool):
        raise ValueError("is_active must be a boolean")
    if "rate" in data:
        ensure_non_negative_number(data["rate"], "rate")
    if data.get("free_shipping_threshold") is not None:
        ensure_non_negative_number(data["free_shipping_threshold"], "free_shipping_threshold")
    if "sort_order" in data and (isinstance(data["sort_order"], bool) or not isinstance(data["sort_order"], int)):
        raise ValueError("sort_order must be an integer")
    return data


@admin_bp.get("/shipping/zones")
def list_zones():
    return jsonify({"status": "ok", "zones": _shipping().list_zones()})


@admin_bp.post("/shipping/zones")
def create_zone():
    data = _zone_fields(_payload(), partial=False)
    zone = _shipping().create_zone(**data)
    return jsonify({"status": "ok", "zone": zone}), 201


@admin_bp.get("/shipping/zones/<zone_id>")
def get_zone(zone_id: str):
    return jsonify({"status": "ok", "zone": _shipping().get_zone(zone_id)})


@admin_bp.patch("/shipping/zones/<zone_id>")
def update_zone(zone_id: str):
    data = _zone_fields(_payload(), partial=True)
    zone = _shipping().update_zone(zone_id, **data)
    return jsonify({"status": "ok", "zone": zone})


@admin_bp.delete("/shipping/zones/<zone_id>")
def delete_zone(zone_id: str):
    _shipping().delete_zone(zone_id)
    return jsonify({"status": "ok"})


# --- zone pincodes ---------------------------------------------------------

def _pincode_rows(payload: Dict[str, Any], key: str):
    rows = payload.get(key)
    if not isinstance(rows, list):
        raise ValueError(f"{key} must be a list")
    return [r for r in rows if isinstance(r, dict)]


@admin_bp.post("/shipping/zones/<zone_id>/pincodes")
def add_pincodes(zone_id: str):
    rows = _pincode_rows(_payload(), "pincodes")
    for r in rows:
        if not is_valid_pincode(r.get("pincode")):
            raise ValueError(f"invalid pincode: {r.get('pincode')}")
    result = _shipping().add_pincodes(zone_id, rows)
    return jsonify({"status": "ok", **result})


@admin_bp.delete("/shipping/zones/<zone_id>/pincodes")
def remove_pincodes(zone_id: str):
    pincodes = _payload().get("pincodes")
    if not isinstance(pincodes, list) or not all(is_valid_pincode(p) for p in pincodes):
        raise ValueError("pincodes must be a list of 6-digit codes")
    result = _shipping().remove_pincodes(zone_id, pincodes)
    return jsonify({"status": "ok", **result})


@admin_bp.post("/shipping/zones/<zone_id>/import")
def import_pincodes(zone_id: str):
    rows = _pincode_rows(_payload(), "data")
    result = _shipping().import_pincodes(zone_id, rows)
    return jsonify({"status": "ok", **result})


@admin_bp.delete("/shipping/pincodes/<membership_id>")
def remove_pincode(membership_id: str):
    _shipping().remove_pincode(membership_id)
    return jsonify({"status": "ok"})


# --- non-serviceable -------------------------------------------------------

@admin_bp.get("/shipping/non-serviceable")
def list_non_serviceable():
    return jsonify({"status": "ok", "pincodes": _shipping().list_non_serviceable()})


@admin_bp.post("/shipping/non-serviceable")
def add_non_serviceable():
    payload = _payload()
    pincode = str(payload.get("pincode", "")).strip()
    if not is_valid_pincode(pincode):
        raise ValueError("Pincode must be 6 digits")
    reason = payload.get("reason")
    entry = _shipping().add_non_serviceable(pincode, reason.strip() if isinstance(reason, str) else None)
    return jsonify({"status": "ok", "entry": entry})


@admin_bp.delete("/shipping/non-serviceable/<entry_id>")
def remove_non_serviceable(entry_id: str):
    _shipping().remove_non_serviceable(entry_id)
    return jsonify({"status": "ok"})


# --- settings --------------------------------------------------------------

@admin_bp.get("/settings")
def get_settings():
    app_config = current_app.config["APP_CONFIG"]
    return jsonify(
        {
            "status": "ok",
            "settings": {
                "CURRENCY": app_config.currency,
                "COMPARISON_MAX_ITEMS": app_config.comparison_max_items,
                "RECENTLY_VIEWED_MAX_ITEMS": app_config.recently_viewed_max_items,
            },
        }
    )


@admin_bp.post("/settings")
def update_settings():
    """套用可即時生效的設定，並寫回 settings.json。"""
    settings = _payload().get("settings")
    if not isinstance(settings, dict) or not settings:
        return _error("未提供設定資料", 400)

    current = current_app.config["APP_CONFIG"]
    updated = refresh_non_sensitive(settings, current)
    current_app.config["APP_CONFIG"] = updated

    settings_file = _config().settings_file
    stored: Dict[str, Any] = {}
    if settings_file.exists():
        try:
            stored = json.loads(settings_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            stored = {}
    if not isinstance(stored, dict):
        stored = {}
    stored.update(
        {
            "CURRENCY": updated.currency,
            "COMPARISON_MAX_ITEMS": updated.comparison_max_items,
            "RECENTLY_VIEWED_MAX_ITEMS": updated.recently_viewed_max_items,
        }
    )
    settings_file.write_text(json.dumps(stored, indent=2, ensure_ascii=False), encoding="utf-8")

    changed = list(settings.keys())
    log_event("info", "admin.settings_updated", keys=changed)
    return jsonify(
        {
            "status": "ok",
            "message": "設定已儲存成功",
            "requires_restart": requires_restart(changed),
        }
    )
