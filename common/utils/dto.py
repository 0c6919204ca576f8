from typing import Any, Dict, Optional


def _num(value) -> Optional[float]:
    return float(value) if value is not None else None


def to_zone_dto(row: Any, *, with_pincodes: bool = False) -> Dict:
    dto = {
        "id": getattr(row, "id", None),
        "name": getattr(row, "name", None),
        "description": getattr(row, "description", None),
        "rate": _num(getattr(row, "rate", None)),
        "free_shipping_threshold": _num(getattr(row, "free_shipping_threshold", None)),
        "estimated_days": getattr(row, "estimated_days", None),
        "is_active": bool(getattr(row, "is_active", True)),
        "sort_order": getattr(row, "sort_order", 0) or 0,
    }
    if with_pincodes:
        dto["pincodes"] = [to_pincode_dto(p) for p in sorted(row.pincodes, key=lambda p: p.pincode)]
    return dto


def to_pincode_dto(row: Any) -> Dict:
    return {
        "id": getattr(row, "id", None),
        "zone_id": getattr(row, "zone_id", None),
        "pincode": getattr(row, "pincode", None),
        "city": getattr(row, "city", None),
        "state": getattr(row, "state", None),
    }


def to_non_serviceable_dto(row: Any) -> Dict:
    return {
        "id": getattr(row, "id", None),
        "pincode": getattr(row, "pincode", None),
        "reason": getattr(row, "reason", None),
    }
