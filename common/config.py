import os
from dataclasses import dataclass
from pathlib import Path
import json
from typing import Dict, List, Optional


@dataclass
class AppConfig:
    database_url: str
    log_level: str
    currency: str
    comparison_max_items: int
    recently_viewed_max_items: int


ALLOWED_HOT_KEYS = {"CURRENCY", "COMPARISON_MAX_ITEMS", "RECENTLY_VIEWED_MAX_ITEMS"}
SENSITIVE_KEYS = {"DATABASE_URL", "SECRET_KEY", "STOREFRONT_ADMIN_PASS"}


def validate_currency(value: Optional[str]) -> str:
    v = (value or "INR").strip().upper()
    if len(v) != 3:
        raise ValueError("Invalid currency code: expected ISO4217 length 3")
    return v


def validate_max_items(value, default: int) -> int:
    if value in (None, ""):
        return default
    if isinstance(value, bool):
        raise ValueError("max items must be an integer")
    if isinstance(value, int):
        n = value
    elif isinstance(value, str) and value.strip().isdigit():
        n = int(value.strip())
    else:
        raise ValueError("max items must be an integer")
    if n < 1:
        raise ValueError("max items must be >= 1")
    return n


def _load_settings_file(path: Optional[Path] = None) -> dict:
    path = path or Path(__file__).resolve().parents[1] / "data" / "settings.json"
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_env(settings_path: Optional[Path] = None) -> AppConfig:
    # 設定以 data/settings.json 為主，環境變數為後備
    s = _load_settings_file(settings_path)
    database_url = os.getenv("DATABASE_URL", "sqlite:///data/storefront.db")
    log_level = os.getenv("LOG_LEVEL", "INFO")
    currency = validate_currency(s.get("CURRENCY") or os.getenv("CURRENCY"))
    comparison_max = validate_max_items(
        s.get("COMPARISON_MAX_ITEMS") or os.getenv("COMPARISON_MAX_ITEMS"), 4
    )
    recent_max = validate_max_items(
        s.get("RECENTLY_VIEWED_MAX_ITEMS") or os.getenv("RECENTLY_VIEWED_MAX_ITEMS"), 12
    )
    return AppConfig(
        database_url=database_url,
        log_level=log_level,
        currency=currency,
        comparison_max_items=comparison_max,
        recently_viewed_max_items=recent_max,
    )


def refresh_non_sensitive(overrides: Dict[str, str], current: AppConfig) -> AppConfig:
    updates = {k: v for k, v in (overrides or {}).items() if k in ALLOWED_HOT_KEYS}
    return AppConfig(
        database_url=current.database_url,
        log_level=current.log_level,
        currency=validate_currency(updates.get("CURRENCY", current.currency)),
        comparison_max_items=validate_max_items(
            updates.get("COMPARISON_MAX_ITEMS"), current.comparison_max_items
        ),
        recently_viewed_max_items=validate_max_items(
            updates.get("RECENTLY_VIEWED_MAX_ITEMS"), current.recently_viewed_max_items
        ),
    )


def requires_restart(changed_keys: List[str]) -> bool:
    if not changed_keys:
        return False
    return any(k in SENSITIVE_KEYS for k in changed_keys)
