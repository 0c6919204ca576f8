import json

import pytest

from common.config import AppConfig, load_env, refresh_non_sensitive, requires_restart, validate_currency
from config import StorefrontConfig


def test_load_env_defaults(tmp_path, monkeypatch):
    for key in ("CURRENCY", "COMPARISON_MAX_ITEMS", "RECENTLY_VIEWED_MAX_ITEMS"):
        monkeypatch.delenv(key, raising=False)
    cfg = load_env(tmp_path / "settings.json")
    assert cfg.currency == "INR"
    assert cfg.comparison_max_items == 4
    assert cfg.recently_viewed_max_items == 12


def test_settings_file_wins_over_env(tmp_path, monkeypatch):
    monkeypatch.setenv("CURRENCY", "EUR")
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"CURRENCY": "usd", "RECENTLY_VIEWED_MAX_ITEMS": 6}), encoding="utf-8")

    cfg = load_env(path)
    assert cfg.currency == "USD"
    assert cfg.recently_viewed_max_items == 6


def test_validate_currency():
    assert validate_currency(None) == "INR"
    with pytest.raises(ValueError):
        validate_currency("RUPEE")


def test_refresh_ignores_sensitive_keys():
    current = AppConfig("sqlite://", "INFO", "INR", 4, 12)
    updated = refresh_non_sensitive({"DATABASE_URL": "postgres://x", "COMPARISON_MAX_ITEMS": "3"}, current)
    assert updated.database_url == "sqlite://"
    assert updated.comparison_max_items == 3
    with pytest.raises(ValueError):
        refresh_non_sensitive({"COMPARISON_MAX_ITEMS": 0}, current)


@pytest.mark.parametrize("value", [2.7, 3.0, True, "2.7", "three", -2])
def test_max_items_must_be_a_whole_number(value):
    current = AppConfig("sqlite://", "INFO", "INR", 4, 12)
    with pytest.raises(ValueError):
        refresh_non_sensitive({"RECENTLY_VIEWED_MAX_ITEMS": value}, current)


def test_requires_restart():
    assert requires_restart([]) is False
    assert requires_restart(["CURRENCY"]) is False
    assert requires_restart(["DATABASE_URL", "CURRENCY"]) is True


def test_admin_file_overrides_env_credentials(tmp_path, monkeypatch):
    monkeypatch.setenv("STOREFRONT_ADMIN_PASS", "from-env")
    (tmp_path / "admin.json").write_text(json.dumps({"username": "ops", "password": "from-file"}), encoding="utf-8")

    cfg = StorefrontConfig.load(data_root=tmp_path)
    assert cfg.admin_username == "ops"
    assert cfg.admin_password == "from-file"
