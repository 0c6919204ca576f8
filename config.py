"""Storefront 應用設定模組。"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from common.services.logging import log_event


@dataclass
class StorefrontConfig:
    """封裝商店前台與管理後台的設定值。"""

    secret_key: str
    admin_username: str
    admin_password: str
    app_root: Path
    data_root: Path

    @property
    def admin_credentials_file(self) -> Path:
        return self.data_root / "admin.json"

    @property
    def settings_file(self) -> Path:
        return self.data_root / "settings.json"

    @classmethod
    def load(cls, data_root: Optional[Path] = None) -> "StorefrontConfig":
        """從環境變數建構設定，並確保資料目錄存在。"""

        app_root = Path(__file__).resolve().parent
        data_root = Path(data_root or os.environ.get("STOREFRONT_DATA_DIR") or app_root / "data")

        secret_key = os.environ.get("STOREFRONT_SECRET_KEY", "storefront-dev-secret")
        admin_username = os.environ.get("STOREFRONT_ADMIN_USER", "admin")
        admin_password = os.environ.get("STOREFRONT_ADMIN_PASS", "storefront")

        config = cls(
            secret_key=secret_key,
            admin_username=admin_username,
            admin_password=admin_password,
            app_root=app_root,
            data_root=data_root,
        )
        config.data_root.mkdir(parents=True, exist_ok=True)

        # admin.json 存在時優先於環境變數
        if config.admin_credentials_file.exists():
            try:
                admin_data = json.loads(config.admin_credentials_file.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                log_event("warning", "config.admin_file_unreadable", error=str(exc))
            else:
                if isinstance(admin_data, dict):
                    config.admin_username = admin_data.get("username", admin_username)
                    config.admin_password = admin_data.get("password", admin_password)
                    log_event("info", "config.admin_file_loaded", path=str(config.admin_credentials_file))

        return config
