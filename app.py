"""Storefront 商店前台 API 與管理後台 Flask 應用。"""

from __future__ import annotations

from typing import Optional

from flask import Flask

from common.config import load_env
from common.db.session import get_session, init_db
from common.services.catalog_service import CatalogService
from common.services.logging import log_event
from common.services.shipping_service import ShippingService
from config import StorefrontConfig
from routes import admin, api


def create_app(config: Optional[StorefrontConfig] = None, session_factory=None) -> Flask:
    config = config or StorefrontConfig.load()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["STOREFRONT_CONFIG"] = config
    app.config["APP_CONFIG"] = load_env(config.settings_file)

    if session_factory is None:
        init_db()
        session_factory = get_session

    components = {
        "shipping_service": ShippingService(session_factory),
        "catalog_service": CatalogService(session_factory),
    }
    app.extensions["storefront_components"] = components

    app.register_blueprint(api.api_bp)
    app.register_blueprint(admin.admin_bp)

    log_event("info", "app.started", currency=app.config["APP_CONFIG"].currency)
    return app


def main() -> None:
    app = create_app()
    app.run(host="0.0.0.0", port=6055, debug=False)


if __name__ == "__main__":
    main()
