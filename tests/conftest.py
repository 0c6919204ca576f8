from decimal import Decimal

import pytest

from common.db.session import build_engine, init_db, session_factory_for
from common.models.product import Product
from common.models.product_variant import ProductVariant
from common.services.shipping_service import ShippingService


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield session_factory_for(engine)
    engine.dispose()


@pytest.fixture
def shipping(session_factory):
    return ShippingService(session_factory)


@pytest.fixture
def catalog_rows(session_factory):
    with session_factory() as s:
        s.add(
            Product(
                id="p-tee",
                name="Linen Tee",
                slug="linen-tee",
                base_price=Decimal("799.00"),
                sale_price=Decimal("599.00"),
                stock=8,
                images=["/img/tee-1.jpg", "/img/tee-2.jpg"],
            )
        )
        s.add(
            ProductVariant(
                id="v-tee-m-black",
                product_id="p-tee",
                size="M",
                color="Black",
                color_hex="#000000",
                stock=3,
            )
        )
        s.add(
            ProductVariant(
                id="v-tee-xl-white",
                product_id="p-tee",
                size="XL",
                color="White",
                color_hex="#ffffff",
                price=Decimal("849.00"),
                stock=5,
            )
        )
        s.add(ProductVariant(id="v-tee-retired", product_id="p-tee", size="S", stock=4, is_active=False))
        s.add(Product(id="p-cap", name="Cap", slug="cap", base_price=Decimal("300.00"), stock=10))
        s.add(Product(id="p-old", name="Old", slug="old", base_price=Decimal("100.00"), stock=1, is_active=False))
        s.add(Product(id="p-soldout", name="Sold Out", slug="sold-out", base_price=Decimal("450.00"), stock=0))


@pytest.fixture
def app(tmp_path, session_factory, catalog_rows, monkeypatch):
    monkeypatch.setenv("STOREFRONT_ADMIN_USER", "admin")
    monkeypatch.setenv("STOREFRONT_ADMIN_PASS", "s3cret")
    monkeypatch.delenv("CURRENCY", raising=False)

    from app import create_app
    from config import StorefrontConfig

    config = StorefrontConfig.load(data_root=tmp_path)
    flask_app = create_app(config, session_factory=session_factory)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app):
    c = app.test_client()
    resp = c.post("/admin/login", json={"username": "admin", "password": "s3cret"})
    assert resp.status_code == 200
    return c
