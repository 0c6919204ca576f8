from typing import Optional
from ..db.session import get_session
from ..models.product import Product
from ..models.product_variant import ProductVariant
from ..stores.cart import CartCandidate


class CatalogService:
    """Catalog lookups used when a shopper adds something to the cart."""

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    def build_cart_candidate(self, product_id: str, variant_id: Optional[str], quantity: int) -> CartCandidate:
        """Snapshot price, stock and display fields for a (product, variant) pick.

        Price precedence is variant price, then sale price, then base price.
        Raises LookupError when the product or variant is missing or inactive.
        """
        with self._session_factory() as session:
            prod = (
                session.query(Product)
                .filter(Product.id == product_id, Product.is_active.is_(True))
                .first()
            )
            if not prod:
                raise LookupError("Product not found")
            variant = None
            if variant_id:
                variant = (
                    session.query(ProductVariant)
                    .filter(
                        ProductVariant.id == variant_id,
                        ProductVariant.product_id == product_id,
                        ProductVariant.is_active.is_(True),
                    )
                    .first()
                )
                if not variant:
                    raise LookupError("Product variant not found")

            base = float(prod.base_price)
            if variant is not None and variant.price is not None:
                price = float(variant.price)
            elif prod.sale_price is not None:
                price = float(prod.sale_price)
            else:
                price = base
            images = prod.images or []
            return CartCandidate(
                product_id=prod.id,
                variant_id=variant.id if variant else None,
                name=prod.name,
                slug=prod.slug,
                price=price,
                original_price=base if price < base else None,
                quantity=int(quantity),
                stock=int(variant.stock if variant else prod.stock or 0),
                size=variant.size if variant else None,
                color=variant.color if variant else None,
                color_hex=variant.color_hex if variant else None,
                image=images[0] if images else None,
            )
