from typing import Dict

from ..errors import NotFound
from ..models.product import Product


class CatalogService:
    """Catalog lookup used when a product is added to a cart.

    Only the fields a cart line snapshots are exposed; listing, filtering and
    product administration live outside this backend.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def get_product(self, product_id: str) -> Dict:
        with self._session_factory() as session:
            return self.snapshot(session, product_id)

    @staticmethod
    def snapshot(session, product_id: str) -> Dict:
        """Return the cart-line snapshot of an active product, in ``session``."""
        prod = (
            session.query(Product)
            .filter(Product.id == product_id, Product.is_active.is_(True))
            .first()
        )
        if not prod:
            raise NotFound("Product not found")
        images = prod.images or []
        image = images[0].get("url") if images and isinstance(images[0], dict) else None
        return {
            "productId": prod.id,
            "name": prod.name,
            "image": image,
            "price": float(prod.price or 0),
        }
