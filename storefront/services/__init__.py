"""Storefront service layer."""

from .auth import Identity, IdentityResolver
from .cart_merge import CartMergeResolver
from .cart_service import CartService
from .catalog_service import CatalogService
from .checkout_service import CheckoutService
from .order_service import OrderMaterializer, OrderService
from .payment_gateway import PaymentGateway

__all__ = [
    "Identity",
    "IdentityResolver",
    "CartMergeResolver",
    "CartService",
    "CatalogService",
    "CheckoutService",
    "OrderMaterializer",
    "OrderService",
    "PaymentGateway",
]
