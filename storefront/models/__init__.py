from .base import Base
from .cart import Cart
from .checkout import CheckoutSession
from .order import Order
from .product import Product

__all__ = ["Base", "Cart", "CheckoutSession", "Order", "Product"]
