import time
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from ..errors import NotFound, ValidationError
from ..models.cart import Cart
from ..utils.dto import to_cart_dto
from ..utils.validators import CENTS, ensure_quantity, require_text
from .catalog_service import CatalogService
from .locking import exclusive, lock_query
from .logging import log_event


def _norm(value) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip() or None


def line_key(item: Dict) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Identity of a cart line: two lines differing only in quantity are the same line."""
    return (str(item.get("productId")), _norm(item.get("size")), _norm(item.get("color")))


def items_total(items: List[Dict]) -> Decimal:
    total = sum((Decimal(str(it.get("price") or 0)) * int(it.get("quantity") or 0) for it in items), Decimal("0"))
    return total.quantize(CENTS)


def find_cart(session, *, user_id: Optional[str] = None, guest_id: Optional[str] = None, lock: bool = True) -> Optional[Cart]:
    if user_id:
        q = session.query(Cart).filter(Cart.user_id == user_id)
    elif guest_id:
        q = session.query(Cart).filter(Cart.guest_id == guest_id)
    else:
        return None
    if lock:
        q = lock_query(q)
    return q.first()


def store_items(cart: Cart, items: List[Dict]) -> None:
    # JSON columns are replaced wholesale so the versioned UPDATE always fires
    cart.products = [dict(it) for it in items]
    cart.total_price = items_total(items)


def new_guest_id() -> str:
    return f"guest_{int(time.time() * 1000)}"


class CartService:
    """Cart operations backed by DB."""

    def __init__(self, session_factory, catalog: Optional[CatalogService] = None):
        self._session_factory = session_factory
        self._catalog = catalog or CatalogService(session_factory)

    @staticmethod
    def _identity(user_id: Optional[str], guest_id: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
        return _norm(user_id), _norm(guest_id)

    def get_cart(self, *, user_id: Optional[str] = None, guest_id: Optional[str] = None) -> Dict:
        uid, gid = self._identity(user_id, guest_id)
        with self._session_factory() as session:
            cart = find_cart(session, user_id=uid, guest_id=gid, lock=False)
            if not cart:
                raise NotFound("Cart not found")
            return to_cart_dto(cart)

    def add_item(
        self,
        *,
        product_id: str,
        quantity=1,
        size: Optional[str] = None,
        color: Optional[str] = None,
        user_id: Optional[str] = None,
        guest_id: Optional[str] = None,
    ) -> Dict:
        product_id = require_text(product_id, "productId")
        qnty = ensure_quantity(1 if quantity in (None, "") else quantity)
        uid, gid = self._identity(user_id, guest_id)
        with exclusive(self._session_factory, "cart") as session:
            snapshot = self._catalog.snapshot(session, product_id)
            line = dict(snapshot, size=_norm(size), color=_norm(color), quantity=qnty)
            cart = find_cart(session, user_id=uid, guest_id=gid)
            if cart is None:
                cart = Cart(
                    id=str(uuid4()),
                    user_id=uid,
                    guest_id=None if uid else (gid or new_guest_id()),
                )
                store_items(cart, [line])
                session.add(cart)
            else:
                items = [dict(it) for it in cart.products or []]
                for it in items:
                    if line_key(it) == line_key(line):
                        it["quantity"] = ensure_quantity(int(it["quantity"]) + qnty)
                        break
                else:
                    items.append(line)
                store_items(cart, items)
            session.flush()
            log_event("info", "cart.updated", cart_id=cart.id, action="add", product_id=product_id, quantity=qnty)
            return to_cart_dto(cart)

    def update_item(
        self,
        *,
        product_id: str,
        quantity,
        size: Optional[str] = None,
        color: Optional[str] = None,
        user_id: Optional[str] = None,
        guest_id: Optional[str] = None,
    ) -> Dict:
        """Set a line's quantity; zero removes the line."""
        product_id = require_text(product_id, "productId")
        if quantity in (None, ""):
            raise ValidationError("quantity is required")
        qnty = ensure_quantity(quantity, allow_zero=True)
        key = (product_id, _norm(size), _norm(color))
        uid, gid = self._identity(user_id, guest_id)
        with exclusive(self._session_factory, "cart") as session:
            cart = find_cart(session, user_id=uid, guest_id=gid)
            if not cart:
                raise NotFound("Cart not found")
            items = [dict(it) for it in cart.products or []]
            idx = next((i for i, it in enumerate(items) if line_key(it) == key), None)
            if idx is None:
                raise NotFound("Product not found in cart")
            if qnty == 0:
                items.pop(idx)
            else:
                items[idx]["quantity"] = qnty
            store_items(cart, items)
            session.flush()
            log_event("info", "cart.updated", cart_id=cart.id, action="update", product_id=product_id, quantity=qnty)
            return to_cart_dto(cart)

    def remove_item(
        self,
        *,
        product_id: str,
        size: Optional[str] = None,
        color: Optional[str] = None,
        user_id: Optional[str] = None,
        guest_id: Optional[str] = None,
    ) -> Dict:
        product_id = require_text(product_id, "productId")
        key = (product_id, _norm(size), _norm(color))
        uid, gid = self._identity(user_id, guest_id)
        with exclusive(self._session_factory, "cart") as session:
            cart = find_cart(session, user_id=uid, guest_id=gid)
            if not cart:
                raise NotFound("Cart not found")
            items = [dict(it) for it in cart.products or []]
            kept = [it for it in items if line_key(it) != key]
            if len(kept) == len(items):
                raise NotFound("Product not found in cart")
            store_items(cart, kept)
            session.flush()
            log_event("info", "cart.updated", cart_id=cart.id, action="remove", product_id=product_id)
            return to_cart_dto(cart)

    @staticmethod
    def clear_for_user(session, user_id: str) -> int:
        """Delete the user's cart inside ``session``; a missing cart is not an error."""
        return session.query(Cart).filter(Cart.user_id == user_id).delete(synchronize_session=False)
