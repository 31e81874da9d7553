from datetime import datetime, timezone
from typing import Dict, List
from uuid import uuid4

from ..errors import Forbidden, NotFound, ValidationError
from ..models.checkout import CheckoutSession
from ..models.order import DELIVERY_DELIVERED, DELIVERY_PROCESSING, DELIVERY_STATUSES, Order
from ..utils.dto import to_order_dto
from .cart_service import CartService
from .locking import exclusive, lock_query
from .logging import log_event


class OrderMaterializer:
    """Turns a paid checkout into an order and clears the owner's cart."""

    def materialize(self, session, checkout: CheckoutSession) -> Order:
        # items and total are copied as-is: prices were locked when the checkout was created
        order_items = [
            {
                "productId": it.get("productId"),
                "name": it.get("name"),
                "image": it.get("image"),
                "price": it.get("price"),
                "size": it.get("size"),
                "color": it.get("color"),
                "quantity": it.get("quantity"),
            }
            for it in checkout.checkout_items or []
        ]
        order = Order(
            id=str(uuid4()),
            user_id=checkout.user_id,
            checkout_id=checkout.id,
            order_items=order_items,
            shipping_address=dict(checkout.shipping_address or {}),
            payment_method=checkout.payment_method,
            total_price=checkout.total_price,
            is_paid=True,
            paid_at=checkout.paid_at,
            payment_status="paid",
            payment_details=dict(checkout.payment_details or {}),
            is_delivered=False,
            delivery_status=DELIVERY_PROCESSING,
        )
        session.add(order)
        cleared = CartService.clear_for_user(session, checkout.user_id)
        log_event(
            "info",
            "order.created",
            order_id=order.id,
            checkout_id=checkout.id,
            items=len(order_items),
            total=float(order.total_price or 0),
            cart_cleared=bool(cleared),
        )
        return order


class OrderService:
    """Order retrieval and delivery-status administration."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def list_for_user(self, user_id: str) -> List[Dict]:
        with self._session_factory() as session:
            rows = (
                session.query(Order)
                .filter(Order.user_id == user_id)
                .order_by(Order.created_at.desc())
                .all()
            )
            return [to_order_dto(r) for r in rows]

    def list_all(self) -> List[Dict]:
        with self._session_factory() as session:
            rows = session.query(Order).order_by(Order.created_at.desc()).all()
            return [to_order_dto(r) for r in rows]

    def get_order(self, order_id: str, *, requester: str, is_admin: bool = False) -> Dict:
        with self._session_factory() as session:
            o = session.query(Order).filter(Order.id == order_id).first()
            if not o:
                raise NotFound("Order not found")
            if not is_admin and o.user_id != requester:
                raise Forbidden("Not authorized to view this order")
            return to_order_dto(o)

    def update_status(self, order_id: str, status: str) -> Dict:
        if status not in DELIVERY_STATUSES:
            raise ValidationError("status must be one of: " + ", ".join(DELIVERY_STATUSES))
        with exclusive(self._session_factory, "order") as session:
            o = lock_query(session.query(Order).filter(Order.id == order_id)).first()
            if not o:
                raise NotFound("Order not found")
            o.delivery_status = status
            if status == DELIVERY_DELIVERED:
                o.is_delivered = True
                o.delivered_at = datetime.now(timezone.utc)
            session.flush()
            log_event("info", "order.status_updated", order_id=order_id, status=status)
            return to_order_dto(o)
