"""Checkout session state machine.

``Pending --(verified payment)--> Paid --(finalize)--> Finalized``

Each transition loads the session row under an exclusive lock, re-checks its
state and writes with a version check in the same transaction. Gateway
intent creation never writes, so a failed round trip leaves the session
Pending.
"""
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..errors import AlreadyFinalized, AlreadyPaid, Forbidden, InvalidSignature, NotFound, NotPaid, ValidationError
from ..models.checkout import PAYMENT_PAID, PAYMENT_PENDING, CheckoutSession
from ..utils.dto import to_checkout_dto, to_order_dto
from ..utils.validators import MAX_MONEY, ensure_quantity, ensure_shipping_address, require_text, to_money
from .cart_service import items_total
from .locking import exclusive, lock_query
from .logging import log_event
from .order_service import OrderMaterializer
from .payment_gateway import PaymentGateway


def to_minor_units(total: Decimal) -> int:
    """Rupees to paise, rounded half up."""
    return int((Decimal(str(total)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def receipt_ref(checkout_id: str) -> str:
    return "rcpt_" + checkout_id.replace("-", "")


def _normalize_items(items: Any) -> List[Dict]:
    if not items or not isinstance(items, list):
        raise ValidationError("No items in checkout")
    normalized = []
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError("checkout item must be an object")
        normalized.append(
            {
                "productId": require_text(raw.get("productId"), "productId"),
                "name": require_text(raw.get("name"), "name"),
                "image": raw.get("image"),
                "price": float(to_money(raw.get("price"), "price")),
                "size": raw.get("size"),
                "color": raw.get("color"),
                # quantity defaults to 1 when absent or falsy
                "quantity": ensure_quantity(raw.get("quantity") or 1),
            }
        )
    return normalized


class CheckoutService:
    def __init__(
        self,
        session_factory,
        gateway: PaymentGateway,
        materializer: Optional[OrderMaterializer] = None,
        currency: str = "INR",
    ):
        self._session_factory = session_factory
        self._gateway = gateway
        self._materializer = materializer or OrderMaterializer()
        self._currency = currency

    @staticmethod
    def _load_owned(session, session_id: str, requester: str, lock: bool = True) -> CheckoutSession:
        q = session.query(CheckoutSession).filter(CheckoutSession.id == session_id)
        if lock:
            q = lock_query(q)
        checkout = q.first()
        if not checkout:
            raise NotFound("Checkout not found")
        if checkout.user_id != requester:
            raise Forbidden("Not authorized to access this checkout")
        return checkout

    def create_session(
        self,
        *,
        user_id: str,
        items: Any,
        shipping_address: Any,
        payment_method: Any,
        total_price: Any = None,
    ) -> Dict:
        checkout_items = _normalize_items(items)
        address = ensure_shipping_address(shipping_address)
        method = require_text(payment_method, "paymentMethod")
        expected = items_total(checkout_items)
        if expected > MAX_MONEY:
            raise ValidationError(f"checkout total must be <= {MAX_MONEY}")
        if total_price is None:
            total = expected
        else:
            total = to_money(total_price, "totalPrice")
            if total != expected:
                raise ValidationError(f"totalPrice {total} does not match items total {expected}")
        with self._session_factory() as session:
            checkout = CheckoutSession(
                id=str(uuid4()),
                user_id=user_id,
                checkout_items=checkout_items,
                shipping_address=address,
                payment_method=method,
                total_price=total,
                payment_status=PAYMENT_PENDING,
                is_paid=False,
                is_finalized=False,
            )
            session.add(checkout)
            session.flush()
            log_event("info", "checkout.created", checkout_id=checkout.id, user_id=user_id, total=float(total))
            return to_checkout_dto(checkout)

    def get_session(self, session_id: str, *, requester: str) -> Dict:
        with self._session_factory() as session:
            return to_checkout_dto(self._load_owned(session, session_id, requester, lock=False))

    def request_payment_intent(self, session_id: str, *, requester: str) -> Dict:
        with self._session_factory() as session:
            checkout = self._load_owned(session, session_id, requester, lock=False)
            if checkout.is_paid:
                raise AlreadyPaid()
            amount = to_minor_units(checkout.total_price)
            receipt = receipt_ref(checkout.id)
        return self._gateway.create_intent(amount, self._currency, receipt)

    def verify_and_mark_paid(
        self,
        session_id: str,
        *,
        requester: str,
        gateway_order_id: Optional[str],
        gateway_payment_id: Optional[str],
        gateway_signature: Optional[str],
    ) -> Dict:
        order_ref = require_text(gateway_order_id, "gatewayOrderId")
        payment_ref = require_text(gateway_payment_id, "gatewayPaymentId")
        signature = require_text(gateway_signature, "gatewaySignature")
        with exclusive(self._session_factory, "checkout") as session:
            checkout = self._load_owned(session, session_id, requester)
            if checkout.is_paid:
                raise AlreadyPaid()
            if not self._gateway.verify_signature(order_ref, payment_ref, signature):
                log_event("warning", "checkout.signature_mismatch", checkout_id=checkout.id, gateway_order_id=order_ref)
                raise InvalidSignature()
            checkout.is_paid = True
            checkout.payment_status = PAYMENT_PAID
            checkout.payment_details = {
                "gatewayOrderId": order_ref,
                "gatewayPaymentId": payment_ref,
                "gatewaySignature": signature,
            }
            checkout.paid_at = datetime.now(timezone.utc)
            session.flush()
            log_event("info", "checkout.paid", checkout_id=checkout.id, gateway_payment_id=payment_ref)
            return to_checkout_dto(checkout)

    def finalize(self, session_id: str, *, requester: str) -> Dict:
        with exclusive(self._session_factory, "checkout") as session:
            checkout = self._load_owned(session, session_id, requester)
            if checkout.is_finalized:
                raise AlreadyFinalized()
            if not checkout.is_paid:
                raise NotPaid()
            order = self._materializer.materialize(session, checkout)
            checkout.is_finalized = True
            checkout.finalized_at = datetime.now(timezone.utc)
            session.flush()
            log_event("info", "checkout.finalized", checkout_id=checkout.id, order_id=order.id)
            return to_order_dto(order)
