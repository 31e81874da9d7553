"""Tests for the checkout session state machine."""

from decimal import Decimal

import pytest

from storefront.errors import (
    AlreadyFinalized,
    AlreadyPaid,
    Forbidden,
    GatewayUnavailable,
    InvalidSignature,
    NotFound,
    NotPaid,
    ValidationError,
)
from storefront.models import Cart, CheckoutSession, Order, Product
from storefront.services import CheckoutService, PaymentGateway
from storefront.services.checkout_service import receipt_ref, to_minor_units

from conftest import ADDRESS, sign


def _create(checkout_service, line, user="u1", **overrides):
    kwargs = dict(
        user_id=user,
        items=[line],
        shipping_address=ADDRESS,
        payment_method="Razorpay",
        total_price=1000,
    )
    kwargs.update(overrides)
    return checkout_service.create_session(**kwargs)


def _pay(checkout_service, checkout_id, user="u1", order_id="order_1", payment_id="pay_1"):
    return checkout_service.verify_and_mark_paid(
        checkout_id,
        requester=user,
        gateway_order_id=order_id,
        gateway_payment_id=payment_id,
        gateway_signature=sign(order_id, payment_id),
    )


class TestCreateSession:
    def test_creates_pending_session(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        assert checkout["paymentStatus"] == "Pending"
        assert checkout["isPaid"] is False
        assert checkout["isFinalized"] is False
        assert checkout["totalPrice"] == 1000
        assert checkout["checkoutItems"][0]["quantity"] == 2
        assert checkout["user"] == "u1"

    def test_empty_items_rejected(self, checkout_service):
        with pytest.raises(ValidationError):
            checkout_service.create_session(
                user_id="u1", items=[], shipping_address=ADDRESS, payment_method="Razorpay", total_price=0
            )

    def test_missing_items_rejected(self, checkout_service):
        with pytest.raises(ValidationError):
            checkout_service.create_session(
                user_id="u1", items=None, shipping_address=ADDRESS, payment_method="Razorpay"
            )

    @pytest.mark.parametrize("quantity", [None, 0, ""])
    def test_quantity_defaults_to_one(self, checkout_service, line, quantity):
        line["quantity"] = quantity
        checkout = _create(checkout_service, line, total_price=500)
        assert checkout["checkoutItems"][0]["quantity"] == 1

    def test_total_defaults_to_items_sum(self, checkout_service, line):
        checkout = _create(checkout_service, line, total_price=None)
        assert checkout["totalPrice"] == 1000

    def test_total_must_match_items(self, checkout_service, line):
        with pytest.raises(ValidationError):
            _create(checkout_service, line, total_price=999)

    @pytest.mark.parametrize(
        "price,quantity",
        [(1e30, 1), (float("inf"), 1), (float("nan"), 1), ("1e400", 1), (500, float("inf")), (500, 10**6)],
    )
    def test_out_of_range_numbers_rejected(self, checkout_service, line, price, quantity):
        line.update(price=price, quantity=quantity)
        with pytest.raises(ValidationError):
            _create(checkout_service, line, total_price=None)

    def test_total_beyond_column_range_rejected(self, checkout_service, line):
        line.update(price=9999999999, quantity=2)
        with pytest.raises(ValidationError):
            _create(checkout_service, line, total_price=None)

    @pytest.mark.parametrize("total", [1e30, float("inf"), "abc"])
    def test_unusable_total_rejected(self, checkout_service, line, total):
        with pytest.raises(ValidationError):
            _create(checkout_service, line, total_price=total)

    def test_incomplete_address_rejected(self, checkout_service, line):
        with pytest.raises(ValidationError):
            _create(checkout_service, line, shipping_address={"address": "x", "city": "y"})

    def test_items_are_copied_by_value(self, checkout_service, line, session_factory):
        checkout = _create(checkout_service, line)
        line["quantity"] = 7
        line["price"] = 1
        with session_factory() as session:
            row = session.get(CheckoutSession, checkout["id"])
            assert row.checkout_items[0]["quantity"] == 2
            assert row.checkout_items[0]["price"] == 500


class TestPaymentIntent:
    def test_requests_amount_in_paise(self, checkout_service, line, fake_http):
        checkout = _create(checkout_service, line)
        handle = checkout_service.request_payment_intent(checkout["id"], requester="u1")
        assert handle["amount"] == 100000
        assert handle["currency"] == "INR"
        assert fake_http.calls[0]["json"]["amount"] == 100000
        assert fake_http.calls[0]["json"]["receipt"] == receipt_ref(checkout["id"])

    def test_not_found(self, checkout_service):
        with pytest.raises(NotFound):
            checkout_service.request_payment_intent("missing", requester="u1")

    def test_forbidden_for_other_user(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        with pytest.raises(Forbidden):
            checkout_service.request_payment_intent(checkout["id"], requester="intruder")

    def test_already_paid(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        _pay(checkout_service, checkout["id"])
        with pytest.raises(AlreadyPaid):
            checkout_service.request_payment_intent(checkout["id"], requester="u1")

    def test_gateway_failure_leaves_session_pending(self, session_factory, line):
        service = CheckoutService(session_factory, PaymentGateway(None, None))
        checkout = _create(service, line)
        with pytest.raises(GatewayUnavailable):
            service.request_payment_intent(checkout["id"], requester="u1")
        state = service.get_session(checkout["id"], requester="u1")
        assert state["paymentStatus"] == "Pending"
        assert state["isPaid"] is False

    @pytest.mark.parametrize(
        "total,minor",
        [(Decimal("1000"), 100000), (Decimal("0.01"), 1), (Decimal("19.99"), 1999), (Decimal("10.005"), 1001)],
    )
    def test_minor_units_rounding(self, total, minor):
        assert to_minor_units(total) == minor


class TestVerifyAndMarkPaid:
    def test_valid_signature_marks_paid(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        paid = _pay(checkout_service, checkout["id"])
        assert paid["isPaid"] is True
        assert paid["paymentStatus"] == "Paid"
        assert paid["paidAt"] is not None
        assert paid["paymentDetails"] == {
            "gatewayOrderId": "order_1",
            "gatewayPaymentId": "pay_1",
            "gatewaySignature": sign("order_1", "pay_1"),
        }

    def test_invalid_signature_changes_nothing(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        with pytest.raises(InvalidSignature):
            checkout_service.verify_and_mark_paid(
                checkout["id"],
                requester="u1",
                gateway_order_id="order_1",
                gateway_payment_id="pay_1",
                gateway_signature=sign("order_1", "pay_2"),
            )
        state = checkout_service.get_session(checkout["id"], requester="u1")
        assert state["isPaid"] is False
        assert state["paymentStatus"] == "Pending"
        assert state["paymentDetails"] is None

    def test_failed_verification_is_retriable(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        with pytest.raises(InvalidSignature):
            checkout_service.verify_and_mark_paid(
                checkout["id"],
                requester="u1",
                gateway_order_id="order_1",
                gateway_payment_id="pay_1",
                gateway_signature="0" * 64,
            )
        assert _pay(checkout_service, checkout["id"])["isPaid"] is True

    def test_forbidden_for_other_user(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        with pytest.raises(Forbidden):
            _pay(checkout_service, checkout["id"], user="intruder")

    def test_not_found(self, checkout_service):
        with pytest.raises(NotFound):
            _pay(checkout_service, "missing")

    def test_second_payment_rejected(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        _pay(checkout_service, checkout["id"])
        with pytest.raises(AlreadyPaid):
            _pay(checkout_service, checkout["id"], payment_id="pay_2")

    def test_missing_callback_fields(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        with pytest.raises(ValidationError):
            checkout_service.verify_and_mark_paid(
                checkout["id"],
                requester="u1",
                gateway_order_id="order_1",
                gateway_payment_id=None,
                gateway_signature="abc",
            )


class TestFinalize:
    def test_finalize_creates_order(self, checkout_service, line, session_factory):
        checkout = _create(checkout_service, line)
        _pay(checkout_service, checkout["id"])
        order = checkout_service.finalize(checkout["id"], requester="u1")
        assert order["totalPrice"] == 1000
        assert order["isPaid"] is True
        assert order["isDelivered"] is False
        assert order["deliveryStatus"] == "Processing"
        assert order["checkout"] == checkout["id"]
        assert order["orderItems"][0]["productId"] == "p1"
        state = checkout_service.get_session(checkout["id"], requester="u1")
        assert state["isFinalized"] is True
        assert state["finalizedAt"] is not None

    def test_finalize_twice_creates_one_order(self, checkout_service, line, session_factory):
        checkout = _create(checkout_service, line)
        _pay(checkout_service, checkout["id"])
        checkout_service.finalize(checkout["id"], requester="u1")
        with pytest.raises(AlreadyFinalized):
            checkout_service.finalize(checkout["id"], requester="u1")
        with session_factory() as session:
            assert session.query(Order).filter(Order.checkout_id == checkout["id"]).count() == 1

    def test_finalize_unpaid_fails_and_keeps_cart(self, checkout_service, cart_service, line, session_factory):
        cart_service.add_item(product_id="p1", quantity=2, user_id="u1")
        checkout = _create(checkout_service, line)
        with pytest.raises(NotPaid):
            checkout_service.finalize(checkout["id"], requester="u1")
        with session_factory() as session:
            assert session.query(Cart).filter(Cart.user_id == "u1").count() == 1
            assert session.query(Order).count() == 0

    def test_finalize_clears_owner_cart(self, checkout_service, cart_service, line, session_factory):
        cart_service.add_item(product_id="p1", quantity=2, user_id="u1")
        cart_service.add_item(product_id="p1", quantity=1, user_id="u2")
        checkout = _create(checkout_service, line)
        _pay(checkout_service, checkout["id"])
        checkout_service.finalize(checkout["id"], requester="u1")
        with session_factory() as session:
            assert session.query(Cart).filter(Cart.user_id == "u1").count() == 0
            assert session.query(Cart).filter(Cart.user_id == "u2").count() == 1

    def test_finalize_without_cart_is_fine(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        _pay(checkout_service, checkout["id"])
        assert checkout_service.finalize(checkout["id"], requester="u1")["totalPrice"] == 1000

    def test_forbidden_for_other_user(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        _pay(checkout_service, checkout["id"])
        with pytest.raises(Forbidden):
            checkout_service.finalize(checkout["id"], requester="intruder")

    def test_price_locked_against_catalog_changes(self, checkout_service, cart_service, session_factory):
        cart = cart_service.add_item(product_id="p1", quantity=2, user_id="u1")
        items = cart["products"]
        checkout = checkout_service.create_session(
            user_id="u1",
            items=items,
            shipping_address=ADDRESS,
            payment_method="Razorpay",
            total_price=cart["totalPrice"],
        )
        with session_factory() as session:
            session.get(Product, "p1").price = Decimal("750.00")
        _pay(checkout_service, checkout["id"])
        order = checkout_service.finalize(checkout["id"], requester="u1")
        assert order["totalPrice"] == 1000
        assert order["orderItems"][0]["price"] == 500

    def test_pay_after_finalize_rejected(self, checkout_service, line):
        checkout = _create(checkout_service, line)
        _pay(checkout_service, checkout["id"])
        checkout_service.finalize(checkout["id"], requester="u1")
        with pytest.raises(AlreadyPaid):
            _pay(checkout_service, checkout["id"], payment_id="pay_9")
