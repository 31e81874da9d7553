"""Checkout API: session creation, payment intent, payment verification, finalize."""

from __future__ import annotations

from flask import Blueprint, g, jsonify

from .common import components, json_body, protect


checkout_bp = Blueprint("storefront_checkout", __name__, url_prefix="/api/checkout")


def _service():
    return components()["checkout_service"]


@checkout_bp.post("")
@protect
def create_checkout():
    payload = json_body()
    checkout = _service().create_session(
        user_id=g.identity.user_id,
        items=payload.get("checkoutItems"),
        shipping_address=payload.get("shippingAddress"),
        payment_method=payload.get("paymentMethod"),
        total_price=payload.get("totalPrice"),
    )
    return jsonify(checkout), 201


@checkout_bp.get("/<checkout_id>")
@protect
def get_checkout(checkout_id: str):
    return jsonify(_service().get_session(checkout_id, requester=g.identity.user_id))


@checkout_bp.post("/<checkout_id>/create-payment-intent")
@protect
def create_payment_intent(checkout_id: str):
    handle = _service().request_payment_intent(checkout_id, requester=g.identity.user_id)
    return jsonify(handle), 200


@checkout_bp.put("/<checkout_id>/pay")
@protect
def mark_paid(checkout_id: str):
    payload = json_body()
    # the processor's checkout widget posts its own field names
    checkout = _service().verify_and_mark_paid(
        checkout_id,
        requester=g.identity.user_id,
        gateway_order_id=payload.get("gatewayOrderId") or payload.get("razorpay_order_id"),
        gateway_payment_id=payload.get("gatewayPaymentId") or payload.get("razorpay_payment_id"),
        gateway_signature=payload.get("gatewaySignature") or payload.get("razorpay_signature"),
    )
    return jsonify(checkout), 200


@checkout_bp.post("/<checkout_id>/finalize")
@protect
def finalize_checkout(checkout_id: str):
    order = _service().finalize(checkout_id, requester=g.identity.user_id)
    return jsonify(order), 201
