"""Cart API keyed by userId or guestId."""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from ..errors import NotFound
from .common import components, json_body, protect


cart_bp = Blueprint("storefront_cart", __name__, url_prefix="/api/cart")


def _line_args(payload: dict) -> dict:
    return {
        "product_id": payload.get("productId"),
        "size": payload.get("size"),
        "color": payload.get("color"),
        "user_id": payload.get("userId"),
        "guest_id": payload.get("guestId"),
    }


@cart_bp.get("")
def get_cart():
    cart = components()["cart_service"].get_cart(
        user_id=request.args.get("userId"),
        guest_id=request.args.get("guestId"),
    )
    return jsonify(cart)


@cart_bp.post("")
def add_to_cart():
    payload = json_body()
    cart = components()["cart_service"].add_item(quantity=payload.get("quantity"), **_line_args(payload))
    return jsonify(cart), 201


@cart_bp.put("")
def update_cart_item():
    payload = json_body()
    cart = components()["cart_service"].update_item(quantity=payload.get("quantity"), **_line_args(payload))
    return jsonify(cart)


@cart_bp.delete("")
def remove_cart_item():
    payload = json_body()
    cart = components()["cart_service"].remove_item(**_line_args(payload))
    return jsonify(cart)


@cart_bp.post("/merge")
@protect
def merge_cart():
    payload = json_body()
    cart = components()["merge_resolver"].merge(guest_id=payload.get("guestId"), user_id=g.identity.user_id)
    if cart is None:
        raise NotFound("Cart not found")
    return jsonify(cart)
