from __future__ import annotations

from flask import Blueprint, g, jsonify

from .common import components, protect


orders_bp = Blueprint("storefront_orders", __name__, url_prefix="/api/orders")


@orders_bp.get("/my-orders")
@protect
def my_orders():
    return jsonify(components()["order_service"].list_for_user(g.identity.user_id))


@orders_bp.get("/<order_id>")
@protect
def order_detail(order_id: str):
    order = components()["order_service"].get_order(
        order_id,
        requester=g.identity.user_id,
        is_admin=g.identity.is_admin,
    )
    return jsonify(order)
