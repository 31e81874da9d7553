"""Admin order management."""

from __future__ import annotations

from flask import Blueprint, jsonify

from .common import admin_only, components, json_body


admin_bp = Blueprint("storefront_admin", __name__, url_prefix="/api/admin/orders")


@admin_bp.get("")
@admin_only
def list_orders():
    return jsonify(components()["order_service"].list_all())


@admin_bp.put("/<order_id>")
@admin_only
def update_order_status(order_id: str):
    payload = json_body()
    order = components()["order_service"].update_status(order_id, str(payload.get("status") or ""))
    return jsonify(order)
