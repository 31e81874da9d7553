from datetime import datetime
from typing import Any, Dict, Optional


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def to_line_item_dto(item: Dict) -> Dict:
    return {
        "productId": item.get("productId"),
        "name": item.get("name"),
        "image": item.get("image"),
        "price": float(item.get("price") or 0),
        "size": item.get("size"),
        "color": item.get("color"),
        "quantity": int(item.get("quantity") or 0),
    }


def to_cart_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "user": row.user_id,
        "guestId": row.guest_id,
        "products": [to_line_item_dto(it) for it in (row.products or [])],
        "totalPrice": float(row.total_price or 0),
    }


def to_checkout_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "user": row.user_id,
        "checkoutItems": [to_line_item_dto(it) for it in (row.checkout_items or [])],
        "shippingAddress": row.shipping_address or {},
        "paymentMethod": row.payment_method,
        "totalPrice": float(row.total_price or 0),
        "paymentStatus": row.payment_status,
        "isPaid": bool(row.is_paid),
        "paymentDetails": row.payment_details,
        "paidAt": _iso(row.paid_at),
        "isFinalized": bool(row.is_finalized),
        "finalizedAt": _iso(row.finalized_at),
        "createdAt": _iso(row.created_at),
    }


def to_order_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "user": row.user_id,
        "checkout": row.checkout_id,
        "orderItems": [to_line_item_dto(it) for it in (row.order_items or [])],
        "shippingAddress": row.shipping_address or {},
        "paymentMethod": row.payment_method,
        "totalPrice": float(row.total_price or 0),
        "isPaid": bool(row.is_paid),
        "paidAt": _iso(row.paid_at),
        "paymentStatus": row.payment_status,
        "paymentDetails": row.payment_details,
        "isDelivered": bool(row.is_delivered),
        "deliveredAt": _iso(row.delivered_at),
        "deliveryStatus": row.delivery_status,
        "createdAt": _iso(row.created_at),
    }
