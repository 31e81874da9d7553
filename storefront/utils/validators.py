from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from ..errors import ValidationError

CENTS = Decimal("0.01")
# Numeric(12, 2) columns
MAX_MONEY = Decimal("9999999999.99")
MAX_QUANTITY = 100000
REQUIRED_ADDRESS_FIELDS = ("address", "city", "postalCode", "country")


def to_money(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value))
        if not amount.is_finite() or amount < 0:
            raise ValidationError(f"{field} must be >= 0")
        if amount > MAX_MONEY:
            raise ValidationError(f"{field} must be <= {MAX_MONEY}")
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")


def ensure_quantity(value: Any, field: str = "quantity", allow_zero: bool = False) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        qnty = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field} must be an integer")
    if qnty != value and str(qnty) != str(value).strip():
        raise ValidationError(f"{field} must be an integer")
    minimum = 0 if allow_zero else 1
    if qnty < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    if qnty > MAX_QUANTITY:
        raise ValidationError(f"{field} must be <= {MAX_QUANTITY}")
    return qnty


def require_text(value: Any, field: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def ensure_shipping_address(value: Any) -> dict:
    if not isinstance(value, dict):
        raise ValidationError("shippingAddress is required")
    missing = [f for f in REQUIRED_ADDRESS_FIELDS if not str(value.get(f) or "").strip()]
    if missing:
        raise ValidationError("shippingAddress missing: " + ", ".join(missing))
    return {f: str(value[f]).strip() for f in REQUIRED_ADDRESS_FIELDS}
