from typing import Dict, List, Optional

from ..errors import ValidationError
from ..utils.dto import to_cart_dto
from .cart_service import find_cart, line_key, store_items
from .locking import exclusive
from .logging import log_event


def merge_lines(user_items: List[Dict], guest_items: List[Dict]) -> List[Dict]:
    """Fold guest lines into user lines, summing quantities of lines with the same identity."""
    merged = [dict(it) for it in user_items]
    index = {line_key(it): it for it in merged}
    for guest_line in guest_items:
        existing = index.get(line_key(guest_line))
        if existing is not None:
            existing["quantity"] = int(existing["quantity"]) + int(guest_line["quantity"])
        else:
            line = dict(guest_line)
            merged.append(line)
            index[line_key(line)] = line
    return merged


class CartMergeResolver:
    """Reconciles a guest cart with a user's cart at login."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def merge(self, *, guest_id: Optional[str], user_id: str) -> Optional[Dict]:
        """Merge the guest cart into the user's cart in one transaction.

        Returns the user's cart after the merge, or None when neither cart
        exists. Both rows are locked and version-checked, so readers see the
        carts either before or after the merge, never in between.
        """
        if not user_id:
            raise ValidationError("user is required")
        guest_id = (guest_id or "").strip()
        if not guest_id:
            raise ValidationError("guestId is required")
        with exclusive(self._session_factory, "cart") as session:
            guest_cart = find_cart(session, guest_id=guest_id)
            user_cart = find_cart(session, user_id=user_id)

            if guest_cart is None:
                return to_cart_dto(user_cart) if user_cart else None

            if user_cart is None:
                # an empty guest cart is reassigned too, so no orphaned guest row is left
                guest_cart.user_id = user_id
                guest_cart.guest_id = None
                session.flush()
                log_event("info", "cart.merged", cart_id=guest_cart.id, mode="reassigned", guest_id=guest_id)
                return to_cart_dto(guest_cart)

            if not guest_cart.products:
                return to_cart_dto(user_cart)

            store_items(user_cart, merge_lines(user_cart.products or [], guest_cart.products or []))
            session.delete(guest_cart)
            session.flush()
            log_event(
                "info",
                "cart.merged",
                cart_id=user_cart.id,
                mode="combined",
                guest_id=guest_id,
                lines=len(user_cart.products),
            )
            return to_cart_dto(user_cart)
