"""
Payment gateway adapter (Razorpay orders API).

- One instance per process, built from configured credentials and injected
  into the services that need it
- Missing credentials put the adapter in degraded mode: intent creation fails
  with GatewayUnavailable instead of crashing the process
- No retries here; retry policy belongs to the caller
"""
import hashlib
import hmac
from typing import Any, Dict, Optional

import requests

from ..errors import GatewayUnavailable
from .logging import log_event


def compute_signature(gateway_order_id: str, gateway_payment_id: str, secret: str) -> str:
    """HMAC-SHA256 over ``order_id|payment_id`` keyed by the gateway secret, hex encoded."""
    message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signature_matches(gateway_order_id: str, gateway_payment_id: str, signature: str, secret: str) -> bool:
    expected = compute_signature(gateway_order_id, gateway_payment_id, secret)
    return hmac.compare_digest(expected.encode("utf-8"), (signature or "").encode("utf-8"))


class PaymentGateway:
    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        http: Optional[Any] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._key_secret = key_secret or None
        self._http = None
        try:
            self._http = self._build_client(key_id, key_secret, http)
        except ValueError as exc:
            log_event("error", "gateway.unavailable", reason=str(exc))

    @staticmethod
    def _build_client(key_id: Optional[str], key_secret: Optional[str], http: Optional[Any]):
        if not key_id or not key_secret:
            raise ValueError("payment gateway credentials are not configured")
        client = http if http is not None else requests.Session()
        client.auth = (key_id, key_secret)
        return client

    @property
    def available(self) -> bool:
        return self._http is not None

    def create_intent(self, amount_minor_units: int, currency: str, receipt_ref: str) -> Dict:
        """Create a remote payment intent and return the gateway's handle verbatim."""
        if self._http is None:
            raise GatewayUnavailable()
        payload = {"amount": int(amount_minor_units), "currency": currency, "receipt": receipt_ref}
        try:
            response = self._http.post(f"{self.base_url}/orders", json=payload, timeout=self.timeout)
            response.raise_for_status()
            handle = response.json()
            if not isinstance(handle, dict):
                raise ValueError("unexpected gateway response")
        except requests.exceptions.Timeout:
            log_event("error", "gateway.intent_failed", receipt=receipt_ref, reason="timeout")
            raise GatewayUnavailable("Payment gateway timed out")
        except (requests.exceptions.RequestException, ValueError) as exc:
            log_event("error", "gateway.intent_failed", receipt=receipt_ref, reason=str(exc)[:200])
            raise GatewayUnavailable()
        log_event("info", "gateway.intent_created", receipt=receipt_ref, intent_id=handle.get("id"), amount=payload["amount"])
        return handle

    def verify_signature(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        if not self._key_secret:
            raise GatewayUnavailable("Payment gateway secret is not configured")
        return signature_matches(gateway_order_id, gateway_payment_id, signature, self._key_secret)
