import os
from dataclasses import dataclass
from pathlib import Path
import json
from typing import Optional

from dotenv import find_dotenv, load_dotenv


@dataclass
class AppConfig:
    database_url: str
    secret_key: str
    log_level: str
    currency: str
    gateway_key_id: Optional[str]
    gateway_key_secret: Optional[str]
    gateway_base_url: str
    gateway_timeout_seconds: float


DEFAULT_GATEWAY_URL = "https://api.razorpay.com/v1"


def validate_currency(value: Optional[str]) -> str:
    v = (value or "INR").strip().upper()
    if len(v) != 3 or not v.isalpha():
        raise ValueError("Invalid currency code: expected ISO4217 length 3")
    return v


def validate_timeout(value) -> float:
    try:
        t = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid gateway timeout: {value!r}")
    if t <= 0:
        raise ValueError("Gateway timeout must be > 0")
    return t


def _load_settings_file(path: Optional[str]) -> dict:
    if not path:
        return {}
    settings_path = Path(path)
    if not settings_path.exists():
        return {}
    data = json.loads(settings_path.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


def load_env() -> AppConfig:
    # settings file overrides non-secret values; secrets come from the environment only
    load_dotenv(find_dotenv(usecwd=True))
    s = _load_settings_file(os.getenv("STOREFRONT_SETTINGS_FILE"))
    database_url = os.getenv("DATABASE_URL", "sqlite:///data/storefront.db")
    secret_key = os.getenv("SECRET_KEY", "dev_secret")
    log_level = os.getenv("LOG_LEVEL", "INFO")
    currency = validate_currency(s.get("CURRENCY") or os.getenv("CURRENCY"))
    gateway_base_url = (
        s.get("PAYMENT_GATEWAY_URL") or os.getenv("PAYMENT_GATEWAY_URL") or DEFAULT_GATEWAY_URL
    ).rstrip("/")
    timeout = validate_timeout(os.getenv("PAYMENT_GATEWAY_TIMEOUT", "10"))
    return AppConfig(
        database_url=database_url,
        secret_key=secret_key,
        log_level=log_level,
        currency=currency,
        gateway_key_id=os.getenv("RAZORPAY_KEY_ID") or None,
        gateway_key_secret=os.getenv("RAZORPAY_KEY_SECRET") or None,
        gateway_base_url=gateway_base_url,
        gateway_timeout_seconds=timeout,
    )
