"""Pytest fixtures for storefront tests."""

from decimal import Decimal

import jwt
import pytest
import requests

from storefront.config import AppConfig
from storefront.db import create_engine_for, make_session_factory
from storefront.models import Base, Product
from storefront.services import (
    CartMergeResolver,
    CartService,
    CheckoutService,
    OrderService,
    PaymentGateway,
)
from storefront.services.payment_gateway import compute_signature

GATEWAY_KEY_ID = "rzp_test_key"
GATEWAY_SECRET = "rzp_test_secret"
JWT_SECRET = "storefront-test-jwt-secret-0123456789"

ADDRESS = {"address": "12 MG Road", "city": "Pune", "postalCode": "411001", "country": "India"}


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


class FakeHttp:
    """Stands in for requests.Session; records the orders it was asked to create."""

    def __init__(self, error=None, status_code=200):
        self.auth = None
        self.calls = []
        self.error = error
        self.status_code = status_code

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return FakeResponse(
            {
                "id": f"order_{len(self.calls)}",
                "entity": "order",
                "amount": json["amount"],
                "currency": json["currency"],
                "receipt": json["receipt"],
                "status": "created",
            },
            status_code=self.status_code,
        )


def sign(order_id, payment_id, secret=GATEWAY_SECRET):
    return compute_signature(order_id, payment_id, secret)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'storefront.db'}"


@pytest.fixture
def session_factory(database_url):
    engine = create_engine_for(database_url)
    Base.metadata.create_all(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def products(session_factory):
    with session_factory() as session:
        session.add_all(
            [
                Product(
                    id="p1",
                    name="Classic Oxford Shirt",
                    price=Decimal("500.00"),
                    images=[{"url": "https://img.example/p1.jpg", "altText": "front"}],
                    sizes=["S", "M", "L"],
                    colors=["Blue", "White"],
                    count_in_stock=10,
                ),
                Product(
                    id="p2",
                    name="Slim Chinos",
                    price=Decimal("1250.50"),
                    images=[],
                    sizes=["30", "32"],
                    colors=["Khaki"],
                    count_in_stock=5,
                ),
                Product(
                    id="retired",
                    name="Retired Jacket",
                    price=Decimal("99.00"),
                    is_active=False,
                ),
            ]
        )
    return ["p1", "p2"]


@pytest.fixture
def fake_http():
    return FakeHttp()


@pytest.fixture
def gateway(fake_http):
    return PaymentGateway(GATEWAY_KEY_ID, GATEWAY_SECRET, base_url="https://gateway.test/v1", timeout=5, http=fake_http)


@pytest.fixture
def cart_service(session_factory, products):
    return CartService(session_factory)


@pytest.fixture
def merge_resolver(session_factory):
    return CartMergeResolver(session_factory)


@pytest.fixture
def checkout_service(session_factory, gateway):
    return CheckoutService(session_factory, gateway, currency="INR")


@pytest.fixture
def order_service(session_factory):
    return OrderService(session_factory)


@pytest.fixture
def line():
    return {"productId": "p1", "name": "Classic Oxford Shirt", "image": None, "price": 500, "quantity": 2}


@pytest.fixture
def app_config(database_url):
    return AppConfig(
        database_url=database_url,
        secret_key=JWT_SECRET,
        log_level="WARNING",
        currency="INR",
        gateway_key_id=GATEWAY_KEY_ID,
        gateway_key_secret=GATEWAY_SECRET,
        gateway_base_url="https://gateway.test/v1",
        gateway_timeout_seconds=5,
    )


@pytest.fixture
def app(app_config, gateway):
    from storefront.app import create_app

    app = create_app(app_config, gateway=gateway)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def bearer(user_id, role="customer", secret=JWT_SECRET):
    token = jwt.encode({"user": {"id": user_id, "role": role}}, secret, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}
