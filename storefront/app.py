"""Storefront checkout/cart/order API Flask application."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import AppConfig, load_env
from .db import create_engine_for, make_session_factory
from .errors import StorefrontError
from .models import Base
from .routes import admin, cart, checkout, orders
from .services import (
    CartMergeResolver,
    CartService,
    CatalogService,
    CheckoutService,
    IdentityResolver,
    OrderMaterializer,
    OrderService,
    PaymentGateway,
)
from .services.logging import log_event


def build_components(config: AppConfig, session_factory, gateway: Optional[PaymentGateway] = None) -> Dict[str, Any]:
    """Wire the services once per process; the gateway client is shared, never global."""
    if gateway is None:
        gateway = PaymentGateway(
            config.gateway_key_id,
            config.gateway_key_secret,
            base_url=config.gateway_base_url,
            timeout=config.gateway_timeout_seconds,
        )
    catalog = CatalogService(session_factory)
    return {
        "session_factory": session_factory,
        "gateway": gateway,
        "catalog": catalog,
        "cart_service": CartService(session_factory, catalog),
        "merge_resolver": CartMergeResolver(session_factory),
        "checkout_service": CheckoutService(
            session_factory,
            gateway,
            OrderMaterializer(),
            currency=config.currency,
        ),
        "order_service": OrderService(session_factory),
        "identity_resolver": IdentityResolver(config.secret_key),
    }


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(StorefrontError)
    def handle_storefront_error(exc: StorefrontError):
        return jsonify({"message": exc.message}), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        log_event("error", "request.failed", error=type(exc).__name__, detail=str(exc)[:200])
        return jsonify({"message": "Server Error"}), 500


def create_app(config: Optional[AppConfig] = None, gateway: Optional[PaymentGateway] = None) -> Flask:
    config = config or load_env()
    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))

    engine = create_engine_for(config.database_url)
    Base.metadata.create_all(engine)
    session_factory = make_session_factory(engine)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["STOREFRONT_CONFIG"] = config
    app.extensions["storefront_components"] = build_components(config, session_factory, gateway)

    app.register_blueprint(cart.cart_bp)
    app.register_blueprint(checkout.checkout_bp)
    app.register_blueprint(orders.orders_bp)
    app.register_blueprint(admin.admin_bp)
    _register_error_handlers(app)

    @app.get("/")
    def root():
        return jsonify({"message": "Storefront API running"})

    return app


def main() -> None:
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "3000")), debug=False)


if __name__ == "__main__":
    main()
