"""Helpers shared by the API blueprints."""

from __future__ import annotations

from functools import wraps
from typing import Any, Dict

from flask import current_app, g, request

from ..errors import Forbidden, ValidationError


def components() -> Dict[str, Any]:
    return current_app.extensions["storefront_components"]


def json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def protect(view):
    """Resolve the bearer credential into ``g.identity`` before running ``view``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        g.identity = components()["identity_resolver"].resolve(request.headers.get("Authorization"))
        return view(*args, **kwargs)

    return wrapper


def admin_only(view):
    @wraps(view)
    @protect
    def wrapper(*args, **kwargs):
        if not g.identity.is_admin:
            raise Forbidden("Not authorized as an admin")
        return view(*args, **kwargs)

    return wrapper
