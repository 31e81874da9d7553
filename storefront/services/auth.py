from dataclasses import dataclass
from typing import Optional

import jwt

from ..errors import Unauthorized

ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class IdentityResolver:
    """Resolves the requester from a bearer JWT issued elsewhere.

    Expected payload: ``{"user": {"id": "...", "role": "customer"|"admin"}}``.
    """

    ALGORITHMS = ["HS256"]

    def __init__(self, secret: str) -> None:
        self._secret = secret

    def resolve(self, authorization: Optional[str]) -> Identity:
        if not authorization or not authorization.startswith("Bearer "):
            raise Unauthorized()
        token = authorization[len("Bearer "):].strip()
        try:
            payload = jwt.decode(token, self._secret, algorithms=self.ALGORITHMS)
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Not authorized, token expired")
        except jwt.InvalidTokenError:
            raise Unauthorized("Not authorized, token failed")
        user = payload.get("user") if isinstance(payload, dict) else None
        if not isinstance(user, dict) or not user.get("id"):
            raise Unauthorized("Not authorized, token failed")
        return Identity(user_id=str(user["id"]), role=str(user.get("role") or "customer"))
