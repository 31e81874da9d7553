from sqlalchemy import Column, DateTime, Integer, JSON, Numeric, String, func
from .base import Base


class Cart(Base):
    """Line items owned by exactly one identity, a guest id or a user id."""

    __tablename__ = "cart"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=True, unique=True)
    guest_id = Column(String(128), nullable=True, unique=True)
    # [{productId, name, image, price, size, color, quantity}]
    products = Column(JSON, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    version_id = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version_id}
