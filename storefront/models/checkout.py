from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, Numeric, String, func
from .base import Base


PAYMENT_PENDING = "Pending"
PAYMENT_PAID = "Paid"


class CheckoutSession(Base):
    __tablename__ = "checkout"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    checkout_items = Column(JSON, nullable=False)
    shipping_address = Column(JSON, nullable=False)
    payment_method = Column(String(64), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    payment_status = Column(String(32), nullable=False, default=PAYMENT_PENDING)
    is_paid = Column(Boolean, nullable=False, default=False)
    payment_details = Column(JSON, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    is_finalized = Column(Boolean, nullable=False, default=False)
    finalized_at = Column(DateTime, nullable=True)
    version_id = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __mapper_args__ = {"version_id_col": version_id}
