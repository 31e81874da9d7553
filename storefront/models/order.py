from sqlalchemy import Boolean, Column, DateTime, JSON, Numeric, String, func
from .base import Base


DELIVERY_PROCESSING = "Processing"
DELIVERY_SHIPPED = "Shipped"
DELIVERY_DELIVERED = "Delivered"
DELIVERY_CANCELLED = "Cancelled"
DELIVERY_STATUSES = (DELIVERY_PROCESSING, DELIVERY_SHIPPED, DELIVERY_DELIVERED, DELIVERY_CANCELLED)


class Order(Base):
    __tablename__ = "order"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    # one order per checkout, enforced by storage as well as by the finalize latch
    checkout_id = Column(String(36), nullable=False, unique=True)
    order_items = Column(JSON, nullable=False)
    shipping_address = Column(JSON, nullable=False)
    payment_method = Column(String(64), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    is_paid = Column(Boolean, nullable=False, default=True)
    paid_at = Column(DateTime, nullable=True)
    payment_status = Column(String(32), nullable=False)
    payment_details = Column(JSON, nullable=True)
    is_delivered = Column(Boolean, nullable=False, default=False)
    delivered_at = Column(DateTime, nullable=True)
    delivery_status = Column(String(32), nullable=False, default=DELIVERY_PROCESSING)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
