from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, Numeric, String, func
from .base import Base


class Product(Base):
    __tablename__ = "product"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    images = Column(JSON, nullable=True)
    sizes = Column(JSON, nullable=True)
    colors = Column(JSON, nullable=True)
    count_in_stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
