# app/models/product_models.py
from decimal import Decimal

from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, CheckConstraint, Index,
    DateTime, func
)
from app.core.db import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), index=True, nullable=False)
    description = Column(String(1000), nullable=True)
    brand = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    # Catalog reference price; quotations and orders never read it
    price = Column(Numeric(18, 2), default=Decimal("0.00"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(price >= 0, name="check_product_price_non_negative"),
        Index("ix_product_name_brand", "name", "brand"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}')>"
