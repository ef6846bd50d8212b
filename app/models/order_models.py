# app/models/order_models.py
from decimal import Decimal
import enum

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Numeric
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.quotation_models import utcnow


class OrderStatus(str, enum.Enum):
    pending = "Pending"
    confirmed = "Confirmed"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign keys
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    distributor_id = Column(Integer, ForeignKey("distributors.id", ondelete="RESTRICT"), nullable=False, index=True)
    # One order per accepted response
    quotation_response_id = Column(Integer, ForeignKey("quotation_responses.id"), nullable=False, unique=True)

    total_amount = Column(Numeric(18, 2), nullable=False, default=Decimal("0.00"))
    status = Column(String(50), nullable=False, default=OrderStatus.pending.value)
    order_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    estimated_delivery_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    customer = relationship("Customer", back_populates="orders")
    distributor = relationship("Distributor", back_populates="orders", lazy="joined")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="OrderItem.id",
    )

    @property
    def distributor_name(self):
        return self.distributor.company_name if self.distributor else None

    def __repr__(self):
        return f"<Order(id={self.id}, customer_id={self.customer_id}, total_amount={self.total_amount})>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)

    # Snapshot of the accepted quotation line
    unit_price = Column(Numeric(18, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Numeric(18, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product", lazy="joined")

    @property
    def product_name(self):
        return self.product.name if self.product else None
