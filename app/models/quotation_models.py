# app/models/quotation_models.py
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
import enum

from sqlalchemy import (
    Column, Integer, String, Text, ForeignKey, DateTime, Numeric,
    CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship
from app.core.db import Base

CENTS = Decimal("0.01")
MAX_MONEY = Decimal("9999999999999999.99")  # largest Numeric(18, 2) value
UQ_RESPONSE_PER_DISTRIBUTOR = "uq_quotation_response_request_distributor"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_money(value) -> Decimal:
    """Quantize an amount to 2 decimal places the way Numeric(18, 2) stores it."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


class QuotationRequestStatus(str, enum.Enum):
    pending = "Pending"
    completed = "Completed"
    cancelled = "Cancelled"


class QuotationResponseStatus(str, enum.Enum):
    submitted = "Submitted"
    accepted = "Accepted"
    rejected = "Rejected"
    cancelled = "Cancelled"


# ==================================================
# QUOTATION REQUEST
# ==================================================
class QuotationRequest(Base):
    __tablename__ = "quotation_requests"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(String(50), nullable=False, default=QuotationRequestStatus.pending.value, index=True)

    request_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    required_date = Column(DateTime(timezone=True), nullable=False)
    delivery_address = Column(String, nullable=True)
    contact_phone = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)

    # Optimistic concurrency token, bumped on every UPDATE of the row
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    customer = relationship("Customer", back_populates="quotation_requests", lazy="joined")
    items = relationship(
        "QuotationRequestItem",
        back_populates="quotation_request",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    responses = relationship(
        "QuotationResponse",
        back_populates="quotation_request",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="QuotationResponse.id",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_pending(self) -> bool:
        return self.status == QuotationRequestStatus.pending.value

    @property
    def customer_name(self):
        return self.customer.name if self.customer else None

    @property
    def customer_email(self):
        return self.customer.email if self.customer else None

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def response_count(self) -> int:
        return len(self.responses)

    @property
    def has_responses(self) -> bool:
        return bool(self.responses)

    def __repr__(self):
        return f"<QuotationRequest(id={self.id}, customer_id={self.customer_id}, status='{self.status}')>"


class QuotationRequestItem(Base):
    __tablename__ = "quotation_request_items"

    id = Column(Integer, primary_key=True, index=True)
    quotation_request_id = Column(
        Integer, ForeignKey("quotation_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Integer, nullable=False)
    specifications = Column(Text, nullable=True)

    quotation_request = relationship("QuotationRequest", back_populates="items")
    product = relationship("Product", lazy="joined")

    __table_args__ = (
        CheckConstraint(quantity > 0, name="check_request_item_quantity_positive"),
    )

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def product_brand(self):
        return self.product.brand if self.product else None


# ==================================================
# QUOTATION RESPONSE
# ==================================================
class QuotationResponse(Base):
    __tablename__ = "quotation_responses"

    id = Column(Integer, primary_key=True, index=True)
    quotation_request_id = Column(
        Integer, ForeignKey("quotation_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    distributor_id = Column(Integer, ForeignKey("distributors.id", ondelete="RESTRICT"), nullable=False, index=True)

    total_price = Column(Numeric(18, 2), nullable=False, default=Decimal("0.00"))
    submission_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    status = Column(String(50), nullable=False, default=QuotationResponseStatus.submitted.value)
    notes = Column(Text, nullable=True)

    # Bumped on every UPDATE; accept, cancel and edits of the same response collide on it
    version = Column(Integer, nullable=False, default=1)

    quotation_request = relationship("QuotationRequest", back_populates="responses")
    distributor = relationship("Distributor", back_populates="quotation_responses", lazy="joined")
    items = relationship(
        "QuotationResponseItem",
        back_populates="quotation_response",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="QuotationResponseItem.id",
    )

    __table_args__ = (
        UniqueConstraint("quotation_request_id", "distributor_id", name=UQ_RESPONSE_PER_DISTRIBUTOR),
    )

    __mapper_args__ = {"version_id_col": version}

    def calculate_total(self):
        self.total_price = to_money(sum((item.total_price for item in self.items), Decimal("0.00")))

    @property
    def distributor_name(self):
        return self.distributor.company_name if self.distributor else None

    @property
    def distributor_email(self):
        return self.distributor.email if self.distributor else None

    @property
    def distributor_phone(self):
        return self.distributor.phone if self.distributor else None

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def average_delivery_days(self) -> int:
        if not self.items:
            return 0
        return int(sum(item.delivery_days for item in self.items) / len(self.items))

    def __repr__(self):
        return (
            f"<QuotationResponse(id={self.id}, request_id={self.quotation_request_id}, "
            f"distributor_id={self.distributor_id}, total_price={self.total_price})>"
        )


class QuotationResponseItem(Base):
    __tablename__ = "quotation_response_items"

    id = Column(Integer, primary_key=True, index=True)
    quotation_response_id = Column(
        Integer, ForeignKey("quotation_responses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    unit_price = Column(Numeric(18, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    delivery_days = Column(Integer, nullable=False, default=0)
    total_price = Column(Numeric(18, 2), nullable=False)

    quotation_response = relationship("QuotationResponse", back_populates="items")
    product = relationship("Product", lazy="joined")

    __table_args__ = (
        CheckConstraint(unit_price >= 0, name="check_response_item_unit_price_non_negative"),
        CheckConstraint(quantity > 0, name="check_response_item_quantity_positive"),
        CheckConstraint(stock >= 0, name="check_response_item_stock_non_negative"),
        CheckConstraint(delivery_days >= 0, name="check_response_item_delivery_days_non_negative"),
    )

    @property
    def product_name(self):
        return self.product.name if self.product else None
