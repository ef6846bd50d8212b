# app/schemas/quotation_schema.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from app.models.quotation_models import MAX_MONEY

MAX_QUANTITY = 1_000_000
MAX_STOCK = 2**31 - 1  # Integer column

# --------------------------
# Request Item Schemas
# --------------------------
class QuotationRequestItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY)
    specifications: Optional[str] = None

class QuotationRequestItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    product_brand: Optional[str] = None
    quantity: int
    specifications: Optional[str] = None

    class Config:
        from_attributes = True

# --------------------------
# Request Schemas
# --------------------------
class QuotationRequestCreate(BaseModel):
    items: List[QuotationRequestItemCreate]       # Mandatory, at least one
    required_date: Optional[datetime] = None      # defaults to request date + DEFAULT_REQUIRED_DAYS
    delivery_address: Optional[str] = None
    contact_phone: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = None

class QuotationRequestOut(BaseModel):
    id: int
    customer_id: int
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    status: str
    request_date: datetime
    required_date: datetime
    delivery_address: Optional[str] = None
    contact_phone: Optional[str] = None
    notes: Optional[str] = None
    item_count: int = 0
    total_items: int = 0
    response_count: int = 0
    already_responded: Optional[bool] = None     # only set on the distributor listing

    items: List[QuotationRequestItemOut] = []

    class Config:
        from_attributes = True

# --------------------------
# Response Item Schemas
# --------------------------
class QuotationResponseItemCreate(BaseModel):
    product_id: int
    unit_price: Decimal = Field(..., ge=0, le=MAX_MONEY, max_digits=18)
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY)
    stock: int = Field(0, ge=0, le=MAX_STOCK)
    delivery_days: int = Field(0, ge=0, le=365)
    total_price: Optional[Decimal] = None         # ignored, recomputed server side

class QuotationResponseItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    unit_price: Decimal
    quantity: int
    stock: int
    delivery_days: int
    total_price: Decimal

    class Config:
        from_attributes = True

# --------------------------
# Response Schemas
# --------------------------
class QuotationResponseCreate(BaseModel):
    quotation_request_id: int
    items: List[QuotationResponseItemCreate]
    notes: Optional[str] = None
    total_price: Optional[Decimal] = None         # ignored, recomputed server side

class QuotationResponseUpdate(BaseModel):
    items: List[QuotationResponseItemCreate]      # full replacement of the item set
    notes: Optional[str] = None
    total_price: Optional[Decimal] = None

class QuotationResponseOut(BaseModel):
    id: int
    quotation_request_id: int
    distributor_id: int
    distributor_name: Optional[str] = None
    distributor_email: Optional[str] = None
    distributor_phone: Optional[str] = None
    status: str
    total_price: Decimal
    submission_date: datetime
    notes: Optional[str] = None
    item_count: int = 0
    average_delivery_days: int = 0

    items: List[QuotationResponseItemOut] = []

    class Config:
        from_attributes = True

class AcceptQuotationRequest(BaseModel):
    response_id: int

class HasResponseOut(BaseModel):
    quotation_request_id: int
    distributor_id: int
    has_responded: bool

# --------------------------
# Comparison Schemas
# --------------------------
class RankedQuotationResponse(QuotationResponseOut):
    rank: int
    covers_all_items: bool = True
    missing_product_ids: List[int] = []

class QuotationComparisonOut(BaseModel):
    request: QuotationRequestOut
    request_items: List[QuotationRequestItemOut] = []
    responses: List[RankedQuotationResponse] = []
    best_price: Decimal = Decimal("0.00")
    worst_price: Decimal = Decimal("0.00")
    average_price: Decimal = Decimal("0.00")
    best_delivery_days: int = 0
    response_count: int = 0

# --------------------------
# Stats Schemas
# --------------------------
class QuotationStatsOut(BaseModel):
    role: str
    # customer figures
    total_requests: Optional[int] = None
    pending_requests: Optional[int] = None
    completed_requests: Optional[int] = None
    cancelled_requests: Optional[int] = None
    total_responses_received: Optional[int] = None
    average_responses_per_request: Optional[float] = None
    last_request_date: Optional[datetime] = None
    # distributor figures
    total_responses: Optional[int] = None
    accepted_responses: Optional[int] = None
    rejected_responses: Optional[int] = None
    pending_responses: Optional[int] = None
    total_response_value: Optional[Decimal] = None
    average_response_value: Optional[Decimal] = None
    last_response_date: Optional[datetime] = None
