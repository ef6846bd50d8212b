# app/schemas/order_schema.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    unit_price: Decimal
    quantity: int
    total_price: Decimal

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: int
    customer_id: int
    distributor_id: int
    distributor_name: Optional[str] = None
    quotation_response_id: int
    total_amount: Decimal
    status: str
    order_date: datetime
    estimated_delivery_date: Optional[datetime] = None
    notes: Optional[str] = None

    items: List[OrderItemOut] = []

    class Config:
        from_attributes = True
