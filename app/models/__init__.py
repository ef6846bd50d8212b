# app/models/__init__.py
from app.models.customer_models import Customer
from app.models.distributor_models import Distributor
from app.models.product_models import Product
from app.models.quotation_models import (
    QuotationRequest,
    QuotationRequestItem,
    QuotationResponse,
    QuotationResponseItem,
)
from app.models.order_models import Order, OrderItem
from app.models.activity_models import UserActivity
