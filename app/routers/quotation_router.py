# app/routers/quotation_router.py
from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.order_schema import OrderOut
from app.schemas.response_schemas import ResponseMessage
from app.schemas.quotation_schema import (
    QuotationRequestCreate,
    QuotationRequestOut,
    QuotationRequestItemOut,
    QuotationResponseCreate,
    QuotationResponseUpdate,
    QuotationResponseOut,
    QuotationComparisonOut,
    QuotationStatsOut,
    AcceptQuotationRequest,
    HasResponseOut,
)
from app.services import quotation_service
from app.utils.check_roles import require_role
from app.utils.get_caller import CallerContext, get_caller_context
from app.utils.pdf_generators.comparison_pdf import build_comparison_pdf

router = APIRouter(prefix="/quotation", tags=["Quotations"])

# --------------------------
# CREATE QUOTATION REQUEST
# --------------------------
@router.post("/request", response_model=ResponseMessage[QuotationRequestOut], status_code=status.HTTP_201_CREATED)
@require_role(["customer"])
async def create_quotation_request_route(
    data: QuotationRequestCreate,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    request = await quotation_service.create_quotation_request(db, _caller.id, data)
    return ResponseMessage(message="Quotation request created successfully", data=request)

# --------------------------
# CUSTOMER'S REQUESTS
# --------------------------
@router.get("/customer/requests", response_model=ResponseMessage[List[QuotationRequestOut]])
@require_role(["customer"])
async def get_customer_requests_route(
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    requests = await quotation_service.get_customer_quotation_requests(db, _caller.id)
    return ResponseMessage(message="Quotation requests retrieved successfully", data=requests)

# --------------------------
# GET REQUEST BY ID
# --------------------------
@router.get("/request/{request_id}", response_model=ResponseMessage[QuotationRequestOut])
async def get_quotation_request_route(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    request = await quotation_service.get_quotation_request(db, request_id)
    return ResponseMessage(message="Quotation request retrieved successfully", data=request)

# --------------------------
# GET REQUEST ITEMS
# --------------------------
@router.get("/request/{request_id}/items", response_model=ResponseMessage[List[QuotationRequestItemOut]])
async def get_quotation_request_items_route(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    items = await quotation_service.get_quotation_request_items(db, request_id)
    return ResponseMessage(message="Quotation request items retrieved successfully", data=items)

# --------------------------
# COMPARISON
# --------------------------
@router.get("/comparison/{request_id}", response_model=ResponseMessage[QuotationComparisonOut])
async def get_comparison_route(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    comparison = await quotation_service.get_quotation_comparison(db, request_id)
    return ResponseMessage(message="Quotation comparison retrieved successfully", data=comparison)

@router.get("/comparison/{request_id}/pdf", response_class=Response)
async def download_comparison_pdf_route(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    comparison = await quotation_service.get_quotation_comparison(db, request_id)
    return Response(
        content=build_comparison_pdf(comparison),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="quotation_comparison_{request_id}.pdf"'},
    )

# --------------------------
# DISTRIBUTOR'S OPEN REQUESTS
# --------------------------
@router.get("/distributor/requests", response_model=ResponseMessage[List[QuotationRequestOut]])
@require_role(["distributor"])
async def get_distributor_requests_route(
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    requests = await quotation_service.get_distributor_quotation_requests(db, _caller.id)
    return ResponseMessage(message="Pending quotation requests retrieved successfully", data=requests)

# --------------------------
# SUBMIT RESPONSE
# --------------------------
@router.post("/response", response_model=ResponseMessage[QuotationResponseOut], status_code=status.HTTP_201_CREATED)
@require_role(["distributor"])
async def submit_response_route(
    data: QuotationResponseCreate,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    response = await quotation_service.submit_quotation_response(db, _caller.id, data)
    return ResponseMessage(message="Quotation response submitted successfully", data=response)

# --------------------------
# GET RESPONSE BY ID
# --------------------------
@router.get("/response/{response_id}", response_model=ResponseMessage[QuotationResponseOut])
async def get_response_route(
    response_id: int,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    response = await quotation_service.get_quotation_response(db, response_id)
    return ResponseMessage(message="Quotation response retrieved successfully", data=response)

# --------------------------
# UPDATE RESPONSE
# --------------------------
@router.put("/response/{response_id}", response_model=ResponseMessage[QuotationResponseOut])
@require_role(["distributor"])
async def update_response_route(
    response_id: int,
    data: QuotationResponseUpdate,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    response = await quotation_service.update_quotation_response(db, response_id, _caller.id, data)
    return ResponseMessage(message="Quotation response updated successfully", data=response)

# --------------------------
# HAS DISTRIBUTOR RESPONDED
# --------------------------
@router.get("/request/{request_id}/has-response", response_model=ResponseMessage[HasResponseOut])
@require_role(["distributor"])
async def has_responded_route(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    responded = await quotation_service.has_distributor_responded(db, request_id, _caller.id)
    return ResponseMessage(
        message="Response status retrieved successfully",
        data=HasResponseOut(quotation_request_id=request_id, distributor_id=_caller.id, has_responded=responded),
    )

# --------------------------
# DISTRIBUTOR'S OWN RESPONSE
# --------------------------
@router.get("/distributor/{request_id}/response", response_model=ResponseMessage[QuotationResponseOut])
@require_role(["distributor"])
async def get_own_response_route(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    response = await quotation_service.get_distributor_response(db, request_id, _caller.id)
    return ResponseMessage(message="Quotation response retrieved successfully", data=response)

# --------------------------
# ACCEPT QUOTATION
# --------------------------
@router.post("/accept", response_model=ResponseMessage[OrderOut])
@require_role(["customer"])
async def accept_quotation_route(
    data: AcceptQuotationRequest,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    order = await quotation_service.accept_quotation(db, data.response_id, _caller.id)
    return ResponseMessage(message="Quotation accepted and order created successfully", data=order)

# --------------------------
# CANCEL REQUEST
# --------------------------
@router.post("/cancel/{request_id}", response_model=ResponseMessage[bool])
@require_role(["customer"])
async def cancel_quotation_route(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    cancelled = await quotation_service.cancel_quotation_request(db, request_id, _caller.id)
    return ResponseMessage(message="Quotation request cancelled successfully", data=cancelled)

# --------------------------
# STATS
# --------------------------
@router.get("/stats", response_model=ResponseMessage[QuotationStatsOut])
@require_role(["customer", "distributor"])
async def get_stats_route(
    db: AsyncSession = Depends(get_db),
    _caller: CallerContext = Depends(get_caller_context)
):
    stats = await quotation_service.get_quotation_stats(db, _caller)
    return ResponseMessage(message="Quotation statistics retrieved successfully", data=stats)
