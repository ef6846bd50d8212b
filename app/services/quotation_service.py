from datetime import timedelta
from decimal import Decimal
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import DEFAULT_REQUIRED_DAYS
from app.core.exceptions import (
    QuotationError,
    ValidationError,
    NotFoundError,
    ForbiddenError,
    InvalidOperationError,
    InternalError,
)
from app.models.customer_models import Customer
from app.models.distributor_models import Distributor
from app.models.product_models import Product
from app.models.order_models import Order, OrderItem, OrderStatus
from app.models.quotation_models import (
    QuotationRequest,
    QuotationRequestItem,
    QuotationResponse,
    QuotationResponseItem,
    QuotationRequestStatus,
    QuotationResponseStatus,
    MAX_MONEY,
    UQ_RESPONSE_PER_DISTRIBUTOR,
    to_money,
    utcnow,
)
from app.schemas.order_schema import OrderOut
from app.schemas.quotation_schema import (
    QuotationRequestCreate,
    QuotationRequestOut,
    QuotationRequestItemOut,
    QuotationResponseCreate,
    QuotationResponseUpdate,
    QuotationResponseItemCreate,
    QuotationResponseOut,
    RankedQuotationResponse,
    QuotationComparisonOut,
    QuotationStatsOut,
)
from app.utils.activity_helpers import log_user_activity
from app.utils.get_caller import CallerContext

logger = logging.getLogger(__name__)

NO_LONGER_PENDING = "Quotation request is no longer pending"
CONCURRENT_CHANGE = "Quotation request was modified concurrently, please retry"
ALREADY_RESPONDED = "Distributor has already responded to this quotation request, use update instead"
ZERO = Decimal("0.00")


# --------------------------
# LOADERS
# --------------------------
async def _get_request(db: AsyncSession, request_id: int, for_update: bool = False) -> Optional[QuotationRequest]:
    stmt = select(QuotationRequest).where(QuotationRequest.id == request_id)
    if for_update:
        # Lock only the request row; the eager joins stay unlocked
        stmt = stmt.with_for_update(of=QuotationRequest).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.unique().scalar_one_or_none()


async def _get_response(db: AsyncSession, response_id: int, fresh: bool = False) -> Optional[QuotationResponse]:
    stmt = select(QuotationResponse).where(QuotationResponse.id == response_id)
    if fresh:
        stmt = stmt.execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.unique().scalar_one_or_none()


async def _request_out(db: AsyncSession, request_id: int) -> QuotationRequestOut:
    result = await db.execute(
        select(QuotationRequest)
        .where(QuotationRequest.id == request_id)
        .execution_options(populate_existing=True)
    )
    return QuotationRequestOut.model_validate(result.unique().scalar_one())


async def _response_out(db: AsyncSession, response_id: int) -> QuotationResponseOut:
    response = await _get_response(db, response_id, fresh=True)
    return QuotationResponseOut.model_validate(response)


async def _order_out(db: AsyncSession, order_id: int) -> OrderOut:
    result = await db.execute(
        select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    )
    return OrderOut.model_validate(result.unique().scalar_one())


# --------------------------
# ITEM VALIDATION
# --------------------------
def _ensure_items(items: Iterable) -> None:
    if not items:
        raise ValidationError.for_field("items", "At least one item is required")


def _ensure_unique_products(product_ids: List[int]) -> None:
    seen, duplicates = set(), set()
    for product_id in product_ids:
        if product_id in seen:
            duplicates.add(product_id)
        seen.add(product_id)
    if duplicates:
        ids = sorted(duplicates)
        raise ValidationError.for_field("items", f"Duplicate products in items: {ids}")


async def _ensure_products_exist(db: AsyncSession, product_ids: List[int]) -> Dict[int, Product]:
    result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    products = {p.id: p for p in result.scalars().all() if p.is_active}
    missing = sorted(set(product_ids) - set(products))
    if missing:
        raise ValidationError(
            f"Products not found or inactive: {missing}",
            errors=[
                {"field": f"items[{index}].product_id", "message": f"Product {product_id} not found or inactive"}
                for index, product_id in enumerate(product_ids)
                if product_id in missing
            ],
        )
    return products


async def _validate_response_items(
    db: AsyncSession, request: QuotationRequest, items: List[QuotationResponseItemCreate]
) -> None:
    _ensure_items(items)
    product_ids = [item.product_id for item in items]
    _ensure_unique_products(product_ids)
    await _ensure_products_exist(db, product_ids)

    requested = {item.product_id for item in request.items}
    unrequested = sorted(set(product_ids) - requested)
    if unrequested:
        raise ValidationError.for_field(
            "items", f"Products {unrequested} are not part of quotation request {request.id}"
        )


def _build_response_items(items: List[QuotationResponseItemCreate]) -> List[QuotationResponseItem]:
    built = []
    for index, item in enumerate(items):
        unit_price = to_money(item.unit_price)
        total_price = to_money(unit_price * item.quantity)
        if total_price > MAX_MONEY:
            raise ValidationError.for_field(f"items[{index}]", f"Line total {total_price} exceeds {MAX_MONEY}")
        built.append(
            QuotationResponseItem(
                product_id=item.product_id,
                unit_price=unit_price,
                quantity=item.quantity,
                stock=item.stock,
                delivery_days=item.delivery_days,
                total_price=total_price,
            )
        )
    return built


def _ensure_total_fits(response: QuotationResponse) -> None:
    if response.total_price > MAX_MONEY:
        raise ValidationError.for_field("items", f"Response total {response.total_price} exceeds {MAX_MONEY}")


def _is_duplicate_response(exc: IntegrityError) -> bool:
    # Postgres names the constraint, SQLite only lists its columns
    message = str(exc.orig)
    return (
        UQ_RESPONSE_PER_DISTRIBUTOR in message
        or "quotation_responses.quotation_request_id, quotation_responses.distributor_id" in message
    )


# --------------------------
# CREATE QUOTATION REQUEST
# --------------------------
async def create_quotation_request(
    db: AsyncSession, customer_id: int, data: QuotationRequestCreate
) -> QuotationRequestOut:
    try:
        _ensure_items(data.items)

        customer = await db.get(Customer, customer_id)
        if not customer or not customer.is_active:
            raise NotFoundError(f"Customer {customer_id} not found or inactive")

        product_ids = [item.product_id for item in data.items]
        _ensure_unique_products(product_ids)
        await _ensure_products_exist(db, product_ids)

        request_date = utcnow()
        request = QuotationRequest(
            customer_id=customer_id,
            status=QuotationRequestStatus.pending.value,
            request_date=request_date,
            required_date=data.required_date or request_date + timedelta(days=DEFAULT_REQUIRED_DAYS),
            delivery_address=data.delivery_address,
            contact_phone=data.contact_phone,
            notes=data.notes,
            items=[
                QuotationRequestItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    specifications=item.specifications,
                )
                for item in data.items
            ],
        )
        db.add(request)
        await db.flush()

        await log_user_activity(
            db=db,
            actor_role="customer",
            actor_id=customer_id,
            message=f"Created quotation request #{request.id} with {len(data.items)} items.",
        )
        await db.commit()
        logger.info("Quotation request %s created by customer %s", request.id, customer_id)

        return await _request_out(db, request.id)

    except QuotationError:
        raise
    except Exception:
        await db.rollback()
        logger.exception("Error creating quotation request for customer %s", customer_id)
        raise InternalError("Error creating quotation request")


# --------------------------
# SUBMIT QUOTATION RESPONSE
# --------------------------
async def submit_quotation_response(
    db: AsyncSession, distributor_id: int, data: QuotationResponseCreate
) -> QuotationResponseOut:
    try:
        request = await _get_request(db, data.quotation_request_id, for_update=True)
        if not request:
            raise NotFoundError(f"Quotation request {data.quotation_request_id} not found")

        distributor = await db.get(Distributor, distributor_id)
        if not distributor or not distributor.is_active:
            raise NotFoundError(f"Distributor {distributor_id} not found or inactive")

        if not request.is_pending:
            logger.warning(
                "Distributor %s tried to respond to %s request %s", distributor_id, request.status, request.id
            )
            raise InvalidOperationError(f"Cannot respond to a quotation request with status: {request.status}")

        if await has_distributor_responded(db, request.id, distributor_id):
            raise InvalidOperationError(ALREADY_RESPONDED)

        await _validate_response_items(db, request, data.items)

        response = QuotationResponse(
            quotation_request=request,
            distributor_id=distributor_id,
            status=QuotationResponseStatus.submitted.value,
            submission_date=utcnow(),
            notes=data.notes,
            items=_build_response_items(data.items),
        )
        response.calculate_total()
        _ensure_total_fits(response)
        db.add(response)
        # Bumps the request version, so an accept or cancel committed since the read fails this flush
        request.updated_at = utcnow()
        await db.flush()

        await log_user_activity(
            db=db,
            actor_role="distributor",
            actor_id=distributor_id,
            message=(
                f"Submitted quotation response #{response.id} for request #{request.id}. "
                f"Total: {response.total_price:.2f}."
            ),
        )
        await db.commit()
        logger.info(
            "Quotation response %s submitted by distributor %s for request %s",
            response.id, distributor_id, request.id,
        )

    except IntegrityError as e:
        await db.rollback()
        if not _is_duplicate_response(e):
            logger.exception("Integrity error submitting quotation response for distributor %s", distributor_id)
            raise InternalError("Error submitting quotation response")
        # Lost the race against a concurrent submission for the same pair
        raise InvalidOperationError(ALREADY_RESPONDED)
    except StaleDataError:
        await db.rollback()
        logger.warning("Request %s changed while distributor %s was submitting", data.quotation_request_id, distributor_id)
        raise InvalidOperationError(CONCURRENT_CHANGE)
    except QuotationError:
        raise
    except Exception:
        await db.rollback()
        logger.exception("Error submitting quotation response for distributor %s", distributor_id)
        raise InternalError("Error submitting quotation response")

    return await _response_out(db, response.id)


# --------------------------
# UPDATE QUOTATION RESPONSE
# --------------------------
async def update_quotation_response(
    db: AsyncSession, response_id: int, distributor_id: int, data: QuotationResponseUpdate
) -> QuotationResponseOut:
    try:
        response = await _get_response(db, response_id, fresh=True)
        if not response:
            raise NotFoundError(f"Quotation response {response_id} not found")
        if response.distributor_id != distributor_id:
            raise ForbiddenError("Distributor does not own this quotation response")

        request = await _get_request(db, response.quotation_request_id, for_update=True)
        if not request.is_pending or response.status != QuotationResponseStatus.submitted.value:
            logger.warning(
                "Rejected update of response %s (response %s, request %s)",
                response_id, response.status, request.status,
            )
            raise InvalidOperationError(f"Cannot update quotation response with status: {response.status}")

        await _validate_response_items(db, request, data.items)

        # Full overwrite of the item set; orphans are deleted on flush
        response.items.clear()
        response.items.extend(_build_response_items(data.items))
        response.calculate_total()
        _ensure_total_fits(response)
        response.submission_date = utcnow()
        if data.notes is not None:
            response.notes = data.notes

        await log_user_activity(
            db=db,
            actor_role="distributor",
            actor_id=distributor_id,
            message=(
                f"Updated quotation response #{response.id} for request #{request.id}. "
                f"New total: {response.total_price:.2f}."
            ),
        )
        await db.commit()
        logger.info("Quotation response %s updated by distributor %s", response_id, distributor_id)

        return await _response_out(db, response.id)

    except StaleDataError:
        # Accepted, rejected or cancelled since it was read
        await db.rollback()
        logger.warning("Update of response %s lost to a concurrent status change", response_id)
        raise InvalidOperationError(NO_LONGER_PENDING)
    except QuotationError:
        raise
    except Exception:
        await db.rollback()
        logger.exception("Error updating quotation response %s", response_id)
        raise InternalError("Error updating quotation response")


# --------------------------
# COMPARISON
# --------------------------
async def get_quotation_comparison(db: AsyncSession, request_id: int) -> QuotationComparisonOut:
    request = await _get_request(db, request_id)
    if not request:
        raise NotFoundError(f"Quotation request {request_id} not found")

    result = await db.execute(
        select(QuotationResponse)
        .where(QuotationResponse.quotation_request_id == request_id)
        .order_by(
            QuotationResponse.total_price.asc(),
            QuotationResponse.submission_date.asc(),
            QuotationResponse.id.asc(),
        )
    )
    responses = result.unique().scalars().all()

    requested = {item.product_id for item in request.items}
    ranked = []
    for rank, response in enumerate(responses, start=1):
        missing = sorted(requested - {item.product_id for item in response.items})
        ranked.append(
            RankedQuotationResponse(
                **QuotationResponseOut.model_validate(response).model_dump(),
                rank=rank,
                covers_all_items=not missing,
                missing_product_ids=missing,
            )
        )

    request_out = QuotationRequestOut.model_validate(request)
    comparison = QuotationComparisonOut(
        request=request_out,
        request_items=request_out.items,
        responses=ranked,
        response_count=len(ranked),
    )
    if ranked:
        prices = [r.total_price for r in ranked]
        comparison.best_price = min(prices)
        comparison.worst_price = max(prices)
        comparison.average_price = to_money(sum(prices, ZERO) / len(prices))
        comparison.best_delivery_days = min(r.average_delivery_days for r in ranked)
    return comparison


# --------------------------
# ACCEPT QUOTATION
# --------------------------
async def accept_quotation(db: AsyncSession, response_id: int, customer_id: int) -> OrderOut:
    try:
        response = await _get_response(db, response_id, fresh=True)
        if not response:
            raise NotFoundError(f"Quotation response {response_id} not found")

        request = await _get_request(db, response.quotation_request_id, for_update=True)
        if request.customer_id != customer_id:
            raise ForbiddenError("Customer does not own this quotation request")
        if not request.is_pending:
            logger.warning("Accept of response %s refused, request %s is %s", response_id, request.id, request.status)
            raise InvalidOperationError(NO_LONGER_PENDING)
        if response.status != QuotationResponseStatus.submitted.value:
            raise InvalidOperationError(f"Cannot accept quotation with status: {response.status}")

        order_date = utcnow()
        order = Order(
            customer_id=request.customer_id,
            distributor_id=response.distributor_id,
            quotation_response_id=response.id,
            total_amount=response.total_price,
            status=OrderStatus.pending.value,
            order_date=order_date,
            estimated_delivery_date=order_date + timedelta(days=response.average_delivery_days),
            notes=f"Order created from quotation response {response.id}",
            # Price lock: lines are copied, never re-read from the catalog
            items=[
                OrderItem(
                    product_id=item.product_id,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    total_price=item.total_price,
                )
                for item in response.items
            ],
        )
        db.add(order)

        response.status = QuotationResponseStatus.accepted.value
        for other in request.responses:
            if other.id != response.id and other.status == QuotationResponseStatus.submitted.value:
                other.status = QuotationResponseStatus.rejected.value
        request.status = QuotationRequestStatus.completed.value

        await db.flush()
        await log_user_activity(
            db=db,
            actor_role="customer",
            actor_id=customer_id,
            message=(
                f"Accepted quotation response #{response.id} for request #{request.id}. "
                f"Order #{order.id} created, total {order.total_amount:.2f}."
            ),
        )
        await db.commit()
        logger.info(
            "Quotation response %s accepted by customer %s, order %s created", response_id, customer_id, order.id
        )

    except (StaleDataError, IntegrityError):
        await db.rollback()
        logger.warning("Concurrent acceptance detected for response %s", response_id)
        raise InvalidOperationError(NO_LONGER_PENDING)
    except QuotationError:
        raise
    except Exception:
        await db.rollback()
        logger.exception("Error accepting quotation response %s", response_id)
        raise InternalError("Error accepting quotation")

    return await _order_out(db, order.id)


# --------------------------
# CANCEL QUOTATION REQUEST
# --------------------------
async def cancel_quotation_request(db: AsyncSession, request_id: int, customer_id: int) -> bool:
    try:
        request = await _get_request(db, request_id, for_update=True)
        if not request:
            raise NotFoundError(f"Quotation request {request_id} not found")
        if request.customer_id != customer_id:
            raise ForbiddenError("Customer does not own this quotation request")
        if not request.is_pending:
            logger.warning("Cancel of request %s refused, status is %s", request_id, request.status)
            raise InvalidOperationError(f"Cannot cancel quotation with status: {request.status}")

        request.status = QuotationRequestStatus.cancelled.value
        for response in request.responses:
            if response.status == QuotationResponseStatus.submitted.value:
                response.status = QuotationResponseStatus.cancelled.value

        await log_user_activity(
            db=db,
            actor_role="customer",
            actor_id=customer_id,
            message=f"Cancelled quotation request #{request_id}.",
        )
        await db.commit()
        logger.info("Quotation request %s cancelled by customer %s", request_id, customer_id)
        return True

    except StaleDataError:
        await db.rollback()
        raise InvalidOperationError(NO_LONGER_PENDING)
    except QuotationError:
        raise
    except Exception:
        await db.rollback()
        logger.exception("Error cancelling quotation request %s", request_id)
        raise InternalError("Error cancelling quotation request")


# --------------------------
# DISTRIBUTOR RESPONSE LOOKUPS
# --------------------------
async def has_distributor_responded(db: AsyncSession, request_id: int, distributor_id: int) -> bool:
    result = await db.execute(
        select(func.count(QuotationResponse.id)).where(
            QuotationResponse.quotation_request_id == request_id,
            QuotationResponse.distributor_id == distributor_id,
        )
    )
    return (result.scalar() or 0) > 0


async def get_distributor_response(db: AsyncSession, request_id: int, distributor_id: int) -> QuotationResponseOut:
    result = await db.execute(
        select(QuotationResponse).where(
            QuotationResponse.quotation_request_id == request_id,
            QuotationResponse.distributor_id == distributor_id,
        )
    )
    response = result.unique().scalar_one_or_none()
    if not response:
        raise NotFoundError(f"No response from distributor {distributor_id} for quotation request {request_id}")
    return QuotationResponseOut.model_validate(response)


# --------------------------
# READS
# --------------------------
async def get_customer_quotation_requests(db: AsyncSession, customer_id: int) -> List[QuotationRequestOut]:
    result = await db.execute(
        select(QuotationRequest)
        .where(QuotationRequest.customer_id == customer_id)
        .order_by(QuotationRequest.request_date.desc(), QuotationRequest.id.desc())
    )
    return [QuotationRequestOut.model_validate(r) for r in result.unique().scalars().all()]


async def get_distributor_quotation_requests(db: AsyncSession, distributor_id: int) -> List[QuotationRequestOut]:
    result = await db.execute(
        select(QuotationRequest)
        .where(QuotationRequest.status == QuotationRequestStatus.pending.value)
        .order_by(QuotationRequest.request_date.desc(), QuotationRequest.id.desc())
    )
    requests = result.unique().scalars().all()

    responded = await db.execute(
        select(QuotationResponse.quotation_request_id).where(QuotationResponse.distributor_id == distributor_id)
    )
    responded_ids = set(responded.scalars().all())

    return [
        QuotationRequestOut.model_validate(r).model_copy(update={"already_responded": r.id in responded_ids})
        for r in requests
    ]


async def get_quotation_request(db: AsyncSession, request_id: int) -> QuotationRequestOut:
    request = await _get_request(db, request_id)
    if not request:
        raise NotFoundError(f"Quotation request {request_id} not found")
    return QuotationRequestOut.model_validate(request)


async def get_quotation_request_items(db: AsyncSession, request_id: int) -> List[QuotationRequestItemOut]:
    request = await _get_request(db, request_id)
    if not request:
        raise NotFoundError(f"Quotation request {request_id} not found")
    return [QuotationRequestItemOut.model_validate(item) for item in request.items]


async def get_quotation_response(db: AsyncSession, response_id: int) -> QuotationResponseOut:
    response = await _get_response(db, response_id)
    if not response:
        raise NotFoundError(f"Quotation response {response_id} not found")
    return QuotationResponseOut.model_validate(response)


# --------------------------
# STATS
# --------------------------
async def _customer_stats(db: AsyncSession, customer_id: int) -> QuotationStatsOut:
    rows = await db.execute(
        select(QuotationRequest.status, func.count(QuotationRequest.id))
        .where(QuotationRequest.customer_id == customer_id)
        .group_by(QuotationRequest.status)
    )
    by_status = dict(rows.all())
    total_requests = sum(by_status.values())

    total_responses = (
        await db.execute(
            select(func.count(QuotationResponse.id))
            .join(QuotationRequest, QuotationResponse.quotation_request_id == QuotationRequest.id)
            .where(QuotationRequest.customer_id == customer_id)
        )
    ).scalar() or 0

    last_request_date = (
        await db.execute(
            select(func.max(QuotationRequest.request_date)).where(QuotationRequest.customer_id == customer_id)
        )
    ).scalar()

    return QuotationStatsOut(
        role="customer",
        total_requests=total_requests,
        pending_requests=by_status.get(QuotationRequestStatus.pending.value, 0),
        completed_requests=by_status.get(QuotationRequestStatus.completed.value, 0),
        cancelled_requests=by_status.get(QuotationRequestStatus.cancelled.value, 0),
        total_responses_received=total_responses,
        average_responses_per_request=round(total_responses / total_requests, 2) if total_requests else 0.0,
        last_request_date=last_request_date,
    )


async def _distributor_stats(db: AsyncSession, distributor_id: int) -> QuotationStatsOut:
    rows = await db.execute(
        select(QuotationResponse.status, func.count(QuotationResponse.id))
        .where(QuotationResponse.distributor_id == distributor_id)
        .group_by(QuotationResponse.status)
    )
    by_status = dict(rows.all())
    total_responses = sum(by_status.values())

    totals = (
        await db.execute(
            select(func.sum(QuotationResponse.total_price), func.max(QuotationResponse.submission_date))
            .where(QuotationResponse.distributor_id == distributor_id)
        )
    ).one()
    total_value = to_money(totals[0] or ZERO)

    return QuotationStatsOut(
        role="distributor",
        total_responses=total_responses,
        accepted_responses=by_status.get(QuotationResponseStatus.accepted.value, 0),
        rejected_responses=by_status.get(QuotationResponseStatus.rejected.value, 0),
        pending_responses=by_status.get(QuotationResponseStatus.submitted.value, 0),
        total_response_value=total_value,
        average_response_value=to_money(total_value / total_responses) if total_responses else ZERO,
        last_response_date=totals[1],
    )


async def get_quotation_stats(db: AsyncSession, caller: CallerContext) -> QuotationStatsOut:
    if caller.is_customer:
        return await _customer_stats(db, caller.id)
    if caller.is_distributor:
        return await _distributor_stats(db, caller.id)
    raise ForbiddenError("Quotation statistics are only available to customers and distributors")
