"""
Customer booking endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from budget_hotel.api import deps
from budget_hotel.schemas.booking import (
    BookingCreate,
    BookingResponse,
    CancelRequest,
    PaymentRequest,
    QuoteRequest,
    QuoteResponse,
    ReceiptResponse,
)
from budget_hotel.schemas.review import ReviewCreate, ReviewResponse
from budget_hotel.services.access import RequestContext
from budget_hotel.services.booking_service import BookingService, ServiceSelection
from budget_hotel.services.review_service import ReviewService

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _selections(items) -> List[ServiceSelection]:
    return [ServiceSelection(service_id=item.service_id, quantity=item.quantity) for item in items]


@router.post("/quote", response_model=QuoteResponse)
def quote(
    payload: QuoteRequest,
    ctx: RequestContext = Depends(deps.get_request_context),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.quote(
        ctx,
        payload.room_type_id,
        payload.check_in,
        payload.check_out,
        _selections(payload.services),
        payload.promotion_code,
    )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    ctx: RequestContext = Depends(deps.require_customer),
    service: BookingService = Depends(deps.get_booking_service),
):
    options = dict(
        services=_selections(payload.services),
        promotion_code=payload.promotion_code,
        package_id=payload.package_id,
        source=payload.source,
        notes=payload.notes,
    )
    if payload.room_id:
        return service.create_booking(ctx, payload.room_id, payload.check_in, payload.check_out, **options)
    return service.create_booking_for_room_type(
        ctx, payload.room_type_id, payload.check_in, payload.check_out, **options
    )


@router.get("", response_model=List[BookingResponse])
def my_bookings(
    ctx: RequestContext = Depends(deps.require_customer),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.list_my_bookings(ctx)


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    ctx: RequestContext = Depends(deps.get_request_context),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.get_booking(ctx, booking_id)


@router.post("/{booking_id}/pay", response_model=BookingResponse)
def pay_booking(
    booking_id: str,
    payload: PaymentRequest,
    ctx: RequestContext = Depends(deps.require_customer),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.confirm_payment(ctx, booking_id, payload.amount, payload.payment_method)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    payload: CancelRequest,
    ctx: RequestContext = Depends(deps.require_customer),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.cancel_booking(ctx, booking_id, payload.reason)


@router.get("/{booking_id}/receipt", response_model=ReceiptResponse)
def receipt(
    booking_id: str,
    ctx: RequestContext = Depends(deps.get_request_context),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.receipt(ctx, booking_id)


reviews_router = APIRouter(prefix="/reviews", tags=["Reviews"])


@reviews_router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_review(
    payload: ReviewCreate,
    ctx: RequestContext = Depends(deps.require_customer),
    service: ReviewService = Depends(deps.get_review_service),
):
    return service.create_review(ctx, payload.booking_id, payload.rating, payload.comment)
