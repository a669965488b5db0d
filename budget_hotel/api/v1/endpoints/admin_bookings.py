"""
Staff booking management: listing, export, status changes, QR scans,
soft delete and recovery, and the dashboard.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from budget_hotel.api import deps
from budget_hotel.models.base import BookingStatus
from budget_hotel.schemas.booking import (
    BookingResponse,
    CancelRequest,
    DashboardResponse,
    ReceiptResponse,
    ScanRequest,
    StatusUpdate,
    SweepResponse,
)
from budget_hotel.schemas.common import PageResponse, page_response
from budget_hotel.services.access import RequestContext
from budget_hotel.services.booking_service import BookingService
from budget_hotel.services.export_service import ExportService, export_filename

router = APIRouter(prefix="/admin", tags=["Admin: Bookings"])


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    ctx: RequestContext = Depends(deps.require_staff),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.dashboard(ctx.scope, ctx.today)


@router.get("/bookings", response_model=PageResponse[BookingResponse])
def list_bookings(
    search: Optional[str] = Query(None),
    status: Optional[BookingStatus] = Query(None),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    ctx: RequestContext = Depends(deps.require_staff),
    service: BookingService = Depends(deps.get_booking_service),
):
    return page_response(service.list_bookings(ctx.scope, ctx.today, search, status, page, page_size))


@router.get("/bookings/export")
def export_bookings(
    search: Optional[str] = Query(None),
    status: Optional[BookingStatus] = Query(None),
    ctx: RequestContext = Depends(deps.require_staff),
    service: ExportService = Depends(deps.get_export_service),
):
    content = service.export_bookings_csv(ctx.scope, search, status)
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(ctx.now)}"'},
    )


@router.post("/bookings/sweep", response_model=SweepResponse)
def sweep_statuses(
    ctx: RequestContext = Depends(deps.require_manager),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.advance_statuses(ctx.today).as_dict()


@router.post("/bookings/scan", response_model=BookingResponse)
def scan_qr(
    payload: ScanRequest,
    ctx: RequestContext = Depends(deps.require_staff),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.check_in_by_token(ctx, payload.token)


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    ctx: RequestContext = Depends(deps.require_staff),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.get_booking(ctx, booking_id)


@router.get("/bookings/{booking_id}/receipt", response_model=ReceiptResponse)
def booking_receipt(
    booking_id: str,
    ctx: RequestContext = Depends(deps.require_staff),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.receipt(ctx, booking_id)


@router.put("/bookings/{booking_id}/status", response_model=BookingResponse)
def update_status(
    booking_id: str,
    payload: StatusUpdate,
    ctx: RequestContext = Depends(deps.require_staff),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.update_status(ctx, booking_id, payload.status)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    payload: CancelRequest,
    ctx: RequestContext = Depends(deps.require_staff),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.cancel_booking(ctx, booking_id, payload.reason)


@router.delete("/bookings/{booking_id}", response_model=BookingResponse)
def delete_booking(
    booking_id: str,
    ctx: RequestContext = Depends(deps.require_staff),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.soft_delete_booking(ctx, booking_id)


@router.post("/bookings/{booking_id}/recover", response_model=BookingResponse)
def recover_booking(
    booking_id: str,
    ctx: RequestContext = Depends(deps.require_manager),
    service: BookingService = Depends(deps.get_booking_service),
):
    return service.recover_booking(ctx, booking_id)
