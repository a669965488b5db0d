"""
Booking, quote, payment and dashboard schemas.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field, model_validator

from budget_hotel.core.constants import MAX_PROMOTION_CODE_LENGTH
from budget_hotel.models.base import BookingSource, BookingStatus, PaymentMethod, PaymentStatus
from budget_hotel.schemas.common import BaseResponseSchema, BaseSchema, SoftDeleteMixin
from budget_hotel.schemas.room import RoomResponse


class ServiceSelectionIn(BaseSchema):
    service_id: str
    quantity: int = Field(default=1, ge=1, le=100)


class StayDates(BaseSchema):
    check_in: date
    check_out: date

    @model_validator(mode="after")
    def check_order(self):
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class BookingCreate(StayDates):
    """
    New booking for the signed-in customer.

    Give ``room_id`` to book a specific room, or ``room_type_id`` to take
    the first free room of that type.
    """

    room_id: Optional[str] = None
    room_type_id: Optional[str] = None
    package_id: Optional[str] = None
    services: List[ServiceSelectionIn] = Field(default_factory=list)
    promotion_code: Optional[str] = Field(default=None, max_length=MAX_PROMOTION_CODE_LENGTH)
    source: BookingSource = BookingSource.DIRECT
    notes: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def check_target(self):
        if not (self.room_id or self.room_type_id or self.package_id):
            raise ValueError("room_id, room_type_id or package_id is required")
        return self


class QuoteRequest(StayDates):
    room_type_id: str
    services: List[ServiceSelectionIn] = Field(default_factory=list)
    promotion_code: Optional[str] = Field(default=None, max_length=MAX_PROMOTION_CODE_LENGTH)


class QuoteLine(BaseSchema):
    service_id: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class QuoteResponse(BaseSchema):
    nights: int
    room_total: Decimal
    services_total: Decimal
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    lines: List[QuoteLine] = Field(default_factory=list)


class PaymentRequest(BaseSchema):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_method: PaymentMethod


class CancelRequest(BaseSchema):
    reason: Optional[str] = Field(default=None, max_length=500)


class StatusUpdate(BaseSchema):
    status: BookingStatus


class ScanRequest(BaseSchema):
    token: str = Field(..., min_length=1, max_length=64)


class BookingExtraResponse(BaseSchema):
    service_id: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class BookingResponse(BaseResponseSchema, SoftDeleteMixin):
    user_id: str
    room_id: str
    check_in_date: date
    check_out_date: date
    nights: int
    booking_date: datetime
    status: BookingStatus
    source: BookingSource
    subtotal: Decimal
    discount_amount: Decimal
    total_price: Decimal
    promotion_id: Optional[str] = None
    package_id: Optional[str] = None
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    payment_amount: Optional[Decimal] = None
    transaction_id: Optional[str] = None
    payment_date: Optional[datetime] = None
    cancellation_date: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    qr_token: str
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    notes: Optional[str] = None
    can_review: bool = False
    room: Optional[RoomResponse] = None
    extras: List[BookingExtraResponse] = Field(default_factory=list)


class ReceiptLine(BaseSchema):
    description: str
    nights: int
    unit_price: Decimal
    amount: Decimal


class ReceiptExtra(BaseSchema):
    service_id: str
    name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    amount: Decimal


class ReceiptResponse(BaseSchema):
    booking_id: str
    hotel: str
    guest: str
    email: str
    check_in: date
    check_out: date
    room: ReceiptLine
    extras: List[ReceiptExtra]
    subtotal: Decimal
    discount: Decimal
    promotion_code: Optional[str] = None
    total: Decimal
    currency: str
    status: BookingStatus
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    payment_amount: Optional[Decimal] = None
    transaction_id: Optional[str] = None
    payment_date: Optional[datetime] = None
    refund_amount: Optional[Decimal] = None


class SweepResponse(BaseSchema):
    no_show: int
    checked_in: int
    checked_out: int


class DashboardResponse(BaseSchema):
    total_bookings: int
    by_status: Dict[str, int]
    revenue: Decimal
    currency: str
    swept: SweepResponse
