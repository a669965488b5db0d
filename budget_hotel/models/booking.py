"""
Booking and booking extras.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, Date, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_hotel.models.base import (
    BookingSource,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    SoftDeleteModel,
)
from budget_hotel.models.base.enums import enum_values
from budget_hotel.utils.datetime_utils import utcnow

if TYPE_CHECKING:
    from budget_hotel.models.catalog import Package, Service
    from budget_hotel.models.promotion import Promotion
    from budget_hotel.models.review import Review
    from budget_hotel.models.room import Room
    from budget_hotel.models.user import User

# Statuses that hold a room for their date range
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN)
TERMINAL_STATUSES = (BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED, BookingStatus.NO_SHOW)
REVIEWABLE_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT)


class Booking(SoftDeleteModel):
    """
    A reservation of one room for the half-open night range
    [check_in_date, check_out_date).
    """

    __table_args__ = (
        CheckConstraint("check_in_date < check_out_date", name="ck_bookings_date_range"),
        Index("ix_bookings_room_dates", "room_id", "check_in_date", "check_out_date"),
    )

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    room_id: Mapped[str] = mapped_column(ForeignKey("rooms.id"), nullable=False, index=True)
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_out_date: Mapped[date] = mapped_column(Date, nullable=False)
    booking_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    status: Mapped[BookingStatus] = mapped_column(
        SAEnum(BookingStatus, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )
    source: Mapped[BookingSource] = mapped_column(
        SAEnum(BookingSource, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=BookingSource.DIRECT,
    )

    # Price quote captured at booking time
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    promotion_id: Mapped[Optional[str]] = mapped_column(ForeignKey("promotions.id"), index=True)
    promotion_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    package_id: Mapped[Optional[str]] = mapped_column(ForeignKey("packages.id"), index=True)

    # Payment
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(PaymentStatus, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_method: Mapped[Optional[PaymentMethod]] = mapped_column(
        SAEnum(PaymentMethod, values_callable=enum_values, native_enum=False, length=20)
    )
    payment_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    transaction_id: Mapped[Optional[str]] = mapped_column(String(50), unique=True)
    payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Cancellation
    cancellation_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(String(500))
    refund_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))

    # Stay
    qr_token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    check_in_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    check_out_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    user: Mapped["User"] = relationship(back_populates="bookings")
    room: Mapped["Room"] = relationship(back_populates="bookings")
    promotion: Mapped[Optional["Promotion"]] = relationship()
    package: Mapped[Optional["Package"]] = relationship()
    extras: Mapped[List["BookingExtra"]] = relationship(
        back_populates="booking", cascade="all, delete-orphan"
    )
    reviews: Mapped[List["Review"]] = relationship(back_populates="booking")

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days

    @property
    def hotel_id(self) -> str:
        return self.room.room_type.hotel_id

    @property
    def active_review(self) -> Optional["Review"]:
        for review in self.reviews:
            if not review.is_deleted:
                return review
        return None

    @property
    def is_paid(self) -> bool:
        return self.payment_status in (PaymentStatus.COMPLETED, PaymentStatus.REFUNDED)

    @property
    def can_review(self) -> bool:
        return (
            not self.is_deleted
            and self.status in REVIEWABLE_STATUSES
            and self.active_review is None
        )


class BookingExtra(SoftDeleteModel):
    """An add-on service line with the unit price captured at booking time."""

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_booking_extras_quantity"),
    )

    booking_id: Mapped[str] = mapped_column(ForeignKey("bookings.id"), nullable=False, index=True)
    service_id: Mapped[str] = mapped_column(ForeignKey("services.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    booking: Mapped["Booking"] = relationship(back_populates="extras")
    service: Mapped["Service"] = relationship()

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity
