"""
Guest review model.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_hotel.models.base import SoftDeleteModel
from budget_hotel.utils.datetime_utils import utcnow

if TYPE_CHECKING:
    from budget_hotel.models.booking import Booking


class Review(SoftDeleteModel):
    """A rating left by the booking's owner; one live review per booking."""

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating"),
        Index(
            "uq_reviews_booking_live",
            "booking_id",
            unique=True,
            sqlite_where=text("is_deleted = 0"),
            postgresql_where=text("is_deleted = false"),
        ),
    )

    booking_id: Mapped[str] = mapped_column(ForeignKey("bookings.id"), nullable=False, index=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(String(500))
    review_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    booking: Mapped["Booking"] = relationship(back_populates="reviews")

    @property
    def reviewer_name(self) -> Optional[str]:
        if self.booking is None or self.booking.user is None:
            return None
        return self.booking.user.full_name
