"""
Guest reviews.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from budget_hotel.core.exceptions import (
    ConflictError,
    DuplicateEntryError,
    DuplicateReviewError,
    ResourceNotFoundError,
    ValidationError,
)
from budget_hotel.core.pagination import Page, normalize_pagination
from budget_hotel.models import Review
from budget_hotel.models.booking import REVIEWABLE_STATUSES
from budget_hotel.repositories.booking_repository import BookingRepository
from budget_hotel.repositories.inventory_repository import RoomTypeRepository
from budget_hotel.repositories.user_repository import ReviewRepository
from budget_hotel.services.access import AccessScope, RequestContext
from budget_hotel.services.base_service import BaseService

MAX_COMMENT_LENGTH = 500


class ReviewService(BaseService):

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.reviews = ReviewRepository(db_session)
        self.bookings = BookingRepository(db_session)
        self.room_types = RoomTypeRepository(db_session)

    @staticmethod
    def _validate(rating: int, comment: Optional[str]) -> None:
        errors = {}
        if rating is None or not 1 <= rating <= 5:
            errors["rating"] = ["must be between 1 and 5"]
        if comment and len(comment) > MAX_COMMENT_LENGTH:
            errors["comment"] = [f"must be at most {MAX_COMMENT_LENGTH} characters"]
        if errors:
            raise ValidationError("Invalid review", errors)

    def create_review(
        self,
        ctx: RequestContext,
        booking_id: str,
        rating: int,
        comment: Optional[str] = None,
    ) -> Review:
        """
        Leave the single review a booking allows.

        The partial unique index on live reviews backs the duplicate check,
        so two concurrent submissions cannot both succeed.
        """
        self._validate(rating, comment)
        comment = comment.strip() if comment else None
        with self.transaction():
            booking = self.bookings.find_by_id(booking_id)
            if booking is None:
                raise ResourceNotFoundError("Booking", booking_id)
            if booking.user_id != ctx.user_id:
                raise ctx.scope.deny("You can only review your own bookings", f"booking:{booking_id}")
            if booking.status not in REVIEWABLE_STATUSES:
                raise ConflictError("You can only review confirmed or completed bookings")
            if self.reviews.find_live_for_booking(booking.id) is not None:
                raise DuplicateReviewError(booking.id)
            try:
                review = self.reviews.create(
                    Review(booking_id=booking.id, rating=rating, comment=comment, review_date=ctx.now)
                )
            except DuplicateEntryError as e:
                raise DuplicateReviewError(booking.id) from e

        self._log_operation("review created", review.id, {"booking_id": booking_id, "rating": rating})
        return review

    def room_type_reviews(self, room_type_id: str) -> Dict[str, Any]:
        """Public reviews of a room type with the average rating"""
        if self.room_types.find_by_id(room_type_id) is None:
            raise ResourceNotFoundError("RoomType", room_type_id)
        average, count = self.reviews.rating_summary(room_type_id)
        return {
            "room_type_id": room_type_id,
            "average_rating": (
                Decimal(str(average)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
                if average is not None else None
            ),
            "review_count": count,
            "reviews": self.reviews.for_room_type(room_type_id),
        }

    def list_reviews(
        self,
        scope: AccessScope,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        scope.require_any()
        return self.reviews.search(scope, normalize_pagination(page, page_size))

    def delete_review(self, ctx: RequestContext, review_id: str) -> None:
        ctx.scope.require_any()
        with self.transaction():
            review = self.reviews.find_by_id(review_id)
            if review is None:
                raise ResourceNotFoundError("Review", review_id)
            booking = self.bookings.find_by_id(review.booking_id, include_deleted=True)
            ctx.scope.require(booking.hotel_id if booking else None, f"review:{review_id}")
            self.reviews.soft_delete(review, ctx.now)
        self._log_operation("review deleted", review_id, {"by": ctx.user_id})
