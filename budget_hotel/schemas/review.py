"""
Review schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from budget_hotel.schemas.common import BaseResponseSchema, BaseSchema


class ReviewCreate(BaseSchema):
    booking_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=500)


class ReviewResponse(BaseResponseSchema):
    booking_id: str
    rating: int
    comment: Optional[str] = None
    review_date: datetime
    reviewer_name: Optional[str] = None


class RoomTypeReviews(BaseSchema):
    room_type_id: str
    average_rating: Optional[Decimal] = None
    review_count: int
    reviews: List[ReviewResponse]
