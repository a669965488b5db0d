"""
Promotion code model.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum as SAEnum, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, validates

from budget_hotel.models.base import DiscountType, SoftDeleteModel
from budget_hotel.models.base.enums import enum_values


class Promotion(SoftDeleteModel):
    """
    A discount code redeemable within a date window.

    Usage is not stored here: it is the number of bookings carrying this
    promotion with a ``promotion_used_at`` stamp.
    """

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_promotions_window"),
        CheckConstraint("value >= 0", name="ck_promotions_value"),
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    discount_type: Mapped[DiscountType] = mapped_column(
        SAEnum(DiscountType, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
    )
    value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    minimum_nights: Mapped[Optional[int]] = mapped_column(Integer)
    minimum_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    max_total_uses: Mapped[Optional[int]] = mapped_column(Integer)
    limit_per_user_account: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_uses_per_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Filled in by services from the bookings table; not a column
    usage_count = 0

    @validates("code")
    def normalize_code(self, key, value: str) -> str:
        return value.strip().upper()

    def is_within_window(self, at_time: datetime) -> bool:
        return self.start_date <= at_time <= self.end_date
