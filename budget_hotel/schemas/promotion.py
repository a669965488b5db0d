"""
Promotion schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from budget_hotel.core.constants import MAX_PROMOTION_CODE_LENGTH
from budget_hotel.models.base import DiscountType
from budget_hotel.schemas.common import BaseResponseSchema, BaseSchema


class PromotionCreate(BaseSchema):
    code: str = Field(..., min_length=1, max_length=MAX_PROMOTION_CODE_LENGTH)
    description: Optional[str] = None
    discount_type: DiscountType
    value: Decimal = Field(..., ge=0, decimal_places=2)
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    minimum_nights: Optional[int] = Field(default=None, ge=1)
    minimum_amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    max_total_uses: Optional[int] = Field(default=None, ge=1)
    limit_per_user_account: bool = False
    max_uses_per_limit: int = Field(default=1, ge=1)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class PromotionUpdate(BaseSchema):
    code: Optional[str] = Field(default=None, min_length=1, max_length=MAX_PROMOTION_CODE_LENGTH)
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    value: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None
    minimum_nights: Optional[int] = Field(default=None, ge=1)
    minimum_amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    max_total_uses: Optional[int] = Field(default=None, ge=1)
    limit_per_user_account: Optional[bool] = None
    max_uses_per_limit: Optional[int] = Field(default=None, ge=1)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v


class PromotionResponse(BaseResponseSchema):
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    value: Decimal
    start_date: datetime
    end_date: datetime
    is_active: bool
    minimum_nights: Optional[int] = None
    minimum_amount: Optional[Decimal] = None
    max_total_uses: Optional[int] = None
    limit_per_user_account: bool
    max_uses_per_limit: int
    usage_count: Optional[int] = None


class PublicPromotion(BaseSchema):
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    value: Decimal
    end_date: datetime
    minimum_nights: Optional[int] = None
    minimum_amount: Optional[Decimal] = None
