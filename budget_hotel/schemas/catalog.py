"""
Add-on service and package schemas.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import Field, model_validator

from budget_hotel.schemas.common import BaseResponseSchema, BaseSchema


class ServiceCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)


class ServiceUpdate(BaseSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)


class ServiceResponse(BaseResponseSchema):
    name: str
    description: Optional[str] = None
    price: Decimal


class PackageItemIn(BaseSchema):
    room_type_id: Optional[str] = None
    service_id: Optional[str] = None
    quantity: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def one_target(self):
        if bool(self.room_type_id) == bool(self.service_id):
            raise ValueError("set exactly one of room_type_id or service_id")
        return self


class PackageItemResponse(BaseResponseSchema):
    room_type_id: Optional[str] = None
    service_id: Optional[str] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class PackageCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    total_price: Decimal = Field(..., gt=0, decimal_places=2)
    is_active: bool = True
    items: List[PackageItemIn] = Field(..., min_length=1)


class PackageUpdate(BaseSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    total_price: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    is_active: Optional[bool] = None
    items: Optional[List[PackageItemIn]] = None


class PackageResponse(BaseResponseSchema):
    name: str
    description: Optional[str] = None
    total_price: Decimal
    image_url: Optional[str] = None
    is_active: bool
    items_total: Decimal
    live_items: List[PackageItemResponse] = Field(default_factory=list, serialization_alias="items")
