"""
Hotel schemas.
"""

from typing import Optional

from pydantic import EmailStr, Field

from budget_hotel.schemas.common import BaseResponseSchema, BaseSchema


class HotelBase(BaseSchema):
    name: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)
    contact_number: Optional[str] = Field(default=None, max_length=30)
    contact_email: Optional[EmailStr] = None
    description: Optional[str] = None


class HotelCreate(HotelBase):
    pass


class HotelUpdate(BaseSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    address: Optional[str] = Field(default=None, min_length=1, max_length=200)
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
    postal_code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    country: Optional[str] = Field(default=None, min_length=1, max_length=100)
    contact_number: Optional[str] = Field(default=None, max_length=30)
    contact_email: Optional[EmailStr] = None
    description: Optional[str] = None


class HotelResponse(BaseResponseSchema, HotelBase):
    contact_email: Optional[str] = None
    image_url: Optional[str] = None


class StaffAssignment(BaseSchema):
    manager_id: Optional[str] = None
    staff_id: Optional[str] = None
