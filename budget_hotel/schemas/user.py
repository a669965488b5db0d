"""
User profile and administration schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from budget_hotel.models.base import UserRole
from budget_hotel.schemas.common import BaseResponseSchema, BaseSchema


class UserResponse(BaseResponseSchema):
    email: str
    full_name: str
    phone_number: Optional[str] = None
    role: UserRole
    hotel_id: Optional[str] = None
    is_email_verified: bool
    is_active: bool
    profile_picture_url: Optional[str] = None
    bio: Optional[str] = None
    last_login_at: Optional[datetime] = None


class ProfileUpdate(BaseSchema):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    bio: Optional[str] = Field(default=None, max_length=1000)


class ChangePasswordRequest(BaseSchema):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)


class UserCreate(BaseSchema):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8, max_length=72)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    role: UserRole = UserRole.CUSTOMER
    hotel_id: Optional[str] = None
    is_active: bool = True


class UserUpdate(BaseSchema):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    role: Optional[UserRole] = None
    hotel_id: Optional[str] = None
    is_active: Optional[bool] = None
    new_password: Optional[str] = Field(default=None, min_length=8, max_length=72)
