"""
Request and response schemas for registration, login and password reset.
"""

from typing import Optional

from pydantic import EmailStr, Field

from budget_hotel.schemas.common import BaseSchema
from budget_hotel.schemas.user import UserResponse


class RegisterRequest(BaseSchema):
    full_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    phone_number: Optional[str] = Field(default=None, max_length=20)


class LoginRequest(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=1)


class VerifyEmailRequest(BaseSchema):
    email: EmailStr
    code: str = Field(..., min_length=4, max_length=10)


class EmailRequest(BaseSchema):
    email: EmailStr


class ResetPasswordRequest(BaseSchema):
    email: EmailStr
    code: str = Field(..., min_length=4, max_length=10)
    new_password: str = Field(..., min_length=8, max_length=72)


class CodeDeliveryResponse(BaseSchema):
    """
    Outcome of sending a one-time code.

    ``fallback_code`` is only set when the email could not be delivered.
    """

    message: str
    email: str
    email_sent: bool
    fallback_code: Optional[str] = None


class TokenResponse(BaseSchema):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
