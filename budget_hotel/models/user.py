"""
User accounts and one-time security codes.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from budget_hotel.models.base import SoftDeleteModel, TimestampModel, TokenPurpose, UserRole
from budget_hotel.models.base.enums import enum_values
from budget_hotel.utils.encryption import decrypt_optional, encrypt_optional

if TYPE_CHECKING:
    from budget_hotel.models.booking import Booking
    from budget_hotel.models.hotel import Hotel


class User(SoftDeleteModel):
    """
    A customer or staff account.

    Managers and Staff carry the ``hotel_id`` they are assigned to; that
    assignment is the whole of their access scope.
    """

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number_encrypted: Mapped[Optional[str]] = mapped_column("phone_number", String(500))
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=UserRole.CUSTOMER,
        index=True,
    )
    hotel_id: Mapped[Optional[str]] = mapped_column(ForeignKey("hotels.id"), index=True)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    profile_picture_url: Mapped[Optional[str]] = mapped_column(String(500))
    bio: Mapped[Optional[str]] = mapped_column(Text)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    hotel: Mapped[Optional["Hotel"]] = relationship(back_populates="staff")
    bookings: Mapped[List["Booking"]] = relationship(back_populates="user")

    @validates("email")
    def normalize_email(self, key, value: str) -> str:
        return value.strip().lower()

    @property
    def phone_number(self) -> Optional[str]:
        return decrypt_optional(self.phone_number_encrypted)

    @phone_number.setter
    def phone_number(self, value: Optional[str]) -> None:
        self.phone_number_encrypted = encrypt_optional(value)

    @property
    def is_staff(self) -> bool:
        return self.role.is_staff


class SecurityToken(TimestampModel):
    """A hashed one-time code for email verification or password reset."""

    user_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"), index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    purpose: Mapped[TokenPurpose] = mapped_column(
        SAEnum(TokenPurpose, values_callable=enum_values, native_enum=False, length=30),
        nullable=False,
    )
    code_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    consumed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    def is_usable(self, now: datetime) -> bool:
        return self.consumed_at is None and now <= self.expires_at


class LoginAttempt(TimestampModel):
    """One sign-in attempt; recent failures drive the lockout."""

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    was_successful: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45))
    attempted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
