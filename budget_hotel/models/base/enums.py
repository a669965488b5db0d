"""
Database enums shared by models, schemas and services.
"""

import enum


class UserRole(str, enum.Enum):
    """User role enumeration."""
    ADMIN = "Admin"
    MANAGER = "Manager"
    STAFF = "Staff"
    CUSTOMER = "Customer"

    @property
    def is_staff(self) -> bool:
        return self is not UserRole.CUSTOMER


class RoomStatus(str, enum.Enum):
    """Physical room status."""
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    UNDER_MAINTENANCE = "UnderMaintenance"
    CLEANING = "Cleaning"


class BookingStatus(str, enum.Enum):
    """Booking lifecycle status."""
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CHECKED_IN = "CheckedIn"
    CHECKED_OUT = "CheckedOut"
    CANCELLED = "Cancelled"
    NO_SHOW = "NoShow"


class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    REFUNDED = "Refunded"


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "CreditCard"
    PAYPAL = "PayPal"
    BANK_TRANSFER = "BankTransfer"


class BookingSource(str, enum.Enum):
    """Channel a booking arrived through."""
    DIRECT = "Direct"
    OTA = "OTA"
    GROUP = "Group"
    PHONE = "Phone"
    WALK_IN = "WalkIn"
    PACKAGE = "Package"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "Percentage"
    FIXED_AMOUNT = "FixedAmount"


class TokenPurpose(str, enum.Enum):
    """What a one-time code was issued for."""
    EMAIL_VERIFICATION = "EmailVerification"
    PASSWORD_RESET = "PasswordReset"


def enum_values(enum_cls):
    """values_callable for SQLAlchemy Enum columns storing enum values"""
    return [member.value for member in enum_cls]
