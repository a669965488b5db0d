from budget_hotel.models.base.base_model import (
    Base,
    BaseModel,
    SoftDeleteModel,
    TimestampModel,
)
from budget_hotel.models.base.enums import (
    BookingSource,
    BookingStatus,
    DiscountType,
    PaymentMethod,
    PaymentStatus,
    RoomStatus,
    TokenPurpose,
    UserRole,
)

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "SoftDeleteModel",
    "BookingSource",
    "BookingStatus",
    "DiscountType",
    "PaymentMethod",
    "PaymentStatus",
    "RoomStatus",
    "TokenPurpose",
    "UserRole",
]
