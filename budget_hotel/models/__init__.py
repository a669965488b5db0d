"""
Database models.

Importing this package registers every mapped class on ``Base.metadata``.
"""

from budget_hotel.models.base import Base, BaseModel, SoftDeleteModel, TimestampModel
from budget_hotel.models.booking import Booking, BookingExtra
from budget_hotel.models.catalog import Package, PackageItem, Service
from budget_hotel.models.hotel import Hotel
from budget_hotel.models.promotion import Promotion
from budget_hotel.models.review import Review
from budget_hotel.models.room import Amenity, Room, RoomImage, RoomType, RoomTypeAmenity
from budget_hotel.models.user import LoginAttempt, SecurityToken, User

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "SoftDeleteModel",
    "Amenity",
    "Booking",
    "BookingExtra",
    "Hotel",
    "LoginAttempt",
    "Package",
    "PackageItem",
    "Promotion",
    "Review",
    "Room",
    "RoomImage",
    "RoomType",
    "RoomTypeAmenity",
    "SecurityToken",
    "Service",
    "User",
]
