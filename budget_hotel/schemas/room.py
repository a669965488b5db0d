"""
Room type, room, image and amenity schemas.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from budget_hotel.models.base import RoomStatus
from budget_hotel.schemas.common import BaseResponseSchema, BaseSchema


class AmenityCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=100)


class AmenityUpdate(BaseSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)


class AmenityResponse(BaseResponseSchema):
    name: str
    image_url: Optional[str] = None


class RoomImageResponse(BaseResponseSchema):
    room_type_id: str
    image_url: str
    caption: Optional[str] = None


class RoomTypeCreate(BaseSchema):
    hotel_id: str
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    occupancy: int = Field(default=2, ge=1, le=10)
    base_price: Decimal = Field(..., ge=0, le=Decimal("99999.99"), decimal_places=2)
    amenity_ids: List[str] = Field(default_factory=list)


class RoomTypeUpdate(BaseSchema):
    hotel_id: Optional[str] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    occupancy: Optional[int] = Field(default=None, ge=1, le=10)
    base_price: Optional[Decimal] = Field(default=None, ge=0, le=Decimal("99999.99"), decimal_places=2)


class RoomTypeResponse(BaseResponseSchema):
    hotel_id: str
    name: str
    description: Optional[str] = None
    occupancy: int
    base_price: Decimal


class RoomTypeDetail(RoomTypeResponse):
    images: List[RoomImageResponse] = Field(default_factory=list)
    amenities: List[AmenityResponse] = Field(default_factory=list)


class AmenityLink(BaseSchema):
    amenity_id: str


class RoomCreate(BaseSchema):
    room_type_id: str
    room_number: str = Field(..., min_length=1, max_length=10)
    status: RoomStatus = RoomStatus.AVAILABLE


class RoomUpdate(BaseSchema):
    room_type_id: Optional[str] = None
    room_number: Optional[str] = Field(default=None, min_length=1, max_length=10)
    status: Optional[RoomStatus] = None


class RoomResponse(BaseResponseSchema):
    room_type_id: str
    room_number: str
    status: RoomStatus
    room_type: Optional[RoomTypeResponse] = None


class AvailabilityResponse(BaseSchema):
    room_type_id: str
    check_in: date
    check_out: date
    nights: int
    available_rooms: int
    is_available: bool
    base_price: Decimal
    total_price: Decimal
