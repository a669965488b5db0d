"""
Room inventory models: room types, physical rooms, images and amenities.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, Enum as SAEnum, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_hotel.models.base import RoomStatus, SoftDeleteModel, TimestampModel
from budget_hotel.models.base.enums import enum_values

if TYPE_CHECKING:
    from budget_hotel.models.booking import Booking
    from budget_hotel.models.hotel import Hotel


class RoomType(SoftDeleteModel):
    """A sellable category of room within one hotel."""

    __table_args__ = (
        CheckConstraint("occupancy BETWEEN 1 AND 10", name="ck_room_types_occupancy"),
        CheckConstraint("base_price >= 0", name="ck_room_types_base_price"),
    )

    hotel_id: Mapped[str] = mapped_column(ForeignKey("hotels.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    hotel: Mapped["Hotel"] = relationship(back_populates="room_types")
    rooms: Mapped[List["Room"]] = relationship(back_populates="room_type")
    images: Mapped[List["RoomImage"]] = relationship(back_populates="room_type")
    amenity_links: Mapped[List["RoomTypeAmenity"]] = relationship(
        back_populates="room_type", cascade="all, delete-orphan"
    )

    @property
    def amenities(self) -> List["Amenity"]:
        return [link.amenity for link in self.amenity_links if link.amenity and not link.amenity.is_deleted]


class Room(SoftDeleteModel):
    """A physical, bookable room."""

    room_type_id: Mapped[str] = mapped_column(ForeignKey("room_types.id"), nullable=False, index=True)
    room_number: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    status: Mapped[RoomStatus] = mapped_column(
        SAEnum(RoomStatus, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=RoomStatus.AVAILABLE,
    )

    room_type: Mapped["RoomType"] = relationship(back_populates="rooms")
    bookings: Mapped[List["Booking"]] = relationship(back_populates="room")


class RoomImage(SoftDeleteModel):
    room_type_id: Mapped[str] = mapped_column(ForeignKey("room_types.id"), nullable=False, index=True)
    image_url: Mapped[str] = mapped_column(String(500), nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(String(200))

    room_type: Mapped["RoomType"] = relationship(back_populates="images")


class Amenity(SoftDeleteModel):
    __tablename__ = "amenities"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))


class RoomTypeAmenity(TimestampModel):
    """Link between a room type and an amenity it offers."""

    __tablename__ = "room_type_amenities"
    __table_args__ = (
        UniqueConstraint("room_type_id", "amenity_id", name="uq_room_type_amenity"),
    )

    room_type_id: Mapped[str] = mapped_column(ForeignKey("room_types.id"), nullable=False, index=True)
    amenity_id: Mapped[str] = mapped_column(ForeignKey("amenities.id"), nullable=False, index=True)

    room_type: Mapped["RoomType"] = relationship(back_populates="amenity_links")
    amenity: Mapped["Amenity"] = relationship()
