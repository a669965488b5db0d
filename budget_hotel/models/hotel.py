"""
Hotel model.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_hotel.models.base import SoftDeleteModel

if TYPE_CHECKING:
    from budget_hotel.models.room import RoomType
    from budget_hotel.models.user import User


class Hotel(SoftDeleteModel):
    """A property operated under the brand; the unit of staff access scope."""

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    address: Mapped[str] = mapped_column(String(200), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    contact_number: Mapped[Optional[str]] = mapped_column(String(30))
    contact_email: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))

    room_types: Mapped[List["RoomType"]] = relationship(back_populates="hotel")
    staff: Mapped[List["User"]] = relationship(back_populates="hotel")
