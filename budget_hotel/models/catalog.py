"""
Add-on services and bundled packages.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_hotel.models.base import SoftDeleteModel

if TYPE_CHECKING:
    from budget_hotel.models.room import RoomType


class Service(SoftDeleteModel):
    """A priced add-on such as breakfast or airport transfer."""

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_services_price"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)


class Package(SoftDeleteModel):
    """A bundle of a room type and services sold at a fixed total price."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    items: Mapped[List["PackageItem"]] = relationship(back_populates="package")

    @property
    def live_items(self) -> List["PackageItem"]:
        return [item for item in self.items if not item.is_deleted]

    @property
    def room_item(self) -> Optional["PackageItem"]:
        for item in self.live_items:
            if item.room_type_id:
                return item
        return None

    @property
    def service_items(self) -> List["PackageItem"]:
        return [item for item in self.live_items if item.service_id]

    @property
    def items_total(self) -> Decimal:
        """Price of the items bought separately, for the bundle saving display"""
        return sum((item.line_total for item in self.live_items), Decimal("0.00"))


class PackageItem(SoftDeleteModel):
    """One line of a package; references either a room type or a service."""

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_package_items_quantity"),
        CheckConstraint(
            "(room_type_id IS NULL) <> (service_id IS NULL)",
            name="ck_package_items_one_target",
        ),
    )

    package_id: Mapped[str] = mapped_column(ForeignKey("packages.id"), nullable=False, index=True)
    room_type_id: Mapped[Optional[str]] = mapped_column(ForeignKey("room_types.id"), index=True)
    service_id: Mapped[Optional[str]] = mapped_column(ForeignKey("services.id"), index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    package: Mapped["Package"] = relationship(back_populates="items")
    room_type: Mapped[Optional["RoomType"]] = relationship()
    service: Mapped[Optional["Service"]] = relationship()

    @property
    def unit_price(self) -> Decimal:
        if self.service is not None:
            return self.service.price
        if self.room_type is not None:
            return self.room_type.base_price
        return Decimal("0")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity
