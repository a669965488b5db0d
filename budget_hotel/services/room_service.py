"""
Room type and room administration: CRUD, images and amenity links.

Every operation is confined to the caller's hotels.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from budget_hotel.core.constants import ROOM_IMAGES_FOLDER
from budget_hotel.core.exceptions import (
    DependentRecordsError,
    DuplicateEntryError,
    ResourceNotFoundError,
    ValidationError,
)
from budget_hotel.core.pagination import Page, normalize_pagination, sanitize_search_term
from budget_hotel.models import Room, RoomImage, RoomType, RoomTypeAmenity
from budget_hotel.models.base import RoomStatus, UserRole
from budget_hotel.repositories.booking_repository import BookingRepository
from budget_hotel.repositories.inventory_repository import (
    AmenityRepository,
    HotelRepository,
    RoomImageRepository,
    RoomRepository,
    RoomTypeAmenityRepository,
    RoomTypeRepository,
)
from budget_hotel.services.access import AccessScope
from budget_hotel.services.base_service import BaseService
from budget_hotel.services.storage.file_storage import FileStorage, get_file_storage

MAX_BASE_PRICE = Decimal("99999.99")


class RoomService(BaseService):

    def __init__(self, db_session: Session, storage: Optional[FileStorage] = None):
        super().__init__(db_session)
        self.hotels = HotelRepository(db_session)
        self.room_types = RoomTypeRepository(db_session)
        self.rooms = RoomRepository(db_session)
        self.images = RoomImageRepository(db_session)
        self.amenities = AmenityRepository(db_session)
        self.amenity_links = RoomTypeAmenityRepository(db_session)
        self.bookings = BookingRepository(db_session)
        self.storage = storage or get_file_storage()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_room_type(data: Dict[str, Any]) -> None:
        errors = {}
        occupancy = data.get("occupancy")
        if occupancy is not None and not 1 <= occupancy <= 10:
            errors["occupancy"] = ["must be between 1 and 10"]
        price = data.get("base_price")
        if price is not None and not Decimal("0") <= Decimal(price) <= MAX_BASE_PRICE:
            errors["base_price"] = [f"must be between 0 and {MAX_BASE_PRICE}"]
        if errors:
            raise ValidationError("Invalid room type", errors)

    def _room_type_in_scope(self, scope: AccessScope, room_type_id: str, for_update: bool = False) -> RoomType:
        scope.require_any()
        room_type = self.room_types.find_by_id(room_type_id, for_update=for_update)
        if room_type is None:
            raise ResourceNotFoundError("RoomType", room_type_id)
        scope.require(room_type.hotel_id, f"room_type:{room_type_id}")
        return room_type

    def _room_in_scope(self, scope: AccessScope, room_id: str, for_update: bool = False) -> Room:
        scope.require_any()
        room = self.rooms.find_by_id(room_id, for_update=for_update)
        if room is None:
            raise ResourceNotFoundError("Room", room_id)
        scope.require(room.room_type.hotel_id, f"room:{room_id}")
        return room

    # -------------------------------------------------------------------------
    # Room types
    # -------------------------------------------------------------------------

    def list_room_types(
        self,
        scope: AccessScope,
        hotel_id: Optional[str] = None,
        search: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        scope.require_any()
        return self.room_types.search(
            scope, normalize_pagination(page, page_size), hotel_id, sanitize_search_term(search)
        )

    def get_room_type(self, scope: AccessScope, room_type_id: str) -> RoomType:
        self._room_type_in_scope(scope, room_type_id)
        return self.room_types.find_detailed(room_type_id)

    def create_room_type(
        self,
        scope: AccessScope,
        data: Dict[str, Any],
        amenity_ids: Optional[List[str]] = None,
    ) -> RoomType:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        scope.require(data.get("hotel_id"), "room_type")
        self._validate_room_type(data)
        with self.transaction():
            if self.hotels.find_by_id(data["hotel_id"]) is None:
                raise ResourceNotFoundError("Hotel", data["hotel_id"])
            room_type = self.room_types.create(RoomType(**data))
            for amenity_id in amenity_ids or []:
                self._link_amenity(room_type, amenity_id)
        self._log_operation("room type created", room_type.id, {"hotel_id": room_type.hotel_id})
        return self.room_types.find_detailed(room_type.id)

    def update_room_type(self, scope: AccessScope, room_type_id: str, data: Dict[str, Any]) -> RoomType:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        self._validate_room_type(data)
        with self.transaction():
            room_type = self._room_type_in_scope(scope, room_type_id, for_update=True)
            if "hotel_id" in data and data["hotel_id"] != room_type.hotel_id:
                scope.require(data["hotel_id"], "room_type")
                if self.hotels.find_by_id(data["hotel_id"]) is None:
                    raise ResourceNotFoundError("Hotel", data["hotel_id"])
            self.room_types.update(room_type, data)
        self._log_operation("room type updated", room_type.id, {"fields": sorted(data)})
        return self.room_types.find_detailed(room_type.id)

    def delete_room_type(self, scope: AccessScope, room_type_id: str) -> None:
        """Soft-delete a room type with no live rooms, along with its images and their files"""
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        urls = []
        with self.transaction():
            room_type = self._room_type_in_scope(scope, room_type_id, for_update=True)
            if self.room_types.count_rooms(room_type.id):
                raise DependentRecordsError(
                    "Cannot delete a room type that has rooms. Delete the rooms first.",
                    "RoomType",
                    "Room",
                )
            for image in self.images.for_room_type(room_type.id):
                urls.append(image.image_url)
                self.images.soft_delete(image)
            self.room_types.soft_delete(room_type)
        for url in urls:
            self.storage.delete(url)
        self._log_operation("room type deleted", room_type_id)

    # ==================== Amenity links ====================

    def _link_amenity(self, room_type: RoomType, amenity_id: str) -> RoomTypeAmenity:
        if self.amenities.find_by_id(amenity_id) is None:
            raise ResourceNotFoundError("Amenity", amenity_id)
        existing = self.amenity_links.find_link(room_type.id, amenity_id)
        if existing is not None:
            return existing
        return self.amenity_links.create(RoomTypeAmenity(room_type_id=room_type.id, amenity_id=amenity_id))

    def add_amenity(self, scope: AccessScope, room_type_id: str, amenity_id: str) -> RoomType:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        with self.transaction():
            room_type = self._room_type_in_scope(scope, room_type_id)
            self._link_amenity(room_type, amenity_id)
        self._log_operation("amenity linked", room_type_id, {"amenity_id": amenity_id})
        self.db.expire(room_type)
        return self.room_types.find_detailed(room_type_id)

    def remove_amenity(self, scope: AccessScope, room_type_id: str, amenity_id: str) -> RoomType:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        with self.transaction():
            room_type = self._room_type_in_scope(scope, room_type_id)
            link = self.amenity_links.find_link(room_type.id, amenity_id)
            if link is None:
                raise ResourceNotFoundError("RoomTypeAmenity", amenity_id)
            self.amenity_links.hard_delete(link)
        self._log_operation("amenity unlinked", room_type_id, {"amenity_id": amenity_id})
        self.db.expire(room_type)
        return self.room_types.find_detailed(room_type_id)

    # ==================== Images ====================

    def add_image(
        self,
        scope: AccessScope,
        room_type_id: str,
        filename: str,
        content: bytes,
        caption: Optional[str] = None,
    ) -> RoomImage:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        self._room_type_in_scope(scope, room_type_id)
        url = self.storage.save(ROOM_IMAGES_FOLDER, filename, content)
        try:
            with self.transaction():
                image = self.images.create(
                    RoomImage(room_type_id=room_type_id, image_url=url, caption=caption)
                )
        except Exception:
            self.storage.delete(url)
            raise
        self._log_operation("room image added", image.id, {"room_type_id": room_type_id})
        return image

    def delete_image(self, scope: AccessScope, image_id: str) -> None:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        with self.transaction():
            image = self.images.find_by_id(image_id)
            if image is None:
                raise ResourceNotFoundError("RoomImage", image_id)
            self._room_type_in_scope(scope, image.room_type_id)
            url = image.image_url
            self.images.soft_delete(image)
        self.storage.delete(url)
        self._log_operation("room image deleted", image_id)

    # -------------------------------------------------------------------------
    # Rooms
    # -------------------------------------------------------------------------

    def list_rooms(
        self,
        scope: AccessScope,
        room_type_id: Optional[str] = None,
        status: Optional[RoomStatus] = None,
        search: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        scope.require_any()
        return self.rooms.search(
            scope, normalize_pagination(page, page_size), room_type_id, status, sanitize_search_term(search)
        )

    def get_room(self, scope: AccessScope, room_id: str) -> Room:
        self._room_in_scope(scope, room_id)
        return self.rooms.find_detailed(room_id)

    def _check_room_number(self, room_number: str, exclude_id: Optional[str] = None) -> str:
        room_number = (room_number or "").strip()
        if not room_number or len(room_number) > 10:
            raise ValidationError("Invalid room number", {"room_number": ["1 to 10 characters required"]})
        existing = self.rooms.find_by_number(room_number)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateEntryError("Room number already exists", "room_number", room_number)
        return room_number

    def create_room(self, scope: AccessScope, data: Dict[str, Any]) -> Room:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        with self.transaction():
            self._room_type_in_scope(scope, data["room_type_id"])
            data = {**data, "room_number": self._check_room_number(data.get("room_number"))}
            room = self.rooms.create(Room(**data))
        self._log_operation("room created", room.id, {"room_number": room.room_number})
        return self.rooms.find_detailed(room.id)

    def update_room(self, scope: AccessScope, room_id: str, data: Dict[str, Any]) -> Room:
        """Staff may change a room's status; Admin and Manager may edit everything"""
        if set(data) - {"status"}:
            scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        with self.transaction():
            room = self._room_in_scope(scope, room_id, for_update=True)
            if "room_number" in data:
                data = {**data, "room_number": self._check_room_number(data["room_number"], room.id)}
            if "room_type_id" in data and data["room_type_id"] != room.room_type_id:
                self._room_type_in_scope(scope, data["room_type_id"])
            self.rooms.update(room, data)
        self._log_operation("room updated", room.id, {"fields": sorted(data)})
        self.db.expire(room)
        return self.rooms.find_detailed(room_id)

    def delete_room(self, scope: AccessScope, room_id: str) -> None:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        with self.transaction():
            room = self._room_in_scope(scope, room_id, for_update=True)
            if self.bookings.count_for_room(room.id):
                raise DependentRecordsError(
                    "Cannot delete a room that has bookings.",
                    "Room",
                    "Booking",
                )
            self.rooms.soft_delete(room)
        self._log_operation("room deleted", room_id)
