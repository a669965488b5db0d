"""
Hotel administration and staff assignment.
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from budget_hotel.core.constants import HOTEL_IMAGES_FOLDER
from budget_hotel.core.exceptions import DependentRecordsError, ResourceNotFoundError, ValidationError
from budget_hotel.core.logging import audit_logger
from budget_hotel.core.pagination import Page, normalize_pagination, sanitize_search_term
from budget_hotel.models import Hotel
from budget_hotel.models.base import UserRole
from budget_hotel.repositories.inventory_repository import HotelRepository
from budget_hotel.repositories.user_repository import UserRepository
from budget_hotel.services.access import AccessScope
from budget_hotel.services.base_service import BaseService
from budget_hotel.services.storage.file_storage import FileStorage, get_file_storage


class HotelService(BaseService):

    def __init__(self, db_session: Session, storage: Optional[FileStorage] = None):
        super().__init__(db_session)
        self.hotels = HotelRepository(db_session)
        self.users = UserRepository(db_session)
        self.storage = storage or get_file_storage()

    def _get(self, hotel_id: str, for_update: bool = False) -> Hotel:
        hotel = self.hotels.find_by_id(hotel_id, for_update=for_update)
        if hotel is None:
            raise ResourceNotFoundError("Hotel", hotel_id)
        return hotel

    # ==================== Public ====================

    def browse_hotels(
        self,
        search: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        return self.hotels.search(None, normalize_pagination(page, page_size), sanitize_search_term(search))

    def public_hotel(self, hotel_id: str) -> Hotel:
        return self._get(hotel_id)

    # ==================== Administration ====================

    def list_hotels(
        self,
        scope: AccessScope,
        search: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        scope.require_any()
        return self.hotels.search(scope, normalize_pagination(page, page_size), sanitize_search_term(search))

    def get_hotel(self, scope: AccessScope, hotel_id: str) -> Hotel:
        scope.require(hotel_id, f"hotel:{hotel_id}")
        return self._get(hotel_id)

    def create_hotel(self, scope: AccessScope, data: Dict[str, Any]) -> Hotel:
        scope.require_roles(UserRole.ADMIN)
        with self.transaction():
            hotel = self.hotels.create(Hotel(**data))
        self._log_operation("hotel created", hotel.id, {"entity_name": hotel.name})
        return hotel

    def update_hotel(self, scope: AccessScope, hotel_id: str, data: Dict[str, Any]) -> Hotel:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        scope.require(hotel_id, f"hotel:{hotel_id}")
        with self.transaction():
            hotel = self._get(hotel_id, for_update=True)
            self.hotels.update(hotel, data)
        self._log_operation("hotel updated", hotel.id, {"fields": sorted(data)})
        return hotel

    def set_image(self, scope: AccessScope, hotel_id: str, filename: str, content: bytes) -> Hotel:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        scope.require(hotel_id, f"hotel:{hotel_id}")
        hotel = self._get(hotel_id)
        old_url = hotel.image_url
        new_url = self.storage.save(HOTEL_IMAGES_FOLDER, filename, content)
        with self.transaction():
            self.hotels.update(hotel, {"image_url": new_url})
        self.storage.delete(old_url)
        return hotel

    def delete_hotel(self, scope: AccessScope, hotel_id: str) -> None:
        """Soft-delete a hotel with no live room types; its staff are unassigned"""
        scope.require_roles(UserRole.ADMIN)
        with self.transaction():
            hotel = self._get(hotel_id, for_update=True)
            if self.hotels.count_room_types(hotel.id):
                raise DependentRecordsError(
                    "Cannot delete a hotel that still has room types. Delete them first.",
                    "Hotel",
                    "RoomType",
                )
            for role in (UserRole.MANAGER, UserRole.STAFF):
                for user in self.users.staff_of_hotel(hotel.id, role):
                    user.hotel_id = None
            self.hotels.soft_delete(hotel)
        audit_logger.info("Hotel deleted", extra={"actor_id": scope.user_id, "hotel_id": hotel_id})

    def assign_staff(
        self,
        scope: AccessScope,
        hotel_id: str,
        manager_id: Optional[str] = None,
        staff_id: Optional[str] = None,
    ) -> Hotel:
        """
        Replace the hotel's Manager and Staff assignees.

        Current assignees are cleared first; passing None leaves the slot empty.
        """
        scope.require_roles(UserRole.ADMIN)
        with self.transaction():
            hotel = self._get(hotel_id, for_update=True)
            for role in (UserRole.MANAGER, UserRole.STAFF):
                for user in self.users.staff_of_hotel(hotel.id, role):
                    user.hotel_id = None

            for user_id, role in ((manager_id, UserRole.MANAGER), (staff_id, UserRole.STAFF)):
                if not user_id:
                    continue
                user = self.users.find_by_id(user_id)
                if user is None or user.role != role:
                    field = "manager_id" if role == UserRole.MANAGER else "staff_id"
                    raise ValidationError(
                        f"Invalid {role.value.lower()} selected",
                        {field: [f"must reference an existing {role.value} account"]},
                    )
                user.hotel_id = hotel.id
            self.db.flush()

        audit_logger.info(
            "Hotel staff assigned",
            extra={
                "actor_id": scope.user_id,
                "hotel_id": hotel_id,
                "manager_id": manager_id,
                "staff_id": staff_id,
            },
        )
        self.db.refresh(hotel)
        return hotel
