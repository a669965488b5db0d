"""
Add-on services, amenities, packages and the public catalogue.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from budget_hotel.core.constants import AMENITY_IMAGES_FOLDER, PACKAGE_IMAGES_FOLDER
from budget_hotel.core.exceptions import (
    DependentRecordsError,
    DuplicateEntryError,
    InvalidDateRangeError,
    ResourceNotFoundError,
    ValidationError,
)
from budget_hotel.core.pagination import Page, normalize_pagination, sanitize_search_term
from budget_hotel.models import Amenity, Package, PackageItem, RoomType, Service
from budget_hotel.models.base import UserRole
from budget_hotel.repositories.booking_repository import BookingRepository
from budget_hotel.repositories.catalog_repository import (
    PackageItemRepository,
    PackageRepository,
    ServiceRepository,
)
from budget_hotel.repositories.inventory_repository import (
    AmenityRepository,
    RoomRepository,
    RoomTypeAmenityRepository,
    RoomTypeRepository,
)
from budget_hotel.services.access import AccessScope
from budget_hotel.services.base_service import BaseService
from budget_hotel.services.pricing import compute_total
from budget_hotel.services.storage.file_storage import FileStorage, get_file_storage

FEATURED_ROOM_TYPES = 3


class CatalogService(BaseService):
    """
    Catalogue content shared by every hotel.

    Services, amenities and packages are not hotel-owned, so administration
    is gated by role alone.
    """

    def __init__(self, db_session: Session, storage: Optional[FileStorage] = None):
        super().__init__(db_session)
        self.services = ServiceRepository(db_session)
        self.amenities = AmenityRepository(db_session)
        self.amenity_links = RoomTypeAmenityRepository(db_session)
        self.packages = PackageRepository(db_session)
        self.package_items = PackageItemRepository(db_session)
        self.room_types = RoomTypeRepository(db_session)
        self.rooms = RoomRepository(db_session)
        self.bookings = BookingRepository(db_session)
        self.storage = storage or get_file_storage()

    @staticmethod
    def _require_editor(scope: AccessScope) -> None:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)

    # ==================== Services ====================

    def list_services(
        self,
        search: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        return self.services.search(normalize_pagination(page, page_size), sanitize_search_term(search))

    def all_services(self) -> List[Service]:
        return self.services.find_all(order_by=Service.name)

    def get_service(self, service_id: str) -> Service:
        service = self.services.find_by_id(service_id)
        if service is None:
            raise ResourceNotFoundError("Service", service_id)
        return service

    def create_service(self, scope: AccessScope, data: Dict[str, Any]) -> Service:
        self._require_editor(scope)
        with self.transaction():
            service = self.services.create(Service(**data))
        self._log_operation("service created", service.id, {"entity_name": service.name})
        return service

    def update_service(self, scope: AccessScope, service_id: str, data: Dict[str, Any]) -> Service:
        self._require_editor(scope)
        with self.transaction():
            service = self.get_service(service_id)
            self.services.update(service, data)
        self._log_operation("service updated", service_id, {"fields": sorted(data)})
        return service

    def delete_service(self, scope: AccessScope, service_id: str) -> None:
        self._require_editor(scope)
        with self.transaction():
            service = self.get_service(service_id)
            if self.services.count_package_items(service.id):
                raise DependentRecordsError(
                    "Cannot delete a service that is used in packages. Remove it from all packages first.",
                    "Service",
                    "PackageItem",
                )
            self.services.soft_delete(service)
        self._log_operation("service deleted", service_id)

    # ==================== Amenities ====================

    def list_amenities(
        self,
        search: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        return self.amenities.search(normalize_pagination(page, page_size), sanitize_search_term(search))

    def get_amenity(self, amenity_id: str) -> Amenity:
        amenity = self.amenities.find_by_id(amenity_id)
        if amenity is None:
            raise ResourceNotFoundError("Amenity", amenity_id)
        return amenity

    def create_amenity(self, scope: AccessScope, data: Dict[str, Any]) -> Amenity:
        self._require_editor(scope)
        with self.transaction():
            amenity = self.amenities.create(Amenity(**data))
        self._log_operation("amenity created", amenity.id, {"entity_name": amenity.name})
        return amenity

    def update_amenity(self, scope: AccessScope, amenity_id: str, data: Dict[str, Any]) -> Amenity:
        self._require_editor(scope)
        with self.transaction():
            amenity = self.get_amenity(amenity_id)
            self.amenities.update(amenity, data)
        self._log_operation("amenity updated", amenity_id, {"fields": sorted(data)})
        return amenity

    def set_amenity_image(self, scope: AccessScope, amenity_id: str, filename: str, content: bytes) -> Amenity:
        self._require_editor(scope)
        amenity = self.get_amenity(amenity_id)
        old_url = amenity.image_url
        url = self.storage.save(AMENITY_IMAGES_FOLDER, filename, content)
        with self.transaction():
            self.amenities.update(amenity, {"image_url": url})
        self.storage.delete(old_url)
        return amenity

    def delete_amenity(self, scope: AccessScope, amenity_id: str) -> None:
        """Soft-delete an amenity and unlink it from every room type"""
        self._require_editor(scope)
        with self.transaction():
            amenity = self.get_amenity(amenity_id)
            for link in self.amenity_links.links_for_amenity(amenity.id):
                self.amenity_links.hard_delete(link)
            self.amenities.soft_delete(amenity)
        self._log_operation("amenity deleted", amenity_id)

    # ==================== Packages ====================

    def _validate_package(self, data: Dict[str, Any], exclude_id: Optional[str] = None) -> None:
        errors = {}
        name = data.get("name")
        if name is not None:
            if not name.strip():
                errors["name"] = ["is required"]
            else:
                existing = self.packages.find_one_by_criteria({"name": name.strip()})
                if existing is not None and existing.id != exclude_id:
                    raise DuplicateEntryError("A package with this name already exists", "name", name)
        price = data.get("total_price")
        if price is not None and price <= 0:
            errors["total_price"] = ["must be greater than 0"]
        if errors:
            raise ValidationError("Invalid package", errors)

    def _build_items(self, items: List[Dict[str, Any]]) -> List[PackageItem]:
        if not items:
            raise ValidationError(
                "Add at least one room type or service to the package",
                {"items": ["at least one item is required"]},
            )
        built = []
        room_items = 0
        for item in items:
            room_type_id, service_id = item.get("room_type_id"), item.get("service_id")
            quantity = item.get("quantity", 1)
            if bool(room_type_id) == bool(service_id):
                raise ValidationError(
                    "Each package item needs exactly one of room type or service",
                    {"items": ["set room_type_id or service_id, not both"]},
                )
            if quantity < 1:
                raise ValidationError("Quantity must be at least 1", {"items": ["quantity must be >= 1"]})
            if room_type_id:
                room_items += 1
                if self.room_types.find_by_id(room_type_id) is None:
                    raise ResourceNotFoundError("RoomType", room_type_id)
            elif self.services.find_by_id(service_id) is None:
                raise ResourceNotFoundError("Service", service_id)
            built.append(PackageItem(room_type_id=room_type_id, service_id=service_id, quantity=quantity))
        if room_items > 1:
            raise ValidationError(
                "A package can include only one room type",
                {"items": ["at most one room type item"]},
            )
        return built

    def list_packages(
        self,
        scope: Optional[AccessScope] = None,
        search: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        """Every package for editors, otherwise only active ones"""
        active_only = scope is None or not scope.has_role(UserRole.ADMIN, UserRole.MANAGER)
        return self.packages.search(
            normalize_pagination(page, page_size), sanitize_search_term(search), active_only
        )

    def get_package(self, package_id: str, active_only: bool = True) -> Package:
        package = self.packages.find_detailed(package_id)
        if package is None or (active_only and not package.is_active):
            raise ResourceNotFoundError("Package", package_id)
        return package

    def create_package(self, scope: AccessScope, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Package:
        self._require_editor(scope)
        self._validate_package(data)
        with self.transaction():
            package = self.packages.create(Package(**data))
            for item in self._build_items(items):
                item.package_id = package.id
                self.package_items.create(item)
        self._log_operation("package created", package.id, {"entity_name": package.name})
        self.db.expire(package)
        return self.get_package(package.id, active_only=False)

    def update_package(
        self,
        scope: AccessScope,
        package_id: str,
        data: Dict[str, Any],
        items: Optional[List[Dict[str, Any]]] = None,
    ) -> Package:
        """Edit a package; passing ``items`` replaces the current item list"""
        self._require_editor(scope)
        self._validate_package(data, exclude_id=package_id)
        with self.transaction():
            package = self.get_package(package_id, active_only=False)
            self.packages.update(package, data)
            if items is not None:
                new_items = self._build_items(items)
                for old in self.package_items.for_package(package.id):
                    self.package_items.soft_delete(old)
                for item in new_items:
                    item.package_id = package.id
                    self.package_items.create(item)
        self._log_operation("package updated", package_id, {"fields": sorted(data)})
        self.db.expire(package)
        return self.get_package(package_id, active_only=False)

    def set_package_image(self, scope: AccessScope, package_id: str, filename: str, content: bytes) -> Package:
        self._require_editor(scope)
        package = self.get_package(package_id, active_only=False)
        old_url = package.image_url
        url = self.storage.save(PACKAGE_IMAGES_FOLDER, filename, content)
        with self.transaction():
            self.packages.update(package, {"image_url": url})
        self.storage.delete(old_url)
        return package

    def delete_package(self, scope: AccessScope, package_id: str) -> None:
        """Soft-delete a package together with its items"""
        self._require_editor(scope)
        with self.transaction():
            package = self.get_package(package_id, active_only=False)
            deleted_at = None
            for item in self.package_items.for_package(package.id):
                self.package_items.soft_delete(item)
                deleted_at = item.deleted_at
            self.packages.soft_delete(package, deleted_at)
            image_url = package.image_url
        self.storage.delete(image_url)
        self._log_operation("package deleted", package_id)

    # ==================== Public catalogue ====================

    def browse_room_types(
        self,
        hotel_id: Optional[str] = None,
        search: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        return self.room_types.search(
            None, normalize_pagination(page, page_size), hotel_id, sanitize_search_term(search)
        )

    def room_type_detail(self, room_type_id: str) -> RoomType:
        room_type = self.room_types.find_detailed(room_type_id)
        if room_type is None:
            raise ResourceNotFoundError("RoomType", room_type_id)
        return room_type

    def availability(self, room_type_id: str, check_in: date, check_out: date) -> Dict[str, Any]:
        """Free rooms of a room type for [check_in, check_out) and the undiscounted price"""
        if check_in >= check_out:
            raise InvalidDateRangeError(start_date=check_in.isoformat(), end_date=check_out.isoformat())
        room_type = self.room_type_detail(room_type_id)
        rooms = self.rooms.bookable_rooms(room_type.id)
        busy = self.bookings.busy_room_ids([room.id for room in rooms], check_in, check_out)
        free = [room for room in rooms if room.id not in busy]
        quote = compute_total(room_type.base_price, (check_out - check_in).days)
        return {
            "room_type_id": room_type.id,
            "check_in": check_in,
            "check_out": check_out,
            "nights": quote.nights,
            "available_rooms": len(free),
            "is_available": bool(free),
            "base_price": room_type.base_price,
            "total_price": quote.total,
        }

    def featured_room_types(self, limit: int = FEATURED_ROOM_TYPES) -> List[RoomType]:
        return self.room_types.random_selection(max(1, limit))
