"""
Profiles and user administration.
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from budget_hotel.config.settings import settings
from budget_hotel.core.constants import PROFILE_IMAGES_FOLDER
from budget_hotel.core.exceptions import (
    AuthenticationError,
    ConflictError,
    DependentRecordsError,
    DuplicateEntryError,
    ResourceNotFoundError,
    ValidationError,
)
from budget_hotel.core.logging import audit_logger
from budget_hotel.core.pagination import Page, normalize_pagination, sanitize_search_term
from budget_hotel.core.security import hash_password, verify_password
from budget_hotel.models import User
from budget_hotel.models.base import UserRole
from budget_hotel.repositories.booking_repository import BookingRepository
from budget_hotel.repositories.inventory_repository import HotelRepository
from budget_hotel.repositories.user_repository import ReviewRepository, UserRepository
from budget_hotel.services.access import AccessScope, RequestContext
from budget_hotel.services.auth_service import check_password
from budget_hotel.services.base_service import BaseService
from budget_hotel.services.storage.file_storage import FileStorage, get_file_storage
from budget_hotel.utils.datetime_utils import utcnow

PROFILE_FIELDS = {"full_name", "phone_number", "bio"}
# Fields a Manager may change on a customer account
CUSTOMER_ADMIN_FIELDS = {"full_name", "phone_number", "is_active"}


class UserService(BaseService):

    def __init__(self, db_session: Session, storage: Optional[FileStorage] = None):
        super().__init__(db_session)
        self.users = UserRepository(db_session)
        self.hotels = HotelRepository(db_session)
        self.bookings = BookingRepository(db_session)
        self.reviews = ReviewRepository(db_session)
        self.storage = storage or get_file_storage()

    def _get(self, user_id: str) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        return user

    # ==================== Own profile ====================

    def get_profile(self, ctx: RequestContext) -> User:
        return self._get(ctx.user_id)

    def update_profile(self, ctx: RequestContext, data: Dict[str, Any]) -> User:
        unknown = set(data) - PROFILE_FIELDS
        if unknown:
            raise ValidationError("Unsupported profile fields", {field: ["cannot be changed"] for field in unknown})
        if "full_name" in data and not (data["full_name"] or "").strip():
            raise ValidationError("Full name is required", {"full_name": ["is required"]})
        with self.transaction():
            user = self._get(ctx.user_id)
            self.users.update(user, data)
        self._log_operation("profile updated", user.id, {"fields": sorted(data)})
        return user

    def change_password(self, ctx: RequestContext, current_password: str, new_password: str) -> None:
        check_password(new_password)
        with self.transaction():
            user = self._get(ctx.user_id)
            if not verify_password(current_password, user.password_hash):
                raise AuthenticationError("Current password is incorrect")
            user.password_hash = hash_password(new_password)
        audit_logger.info("Password changed", extra={"user_id": ctx.user_id})

    def set_profile_picture(self, ctx: RequestContext, filename: str, content: bytes) -> User:
        user = self._get(ctx.user_id)
        old_url = user.profile_picture_url
        url = self.storage.save(PROFILE_IMAGES_FOLDER, filename, content)
        with self.transaction():
            self.users.update(user, {"profile_picture_url": url})
        self.storage.delete(old_url)
        return user

    # ==================== Administration ====================

    def list_users(
        self,
        scope: AccessScope,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        """Admins see every account; hotel staff see customers who booked with them"""
        scope.require_any()
        return self.users.search(scope, normalize_pagination(page, page_size), sanitize_search_term(search), role)

    def get_user(self, scope: AccessScope, user_id: str) -> User:
        scope.require_any()
        user = self._get(user_id)
        if not scope.is_unrestricted and (
            user.role != UserRole.CUSTOMER or not self.users.is_customer_in_scope(scope, user.id)
        ):
            raise scope.deny("You do not have access to this user", f"user:{user_id}")
        return user

    def _check_hotel_assignment(self, role: UserRole, hotel_id: Optional[str]) -> Optional[str]:
        if role not in (UserRole.MANAGER, UserRole.STAFF):
            return None
        if hotel_id and self.hotels.find_by_id(hotel_id) is None:
            raise ResourceNotFoundError("Hotel", hotel_id)
        return hotel_id or None

    def create_user(self, scope: AccessScope, data: Dict[str, Any], password: str) -> User:
        """Create an account of any role; admin-created accounts start verified"""
        scope.require_roles(UserRole.ADMIN)
        check_password(password)
        email = (data.get("email") or "").strip().lower()
        role = UserRole(data.get("role", UserRole.CUSTOMER))
        with self.transaction():
            if self.users.find_by_email(email, include_deleted=True) is not None:
                raise DuplicateEntryError("Email is already registered", "email", email)
            user = User(
                email=email,
                full_name=(data.get("full_name") or "").strip(),
                password_hash=hash_password(password),
                role=role,
                hotel_id=self._check_hotel_assignment(role, data.get("hotel_id")),
                is_email_verified=True,
                is_active=data.get("is_active", True),
            )
            user.phone_number = data.get("phone_number")
            self.users.create(user)
        audit_logger.info(
            "User created",
            extra={"actor_id": scope.user_id, "user_id": user.id, "role": role.value},
        )
        return user

    def update_user(
        self,
        scope: AccessScope,
        user_id: str,
        data: Dict[str, Any],
        new_password: Optional[str] = None,
    ) -> User:
        """
        Admins may edit any account. Managers may edit the basic details of
        customers who booked with their hotel.
        """
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        if not scope.is_unrestricted:
            if new_password or set(data) - CUSTOMER_ADMIN_FIELDS:
                raise scope.deny("Managers may only edit customer details", f"user:{user_id}")
        if new_password:
            check_password(new_password)

        with self.transaction():
            user = self.get_user(scope, user_id)
            changes = dict(data)
            if "email" in changes:
                email = (changes["email"] or "").strip().lower()
                existing = self.users.find_by_email(email, include_deleted=True)
                if existing is not None and existing.id != user.id:
                    raise DuplicateEntryError("Email is already registered", "email", email)
                changes["email"] = email
            if "role" in changes or "hotel_id" in changes:
                role = UserRole(changes.get("role", user.role))
                if user.email == settings.ADMIN_EMAIL and role != UserRole.ADMIN:
                    raise ConflictError("The main administrator cannot change role")
                changes["role"] = role
                changes["hotel_id"] = self._check_hotel_assignment(role, changes.get("hotel_id", user.hotel_id))
            self.users.update(user, changes)
            if new_password:
                user.password_hash = hash_password(new_password)

        audit_logger.info(
            "User updated",
            extra={"actor_id": scope.user_id, "user_id": user_id, "fields": sorted(data)},
        )
        return user

    def delete_user(self, scope: AccessScope, user_id: str) -> None:
        """Soft-delete an account with no live bookings, along with its reviews"""
        scope.require_roles(UserRole.ADMIN)
        if user_id == scope.user_id:
            raise ConflictError("You cannot delete your own account")
        with self.transaction():
            user = self._get(user_id)
            if user.email == settings.ADMIN_EMAIL:
                raise ConflictError("The main administrator cannot be deleted")
            if self.bookings.count_for_user(user.id):
                raise DependentRecordsError(
                    "Cannot delete a user with existing bookings. Delete the bookings first.",
                    "User",
                    "Booking",
                )
            deleted_at = utcnow()
            for review in self.reviews.for_user(user.id):
                self.reviews.soft_delete(review, deleted_at)
            self.users.soft_delete(user, deleted_at)
        audit_logger.info("User deleted", extra={"actor_id": scope.user_id, "user_id": user_id})
