"""
FastAPI dependencies: database session, authentication, request context
and service construction.

Example usage in a router:
    @router.get("/me")
    def read_me(ctx: RequestContext = Depends(deps.get_request_context)):
        ...
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from budget_hotel.core.exceptions import AuthenticationError, ErrorCode
from budget_hotel.core.logging import get_logger, user_id as user_id_var
from budget_hotel.core.security import decode_access_token
from budget_hotel.db.session import get_db
from budget_hotel.models import User
from budget_hotel.models.base import UserRole
from budget_hotel.repositories.user_repository import UserRepository
from budget_hotel.services.access import AccessScope, RequestContext
from budget_hotel.services.auth_service import AuthService
from budget_hotel.services.booking_service import BookingService
from budget_hotel.services.catalog_service import CatalogService
from budget_hotel.services.export_service import ExportService
from budget_hotel.services.hotel_service import HotelService
from budget_hotel.services.promotion_service import PromotionService
from budget_hotel.services.review_service import ReviewService
from budget_hotel.services.room_service import RoomService
from budget_hotel.services.storage.file_storage import FileStorage, get_file_storage
from budget_hotel.services.user_service import UserService

logger = get_logger(__name__)

# auto_error is off so a missing header answers 401 like any other bad token
security = HTTPBearer(auto_error=False)


# --- Authentication -----------------------------------------------------------

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to a live, active user.

    The role is always re-read from the database, never trusted from the token.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    payload = decode_access_token(credentials.credentials)
    user = UserRepository(db).find_by_id(payload["sub"])
    if user is None:
        raise AuthenticationError("Could not validate credentials", ErrorCode.TOKEN_INVALID)
    if not user.is_active:
        raise AuthenticationError("Account is deactivated", ErrorCode.ACCOUNT_INACTIVE)
    user_id_var.set(user.id)
    return user


def get_request_context(user: User = Depends(get_current_user)) -> RequestContext:
    return RequestContext.for_user(user)


def get_access_scope(ctx: RequestContext = Depends(get_request_context)) -> AccessScope:
    return ctx.scope


class RoleChecker:
    """Dependency refusing callers outside ``roles``"""

    def __init__(self, *roles: UserRole):
        self.roles = roles

    def __call__(self, ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        ctx.scope.require_roles(*self.roles)
        return ctx


require_customer = RoleChecker(UserRole.CUSTOMER)
require_staff = RoleChecker(UserRole.ADMIN, UserRole.MANAGER, UserRole.STAFF)
require_manager = RoleChecker(UserRole.ADMIN, UserRole.MANAGER)
require_admin = RoleChecker(UserRole.ADMIN)


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# --- Services -----------------------------------------------------------------

def get_storage() -> FileStorage:
    return get_file_storage()


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_user_service(db: Session = Depends(get_db), storage: FileStorage = Depends(get_storage)) -> UserService:
    return UserService(db, storage)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_promotion_service(db: Session = Depends(get_db)) -> PromotionService:
    return PromotionService(db)


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


def get_export_service(db: Session = Depends(get_db)) -> ExportService:
    return ExportService(db)


def get_hotel_service(db: Session = Depends(get_db), storage: FileStorage = Depends(get_storage)) -> HotelService:
    return HotelService(db, storage)


def get_room_service(db: Session = Depends(get_db), storage: FileStorage = Depends(get_storage)) -> RoomService:
    return RoomService(db, storage)


def get_catalog_service(
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
) -> CatalogService:
    return CatalogService(db, storage)
