"""
Access scoping for staff-facing operations.

An ``AccessScope`` is computed once per request from the authenticated
user and handed to every service call that lists, reads or mutates
hotel-owned data.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import FrozenSet, Iterable, Optional

from sqlalchemy.sql import Select

from budget_hotel.core.exceptions import AuthorizationError
from budget_hotel.core.logging import audit_logger
from budget_hotel.models import User
from budget_hotel.models.base import UserRole
from budget_hotel.utils.datetime_utils import utcnow


def accessible_hotel_ids(user: User) -> Optional[FrozenSet[str]]:
    """
    Hotels the user may administer.

    Returns:
        None for unrestricted access, otherwise the (possibly empty) set
        of hotel ids
    """
    if user.role == UserRole.ADMIN:
        return None
    if user.role in (UserRole.MANAGER, UserRole.STAFF) and user.hotel_id:
        return frozenset({user.hotel_id})
    return frozenset()


@dataclass(frozen=True)
class AccessScope:
    user_id: str
    role: UserRole
    hotel_ids: Optional[FrozenSet[str]] = field(default=frozenset())

    @classmethod
    def for_user(cls, user: User) -> "AccessScope":
        return cls(user_id=user.id, role=user.role, hotel_ids=accessible_hotel_ids(user))

    @property
    def is_unrestricted(self) -> bool:
        return self.hotel_ids is None

    @property
    def is_empty(self) -> bool:
        return self.hotel_ids is not None and not self.hotel_ids

    @property
    def is_staff(self) -> bool:
        return self.role.is_staff

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles

    def allows(self, hotel_id: Optional[str]) -> bool:
        if self.hotel_ids is None:
            return True
        return hotel_id is not None and hotel_id in self.hotel_ids

    def deny(self, message: str, resource: Optional[str] = None) -> AuthorizationError:
        """Record the refusal in the audit log and build the error to raise"""
        audit_logger.warning(
            f"Access denied: {message}",
            extra={"actor_id": self.user_id, "role": self.role.value, "resource": resource},
        )
        return AuthorizationError(message)

    def require_staff(self) -> None:
        if not self.is_staff:
            raise self.deny("Staff access required")

    def require_roles(self, *roles: UserRole) -> None:
        if self.role not in roles:
            raise self.deny(
                f"Requires role {' or '.join(role.value for role in roles)}"
            )

    def require_any(self) -> None:
        """Refuse staff accounts that are not assigned to any hotel"""
        self.require_staff()
        if self.is_empty:
            raise self.deny("You are not assigned to any hotel")

    def require(self, hotel_id: Optional[str], resource: Optional[str] = None) -> None:
        self.require_any()
        if not self.allows(hotel_id):
            raise self.deny("You do not have access to this hotel", resource or hotel_id)

    def apply(self, stmt: Select, hotel_column) -> Select:
        """Restrict ``stmt`` to the scoped hotels"""
        if self.hotel_ids is None:
            return stmt
        return stmt.where(hotel_column.in_(sorted(self.hotel_ids)))

    def filter_ids(self, hotel_ids: Iterable[str]) -> list:
        return [hotel_id for hotel_id in hotel_ids if self.allows(hotel_id)]


@dataclass(frozen=True)
class RequestContext:
    """
    The acting user and the clock for one request.

    Services receive this explicitly; there is no ambient current user.
    """

    user_id: str
    role: UserRole
    scope: AccessScope
    now: datetime = field(default_factory=utcnow)

    @classmethod
    def for_user(cls, user: User, now: Optional[datetime] = None) -> "RequestContext":
        return cls(
            user_id=user.id,
            role=user.role,
            scope=AccessScope.for_user(user),
            now=now or utcnow(),
        )

    @property
    def today(self) -> date:
        return self.now.date()

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER
