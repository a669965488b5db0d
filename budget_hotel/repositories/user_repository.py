"""
Repositories for user accounts, one-time codes and reviews.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload

from budget_hotel.core.pagination import Page
from budget_hotel.models import Booking, LoginAttempt, Review, Room, RoomType, SecurityToken, User
from budget_hotel.models.base import TokenPurpose, UserRole
from budget_hotel.repositories.base_repository import BaseRepository
from budget_hotel.services.access import AccessScope


class UserRepository(BaseRepository[User]):

    def __init__(self, db: Session):
        super().__init__(User, db)

    def find_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        return self.find_one_by_criteria({"email": email.strip().lower()}, include_deleted=include_deleted)

    def staff_of_hotel(self, hotel_id: str, role: UserRole) -> List[User]:
        return self.find_by_criteria({"hotel_id": hotel_id, "role": role})

    def search(
        self,
        scope: AccessScope,
        page: Page,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
    ) -> Page:
        """
        Users visible to ``scope``: every account for an unrestricted scope,
        otherwise customers who booked a room in a scoped hotel.
        """
        stmt = self.select().options(joinedload(User.hotel))
        if not scope.is_unrestricted:
            stmt = stmt.where(
                User.role == UserRole.CUSTOMER,
                User.id.in_(self.customers_in_scope_subquery(scope)),
            )
        if role is not None:
            stmt = stmt.where(User.role == role)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(func.lower(User.email).like(pattern), func.lower(User.full_name).like(pattern))
            )
        return self.paginate(stmt.order_by(User.created_at.desc()), page)

    @staticmethod
    def customers_in_scope_subquery(scope: AccessScope):
        stmt = (
            select(Booking.user_id)
            .join(Room, Room.id == Booking.room_id)
            .join(RoomType, RoomType.id == Room.room_type_id)
            .where(Booking.is_deleted.is_(False))
        )
        return scope.apply(stmt, RoomType.hotel_id)

    def is_customer_in_scope(self, scope: AccessScope, user_id: str) -> bool:
        if scope.is_unrestricted:
            return True
        stmt = select(self.customers_in_scope_subquery(scope).where(Booking.user_id == user_id).exists())
        return bool(self.db.execute(stmt).scalar())


class SecurityTokenRepository(BaseRepository[SecurityToken]):

    def __init__(self, db: Session):
        super().__init__(SecurityToken, db)

    def latest_usable(self, email: str, purpose: TokenPurpose, now: datetime) -> Optional[SecurityToken]:
        stmt = (
            self.select()
            .where(
                SecurityToken.email == email.strip().lower(),
                SecurityToken.purpose == purpose,
                SecurityToken.consumed_at.is_(None),
                SecurityToken.expires_at >= now,
            )
            .order_by(SecurityToken.created_at.desc())
            .limit(1)
        )
        return self.scalar_one_or_none(stmt)

    def invalidate_all(self, email: str, purpose: TokenPurpose, now: datetime) -> None:
        for token in self.find_by_criteria({"email": email.strip().lower(), "purpose": purpose}):
            if token.consumed_at is None:
                token.consumed_at = now
        self.db.flush()


class LoginAttemptRepository(BaseRepository[LoginAttempt]):

    def __init__(self, db: Session):
        super().__init__(LoginAttempt, db)

    def recent_failures(self, email: str, since: datetime) -> int:
        stmt = select(func.count(LoginAttempt.id)).where(
            LoginAttempt.email == email.strip().lower(),
            LoginAttempt.was_successful.is_(False),
            LoginAttempt.attempted_at > since,
        )
        return self.db.execute(stmt).scalar_one()

    def record(self, email: str, successful: bool, at_time: datetime, ip_address: Optional[str] = None) -> LoginAttempt:
        return self.create(
            LoginAttempt(
                email=email.strip().lower(),
                was_successful=successful,
                attempted_at=at_time,
                ip_address=ip_address,
            )
        )


class ReviewRepository(BaseRepository[Review]):

    def __init__(self, db: Session):
        super().__init__(Review, db)

    def find_live_for_booking(self, booking_id: str) -> Optional[Review]:
        return self.find_one_by_criteria({"booking_id": booking_id})

    def for_user(self, user_id: str) -> List[Review]:
        stmt = self.select().join(Review.booking).where(Booking.user_id == user_id)
        return self.scalars(stmt)

    def for_room_type(self, room_type_id: str) -> List[Review]:
        stmt = (
            self.select()
            .join(Review.booking)
            .join(Booking.room)
            .where(Room.room_type_id == room_type_id)
            .options(joinedload(Review.booking).joinedload(Booking.user))
            .order_by(Review.review_date.desc())
        )
        return self.scalars(stmt)

    def rating_summary(self, room_type_id: str):
        stmt = (
            select(func.avg(Review.rating), func.count(Review.id))
            .join(Booking, Booking.id == Review.booking_id)
            .join(Room, Room.id == Booking.room_id)
            .where(Room.room_type_id == room_type_id, Review.is_deleted.is_(False))
        )
        return self.db.execute(stmt).one()

    def search(self, scope: AccessScope, page: Page) -> Page:
        stmt = (
            self.select()
            .join(Review.booking)
            .join(Booking.room)
            .join(Room.room_type)
            .options(joinedload(Review.booking).joinedload(Booking.user))
        )
        stmt = scope.apply(stmt, RoomType.hotel_id)
        return self.paginate(stmt.order_by(Review.review_date.desc()), page)
