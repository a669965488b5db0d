"""
Booking repository: availability, scoped search and status sweeps.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import InstrumentedAttribute, Session, joinedload, selectinload

from budget_hotel.core.logging import get_logger
from budget_hotel.core.pagination import Page
from budget_hotel.models import Booking, BookingExtra, Review, Room, RoomType, User
from budget_hotel.models.base import BookingStatus
from budget_hotel.models.booking import ACTIVE_STATUSES
from budget_hotel.repositories.base_repository import BaseRepository
from budget_hotel.services.access import AccessScope

logger = get_logger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """
    Repository for booking persistence and queries.
    """

    def __init__(self, db: Session):
        super().__init__(Booking, db)

    # ==================== AVAILABILITY ====================

    def find_overlapping(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Active bookings on ``room_id`` whose night range intersects
        [check_in, check_out).
        """
        stmt = self.select().where(
            and_(
                Booking.room_id == room_id,
                Booking.status.in_(ACTIVE_STATUSES),
                Booking.check_in_date < check_out,
                Booking.check_out_date > check_in,
            )
        )
        if exclude_booking_id:
            stmt = stmt.where(Booking.id != exclude_booking_id)
        return self.scalars(stmt)

    def has_overlap(self, room_id: str, check_in: date, check_out: date) -> bool:
        return bool(self.find_overlapping(room_id, check_in, check_out))

    def busy_room_ids(self, room_ids: List[str], check_in: date, check_out: date) -> set:
        if not room_ids:
            return set()
        stmt = select(Booking.room_id).where(
            and_(
                Booking.room_id.in_(room_ids),
                Booking.status.in_(ACTIVE_STATUSES),
                Booking.check_in_date < check_out,
                Booking.check_out_date > check_in,
            )
        )
        return set(self.db.execute(stmt).scalars().all())

    # ==================== LOOKUPS ====================

    def find_detailed(self, booking_id: str, include_deleted: bool = False) -> Optional[Booking]:
        stmt = (
            self.select(include_deleted)
            .where(Booking.id == booking_id)
            .options(
                joinedload(Booking.user),
                joinedload(Booking.room).joinedload(Room.room_type).joinedload(RoomType.hotel),
                selectinload(Booking.extras).joinedload(BookingExtra.service),
                selectinload(Booking.reviews),
                joinedload(Booking.promotion),
                joinedload(Booking.package),
            )
        )
        return self.scalar_one_or_none(stmt)

    def find_by_qr_token(self, token: str) -> Optional[Booking]:
        stmt = (
            self.select()
            .where(Booking.qr_token == token)
            .options(joinedload(Booking.room).joinedload(Room.room_type))
        )
        return self.scalar_one_or_none(stmt)

    def find_for_user(self, user_id: str) -> List[Booking]:
        stmt = (
            self.select()
            .where(Booking.user_id == user_id)
            .options(
                joinedload(Booking.room).joinedload(Room.room_type).joinedload(RoomType.hotel),
                selectinload(Booking.reviews),
                selectinload(Booking.extras).joinedload(BookingExtra.service),
            )
            .order_by(Booking.booking_date.desc())
        )
        return self.scalars(stmt)

    def count_for_user(self, user_id: str) -> int:
        return self.count_for(self.select().where(Booking.user_id == user_id))

    def count_for_room(self, room_id: str) -> int:
        return self.count_for(self.select().where(Booking.room_id == room_id))

    def count_for_promotion(self, promotion_id: str) -> int:
        """All bookings referencing the promotion, deleted or not"""
        return self.count_for(
            self.select(include_deleted=True).where(Booking.promotion_id == promotion_id)
        )

    # ==================== SCOPED SEARCH ====================

    def scoped_query(
        self,
        scope: AccessScope,
        search: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        include_deleted: bool = False,
    ):
        stmt = (
            self.select(include_deleted)
            .join(Booking.room)
            .join(Room.room_type)
            .join(Booking.user)
            .options(
                joinedload(Booking.user),
                joinedload(Booking.room).joinedload(Room.room_type).joinedload(RoomType.hotel),
            )
        )
        stmt = scope.apply(stmt, RoomType.hotel_id)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(User.email).like(pattern),
                    func.lower(User.full_name).like(pattern),
                    func.lower(Room.room_number).like(pattern),
                )
            )
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        return stmt.order_by(Booking.booking_date.desc())

    def search(
        self,
        scope: AccessScope,
        page: Page,
        search: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        include_deleted: bool = False,
    ) -> Page:
        stmt = self.scoped_query(scope, search, status, include_deleted)
        return self.paginate(stmt, page)

    def find_all_scoped(
        self,
        scope: AccessScope,
        search: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        include_deleted: bool = False,
    ) -> List[Booking]:
        return self.scalars(self.scoped_query(scope, search, status, include_deleted))

    def count_by_status(self, scope: AccessScope) -> dict:
        stmt = (
            select(Booking.status, func.count(Booking.id))
            .join(Room, Room.id == Booking.room_id)
            .join(RoomType, RoomType.id == Room.room_type_id)
            .where(Booking.is_deleted.is_(False))
            .group_by(Booking.status)
        )
        stmt = scope.apply(stmt, RoomType.hotel_id)
        return {status: count for status, count in self.db.execute(stmt).all()}

    def revenue(self, scope: AccessScope):
        stmt = (
            select(func.coalesce(func.sum(Booking.payment_amount), 0))
            .join(Room, Room.id == Booking.room_id)
            .join(RoomType, RoomType.id == Room.room_type_id)
            .where(Booking.is_deleted.is_(False))
            .where(Booking.status.in_(
                (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT)
            ))
        )
        stmt = scope.apply(stmt, RoomType.hotel_id)
        return self.db.execute(stmt).scalar_one()

    # ==================== STATUS SWEEP ====================

    def bulk_transition(
        self,
        from_status: BookingStatus,
        to_status: BookingStatus,
        date_column: InstrumentedAttribute,
        on_or_before: date,
        stamp_column: Optional[str] = None,
        stamp_value: Optional[datetime] = None,
    ) -> int:
        """
        Move every live booking in ``from_status`` whose ``date_column`` is on or
        before ``on_or_before`` to ``to_status`` in a single conditional UPDATE.
        """
        values = {"status": to_status}
        if stamp_column:
            values[stamp_column] = func.coalesce(getattr(Booking, stamp_column), stamp_value)
        stmt = (
            update(Booking)
            .where(
                Booking.status == from_status,
                Booking.is_deleted.is_(False),
                date_column <= on_or_before,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount or 0

    # ==================== SOFT DELETE CASCADE ====================

    def reviews_deleted_with(self, booking: Booking) -> List[Review]:
        """Reviews soft-deleted by the same cascade as ``booking``"""
        stmt = (
            select(Review)
            .where(
                Review.booking_id == booking.id,
                Review.is_deleted.is_(True),
                Review.deleted_at == booking.deleted_at,
            )
            .execution_options(include_deleted=True)
        )
        return list(self.db.execute(stmt).scalars().all())
