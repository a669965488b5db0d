"""
Promotion repository.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from budget_hotel.core.pagination import Page
from budget_hotel.db.session import INCLUDE_DELETED
from budget_hotel.models import Booking, Promotion
from budget_hotel.repositories.base_repository import BaseRepository


class PromotionRepository(BaseRepository[Promotion]):

    def __init__(self, db: Session):
        super().__init__(Promotion, db)

    def find_by_code(
        self,
        code: str,
        include_deleted: bool = False,
        for_update: bool = False,
    ) -> Optional[Promotion]:
        stmt = self.select(include_deleted).where(Promotion.code == code.strip().upper())
        if for_update:
            stmt = stmt.with_for_update()
        return self.scalar_one_or_none(stmt)

    def usage_count(self, promotion_id: str) -> int:
        """
        Redemptions: bookings carrying the promotion with a usage stamp.

        Soft-deleted bookings still count, so deleting and later recovering
        a redeemed booking never frees or reclaims a slot.
        """
        stmt = select(func.count(Booking.id)).where(
            Booking.promotion_id == promotion_id,
            Booking.promotion_used_at.is_not(None),
        ).execution_options(**{INCLUDE_DELETED: True})
        return self.db.execute(stmt).scalar_one()

    def usage_count_for_user(self, promotion_id: str, user_id: str) -> int:
        stmt = select(func.count(Booking.id)).where(
            Booking.promotion_id == promotion_id,
            Booking.user_id == user_id,
            Booking.promotion_used_at.is_not(None),
        ).execution_options(**{INCLUDE_DELETED: True})
        return self.db.execute(stmt).scalar_one()

    def usage_counts(self, promotion_ids: List[str]) -> dict:
        if not promotion_ids:
            return {}
        stmt = (
            select(Booking.promotion_id, func.count(Booking.id))
            .where(
                Booking.promotion_id.in_(promotion_ids),
                Booking.promotion_used_at.is_not(None),
            )
            .group_by(Booking.promotion_id)
            .execution_options(**{INCLUDE_DELETED: True})
        )
        return {promotion_id: count for promotion_id, count in self.db.execute(stmt).all()}

    def deactivate_expired(self, at_time: datetime) -> int:
        stmt = (
            update(Promotion)
            .where(
                Promotion.is_active.is_(True),
                Promotion.is_deleted.is_(False),
                Promotion.end_date < at_time,
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount or 0

    def find_active_with_limit(self) -> List[Promotion]:
        return self.scalars(
            self.select().where(
                Promotion.is_active.is_(True),
                Promotion.max_total_uses.is_not(None),
            )
        )

    def find_available(self, at_time: datetime) -> List[Promotion]:
        stmt = (
            self.select()
            .where(
                Promotion.is_active.is_(True),
                Promotion.start_date <= at_time,
                Promotion.end_date >= at_time,
            )
            .order_by(Promotion.end_date.asc())
        )
        return self.scalars(stmt)

    def search(self, page: Page, search: Optional[str] = None, include_deleted: bool = False) -> Page:
        stmt = self.select(include_deleted)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Promotion.code).like(pattern),
                    func.lower(func.coalesce(Promotion.description, "")).like(pattern),
                )
            )
        return self.paginate(stmt.order_by(Promotion.created_at.desc()), page)

    def code_taken(self, code: str, exclude_id: Optional[str] = None) -> bool:
        stmt = self.select(include_deleted=True).where(Promotion.code == code.strip().upper())
        if exclude_id:
            stmt = stmt.where(Promotion.id != exclude_id)
        return self.scalar_one_or_none(stmt) is not None
