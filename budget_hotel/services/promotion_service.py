"""
Promotion validation, redemption and administration.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from budget_hotel.core.exceptions import (
    DependentRecordsError,
    DuplicateEntryError,
    PromotionExhaustedError,
    PromotionExpiredError,
    PromotionIneligibleError,
    PromotionNotFoundError,
    ResourceNotFoundError,
    ValidationError,
)
from budget_hotel.core.pagination import Page, normalize_pagination, sanitize_search_term
from budget_hotel.models import Promotion
from budget_hotel.models.base import DiscountType, UserRole
from budget_hotel.repositories.booking_repository import BookingRepository
from budget_hotel.repositories.promotion_repository import PromotionRepository
from budget_hotel.services.access import AccessScope
from budget_hotel.services.base_service import BaseService
from budget_hotel.services.pricing import PromotionTerms


def promotion_terms(promotion: Optional[Promotion]) -> Optional[PromotionTerms]:
    if promotion is None:
        return None
    return PromotionTerms(
        discount_type=promotion.discount_type,
        value=promotion.value,
        code=promotion.code,
    )


class PromotionService(BaseService):
    """
    Promotion lifecycle.

    Redemption is counted from bookings, never stored on the promotion;
    callers that are about to redeem lock the promotion row first so the
    count and the new stamp are serialised.
    """

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.promotions = PromotionRepository(db_session)
        self.bookings = BookingRepository(db_session)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_promotion(
        self,
        code: str,
        at_time: datetime,
        user_id: Optional[str] = None,
        nights: Optional[int] = None,
        amount: Optional[Decimal] = None,
        for_update: bool = False,
    ) -> Promotion:
        """
        Check that ``code`` can be redeemed now.

        Checks run in order: existence and activity, validity window,
        minimum stay and amount, total uses, per-account uses. Pass
        ``for_update`` when the caller is about to redeem the code.

        Raises:
            PromotionNotFoundError, PromotionExpiredError,
            PromotionIneligibleError, PromotionExhaustedError
        """
        if not code or not code.strip():
            raise PromotionNotFoundError(code)

        promotion = self.promotions.find_by_code(code, for_update=for_update)
        if promotion is None:
            raise PromotionNotFoundError(code.strip().upper())

        return self.check_redeemable(
            promotion, at_time, user_id=user_id, nights=nights, amount=amount
        )

    def _is_exhausted(self, promotion: Promotion) -> bool:
        if promotion.max_total_uses is None:
            return False
        return self.promotions.usage_count(promotion.id) >= promotion.max_total_uses

    def check_redeemable(
        self,
        promotion: Promotion,
        at_time: datetime,
        user_id: Optional[str] = None,
        nights: Optional[int] = None,
        amount: Optional[Decimal] = None,
    ) -> Promotion:
        code = promotion.code
        if promotion.is_deleted:
            raise PromotionNotFoundError(code)
        if not promotion.is_active:
            # switched off on reaching its limit
            if self._is_exhausted(promotion):
                raise PromotionExhaustedError(code)
            raise PromotionNotFoundError(code)

        if at_time < promotion.start_date:
            raise PromotionExpiredError(code, "Promotion code is not yet valid")
        if at_time > promotion.end_date:
            raise PromotionExpiredError(code, "Promotion code has expired")

        if nights is not None and promotion.minimum_nights and nights < promotion.minimum_nights:
            raise PromotionIneligibleError(
                f"Promotion requires a minimum stay of {promotion.minimum_nights} nights", code
            )
        if amount is not None and promotion.minimum_amount and amount < promotion.minimum_amount:
            raise PromotionIneligibleError(
                f"Promotion requires a minimum booking amount of {promotion.minimum_amount}", code
            )

        if self._is_exhausted(promotion):
            raise PromotionExhaustedError(code)

        if promotion.limit_per_user_account and user_id:
            used = self.promotions.usage_count_for_user(promotion.id, user_id)
            if used >= promotion.max_uses_per_limit:
                raise PromotionIneligibleError(
                    "You have already used this promotion the maximum number of times", code
                )

        return promotion

    def validate_for_quote(
        self,
        code: str,
        at_time: datetime,
        user_id: Optional[str],
        nights: int,
        amount: Decimal,
    ) -> Dict[str, Any]:
        """Preview used by the checkout page; does not redeem the code"""
        self.deactivate_invalid_promotions(at_time)
        promotion = self.validate_promotion(code, at_time, user_id, nights, amount)
        return {
            "code": promotion.code,
            "discount_type": promotion.discount_type,
            "value": promotion.value,
            "description": promotion.description,
        }

    # -------------------------------------------------------------------------
    # Redemption
    # -------------------------------------------------------------------------

    def record_usage(self, promotion: Promotion, booking, at_time: datetime) -> None:
        """
        Stamp the booking as having redeemed ``promotion``.

        Must run in the same transaction that locked and validated the
        promotion row.
        """
        booking.promotion_used_at = at_time
        self.db.flush()
        if promotion.max_total_uses is not None:
            if self.promotions.usage_count(promotion.id) >= promotion.max_total_uses:
                promotion.is_active = False
                self.db.flush()
                self._log_operation("promotion deactivated (max uses reached)", promotion.id)

    def deactivate_invalid_promotions(self, at_time: datetime) -> int:
        """
        Switch off active promotions that are expired or exhausted.

        Not-yet-started promotions are left alone. Bookings are never touched.
        """
        with self.transaction():
            changed = self.promotions.deactivate_expired(at_time)
            limited = self.promotions.find_active_with_limit()
            counts = self.promotions.usage_counts([p.id for p in limited])
            for promotion in limited:
                if counts.get(promotion.id, 0) >= promotion.max_total_uses:
                    promotion.is_active = False
                    changed += 1
        if changed:
            self.db.expire_all()
            self._log_operation("promotions deactivated", extra={"count": changed})
        return changed

    def usage_count(self, promotion_id: str) -> int:
        return self.promotions.usage_count(promotion_id)

    def available_promotions(self, at_time: datetime) -> List[Promotion]:
        self.deactivate_invalid_promotions(at_time)
        return self.promotions.find_available(at_time)

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    def _require_admin(self, scope: AccessScope) -> None:
        scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)

    def _validate_fields(self, data: Dict[str, Any]) -> None:
        errors: Dict[str, List[str]] = {}
        start, end = data.get("start_date"), data.get("end_date")
        if start and end and start >= end:
            errors.setdefault("end_date", []).append("End date must be after start date")
        value = data.get("value")
        if value is not None:
            if value < 0:
                errors.setdefault("value", []).append("Discount value cannot be negative")
            if data.get("discount_type") == DiscountType.PERCENTAGE and value > 100:
                errors.setdefault("value", []).append("Percentage discount cannot exceed 100")
        if data.get("max_uses_per_limit") is not None and data["max_uses_per_limit"] < 1:
            errors.setdefault("max_uses_per_limit", []).append("Must be at least 1")
        if errors:
            raise ValidationError("Invalid promotion", errors)

    def list_promotions(
        self,
        scope: AccessScope,
        at_time: datetime,
        search: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        self._require_admin(scope)
        paging = normalize_pagination(page, page_size)
        self.deactivate_invalid_promotions(at_time)
        result = self.promotions.search(paging, sanitize_search_term(search))
        usage = self.promotions.usage_counts([p.id for p in result.items])
        for promotion in result.items:
            promotion.usage_count = usage.get(promotion.id, 0)
        return result

    def get_promotion(self, scope: AccessScope, promotion_id: str) -> Promotion:
        self._require_admin(scope)
        promotion = self.promotions.find_by_id(promotion_id)
        if promotion is None:
            raise ResourceNotFoundError("Promotion", promotion_id)
        promotion.usage_count = self.promotions.usage_count(promotion.id)
        return promotion

    def create_promotion(self, scope: AccessScope, data: Dict[str, Any]) -> Promotion:
        self._require_admin(scope)
        self._validate_fields(data)
        with self.transaction():
            if self.promotions.code_taken(data["code"]):
                raise DuplicateEntryError("Promotion code already exists", "code", data["code"])
            promotion = self.promotions.create(Promotion(**data))
        self._log_operation("promotion created", promotion.id, {"code": promotion.code})
        promotion.usage_count = 0
        return promotion

    def update_promotion(self, scope: AccessScope, promotion_id: str, data: Dict[str, Any]) -> Promotion:
        self._require_admin(scope)
        with self.transaction():
            promotion = self.promotions.find_by_id(promotion_id, for_update=True)
            if promotion is None:
                raise ResourceNotFoundError("Promotion", promotion_id)
            merged = {
                "start_date": data.get("start_date", promotion.start_date),
                "end_date": data.get("end_date", promotion.end_date),
                "value": data.get("value", promotion.value),
                "discount_type": data.get("discount_type", promotion.discount_type),
                "max_uses_per_limit": data.get("max_uses_per_limit"),
            }
            self._validate_fields(merged)
            if "code" in data and self.promotions.code_taken(data["code"], exclude_id=promotion.id):
                raise DuplicateEntryError("Promotion code already exists", "code", data["code"])
            self.promotions.update(promotion, data)
        self._log_operation("promotion updated", promotion.id, {"fields": sorted(data)})
        promotion.usage_count = self.promotions.usage_count(promotion.id)
        return promotion

    def delete_promotion(self, scope: AccessScope, promotion_id: str) -> None:
        """Soft-delete a promotion that no booking has ever referenced"""
        self._require_admin(scope)
        with self.transaction():
            promotion = self.promotions.find_by_id(promotion_id)
            if promotion is None:
                raise ResourceNotFoundError("Promotion", promotion_id)
            if self.bookings.count_for_promotion(promotion.id):
                raise DependentRecordsError(
                    "This promotion has been used by bookings. Deactivate it instead.",
                    "Promotion",
                    "Booking",
                )
            self.promotions.soft_delete(promotion)
        self._log_operation("promotion deleted", promotion.id)
