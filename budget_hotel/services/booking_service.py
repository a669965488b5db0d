"""
Booking lifecycle: reservation, payment, status changes, cancellation,
soft delete and recovery.

Every status change goes through ``ALLOWED_TRANSITIONS``; the maintenance
sweep uses conditional bulk updates keyed on the current status so it can
run concurrently and repeatedly.
"""

import secrets
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from budget_hotel.config.settings import settings
from budget_hotel.core.constants import TRANSACTION_PREFIXES
from budget_hotel.core.exceptions import (
    ConflictError,
    InvalidDateRangeError,
    InvalidTransitionError,
    ResourceNotFoundError,
    RoomUnavailableError,
    ValidationError,
)
from budget_hotel.core.logging import audit_logger
from budget_hotel.core.pagination import Page, normalize_pagination, sanitize_search_term
from budget_hotel.core.security import generate_qr_token
from budget_hotel.models import Booking, BookingExtra, Package, Room
from budget_hotel.models.base import (
    BookingSource,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    RoomStatus,
    UserRole,
)
from budget_hotel.models.booking import ACTIVE_STATUSES
from budget_hotel.repositories.booking_repository import BookingRepository
from budget_hotel.repositories.catalog_repository import PackageRepository, ServiceRepository
from budget_hotel.repositories.inventory_repository import RoomRepository, RoomTypeRepository
from budget_hotel.repositories.user_repository import ReviewRepository
from budget_hotel.services.access import AccessScope, RequestContext
from budget_hotel.services.base_service import BaseService
from budget_hotel.services.notification.email_service import send_booking_confirmation
from budget_hotel.services.pricing import (
    ZERO,
    PriceQuote,
    ServiceLine,
    compute_total,
    package_quote,
    quantize,
)
from budget_hotel.services.promotion_service import PromotionService, promotion_terms

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW},
    BookingStatus.CONFIRMED: {BookingStatus.CHECKED_IN, BookingStatus.CANCELLED, BookingStatus.NO_SHOW},
    BookingStatus.CHECKED_IN: {BookingStatus.CHECKED_OUT},
    BookingStatus.CHECKED_OUT: set(),
    BookingStatus.CANCELLED: set(),
    BookingStatus.NO_SHOW: set(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def generate_transaction_id(method: PaymentMethod, at_time: datetime) -> str:
    """``CC-20250101-01234567`` style reference for a payment"""
    prefix = TRANSACTION_PREFIXES[method.value]
    digits = "".join(secrets.choice("0123456789") for _ in range(8))
    return f"{prefix}-{at_time:%Y%m%d}-{digits}"


@dataclass(frozen=True)
class ServiceSelection:
    service_id: str
    quantity: int = 1


@dataclass
class SweepResult:
    no_show: int = 0
    checked_in: int = 0
    checked_out: int = 0

    @property
    def total(self) -> int:
        return self.no_show + self.checked_in + self.checked_out

    def as_dict(self) -> Dict[str, int]:
        return {
            "no_show": self.no_show,
            "checked_in": self.checked_in,
            "checked_out": self.checked_out,
        }


class BookingService(BaseService):
    """
    Core booking operations.

    Callers pass a ``RequestContext`` carrying the acting user, their access
    scope and the clock; nothing here reads an ambient current user.
    """

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.bookings = BookingRepository(db_session)
        self.rooms = RoomRepository(db_session)
        self.room_types = RoomTypeRepository(db_session)
        self.services = ServiceRepository(db_session)
        self.packages = PackageRepository(db_session)
        self.reviews = ReviewRepository(db_session)
        self.promotion_service = PromotionService(db_session)

    # -------------------------------------------------------------------------
    # Validation helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_dates(check_in: date, check_out: date, today: date) -> None:
        if check_in >= check_out:
            raise InvalidDateRangeError(
                start_date=check_in.isoformat(), end_date=check_out.isoformat()
            )
        if check_in < today:
            raise InvalidDateRangeError(
                "Check-in date cannot be in the past",
                start_date=check_in.isoformat(),
                end_date=check_out.isoformat(),
            )

    @staticmethod
    def _require_customer(ctx: RequestContext) -> None:
        if ctx.role != UserRole.CUSTOMER:
            raise ctx.scope.deny("Staff accounts cannot make customer bookings", "booking")

    def _load(self, booking_id: str, include_deleted: bool = False, for_update: bool = False) -> Booking:
        booking = self.bookings.find_by_id(booking_id, include_deleted=include_deleted, for_update=for_update)
        if booking is None:
            raise ResourceNotFoundError("Booking", booking_id)
        return booking

    def _load_detailed(self, booking_id: str, include_deleted: bool = False) -> Booking:
        booking = self.bookings.find_detailed(booking_id, include_deleted=include_deleted)
        if booking is None:
            raise ResourceNotFoundError("Booking", booking_id)
        return booking

    def _require_booking_scope(self, scope: AccessScope, booking: Booking) -> None:
        scope.require(booking.hotel_id, f"booking:{booking.id}")

    def _service_lines(self, selections: Sequence[ServiceSelection]) -> List[ServiceLine]:
        merged: Dict[str, int] = {}
        for selection in selections:
            if selection.quantity < 1:
                raise ValidationError(
                    "Service quantity must be at least 1", {"quantity": ["must be >= 1"]}
                )
            merged[selection.service_id] = merged.get(selection.service_id, 0) + selection.quantity

        found = {service.id: service for service in self.services.find_by_ids(list(merged))}
        lines = []
        for service_id, quantity in merged.items():
            service = found.get(service_id)
            if service is None:
                raise ResourceNotFoundError("Service", service_id)
            lines.append(ServiceLine(service_id=service.id, unit_price=service.price, quantity=quantity))
        return lines

    def _load_package(self, package_id: str) -> Package:
        package = self.packages.find_detailed(package_id)
        if package is None or not package.is_active:
            raise ResourceNotFoundError("Package", package_id)
        if package.room_item is None:
            raise ConflictError("This package does not include a room")
        return package

    # -------------------------------------------------------------------------
    # Reservation
    # -------------------------------------------------------------------------

    def _quote(
        self,
        ctx: RequestContext,
        room: Room,
        nights: int,
        selections: Sequence[ServiceSelection],
        promotion_code: Optional[str],
        package: Optional[Package],
    ):
        if package is not None:
            lines = [
                ServiceLine(service_id=item.service_id, unit_price=ZERO, quantity=item.quantity)
                for item in package.service_items
            ]
            return package_quote(package.total_price, nights, lines), None

        lines = self._service_lines(selections)
        base_price = room.room_type.base_price
        promotion = None
        if promotion_code:
            undiscounted = compute_total(base_price, nights, lines)
            promotion = self.promotion_service.validate_promotion(
                promotion_code,
                ctx.now,
                user_id=ctx.user_id,
                nights=nights,
                amount=undiscounted.subtotal,
            )
        return compute_total(base_price, nights, lines, promotion_terms(promotion)), promotion

    def _reserve(
        self,
        ctx: RequestContext,
        room: Room,
        check_in: date,
        check_out: date,
        selections: Sequence[ServiceSelection],
        promotion_code: Optional[str],
        package: Optional[Package],
        source: BookingSource,
        notes: Optional[str],
    ) -> Booking:
        """Create the booking row; ``room`` must already be locked"""
        if room.status == RoomStatus.UNDER_MAINTENANCE:
            raise RoomUnavailableError(
                "Room is under maintenance", room_id=room.id, reason="maintenance"
            )
        if self.bookings.has_overlap(room.id, check_in, check_out):
            raise RoomUnavailableError(room_id=room.id, reason="overlap")

        quote, promotion = self._quote(
            ctx, room, (check_out - check_in).days, selections, promotion_code, package
        )

        booking = Booking(
            user_id=ctx.user_id,
            room_id=room.id,
            check_in_date=check_in,
            check_out_date=check_out,
            booking_date=ctx.now,
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            source=BookingSource.PACKAGE if package is not None else source,
            subtotal=quote.subtotal,
            discount_amount=quote.discount,
            total_price=quote.total,
            promotion_id=promotion.id if promotion is not None else None,
            package_id=package.id if package is not None else None,
            qr_token=generate_qr_token(),
            notes=notes,
        )
        booking.extras = [
            BookingExtra(service_id=line.service_id, quantity=line.quantity, unit_price=line.unit_price)
            for line in quote.lines
        ]
        return self.bookings.create(booking)

    def create_booking(
        self,
        ctx: RequestContext,
        room_id: str,
        check_in: date,
        check_out: date,
        services: Sequence[ServiceSelection] = (),
        promotion_code: Optional[str] = None,
        package_id: Optional[str] = None,
        source: BookingSource = BookingSource.DIRECT,
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Reserve a specific room for the acting customer.

        The room row is locked before the overlap check so two concurrent
        requests for the same room serialise.

        Raises:
            InvalidDateRangeError, RoomUnavailableError, ResourceNotFoundError,
            AuthorizationError, Promotion* errors
        """
        self._require_customer(ctx)
        self._validate_dates(check_in, check_out, ctx.today)
        if package_id and promotion_code:
            raise ValidationError(
                "Promotions cannot be combined with packages",
                {"promotion_code": ["not allowed with a package"]},
            )
        if promotion_code:
            self.promotion_service.deactivate_invalid_promotions(ctx.now)

        with self.transaction():
            room = self.rooms.lock(room_id)
            if room is None:
                raise ResourceNotFoundError("Room", room_id)
            package = self._load_package(package_id) if package_id else None
            if package is not None and package.room_item.room_type_id != room.room_type_id:
                raise ValidationError(
                    "Room does not belong to the package's room type",
                    {"room_id": ["must match the package room type"]},
                )
            booking = self._reserve(
                ctx, room, check_in, check_out, services, promotion_code, package, source, notes
            )

        self._log_operation(
            "booking created",
            booking.id,
            {"room_id": room_id, "user_id": ctx.user_id, "total_price": str(booking.total_price)},
        )
        return self._load_detailed(booking.id)

    def create_booking_for_room_type(
        self,
        ctx: RequestContext,
        room_type_id: Optional[str],
        check_in: date,
        check_out: date,
        services: Sequence[ServiceSelection] = (),
        promotion_code: Optional[str] = None,
        package_id: Optional[str] = None,
        source: BookingSource = BookingSource.DIRECT,
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Book the first free room of a room type.

        For package bookings the room type defaults to the package's own.
        """
        self._require_customer(ctx)
        self._validate_dates(check_in, check_out, ctx.today)
        if package_id and promotion_code:
            raise ValidationError(
                "Promotions cannot be combined with packages",
                {"promotion_code": ["not allowed with a package"]},
            )
        if promotion_code:
            self.promotion_service.deactivate_invalid_promotions(ctx.now)

        with self.transaction():
            package = self._load_package(package_id) if package_id else None
            if package is not None:
                package_room_type = package.room_item.room_type_id
                if room_type_id and room_type_id != package_room_type:
                    raise ValidationError(
                        "Room type does not match the package",
                        {"room_type_id": ["must match the package room type"]},
                    )
                room_type_id = package_room_type
            if not room_type_id or self.room_types.find_by_id(room_type_id) is None:
                raise ResourceNotFoundError("RoomType", room_type_id)

            candidates = self.rooms.bookable_rooms(room_type_id, for_update=True)
            busy = self.bookings.busy_room_ids([room.id for room in candidates], check_in, check_out)
            free = [room for room in candidates if room.id not in busy]
            if not free:
                raise RoomUnavailableError(
                    "No rooms of this type are available for the selected dates",
                    reason="sold_out",
                )
            booking = self._reserve(
                ctx, free[0], check_in, check_out, services, promotion_code, package, source, notes
            )

        self._log_operation(
            "booking created",
            booking.id,
            {"room_type_id": room_type_id, "user_id": ctx.user_id, "total_price": str(booking.total_price)},
        )
        return self._load_detailed(booking.id)

    def quote(
        self,
        ctx: RequestContext,
        room_type_id: str,
        check_in: date,
        check_out: date,
        services: Sequence[ServiceSelection] = (),
        promotion_code: Optional[str] = None,
    ) -> PriceQuote:
        """Price preview for the checkout page; nothing is reserved or redeemed"""
        if check_in >= check_out:
            raise InvalidDateRangeError(
                start_date=check_in.isoformat(), end_date=check_out.isoformat()
            )
        room_type = self.room_types.find_by_id(room_type_id)
        if room_type is None:
            raise ResourceNotFoundError("RoomType", room_type_id)
        nights = (check_out - check_in).days
        lines = self._service_lines(services)
        promotion = None
        if promotion_code:
            self.promotion_service.deactivate_invalid_promotions(ctx.now)
            undiscounted = compute_total(room_type.base_price, nights, lines)
            promotion = self.promotion_service.validate_promotion(
                promotion_code, ctx.now, ctx.user_id, nights, undiscounted.subtotal
            )
        return compute_total(room_type.base_price, nights, lines, promotion_terms(promotion))

    # -------------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------------

    def confirm_payment(
        self,
        ctx: RequestContext,
        booking_id: str,
        amount: Decimal,
        method: PaymentMethod,
    ) -> Booking:
        """
        Record payment for a Pending booking and confirm it.

        An attached promotion is locked and re-validated in the same
        transaction before its usage is stamped, so concurrent
        confirmations cannot push usage past ``max_total_uses``.
        """
        with self.transaction():
            booking = self._load(booking_id, for_update=True)
            if booking.user_id != ctx.user_id:
                raise ctx.scope.deny("You can only pay for your own bookings", f"booking:{booking_id}")
            if booking.status != BookingStatus.PENDING:
                raise InvalidTransitionError(
                    "Only pending bookings can be paid",
                    booking.status.value,
                    BookingStatus.CONFIRMED.value,
                    booking.id,
                )
            if quantize(amount) != quantize(booking.total_price):
                raise ValidationError(
                    "Payment amount does not match the booking total",
                    {"amount": [f"must equal {booking.total_price:.2f}"]},
                )

            promotion = None
            if booking.promotion_id:
                promotion = self.promotion_service.promotions.find_by_id(
                    booking.promotion_id, include_deleted=True, for_update=True
                )
                if promotion is None:
                    raise ResourceNotFoundError("Promotion", booking.promotion_id)
                self.promotion_service.check_redeemable(
                    promotion, ctx.now, user_id=booking.user_id
                )

            booking.status = BookingStatus.CONFIRMED
            booking.payment_status = PaymentStatus.COMPLETED
            booking.payment_amount = quantize(amount)
            booking.payment_method = method
            booking.transaction_id = generate_transaction_id(method, ctx.now)
            booking.payment_date = ctx.now
            self.db.flush()

            if promotion is not None:
                self.promotion_service.record_usage(promotion, booking, ctx.now)

        self._log_operation(
            "booking confirmed",
            booking.id,
            {"transaction_id": booking.transaction_id, "amount": str(booking.payment_amount)},
        )

        booking = self._load_detailed(booking.id)
        if not send_booking_confirmation(booking):
            self._logger.warning(f"Confirmation email for booking {booking.id} was not delivered")
        return booking

    # -------------------------------------------------------------------------
    # Status changes
    # -------------------------------------------------------------------------

    def advance_statuses(self, today: date) -> SweepResult:
        """
        Move bookings along as their dates pass.

        Each step is a conditional UPDATE keyed on the current status, so
        running the sweep twice, or twice at once, changes nothing more.
        """
        result = SweepResult()
        stamp = datetime.combine(today, datetime.min.time())
        with self.transaction():
            grace = settings.AUTO_NO_SHOW_GRACE_DAYS
            if grace is not None:
                result.no_show = self.bookings.bulk_transition(
                    BookingStatus.CONFIRMED,
                    BookingStatus.NO_SHOW,
                    Booking.check_in_date,
                    today - timedelta(days=grace),
                )
            result.checked_in = self.bookings.bulk_transition(
                BookingStatus.CONFIRMED,
                BookingStatus.CHECKED_IN,
                Booking.check_in_date,
                today,
                stamp_column="check_in_time",
                stamp_value=stamp,
            )
            result.checked_out = self.bookings.bulk_transition(
                BookingStatus.CHECKED_IN,
                BookingStatus.CHECKED_OUT,
                Booking.check_out_date,
                today,
                stamp_column="check_out_time",
                stamp_value=stamp,
            )
        if result.total:
            self.db.expire_all()
            self._log_operation("booking statuses advanced", extra=result.as_dict())
        return result

    def _apply_status(self, booking: Booking, target: BookingStatus, now: datetime) -> None:
        booking.status = target
        if target == BookingStatus.CHECKED_IN and booking.check_in_time is None:
            booking.check_in_time = now
        elif target == BookingStatus.CHECKED_OUT and booking.check_out_time is None:
            booking.check_out_time = now

    def _apply_cancellation(self, booking: Booking, reason: Optional[str], now: datetime) -> None:
        booking.status = BookingStatus.CANCELLED
        booking.cancellation_date = now
        booking.cancellation_reason = reason
        if booking.payment_status == PaymentStatus.COMPLETED:
            booking.refund_amount = quantize(booking.total_price * settings.CANCELLATION_REFUND_RATE)
            booking.payment_status = PaymentStatus.REFUNDED
        else:
            booking.refund_amount = ZERO

    def cancel_booking(self, ctx: RequestContext, booking_id: str, reason: Optional[str] = None) -> Booking:
        """
        Cancel a booking.

        Customers may cancel their own pending, unreviewed bookings before
        check-in. Staff may cancel pending or confirmed bookings in scope.
        Paid bookings are refunded at ``CANCELLATION_REFUND_RATE``.
        """
        with self.transaction():
            booking = self._load(booking_id, for_update=True)
            if ctx.is_customer:
                if booking.user_id != ctx.user_id:
                    raise ctx.scope.deny("You can only cancel your own bookings", f"booking:{booking_id}")
                if booking.status != BookingStatus.PENDING:
                    raise InvalidTransitionError(
                        "Only pending bookings can be cancelled",
                        booking.status.value,
                        BookingStatus.CANCELLED.value,
                        booking.id,
                    )
                if self.reviews.find_live_for_booking(booking.id) is not None:
                    raise ConflictError("Reviewed bookings cannot be cancelled")
                if booking.check_in_date < ctx.today:
                    raise ConflictError("Bookings cannot be cancelled after the check-in date")
            else:
                self._require_booking_scope(ctx.scope, booking)
                if not can_transition(booking.status, BookingStatus.CANCELLED):
                    raise InvalidTransitionError(
                        current_status=booking.status.value,
                        target_status=BookingStatus.CANCELLED.value,
                        booking_id=booking.id,
                    )
            self._apply_cancellation(booking, reason, ctx.now)

        self._log_operation(
            "booking cancelled",
            booking.id,
            {"by": ctx.user_id, "refund_amount": str(booking.refund_amount)},
        )
        return booking

    def update_status(self, ctx: RequestContext, booking_id: str, new_status: BookingStatus) -> Booking:
        """Staff status change through the transition table"""
        ctx.scope.require_any()
        with self.transaction():
            booking = self._load(booking_id, include_deleted=True, for_update=True)
            self._require_booking_scope(ctx.scope, booking)
            if booking.is_deleted:
                raise InvalidTransitionError(
                    "Cannot update status of a deleted booking. Recover it first.",
                    booking.status.value,
                    new_status.value,
                    booking.id,
                )
            if not can_transition(booking.status, new_status):
                raise InvalidTransitionError(
                    current_status=booking.status.value,
                    target_status=new_status.value,
                    booking_id=booking.id,
                )
            previous = booking.status
            if new_status == BookingStatus.CANCELLED:
                self._apply_cancellation(booking, "Cancelled by staff", ctx.now)
            else:
                self._apply_status(booking, new_status, ctx.now)

        self._log_operation(
            "booking status updated",
            booking.id,
            {"from": previous.value, "to": new_status.value, "by": ctx.user_id},
        )
        return booking

    def check_in_by_token(self, ctx: RequestContext, token: str) -> Booking:
        """
        Front-desk QR scan.

        Confirmed bookings are checked in; checked-in bookings are checked
        out, but not on the same calendar day they were checked in.
        """
        ctx.scope.require_any()
        with self.transaction():
            booking = self.bookings.find_by_qr_token(token)
            if booking is None:
                raise ResourceNotFoundError("Booking", message="No booking matches this QR code")
            self._require_booking_scope(ctx.scope, booking)

            if booking.status == BookingStatus.CONFIRMED:
                self._apply_status(booking, BookingStatus.CHECKED_IN, ctx.now)
            elif booking.status == BookingStatus.CHECKED_IN:
                checked_in_on = (booking.check_in_time or ctx.now).date()
                if ctx.today <= checked_in_on:
                    raise InvalidTransitionError(
                        "Guests cannot check out on the day they checked in",
                        booking.status.value,
                        BookingStatus.CHECKED_OUT.value,
                        booking.id,
                    )
                self._apply_status(booking, BookingStatus.CHECKED_OUT, ctx.now)
            else:
                raise InvalidTransitionError(
                    f"Booking is {booking.status.value} and cannot be scanned",
                    booking.status.value,
                    None,
                    booking.id,
                )

        self._log_operation("booking scanned", booking.id, {"status": booking.status.value})
        return booking

    # -------------------------------------------------------------------------
    # Soft delete & recovery
    # -------------------------------------------------------------------------

    def soft_delete_booking(self, ctx: RequestContext, booking_id: str, include_deleted: bool = False) -> Booking:
        """
        Flag a booking deleted together with its live reviews.

        The reviews share the booking's ``deleted_at`` so recovery can tell
        them apart from reviews deleted on their own.
        """
        ctx.scope.require_any()
        with self.transaction():
            booking = self._load(booking_id, include_deleted=include_deleted, for_update=True)
            self._require_booking_scope(ctx.scope, booking)
            if booking.is_deleted:
                return booking
            deleted_at = ctx.now
            for review in booking.reviews:
                if not review.is_deleted:
                    self.reviews.soft_delete(review, deleted_at)
            self.bookings.soft_delete(booking, deleted_at)

        audit_logger.info(
            "Booking soft-deleted",
            extra={"actor_id": ctx.user_id, "booking_id": booking.id},
        )
        return booking

    def recover_booking(self, ctx: RequestContext, booking_id: str) -> Booking:
        """
        Undo ``soft_delete_booking``.

        Status, payment and promotion fields are left exactly as they were.
        """
        ctx.scope.require_roles(UserRole.ADMIN, UserRole.MANAGER)
        ctx.scope.require_any()
        with self.transaction():
            booking = self._load(booking_id, include_deleted=True, for_update=True)
            room = self.rooms.find_by_id(booking.room_id, include_deleted=True)
            ctx.scope.require(room.room_type.hotel_id if room else None, f"booking:{booking.id}")
            if not booking.is_deleted:
                return booking
            if room is None or room.is_deleted:
                raise ConflictError("The booked room has been deleted")
            if booking.status in ACTIVE_STATUSES and self.bookings.has_overlap(
                booking.room_id, booking.check_in_date, booking.check_out_date
            ):
                raise RoomUnavailableError(
                    "Another booking now holds this room for the same dates",
                    room_id=booking.room_id,
                    reason="overlap",
                )
            for review in self.bookings.reviews_deleted_with(booking):
                self.reviews.restore(review)
            self.bookings.restore(booking)

        audit_logger.info(
            "Booking recovered",
            extra={"actor_id": ctx.user_id, "booking_id": booking.id},
        )
        return self._load_detailed(booking.id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_my_bookings(self, ctx: RequestContext) -> List[Booking]:
        return self.bookings.find_for_user(ctx.user_id)

    def get_booking(self, ctx: RequestContext, booking_id: str) -> Booking:
        """Owner or in-scope staff; Admin and Manager also see deleted bookings"""
        include_deleted = ctx.scope.has_role(UserRole.ADMIN, UserRole.MANAGER)
        booking = self._load_detailed(booking_id, include_deleted=include_deleted)
        if ctx.is_customer:
            if booking.user_id != ctx.user_id:
                raise ctx.scope.deny("You can only view your own bookings", f"booking:{booking_id}")
        else:
            self._require_booking_scope(ctx.scope, booking)
        return booking

    def list_bookings(
        self,
        scope: AccessScope,
        today: date,
        search: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Page:
        scope.require_any()
        paging = normalize_pagination(page, page_size)
        search = sanitize_search_term(search)
        self.advance_statuses(today)
        include_deleted = scope.has_role(UserRole.ADMIN, UserRole.MANAGER)
        return self.bookings.search(scope, paging, search, status, include_deleted)

    def receipt(self, ctx: RequestContext, booking_id: str) -> Dict[str, Any]:
        booking = self.get_booking(ctx, booking_id)
        room_type = booking.room.room_type
        nights = booking.nights
        if booking.package_id:
            room_line = {
                "description": f"{booking.package.name} package",
                "nights": nights,
                "unit_price": booking.subtotal,
                "amount": booking.subtotal,
            }
        else:
            room_line = {
                "description": f"{room_type.name} (Room {booking.room.room_number})",
                "nights": nights,
                "unit_price": room_type.base_price,
                "amount": quantize(room_type.base_price * nights),
            }
        extras = [
            {
                "service_id": extra.service_id,
                "name": extra.service.name if extra.service else None,
                "quantity": extra.quantity,
                "unit_price": extra.unit_price,
                "amount": quantize(extra.line_total),
            }
            for extra in booking.extras
        ]
        return {
            "booking_id": booking.id,
            "hotel": room_type.hotel.name,
            "guest": booking.user.full_name,
            "email": booking.user.email,
            "check_in": booking.check_in_date,
            "check_out": booking.check_out_date,
            "room": room_line,
            "extras": extras,
            "subtotal": booking.subtotal,
            "discount": booking.discount_amount,
            "promotion_code": booking.promotion.code if booking.promotion else None,
            "total": booking.total_price,
            "currency": settings.CURRENCY,
            "status": booking.status,
            "payment_status": booking.payment_status,
            "payment_method": booking.payment_method,
            "payment_amount": booking.payment_amount,
            "transaction_id": booking.transaction_id,
            "payment_date": booking.payment_date,
            "refund_amount": booking.refund_amount,
        }

    def dashboard(self, scope: AccessScope, today: date) -> Dict[str, Any]:
        """Headline numbers for the staff dashboard, scoped to the caller's hotels"""
        scope.require_any()
        sweep = self.advance_statuses(today)
        by_status = self.bookings.count_by_status(scope)
        return {
            "total_bookings": sum(by_status.values()),
            "by_status": {status.value: by_status.get(status, 0) for status in BookingStatus},
            "revenue": quantize(Decimal(str(self.bookings.revenue(scope)))),
            "currency": settings.CURRENCY,
            "swept": sweep.as_dict(),
        }

