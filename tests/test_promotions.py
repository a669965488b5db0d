from datetime import date, timedelta
from decimal import Decimal

import pytest

from conftest import NOW, context, make_promotion, make_room, make_user
from budget_hotel.core.exceptions import (
    PromotionExhaustedError,
    PromotionExpiredError,
    PromotionIneligibleError,
    PromotionNotFoundError,
    ValidationError,
)
from budget_hotel.models.base import BookingStatus, DiscountType, PaymentMethod, UserRole
from budget_hotel.services.booking_service import BookingService
from budget_hotel.services.promotion_service import PromotionService

CHECK_IN = date(2030, 6, 10)


def _book_and_pay(db, user, room, code, offset=0):
    service = BookingService(db)
    ctx = context(user)
    check_in = CHECK_IN + timedelta(days=offset)
    booking = service.create_booking(ctx, room.id, check_in, check_in + timedelta(days=2), promotion_code=code)
    return service.confirm_payment(ctx, booking.id, booking.total_price, PaymentMethod.CREDIT_CARD)


def test_code_lookup_is_case_insensitive(db):
    make_promotion(db, code="SUMMER")

    promotion = PromotionService(db).validate_promotion(" summer ", NOW)

    assert promotion.code == "SUMMER"


def test_unknown_and_blank_codes_not_found(db):
    service = PromotionService(db)
    with pytest.raises(PromotionNotFoundError):
        service.validate_promotion("NOPE", NOW)
    with pytest.raises(PromotionNotFoundError):
        service.validate_promotion("   ", NOW)


def test_expired_and_future_codes_rejected(db):
    make_promotion(db, code="OLD", start_date=NOW - timedelta(days=30), end_date=NOW - timedelta(days=1))
    make_promotion(db, code="SOON", start_date=NOW + timedelta(days=1), end_date=NOW + timedelta(days=30))
    service = PromotionService(db)

    with pytest.raises(PromotionExpiredError):
        service.validate_promotion("OLD", NOW)
    with pytest.raises(PromotionExpiredError):
        service.validate_promotion("SOON", NOW)


def test_minimum_stay_enforced(db):
    make_promotion(db, code="LONGSTAY", minimum_nights=3)

    with pytest.raises(PromotionIneligibleError):
        PromotionService(db).validate_promotion("LONGSTAY", NOW, nights=2)


def test_deactivation_skips_not_yet_started(db):
    expired = make_promotion(db, code="OLD", start_date=NOW - timedelta(days=30), end_date=NOW - timedelta(days=1))
    future = make_promotion(db, code="SOON", start_date=NOW + timedelta(days=1), end_date=NOW + timedelta(days=30))

    changed = PromotionService(db).deactivate_invalid_promotions(NOW)

    db.refresh(expired)
    db.refresh(future)
    assert changed == 1
    assert expired.is_active is False
    assert future.is_active is True


def test_discount_applied_to_booking(db, room, customer):
    make_promotion(db, code="SAVE10")

    booking = BookingService(db).create_booking(
        context(customer), room.id, CHECK_IN, CHECK_IN + timedelta(days=3), promotion_code="save10"
    )

    assert booking.subtotal == Decimal("300.00")
    assert booking.discount_amount == Decimal("30.00")
    assert booking.total_price == Decimal("270.00")
    assert booking.promotion_used_at is None


def test_usage_counted_on_payment_and_exhaustion_deactivates(db, room_type, customer):
    promotion = make_promotion(db, code="ONCE", max_total_uses=1)
    room = make_room(db, room_type, "201")

    booking = _book_and_pay(db, customer, room, "ONCE")

    db.refresh(promotion)
    assert booking.promotion_used_at == NOW
    assert PromotionService(db).usage_count(promotion.id) == 1
    assert promotion.is_active is False

    other = make_user(db, UserRole.CUSTOMER, email="second@budgethotel.com")
    with pytest.raises(PromotionExhaustedError):
        BookingService(db).create_booking(
            context(other), room.id, CHECK_IN + timedelta(days=5), CHECK_IN + timedelta(days=6),
            promotion_code="ONCE",
        )


def test_second_confirmation_cannot_exceed_max_uses(db, room_type, room):
    make_promotion(db, code="LASTONE", max_total_uses=1)
    other_room = make_room(db, room_type, "202")
    first_guest = make_user(db, UserRole.CUSTOMER, email="first@budgethotel.com")
    second_guest = make_user(db, UserRole.CUSTOMER, email="second@budgethotel.com")
    service = BookingService(db)
    first = service.create_booking(
        context(first_guest), room.id, CHECK_IN, CHECK_IN + timedelta(days=2), promotion_code="LASTONE"
    )
    second = service.create_booking(
        context(second_guest), other_room.id, CHECK_IN, CHECK_IN + timedelta(days=2), promotion_code="LASTONE"
    )

    service.confirm_payment(context(first_guest), first.id, first.total_price, PaymentMethod.CREDIT_CARD)
    with pytest.raises(PromotionExhaustedError):
        service.confirm_payment(context(second_guest), second.id, second.total_price, PaymentMethod.CREDIT_CARD)

    db.expire_all()
    assert service.bookings.find_by_id(second.id).status == BookingStatus.PENDING
    assert PromotionService(db).usage_count(first.promotion_id) == 1


def test_exhausted_code_rejected_even_if_reactivated(db, customer, room):
    promotion = make_promotion(db, code="TWICE", max_total_uses=2)
    _book_and_pay(db, customer, room, "TWICE")
    _book_and_pay(db, customer, room, "TWICE", offset=5)

    promotion.is_active = True
    db.commit()

    with pytest.raises(PromotionExhaustedError):
        PromotionService(db).validate_promotion("TWICE", NOW)


def test_per_account_limit(db, customer, room):
    make_promotion(db, code="MEMBER", limit_per_user_account=True, max_uses_per_limit=1)
    _book_and_pay(db, customer, room, "MEMBER")

    with pytest.raises(PromotionIneligibleError):
        BookingService(db).create_booking(
            context(customer), room.id, CHECK_IN + timedelta(days=5), CHECK_IN + timedelta(days=7),
            promotion_code="MEMBER",
        )

    other = make_user(db, UserRole.CUSTOMER, email="friend@budgethotel.com")
    booking = BookingService(db).create_booking(
        context(other), room.id, CHECK_IN + timedelta(days=5), CHECK_IN + timedelta(days=7),
        promotion_code="MEMBER",
    )
    assert booking.discount_amount == Decimal("20.00")


def test_admin_validation_rejects_bad_percentage(db, admin):
    with pytest.raises(ValidationError):
        PromotionService(db).create_promotion(
            context(admin).scope,
            dict(
                code="HUGE",
                discount_type=DiscountType.PERCENTAGE,
                value=Decimal("150"),
                start_date=NOW,
                end_date=NOW + timedelta(days=1),
            ),
        )


def test_cancelled_booking_keeps_its_redemption(db, customer, staff, room):
    promotion = make_promotion(db, code="KEEP", max_total_uses=5)
    booking = _book_and_pay(db, customer, room, "KEEP")

    cancelled = BookingService(db).cancel_booking(context(staff), booking.id, "Change of plans")

    assert cancelled.status == BookingStatus.CANCELLED
    assert PromotionService(db).usage_count(promotion.id) == 1


def test_deactivation_leaves_redeemed_bookings_alone(db, customer, room):
    promotion = make_promotion(db, code="SHORT")
    booking = _book_and_pay(db, customer, room, "SHORT")

    changed = PromotionService(db).deactivate_invalid_promotions(promotion.end_date + timedelta(days=1))

    db.expire_all()
    stored = BookingService(db).bookings.find_by_id(booking.id)
    assert changed == 1
    assert stored.subtotal == Decimal("200.00")
    assert stored.discount_amount == Decimal("20.00")
    assert stored.total_price == Decimal("180.00")
    assert stored.promotion_id == promotion.id
    assert stored.promotion_used_at == NOW


def test_recovering_redeemed_booking_cannot_exceed_max_uses(db, room_type, room, admin):
    promotion = make_promotion(db, code="PAIR", max_total_uses=2)
    first_guest, second_guest, third_guest = (
        make_user(db, UserRole.CUSTOMER, email=f"pair{i}@budgethotel.com") for i in range(3)
    )
    service = BookingService(db)

    first = _book_and_pay(db, first_guest, room, "PAIR")
    service.soft_delete_booking(context(admin), first.id)
    assert PromotionService(db).usage_count(promotion.id) == 1

    _book_and_pay(db, second_guest, make_room(db, room_type, "301"), "PAIR")
    with pytest.raises(PromotionExhaustedError):
        service.create_booking(
            context(third_guest), make_room(db, room_type, "302").id, CHECK_IN, CHECK_IN + timedelta(days=2),
            promotion_code="PAIR",
        )

    service.recover_booking(context(admin), first.id)

    assert PromotionService(db).usage_count(promotion.id) == 2
