import threading
import time
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from conftest import NOW, context, make_hotel, make_room, make_room_type, make_service, make_user
from budget_hotel.core.exceptions import (
    AuthorizationError,
    ConflictError,
    DuplicateReviewError,
    InvalidDateRangeError,
    InvalidTransitionError,
    RoomUnavailableError,
    ValidationError,
)
from budget_hotel.db.session import build_engine
from budget_hotel.models import Base, Booking
from budget_hotel.models.base import BookingStatus, PaymentMethod, PaymentStatus, RoomStatus, UserRole
from budget_hotel.repositories.booking_repository import BookingRepository
from budget_hotel.services.booking_service import (
    BookingService,
    ServiceSelection,
    can_transition,
    generate_transaction_id,
)
from budget_hotel.services.review_service import ReviewService

CHECK_IN = date(2030, 6, 10)
CHECK_OUT = date(2030, 6, 13)


@pytest.fixture
def service(db):
    return BookingService(db)


@pytest.fixture
def booking(service, customer, room):
    return service.create_booking(context(customer), room.id, CHECK_IN, CHECK_OUT)


def _pay(service, customer, booking):
    return service.confirm_payment(context(customer), booking.id, booking.total_price, PaymentMethod.PAYPAL)


def test_new_booking_is_pending_and_priced(booking):
    assert booking.status == BookingStatus.PENDING
    assert booking.payment_status == PaymentStatus.PENDING
    assert booking.nights == 3
    assert booking.total_price == Decimal("300.00")
    assert booking.qr_token


def test_services_priced_at_booking_time(db, service, customer, room):
    breakfast = make_service(db, price="15.00")
    booking = service.create_booking(
        context(customer), room.id, CHECK_IN, CHECK_OUT,
        services=[ServiceSelection(breakfast.id, 1), ServiceSelection(breakfast.id, 1)],
    )

    breakfast.price = Decimal("99.00")
    db.commit()
    db.expire_all()

    assert booking.total_price == Decimal("330.00")
    assert [(extra.quantity, extra.unit_price) for extra in booking.extras] == [(2, Decimal("15.00"))]


@pytest.mark.parametrize(
    "check_in, check_out",
    [
        (CHECK_IN, CHECK_IN),
        (CHECK_OUT, CHECK_IN),
        (date(2030, 5, 31), date(2030, 6, 2)),
    ],
)
def test_invalid_dates_rejected(service, customer, room, check_in, check_out):
    with pytest.raises(InvalidDateRangeError):
        service.create_booking(context(customer), room.id, check_in, check_out)


def test_overlapping_booking_rejected(service, customer, room, booking):
    with pytest.raises(RoomUnavailableError) as exc:
        service.create_booking(context(customer), room.id, date(2030, 6, 12), date(2030, 6, 15))
    assert exc.value.details["reason"] == "overlap"


def test_back_to_back_stays_allowed(service, customer, room, booking):
    follow_on = service.create_booking(context(customer), room.id, CHECK_OUT, date(2030, 6, 15))

    assert follow_on.check_in_date == booking.check_out_date


def test_cancelled_booking_frees_the_room(service, customer, room, booking):
    service.cancel_booking(context(customer), booking.id, "change of plans")

    again = service.create_booking(context(customer), room.id, CHECK_IN, CHECK_OUT)
    assert again.status == BookingStatus.PENDING


def test_room_under_maintenance_rejected(db, service, customer, room):
    room.status = RoomStatus.UNDER_MAINTENANCE
    db.commit()

    with pytest.raises(RoomUnavailableError) as exc:
        service.create_booking(context(customer), room.id, CHECK_IN, CHECK_OUT)
    assert exc.value.details["reason"] == "maintenance"


def test_staff_cannot_book_as_customer(service, staff, room):
    with pytest.raises(AuthorizationError):
        service.create_booking(context(staff), room.id, CHECK_IN, CHECK_OUT)


def test_room_type_booking_picks_free_room(db, service, customer, room_type, room):
    second = make_room(db, room_type, "102")
    first = service.create_booking_for_room_type(context(customer), room_type.id, CHECK_IN, CHECK_OUT)
    other = service.create_booking_for_room_type(context(customer), room_type.id, CHECK_IN, CHECK_OUT)

    assert {first.room_id, other.room_id} == {room.id, second.id}
    with pytest.raises(RoomUnavailableError):
        service.create_booking_for_room_type(context(customer), room_type.id, CHECK_IN, CHECK_OUT)


def test_payment_confirms_booking(service, customer, booking):
    paid = _pay(service, customer, booking)

    assert paid.status == BookingStatus.CONFIRMED
    assert paid.payment_status == PaymentStatus.COMPLETED
    assert paid.payment_amount == Decimal("300.00")
    assert paid.transaction_id.startswith("PP-20300601-")
    assert paid.payment_date == NOW


def test_payment_amount_must_match_total(service, customer, booking):
    with pytest.raises(ValidationError):
        service.confirm_payment(context(customer), booking.id, Decimal("299.99"), PaymentMethod.CREDIT_CARD)


def test_payment_only_once(service, customer, booking):
    _pay(service, customer, booking)
    with pytest.raises(InvalidTransitionError):
        _pay(service, customer, booking)


def test_transaction_id_format():
    transaction_id = generate_transaction_id(PaymentMethod.BANK_TRANSFER, datetime(2030, 1, 2, 3, 4))

    prefix, day, digits = transaction_id.split("-")
    assert prefix == "BT"
    assert day == "20300102"
    assert len(digits) == 8 and digits.isdigit()


def test_transition_table():
    assert can_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)
    assert can_transition(BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT)
    assert not can_transition(BookingStatus.CHECKED_OUT, BookingStatus.CHECKED_IN)
    assert not can_transition(BookingStatus.CANCELLED, BookingStatus.CONFIRMED)


def test_staff_cannot_skip_states(service, customer, staff, booking):
    with pytest.raises(InvalidTransitionError):
        service.update_status(context(staff), booking.id, BookingStatus.CHECKED_OUT)


def test_staff_cancellation_refunds_paid_booking(service, customer, staff, booking):
    _pay(service, customer, booking)

    cancelled = service.cancel_booking(context(staff), booking.id, "guest called")

    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.payment_status == PaymentStatus.REFUNDED
    assert cancelled.refund_amount == Decimal("240.00")


def test_customer_cannot_cancel_confirmed_booking(service, customer, booking):
    _pay(service, customer, booking)
    with pytest.raises(InvalidTransitionError):
        service.cancel_booking(context(customer), booking.id)


def test_sweep_advances_and_is_idempotent(db, service, customer, booking):
    _pay(service, customer, booking)

    first = service.advance_statuses(CHECK_IN)
    again = service.advance_statuses(CHECK_IN)

    assert first.checked_in == 1
    assert again.total == 0
    db.refresh(booking)
    assert booking.status == BookingStatus.CHECKED_IN

    result = service.advance_statuses(CHECK_OUT)
    db.refresh(booking)
    assert result.checked_out == 1
    assert booking.status == BookingStatus.CHECKED_OUT


def test_sweep_leaves_pending_bookings(db, service, booking):
    result = service.advance_statuses(CHECK_OUT)

    db.refresh(booking)
    assert result.total == 0
    assert booking.status == BookingStatus.PENDING


def test_qr_scan_checks_in_then_out_on_a_later_day(service, customer, staff, booking):
    _pay(service, customer, booking)
    on_arrival = context(staff, datetime(2030, 6, 10, 14, 0))

    checked_in = service.check_in_by_token(on_arrival, booking.qr_token)
    assert checked_in.status == BookingStatus.CHECKED_IN

    with pytest.raises(InvalidTransitionError):
        service.check_in_by_token(context(staff, datetime(2030, 6, 10, 20, 0)), booking.qr_token)

    checked_out = service.check_in_by_token(context(staff, datetime(2030, 6, 13, 10, 0)), booking.qr_token)
    assert checked_out.status == BookingStatus.CHECKED_OUT


def test_soft_delete_hides_and_recover_restores(db, service, customer, manager, booking):
    _pay(service, customer, booking)
    review = ReviewService(db).create_review(context(customer), booking.id, 5, "Lovely stay")

    service.soft_delete_booking(context(manager), booking.id)

    assert BookingRepository(db).find_by_id(booking.id) is None
    assert service.list_my_bookings(context(customer)) == []
    db.refresh(review)
    assert review.is_deleted
    assert review.deleted_at == booking.deleted_at

    recovered = service.recover_booking(context(manager), booking.id)

    db.refresh(review)
    assert recovered.is_deleted is False
    assert recovered.deleted_at is None
    assert recovered.status == BookingStatus.CONFIRMED
    assert recovered.payment_status == PaymentStatus.COMPLETED
    assert review.is_deleted is False


def test_soft_delete_is_idempotent(service, staff, booking):
    first = service.soft_delete_booking(context(staff), booking.id)
    stamp = first.deleted_at

    later = context(staff, NOW + timedelta(hours=1))
    second = service.soft_delete_booking(later, booking.id, include_deleted=True)

    assert second.deleted_at == stamp


def test_staff_cannot_recover(service, staff, booking):
    service.soft_delete_booking(context(staff), booking.id)
    with pytest.raises(AuthorizationError):
        service.recover_booking(context(staff), booking.id)


def test_recover_refused_when_room_taken(service, customer, admin, room, booking):
    service.soft_delete_booking(context(admin), booking.id)
    service.create_booking(context(customer), room.id, CHECK_IN, CHECK_OUT)

    with pytest.raises(RoomUnavailableError):
        service.recover_booking(context(admin), booking.id)


def test_review_requires_reviewable_status(db, customer, booking):
    with pytest.raises(ConflictError):
        ReviewService(db).create_review(context(customer), booking.id, 4, "Too early")


def test_one_review_per_booking(db, service, customer, booking):
    _pay(service, customer, booking)
    reviews = ReviewService(db)
    reviews.create_review(context(customer), booking.id, 4, "Good")

    with pytest.raises(DuplicateReviewError):
        reviews.create_review(context(customer), booking.id, 5, "Even better")


def test_other_customer_cannot_review(db, service, customer, booking):
    _pay(service, customer, booking)
    stranger = make_user(db, UserRole.CUSTOMER, email="stranger@budgethotel.com")

    with pytest.raises(AuthorizationError):
        ReviewService(db).create_review(context(stranger), booking.id, 1, "Not mine")


def test_manager_of_other_hotel_cannot_touch_booking(db, service, booking):
    elsewhere = make_hotel(db, name="Hill Lodge", city="Ipoh")
    make_room_type(db, elsewhere, name="Twin")
    outsider = make_user(db, UserRole.MANAGER, email="outsider@budgethotel.com", hotel=elsewhere)

    with pytest.raises(AuthorizationError):
        service.cancel_booking(context(outsider), booking.id)
    assert db.get(Booking, booking.id).status == BookingStatus.PENDING


@pytest.fixture
def file_sessions(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'bookings.db'}")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


def test_concurrent_bookings_for_one_room_serialise(file_sessions, monkeypatch):
    with file_sessions() as setup:
        room = make_room(setup, make_room_type(setup, make_hotel(setup)))
        guests = [make_user(setup, email=f"guest{i}@budgethotel.com") for i in range(2)]

    has_overlap = BookingRepository.has_overlap

    def slow_has_overlap(self, *args, **kwargs):
        found = has_overlap(self, *args, **kwargs)
        time.sleep(0.2)
        return found

    monkeypatch.setattr(BookingRepository, "has_overlap", slow_has_overlap)
    start = threading.Barrier(2)
    outcomes = []

    def book(guest):
        session = file_sessions()
        try:
            start.wait()
            BookingService(session).create_booking(context(guest), room.id, CHECK_IN, CHECK_OUT)
            outcomes.append("booked")
        except RoomUnavailableError:
            outcomes.append("unavailable")
        finally:
            session.close()

    threads = [threading.Thread(target=book, args=(guest,)) for guest in guests]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes) == ["booked", "unavailable"]
    with file_sessions() as check:
        stmt = select(func.count(Booking.id)).where(Booking.room_id == room.id)
        assert check.execute(stmt).scalar_one() == 1
