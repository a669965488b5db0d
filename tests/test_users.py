from datetime import date

import pytest

from conftest import context, make_user
from budget_hotel.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DependentRecordsError,
    DuplicateEntryError,
    ValidationError,
)
from budget_hotel.models.base import UserRole
from budget_hotel.repositories.user_repository import UserRepository
from budget_hotel.services.booking_service import BookingService
from budget_hotel.services.user_service import UserService


@pytest.fixture
def users(db):
    return UserService(db)


def test_profile_update_limits_fields(users, customer):
    updated = users.update_profile(context(customer), {"full_name": "Jane Q. Guest", "phone_number": "0123456789"})

    assert updated.full_name == "Jane Q. Guest"
    assert updated.phone_number == "0123456789"
    assert updated.phone_number_encrypted != "0123456789"

    with pytest.raises(ValidationError):
        users.update_profile(context(customer), {"role": UserRole.ADMIN})


def test_change_password_checks_current(users, customer):
    with pytest.raises(AuthenticationError):
        users.change_password(context(customer), "not-it-123", "fresh12345")


def test_admin_creates_verified_staff(users, admin, hotel):
    created = users.create_user(
        context(admin).scope,
        {"email": "New.Staff@BudgetHotel.com", "full_name": "New Staff", "role": UserRole.STAFF, "hotel_id": hotel.id},
        "staffpass1",
    )

    assert created.email == "new.staff@budgethotel.com"
    assert created.is_email_verified
    assert created.hotel_id == hotel.id


def test_customer_accounts_never_carry_a_hotel(users, admin, hotel):
    created = users.create_user(
        context(admin).scope,
        {"email": "walkin@budgethotel.com", "full_name": "Walk In", "role": UserRole.CUSTOMER, "hotel_id": hotel.id},
        "walkin1234",
    )

    assert created.hotel_id is None


def test_only_admin_creates_users(users, manager):
    with pytest.raises(AuthorizationError):
        users.create_user(
            context(manager).scope,
            {"email": "x@budgethotel.com", "full_name": "X", "role": UserRole.STAFF},
            "password12",
        )


def test_duplicate_email_rejected(users, admin, customer):
    with pytest.raises(DuplicateEntryError):
        users.create_user(
            context(admin).scope,
            {"email": customer.email.upper(), "full_name": "Copy", "role": UserRole.CUSTOMER},
            "password12",
        )


def test_manager_sees_only_customers_who_booked_there(db, users, manager, customer, room):
    stranger = make_user(db, UserRole.CUSTOMER, email="stranger@budgethotel.com")
    BookingService(db).create_booking(context(customer), room.id, date(2030, 6, 10), date(2030, 6, 12))

    listed = users.list_users(context(manager).scope)

    assert [u.id for u in listed.items] == [customer.id]
    assert users.get_user(context(manager).scope, customer.id).id == customer.id
    with pytest.raises(AuthorizationError):
        users.get_user(context(manager).scope, stranger.id)


def test_manager_edits_limited_customer_fields(db, users, manager, customer, room):
    BookingService(db).create_booking(context(customer), room.id, date(2030, 6, 10), date(2030, 6, 12))
    scope = context(manager).scope

    assert users.update_user(scope, customer.id, {"full_name": "Renamed"}).full_name == "Renamed"
    with pytest.raises(AuthorizationError):
        users.update_user(scope, customer.id, {"role": UserRole.ADMIN})


def test_user_with_bookings_cannot_be_deleted(db, users, admin, customer, room):
    BookingService(db).create_booking(context(customer), room.id, date(2030, 6, 10), date(2030, 6, 12))

    with pytest.raises(DependentRecordsError):
        users.delete_user(context(admin).scope, customer.id)


def test_delete_is_soft_and_keeps_email_reserved(db, users, admin, customer):
    users.delete_user(context(admin).scope, customer.id)

    repo = UserRepository(db)
    assert repo.find_by_email(customer.email) is None
    assert repo.find_by_email(customer.email, include_deleted=True).is_deleted
    with pytest.raises(DuplicateEntryError):
        users.create_user(
            context(admin).scope,
            {"email": customer.email, "full_name": "Again", "role": UserRole.CUSTOMER},
            "password12",
        )


def test_admin_cannot_delete_self(users, admin):
    with pytest.raises(ConflictError):
        users.delete_user(context(admin).scope, admin.id)
