from datetime import date

import pytest

from conftest import context, make_hotel, make_room, make_room_type, make_user
from budget_hotel.core.exceptions import AuthorizationError, ValidationError
from budget_hotel.models.base import UserRole
from budget_hotel.services.access import AccessScope, accessible_hotel_ids
from budget_hotel.services.booking_service import BookingService
from budget_hotel.services.hotel_service import HotelService


@pytest.fixture
def two_hotels(db, hotel, room):
    other = make_hotel(db, name="Hill Lodge", city="Ipoh")
    other_room = make_room(db, make_room_type(db, other, name="Twin"), "301")
    return hotel, room, other, other_room


def test_admin_scope_is_unrestricted(admin):
    scope = AccessScope.for_user(admin)

    assert accessible_hotel_ids(admin) is None
    assert scope.is_unrestricted
    assert scope.allows("any-hotel")


def test_manager_scope_is_own_hotel(manager, hotel):
    scope = AccessScope.for_user(manager)

    assert scope.hotel_ids == frozenset({hotel.id})
    assert scope.allows(hotel.id)
    assert not scope.allows("another-hotel")
    assert not scope.allows(None)


def test_unassigned_staff_has_empty_scope(db):
    drifter = make_user(db, UserRole.STAFF, email="drifter@budgethotel.com")
    scope = AccessScope.for_user(drifter)

    assert scope.is_empty
    with pytest.raises(AuthorizationError):
        scope.require_any()


def test_customer_scope_is_not_staff(customer):
    with pytest.raises(AuthorizationError):
        AccessScope.for_user(customer).require_staff()


def test_manager_lists_only_own_hotel_bookings(db, two_hotels, customer, manager, admin):
    hotel, room, other, other_room = two_hotels
    service = BookingService(db)
    mine = service.create_booking(context(customer), room.id, date(2030, 6, 10), date(2030, 6, 12))
    theirs = service.create_booking(context(customer), other_room.id, date(2030, 6, 10), date(2030, 6, 12))

    managed = service.list_bookings(context(manager).scope, date(2030, 6, 1))
    everything = service.list_bookings(context(admin).scope, date(2030, 6, 1))

    assert [b.id for b in managed.items] == [mine.id]
    assert {b.id for b in everything.items} == {mine.id, theirs.id}

    with pytest.raises(AuthorizationError):
        service.get_booking(context(manager), theirs.id)


def test_manager_sees_only_own_hotel(db, two_hotels, manager):
    hotel, _, other, _ = two_hotels
    service = HotelService(db)

    listed = service.list_hotels(AccessScope.for_user(manager))

    assert [h.id for h in listed.items] == [hotel.id]
    with pytest.raises(AuthorizationError):
        service.get_hotel(AccessScope.for_user(manager), other.id)


def test_assign_staff_replaces_previous_assignees(db, admin, hotel, manager, staff):
    new_manager = make_user(db, UserRole.MANAGER, email="new.manager@budgethotel.com")

    HotelService(db).assign_staff(context(admin).scope, hotel.id, manager_id=new_manager.id)

    for user in (manager, staff, new_manager):
        db.refresh(user)
    assert manager.hotel_id is None
    assert staff.hotel_id is None
    assert new_manager.hotel_id == hotel.id
    assert AccessScope.for_user(manager).is_empty


def test_assign_staff_rejects_wrong_role(db, admin, hotel, customer):
    with pytest.raises(ValidationError):
        HotelService(db).assign_staff(context(admin).scope, hotel.id, manager_id=customer.id)
