from datetime import timedelta

import pytest

from conftest import NOW, PASSWORD, make_user
from budget_hotel.core.exceptions import (
    AuthenticationError,
    DuplicateEntryError,
    ErrorCode,
    ValidationError,
)
from budget_hotel.core.security import decode_access_token, hash_otp, verify_otp
from budget_hotel.models.base import UserRole
from budget_hotel.services.auth_service import AuthService


@pytest.fixture
def auth(db):
    return AuthService(db)


def test_register_returns_fallback_code_without_smtp(auth):
    delivery = auth.register("Jane Guest", "Jane@BudgetHotel.com", "secret123", now=NOW)

    assert delivery.email == "jane@budgethotel.com"
    assert delivery.email_sent is False
    assert delivery.fallback_code and delivery.fallback_code.isdigit()


def test_weak_password_rejected(auth):
    with pytest.raises(ValidationError) as exc:
        auth.register("Jane Guest", "jane@budgethotel.com", "lettersonly", now=NOW)
    assert "password" in exc.value.details


def test_duplicate_email_rejected(auth):
    auth.register("Jane Guest", "jane@budgethotel.com", "secret123", now=NOW)
    with pytest.raises(DuplicateEntryError):
        auth.register("Other Jane", "JANE@budgethotel.com", "secret123", now=NOW)


def test_unverified_account_cannot_log_in(auth):
    auth.register("Jane Guest", "jane@budgethotel.com", "secret123", now=NOW)

    with pytest.raises(AuthenticationError) as exc:
        auth.login("jane@budgethotel.com", "secret123", now=NOW)
    assert exc.value.error_code == ErrorCode.EMAIL_NOT_VERIFIED


def test_verify_then_login(auth):
    delivery = auth.register("Jane Guest", "jane@budgethotel.com", "secret123", now=NOW)

    wrong = str((int(delivery.fallback_code) + 1) % 10 ** 6).zfill(6)
    with pytest.raises(ValidationError):
        auth.verify_email("jane@budgethotel.com", wrong, now=NOW)

    user = auth.verify_email("jane@budgethotel.com", delivery.fallback_code, now=NOW)
    assert user.is_email_verified

    result = auth.login("jane@budgethotel.com", "secret123", ip_address="10.0.0.1", now=NOW)
    assert result.token_type == "bearer"
    assert decode_access_token(result.access_token)["sub"] == user.id


def test_verification_code_expires(auth):
    delivery = auth.register("Jane Guest", "jane@budgethotel.com", "secret123", now=NOW)

    with pytest.raises(ValidationError):
        auth.verify_email("jane@budgethotel.com", delivery.fallback_code, now=NOW + timedelta(hours=1))


def test_resend_invalidates_previous_code(auth):
    first = auth.register("Jane Guest", "jane@budgethotel.com", "secret123", now=NOW)
    second = auth.resend_verification("jane@budgethotel.com", now=NOW)

    if first.fallback_code != second.fallback_code:
        with pytest.raises(ValidationError):
            auth.verify_email("jane@budgethotel.com", first.fallback_code, now=NOW)
    assert auth.verify_email("jane@budgethotel.com", second.fallback_code, now=NOW).is_email_verified


def test_lockout_after_three_failures(db, auth, customer):
    for _ in range(3):
        with pytest.raises(AuthenticationError) as exc:
            auth.login(customer.email, "wrong-password1", now=NOW)
        assert exc.value.error_code != ErrorCode.ACCOUNT_LOCKED

    with pytest.raises(AuthenticationError) as exc:
        auth.login(customer.email, PASSWORD, now=NOW + timedelta(minutes=1))
    assert exc.value.error_code == ErrorCode.ACCOUNT_LOCKED

    result = auth.login(customer.email, PASSWORD, now=NOW + timedelta(minutes=16))
    assert result.user.id == customer.id


def test_inactive_account_refused(db, auth, customer):
    customer.is_active = False
    db.commit()

    with pytest.raises(AuthenticationError) as exc:
        auth.login(customer.email, PASSWORD, now=NOW)
    assert exc.value.error_code == ErrorCode.ACCOUNT_INACTIVE


def test_password_reset_flow(auth, customer):
    delivery = auth.request_password_reset(customer.email, now=NOW)

    auth.reset_password(customer.email, delivery.fallback_code, "newpass456", now=NOW)

    assert auth.login(customer.email, "newpass456", now=NOW).user.id == customer.id
    with pytest.raises(ValidationError):
        auth.reset_password(customer.email, delivery.fallback_code, "another789", now=NOW)


def test_reset_for_unknown_email_reveals_nothing(auth):
    delivery = auth.request_password_reset("nobody@budgethotel.com", now=NOW)

    assert delivery.email_sent is False
    assert delivery.fallback_code is None


def test_otp_is_stored_hashed():
    digest = hash_otp("123456")

    assert digest != "123456"
    assert verify_otp("123456", digest)
    assert not verify_otp("654321", digest)


def test_staff_roles_need_no_verification_step(db, auth, hotel):
    desk = make_user(db, UserRole.STAFF, email="frontdesk@budgethotel.com", hotel=hotel)

    assert auth.login("FrontDesk@BudgetHotel.com", PASSWORD, now=NOW).user.id == desk.id
