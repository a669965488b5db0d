"""
Authentication service: registration, email verification, login and
password reset.

One-time codes are emailed; when no mail server is configured the code is
handed back to the caller as ``fallback_code`` so development setups keep
working.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from budget_hotel.config.settings import settings
from budget_hotel.core.exceptions import (
    AuthenticationError,
    DuplicateEntryError,
    ErrorCode,
    ValidationError,
)
from budget_hotel.core.logging import audit_logger
from budget_hotel.core.security import (
    create_access_token,
    generate_otp,
    hash_otp,
    hash_password,
    validate_password_strength,
    verify_otp,
    verify_password,
)
from budget_hotel.models import SecurityToken, User
from budget_hotel.models.base import TokenPurpose, UserRole
from budget_hotel.repositories.user_repository import (
    LoginAttemptRepository,
    SecurityTokenRepository,
    UserRepository,
)
from budget_hotel.services.base_service import BaseService
from budget_hotel.services.notification.email_service import (
    send_otp_email,
    send_password_reset_email,
)
from budget_hotel.utils.datetime_utils import utcnow


@dataclass
class CodeDelivery:
    """Outcome of issuing a one-time code"""
    email: str
    email_sent: bool
    fallback_code: Optional[str] = None


@dataclass
class LoginResult:
    access_token: str
    user: User
    token_type: str = "bearer"
    expires_in: int = 0


def check_password(password: str) -> None:
    problems = validate_password_strength(password or "")
    if problems:
        raise ValidationError("Password does not meet requirements", {"password": problems})


class AuthService(BaseService):

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.users = UserRepository(db_session)
        self.tokens = SecurityTokenRepository(db_session)
        self.attempts = LoginAttemptRepository(db_session)

    # -------------------------------------------------------------------------
    # One-time codes
    # -------------------------------------------------------------------------

    def _issue_code(self, user: User, purpose: TokenPurpose, now: datetime) -> str:
        """Invalidate outstanding codes for the same purpose and store a new one"""
        self.tokens.invalidate_all(user.email, purpose, now)
        code = generate_otp()
        self.tokens.create(
            SecurityToken(
                user_id=user.id,
                email=user.email,
                purpose=purpose,
                code_hash=hash_otp(code),
                expires_at=now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
            )
        )
        return code

    def _consume_code(self, email: str, code: str, purpose: TokenPurpose, now: datetime) -> None:
        token = self.tokens.latest_usable(email, purpose, now)
        if token is None or not verify_otp((code or "").strip(), token.code_hash):
            raise ValidationError("Invalid or expired code", {"code": ["invalid or expired"]})
        token.consumed_at = now

    def _deliver(self, user: User, code: str, sender) -> CodeDelivery:
        sent = sender(user.email, user.full_name, code)
        if not sent:
            self._logger.warning(
                "Code email not delivered, returning fallback code",
                extra={"user_id": user.id},
            )
        return CodeDelivery(email=user.email, email_sent=sent, fallback_code=None if sent else code)

    # -------------------------------------------------------------------------
    # Registration and verification
    # -------------------------------------------------------------------------

    def register(
        self,
        full_name: str,
        email: str,
        password: str,
        phone_number: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CodeDelivery:
        """
        Create an unverified Customer account and email a verification code.

        Email addresses stay reserved by soft-deleted accounts.
        """
        now = now or utcnow()
        email = (email or "").strip().lower()
        if not full_name or not full_name.strip():
            raise ValidationError("Full name is required", {"full_name": ["is required"]})
        check_password(password)

        with self.transaction():
            if self.users.find_by_email(email, include_deleted=True) is not None:
                raise DuplicateEntryError("Email is already registered", "email", email)
            user = User(
                email=email,
                full_name=full_name.strip(),
                password_hash=hash_password(password),
                role=UserRole.CUSTOMER,
                is_email_verified=False,
            )
            user.phone_number = phone_number
            self.users.create(user)
            code = self._issue_code(user, TokenPurpose.EMAIL_VERIFICATION, now)

        self._log_operation("user registered", user.id)
        return self._deliver(user, code, send_otp_email)

    def verify_email(self, email: str, code: str, now: Optional[datetime] = None) -> User:
        now = now or utcnow()
        with self.transaction():
            user = self.users.find_by_email(email)
            if user is None:
                raise ValidationError("Invalid or expired code", {"code": ["invalid or expired"]})
            if not user.is_email_verified:
                self._consume_code(user.email, code, TokenPurpose.EMAIL_VERIFICATION, now)
                user.is_email_verified = True
        self._log_operation("email verified", user.id)
        return user

    def resend_verification(self, email: str, now: Optional[datetime] = None) -> CodeDelivery:
        now = now or utcnow()
        with self.transaction():
            user = self.users.find_by_email(email)
            if user is None:
                raise ValidationError("No account found for this email", {"email": ["not registered"]})
            if user.is_email_verified:
                raise ValidationError("Email is already verified", {"email": ["already verified"]})
            code = self._issue_code(user, TokenPurpose.EMAIL_VERIFICATION, now)
        return self._deliver(user, code, send_otp_email)

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    def is_locked_out(self, email: str, now: datetime) -> bool:
        since = now - timedelta(minutes=settings.LOCKOUT_MINUTES)
        return self.attempts.recent_failures(email, since) >= settings.MAX_LOGIN_ATTEMPTS

    def login(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LoginResult:
        """
        Exchange credentials for an access token.

        Every attempt is recorded. Too many recent failures lock the email
        out for ``LOCKOUT_MINUTES`` regardless of the password given.
        """
        now = now or utcnow()
        email = (email or "").strip().lower()

        if self.is_locked_out(email, now):
            audit_logger.warning("Login refused, account locked", extra={"email": email, "ip": ip_address})
            raise AuthenticationError(
                f"Too many failed attempts. Try again in {settings.LOCKOUT_MINUTES} minutes.",
                ErrorCode.ACCOUNT_LOCKED,
            )

        user = self.users.find_by_email(email)
        valid = user is not None and verify_password(password, user.password_hash)
        with self.transaction():
            self.attempts.record(email, valid, now, ip_address)
            if valid:
                user.last_login_at = now

        if not valid:
            audit_logger.warning("Login failed", extra={"email": email, "ip": ip_address})
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated", ErrorCode.ACCOUNT_INACTIVE)
        if not user.is_email_verified:
            raise AuthenticationError("Please verify your email first", ErrorCode.EMAIL_NOT_VERIFIED)

        audit_logger.info("Login succeeded", extra={"user_id": user.id, "ip": ip_address})
        return LoginResult(
            access_token=create_access_token(user.id, user.role.value),
            user=user,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    # -------------------------------------------------------------------------
    # Password reset
    # -------------------------------------------------------------------------

    def request_password_reset(self, email: str, now: Optional[datetime] = None) -> CodeDelivery:
        """Issue a reset code; unknown emails get the same answer without a code"""
        now = now or utcnow()
        email = (email or "").strip().lower()
        with self.transaction():
            user = self.users.find_by_email(email)
            if user is None:
                self._logger.info("Password reset requested for unknown email")
                return CodeDelivery(email=email, email_sent=False)
            code = self._issue_code(user, TokenPurpose.PASSWORD_RESET, now)
        return self._deliver(user, code, send_password_reset_email)

    def reset_password(self, email: str, code: str, new_password: str, now: Optional[datetime] = None) -> None:
        now = now or utcnow()
        check_password(new_password)
        with self.transaction():
            user = self.users.find_by_email(email)
            if user is None:
                raise ValidationError("Invalid or expired code", {"code": ["invalid or expired"]})
            self._consume_code(user.email, code, TokenPurpose.PASSWORD_RESET, now)
            user.password_hash = hash_password(new_password)
        audit_logger.info("Password reset", extra={"user_id": user.id})
