"""
Security primitives: bcrypt password hashing, JWT access tokens,
password strength rules and one-time codes.
"""

import hashlib
import hmac
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import bcrypt
import jwt

from budget_hotel.config.settings import settings
from budget_hotel.core.exceptions import AuthenticationError, ErrorCode
from budget_hotel.core.logging import get_logger

logger = get_logger(__name__)


class PasswordHasher:
    """
    Handle password hashing and verification using bcrypt.

    Uses bcrypt with configurable rounds for computational cost.
    """

    MIN_ROUNDS = 4
    MAX_ROUNDS = 31

    def __init__(self, rounds: int = 12):
        if not (self.MIN_ROUNDS <= rounds <= self.MAX_ROUNDS):
            raise ValueError(
                f"Rounds must be between {self.MIN_ROUNDS} and {self.MAX_ROUNDS}, got {rounds}"
            )
        self.rounds = rounds

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("Password cannot be empty")
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    def verify(self, password: str, hashed_password: str) -> bool:
        if not password or not hashed_password:
            return False
        try:
            return bcrypt.checkpw(password.encode('utf-8'), hashed_password.encode('utf-8'))
        except ValueError as e:
            logger.warning(f"Error verifying password: {e}")
            return False


def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(settings.PASSWORD_BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return get_password_hasher().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return get_password_hasher().verify(plain_password, hashed_password)


def validate_password_strength(password: str) -> List[str]:
    """
    Check a candidate password against the account rules.

    Returns:
        List of human readable problems, empty when the password is acceptable
    """
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters")
    # bcrypt only looks at the first 72 bytes
    if len(password.encode('utf-8')) > 72:
        errors.append("Password must be at most 72 bytes")
    if not re.search(r'[A-Za-z]', password):
        errors.append("Password must contain at least one letter")
    if not re.search(r'\d', password):
        errors.append("Password must contain at least one number")
    return errors


# ----------------------------------------------------------------------
# JWT
# ----------------------------------------------------------------------

def create_access_token(
    user_id: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        user_id: Subject of the token
        role: Role name embedded for clients; the server re-reads it from the database
        expires_delta: Custom expiration time
        additional_claims: Extra claims to include
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": expire,
        "type": "access",
    }
    if additional_claims:
        payload.update(additional_claims)
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and validate an access token, raising AuthenticationError"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired", ErrorCode.TOKEN_EXPIRED)
    except jwt.InvalidTokenError:
        raise AuthenticationError("Could not validate credentials", ErrorCode.TOKEN_INVALID)

    if payload.get("type") != "access" or not payload.get("sub"):
        raise AuthenticationError("Could not validate credentials", ErrorCode.TOKEN_INVALID)
    return payload


# ----------------------------------------------------------------------
# One-time codes
# ----------------------------------------------------------------------

def generate_otp(length: Optional[int] = None) -> str:
    length = length or settings.OTP_LENGTH
    return ''.join(secrets.choice('0123456789') for _ in range(length))


def hash_otp(code: str) -> str:
    """Keyed digest of a one-time code; codes are never stored in clear"""
    return hmac.new(
        settings.JWT_SECRET_KEY.encode('utf-8'),
        code.encode('utf-8'),
        hashlib.sha256,
    ).hexdigest()


def verify_otp(code: str, code_hash: str) -> bool:
    return hmac.compare_digest(hash_otp(code), code_hash)


def generate_qr_token() -> str:
    return secrets.token_urlsafe(24)
