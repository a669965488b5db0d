"""
Encryption and decryption utilities for personal data stored at rest
"""

import base64
from functools import lru_cache
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from budget_hotel.config.settings import settings


class EncryptionHelper:
    """Symmetric string encryption backed by Fernet"""

    def __init__(self, encryption_key: bytes):
        self.fernet = Fernet(encryption_key)

    @staticmethod
    def generate_key_from_password(password: str, salt: bytes) -> bytes:
        """Derive a Fernet key from a configured secret"""
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=100000,
        )
        return base64.urlsafe_b64encode(kdf.derive(password.encode()))

    def encrypt_string(self, plaintext: str) -> str:
        return self.fernet.encrypt(plaintext.encode()).decode()

    def decrypt_string(self, encrypted_text: str) -> str:
        return self.fernet.decrypt(encrypted_text.encode()).decode()


@lru_cache()
def get_encryption_helper() -> EncryptionHelper:
    key = EncryptionHelper.generate_key_from_password(
        settings.ENCRYPTION_KEY, settings.ENCRYPTION_SALT.encode()
    )
    return EncryptionHelper(key)


def encrypt_optional(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return get_encryption_helper().encrypt_string(value)


def decrypt_optional(value: Optional[str]) -> Optional[str]:
    """Decrypt a stored value; undecryptable legacy values are returned as-is"""
    if not value:
        return None
    try:
        return get_encryption_helper().decrypt_string(value)
    except InvalidToken:
        return value
