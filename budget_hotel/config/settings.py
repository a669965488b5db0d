"""
Environment configuration for the hotel reservation backend.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

import json
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Set, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


def _default_secret() -> str:
    """Generate a default secret key if not provided"""
    import secrets
    import string
    alphabet = string.ascii_letters + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(48))


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # Application configuration
    APP_NAME: str = Field(default="Budget Hotel Reservations", alias="PROJECT_NAME")
    API_VERSION: str = "v1"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = Field(default=["*"], alias="BACKEND_CORS_ORIGINS")

    # Database configuration
    DATABASE_URL: str = "sqlite:///./budget_hotel.db"
    DB_POOL_SIZE: int = 10
    DB_POOL_OVERFLOW: int = 10
    DB_ECHO: bool = False
    SLOW_QUERY_SECONDS: float = 0.5
    SQLITE_BUSY_TIMEOUT: float = 30.0

    # Security configuration
    JWT_SECRET_KEY: str = Field(default_factory=_default_secret)
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    PASSWORD_BCRYPT_ROUNDS: int = 12
    ENCRYPTION_KEY: str = Field(default_factory=_default_secret)
    ENCRYPTION_SALT: str = "budget-hotel-phone"

    # One-time passwords
    OTP_LENGTH: int = 6
    OTP_EXPIRE_MINUTES: int = 10

    # Login lockout
    MAX_LOGIN_ATTEMPTS: int = 3
    LOCKOUT_MINUTES: int = 15

    # Seeded administrator
    ADMIN_EMAIL: str = "admin@hotel.com"
    ADMIN_PASSWORD: str = "Admin12345"
    ADMIN_FULL_NAME: str = "System Administrator"

    # Email configuration
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = Field(default=None, alias="SMTP_USERNAME")
    SMTP_PASSWORD: Optional[str] = None
    SMTP_TLS: bool = True
    SMTP_TIMEOUT: int = 15
    EMAIL_FROM_NAME: str = "Budget Hotel"
    EMAIL_FROM_ADDRESS: Optional[str] = Field(default=None, alias="FROM_EMAIL")

    # File storage
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = Field(default=5 * 1024 * 1024, alias="MAX_FILE_SIZE")
    ALLOWED_EXTENSIONS: Set[str] = Field(
        default={"jpg", "jpeg", "png", "gif", "webp"},
        alias="ALLOWED_FILE_EXTENSIONS",
    )

    # Business rules
    CURRENCY: str = "RM"
    CANCELLATION_REFUND_RATE: Decimal = Decimal("0.80")
    AUTO_NO_SHOW_GRACE_DAYS: Optional[int] = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"
    LOG_DIR: Optional[str] = None

    # Validators
    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse CORS_ORIGINS from string to list"""
        if isinstance(v, str):
            # Handle JSON string format from .env
            if v.startswith('[') and v.endswith(']'):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator('ALLOWED_EXTENSIONS', mode='before')
    @classmethod
    def parse_allowed_extensions(cls, v: Union[str, Set[str], List[str]]) -> Set[str]:
        """Parse ALLOWED_EXTENSIONS from string to set"""
        if isinstance(v, str):
            if v.startswith('[') and v.endswith(']'):
                try:
                    return {ext.lstrip('.').lower() for ext in json.loads(v)}
                except json.JSONDecodeError:
                    pass
            return {ext.strip().lstrip('.').lower() for ext in v.split(",") if ext.strip()}
        return {ext.lstrip('.').lower() for ext in v}

    @field_validator('AUTO_NO_SHOW_GRACE_DAYS', mode='before')
    @classmethod
    def parse_grace_days(cls, v):
        """An empty value disables the automatic no-show sweep"""
        if v in ("", "none", "None"):
            return None
        return v

    @field_validator('CANCELLATION_REFUND_RATE')
    @classmethod
    def validate_refund_rate(cls, v: Decimal) -> Decimal:
        if v < 0 or v > 1:
            raise ValueError("CANCELLATION_REFUND_RATE must be between 0 and 1")
        return v

    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def email_enabled(self) -> bool:
        return bool(self.SMTP_HOST and self.EMAIL_FROM_ADDRESS)


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance"""
    return Settings()


settings = get_settings()
