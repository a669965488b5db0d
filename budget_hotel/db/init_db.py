"""Database initialization utilities."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from budget_hotel.config.settings import settings
from budget_hotel.core.logging import get_logger
from budget_hotel.core.security import hash_password
from budget_hotel.db.session import INCLUDE_DELETED, SessionLocal, engine as default_engine
from budget_hotel.models import Base, User
from budget_hotel.models.base import UserRole

logger = get_logger(__name__)


def init_db(engine: Optional[Engine] = None) -> None:
    """
    Create all tables that do not exist yet.

    Note: This is suitable for development/testing only.
    """
    Base.metadata.create_all(bind=engine or default_engine)
    logger.info("Database tables created")


def drop_db(engine: Optional[Engine] = None) -> None:
    """
    Drop all database tables.

    WARNING: This will delete all data!
    """
    Base.metadata.drop_all(bind=engine or default_engine)
    logger.warning("All database tables dropped")


def reset_db(engine: Optional[Engine] = None) -> None:
    logger.warning("Resetting database...")
    drop_db(engine)
    init_db(engine)
    logger.info("Database reset complete")


def seed_admin(db: Session) -> User:
    """Ensure the main administrator account exists"""
    admin = db.execute(
        select(User)
        .where(User.email == settings.ADMIN_EMAIL.lower())
        .execution_options(**{INCLUDE_DELETED: True})
    ).scalar_one_or_none()
    if admin is not None:
        return admin

    admin = User(
        email=settings.ADMIN_EMAIL,
        full_name=settings.ADMIN_FULL_NAME,
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        is_email_verified=True,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    logger.info(f"Seeded administrator account {admin.email}")
    return admin


def bootstrap() -> None:
    """Create tables and the administrator account"""
    init_db()
    with SessionLocal() as db:
        seed_admin(db)
