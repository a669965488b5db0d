"""
Base model configuration for SQLAlchemy ORM.

Provides abstract base classes shared by every table: the declarative
base, the UUID primary key, timestamp tracking and the soft-delete
convention.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, String, event
from sqlalchemy.orm import Mapped, declarative_base, declared_attr, mapped_column

from budget_hotel.utils.datetime_utils import utcnow

# Create declarative base
Base = declarative_base()


class BaseModel(Base):
    """
    Abstract base model with common fields and methods.
    """

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
        nullable=False,
        comment="Primary key (UUID)"
    )

    @declared_attr
    def __tablename__(cls) -> str:
        """Generate table name from class name."""
        name = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', cls.__name__)
        return re.sub('([a-z0-9])([A-Z])', r'\1_\2', name).lower() + 's'

    def to_dict(self, exclude: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Convert model instance to dictionary.

        Args:
            exclude: List of field names to exclude

        Returns:
            Dictionary representation of the model
        """
        exclude = exclude or []
        result = {}

        for column in self.__table__.columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.name)
            if isinstance(value, (datetime, date)):
                result[column.name] = value.isoformat()
            elif isinstance(value, Decimal):
                result[column.name] = str(value)
            elif hasattr(value, 'value'):
                result[column.name] = value.value
            else:
                result[column.name] = value

        return result

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', None)})>"


class TimestampModel(BaseModel):
    """
    Base model with automatic timestamp tracking.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        comment="Record creation timestamp"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        comment="Record last update timestamp"
    )


class SoftDeleteModel(TimestampModel):
    """
    Base model with soft delete capability.

    Rows flagged ``is_deleted`` are hidden from ordinary ORM selects by the
    session-level filter in ``budget_hotel.db.session``; pass the
    ``include_deleted`` execution option to see them.
    """

    __abstract__ = True

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Soft delete flag"
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        comment="Deletion timestamp"
    )

    def soft_delete(self, at: Optional[datetime] = None) -> "SoftDeleteModel":
        """Flag the row as deleted; the caller owns the transaction."""
        self.is_deleted = True
        self.deleted_at = at or utcnow()
        return self

    def restore(self) -> "SoftDeleteModel":
        self.is_deleted = False
        self.deleted_at = None
        return self


@event.listens_for(SoftDeleteModel, 'before_update', propagate=True)
def receive_before_soft_delete(mapper, connection, target):
    """Set deleted_at timestamp on soft delete."""
    if target.is_deleted and not target.deleted_at:
        target.deleted_at = utcnow()
