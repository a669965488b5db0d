"""
Base schema classes and shared response wrappers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from budget_hotel.core.pagination import Page

T = TypeVar("T")

__all__ = [
    "BaseSchema",
    "BaseResponseSchema",
    "SoftDeleteMixin",
    "PageResponse",
    "MessageResponse",
    "page_response",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    Every request and response schema inherits from this so ORM objects
    can be returned directly from endpoints.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
        str_strip_whitespace=True,
    )


class BaseResponseSchema(BaseSchema):
    """Base schema for database entities with ID and timestamps."""

    id: str = Field(..., description="Unique identifier")
    created_at: datetime
    updated_at: datetime


class SoftDeleteMixin(BaseModel):
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None


class PageResponse(BaseSchema, Generic[T]):
    """One page of a list endpoint."""

    items: List[T]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)


class MessageResponse(BaseSchema):
    message: str
    data: Optional[Any] = None


def page_response(page: Page) -> dict:
    return {
        "items": page.items,
        "total": page.total,
        "page": page.page,
        "page_size": page.page_size,
        "total_pages": page.total_pages,
    }
