"""
Core pagination and search helpers.

This module provides:
- `normalize_pagination` to validate page/page_size inputs.
- `sanitize_search_term` to vet free-text search before it reaches a query.
- `Page` as the container returned by list operations.
"""

from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from budget_hotel.core.constants import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MAX_SEARCH_LENGTH,
    SEARCH_TERM_PATTERN,
)
from budget_hotel.core.exceptions import ValidationError

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def normalize_pagination(page: Optional[int], page_size: Optional[int]) -> Page:
    """
    Validate raw page & page_size inputs.

    Rules:
        - None -> defaults
        - page < 1 -> ValidationError
        - page_size outside 1..MAX_PAGE_SIZE -> ValidationError
    """
    if page is None:
        page = DEFAULT_PAGE
    if page_size is None:
        page_size = DEFAULT_PAGE_SIZE

    if page < 1:
        raise ValidationError("Page number must be greater than 0",
                              {"page": ["must be >= 1"]})
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}",
                              {"page_size": [f"must be between 1 and {MAX_PAGE_SIZE}"]})

    return Page(page=page, page_size=page_size)


def sanitize_search_term(search: Optional[str]) -> Optional[str]:
    """Return the trimmed search term, None when blank, or raise on bad input"""
    if search is None:
        return None
    search = search.strip()
    if not search:
        return None
    if len(search) > MAX_SEARCH_LENGTH:
        raise ValidationError("Search term is too long",
                              {"search": [f"must be at most {MAX_SEARCH_LENGTH} characters"]})
    if not SEARCH_TERM_PATTERN.match(search):
        raise ValidationError("Search term contains invalid characters",
                              {"search": ["only letters, digits, spaces, @ . and - are allowed"]})
    return search
