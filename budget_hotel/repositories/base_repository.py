"""
Base repository with standardized CRUD operations and error handling.

Repositories never commit: they add, flush and query inside the
transaction owned by the calling service.
"""

from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from budget_hotel.core.exceptions import DuplicateEntryError, EntityNotFoundError, RepositoryError
from budget_hotel.core.logging import get_logger
from budget_hotel.core.pagination import Page
from budget_hotel.db.session import INCLUDE_DELETED
from budget_hotel.models.base import BaseModel, SoftDeleteModel
from budget_hotel.utils.datetime_utils import utcnow

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with standardized operations for one model.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db
        self._is_soft_delete = issubclass(model, SoftDeleteModel)

    # ==================== Query Helpers ====================

    def select(self, include_deleted: bool = False) -> Select:
        stmt = select(self.model)
        if include_deleted:
            stmt = stmt.execution_options(**{INCLUDE_DELETED: True})
        return stmt

    def scalars(self, stmt: Select) -> List[ModelType]:
        try:
            return list(self.db.execute(stmt).scalars().unique().all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Query failed: {str(e)}") from e

    def scalar_one_or_none(self, stmt: Select) -> Optional[Any]:
        try:
            return self.db.execute(stmt).scalars().first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Query failed: {str(e)}") from e

    def count_for(self, stmt: Select) -> int:
        """Count rows matched by a select built from ``self.select``"""
        count_stmt = stmt.with_only_columns(
            func.count(distinct(self.model.id)), maintain_column_froms=True
        ).order_by(None)
        if self._is_soft_delete and not stmt.get_execution_options().get(INCLUDE_DELETED):
            count_stmt = count_stmt.where(self.model.is_deleted.is_(False))
        return self.db.execute(count_stmt).scalar_one()

    def paginate(self, stmt: Select, page: Page) -> Page:
        """Fill ``page`` with the slice of ``stmt`` it describes"""
        page.total = self.count_for(stmt)
        page.items = self.scalars(stmt.offset(page.offset).limit(page.page_size))
        return page

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """
        Add a new entity and flush it so generated values are available.

        Raises:
            DuplicateEntryError: If a unique constraint rejects the row
        """
        try:
            self.db.add(entity)
            self.db.flush()
        except IntegrityError as e:
            raise DuplicateEntryError(f"{self.model.__name__} already exists") from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Create failed: {str(e)}") from e

        logger.info(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def find_by_id(
        self,
        entity_id: str,
        include_deleted: bool = False,
        for_update: bool = False,
    ) -> Optional[ModelType]:
        """
        Find entity by ID.

        Args:
            entity_id: Entity ID
            include_deleted: Whether to include soft-deleted rows
            for_update: Lock the row until the transaction ends
        """
        stmt = self.select(include_deleted).where(self.model.id == entity_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.scalar_one_or_none(stmt)

    def get_by_id(
        self,
        entity_id: str,
        include_deleted: bool = False,
        for_update: bool = False,
    ) -> ModelType:
        """
        Get entity by ID or raise.

        Raises:
            EntityNotFoundError: If entity not found
        """
        entity = self.find_by_id(entity_id, include_deleted=include_deleted, for_update=for_update)
        if entity is None:
            raise EntityNotFoundError(self.model.__name__, entity_id)
        return entity

    def find_all(self, include_deleted: bool = False, order_by: Optional[Any] = None) -> List[ModelType]:
        stmt = self.select(include_deleted)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return self.scalars(stmt)

    def find_by_criteria(
        self,
        criteria: Dict[str, Any],
        include_deleted: bool = False,
    ) -> List[ModelType]:
        stmt = self.select(include_deleted)
        for field, value in criteria.items():
            stmt = stmt.where(getattr(self.model, field) == value)
        return self.scalars(stmt)

    def find_one_by_criteria(
        self,
        criteria: Dict[str, Any],
        include_deleted: bool = False,
    ) -> Optional[ModelType]:
        stmt = self.select(include_deleted)
        for field, value in criteria.items():
            stmt = stmt.where(getattr(self.model, field) == value)
        return self.scalar_one_or_none(stmt.limit(1))

    def find_by_ids(self, ids: Sequence[str]) -> List[ModelType]:
        if not ids:
            return []
        return self.scalars(self.select().where(self.model.id.in_(list(ids))))

    def count(self, include_deleted: bool = False) -> int:
        return self.count_for(self.select(include_deleted))

    def exists(self, entity_id: str, include_deleted: bool = False) -> bool:
        return self.find_by_id(entity_id, include_deleted=include_deleted) is not None

    # ==================== Update Operations ====================

    def update(self, entity: ModelType, data: Dict[str, Any]) -> ModelType:
        """Apply ``data`` to an entity and flush"""
        for field, value in data.items():
            if hasattr(entity, field):
                setattr(entity, field, value)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise DuplicateEntryError(f"{self.model.__name__} violates a unique constraint") from e
        logger.info(f"Updated {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Delete Operations ====================

    def soft_delete(self, entity: ModelType, at=None) -> ModelType:
        if not self._is_soft_delete:
            raise RepositoryError(f"{self.model.__name__} does not support soft delete")
        entity.soft_delete(at or utcnow())
        self.db.flush()
        logger.info(f"Soft deleted {self.model.__name__} with id: {entity.id}")
        return entity

    def restore(self, entity: ModelType) -> ModelType:
        if not self._is_soft_delete:
            raise RepositoryError(f"{self.model.__name__} does not support soft delete")
        entity.restore()
        self.db.flush()
        logger.info(f"Restored {self.model.__name__} with id: {entity.id}")
        return entity

    def hard_delete(self, entity: ModelType) -> None:
        self.db.delete(entity)
        self.db.flush()
        logger.info(f"Deleted {self.model.__name__} with id: {entity.id}")
