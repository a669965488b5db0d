"""
Base service class providing common functionality for all services.
"""

from contextlib import contextmanager
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budget_hotel.core.exceptions import BaseAppException, DuplicateEntryError, RepositoryError
from budget_hotel.core.logging import get_logger


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Transaction management
    - Standardized operation logging
    """

    def __init__(self, db_session: Session):
        """
        Initialize base service.

        Args:
            db_session: SQLAlchemy database session
        """
        self.db: Session = db_session
        self._logger = get_logger(f"budget_hotel.services.{self.__class__.__name__}")

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        """
        Context manager for database transactions with automatic rollback.

        Example:
            with self.transaction():
                self.bookings.create(booking)
                # commit on success, rollback on exception
        """
        try:
            yield self.db
            self._commit()
        except BaseAppException:
            self._rollback()
            raise
        except IntegrityError as e:
            self._rollback()
            self._logger.warning(f"Transaction rejected by constraint: {e.orig}")
            raise DuplicateEntryError("The change conflicts with existing data") from e
        except Exception as e:
            self._rollback()
            self._logger.error(f"Transaction failed: {e}", exc_info=True)
            raise

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            raise
        except Exception as e:
            self._logger.error(f"Commit failed: {e}", exc_info=True)
            raise RepositoryError(f"Commit failed: {e}") from e

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
        except Exception as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a completed state change with standardized format"""
        context = {"entity_ref": str(entity_ref) if entity_ref else None}
        if extra:
            context.update(extra)
        self._logger.info(f"Operation: {operation}", extra=context)
