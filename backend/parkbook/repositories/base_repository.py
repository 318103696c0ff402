# backend/parkbook/repositories/base_repository.py
"""
Base Repository Pattern for the Parkbook platform.

Provides the foundation for all repository classes with:
- Common create / read / update helpers
- Type safety with generics
- Principal-based row scoping
- Query builder helpers

Repositories never commit. The service layer owns the transaction and any
savepoints, so a failed write here only raises; rolling back is the caller's
decision.
"""

import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import AccessDeniedException, RepositoryException
from ..principal import Principal

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Concrete base repository implementation with common data access patterns.

    Attributes:
        db: SQLAlchemy session
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        """
        Initialize repository with database session and model.

        Args:
            db: SQLAlchemy session (managed by service layer)
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    # Scoping helpers

    @staticmethod
    def _require_elevated(principal: Principal, action: str) -> None:
        if not principal.is_elevated:
            raise AccessDeniedException(action, principal.id)

    @staticmethod
    def _require_admin(principal: Principal, action: str) -> None:
        if not (principal.is_admin or principal.is_elevated):
            raise AccessDeniedException(action, principal.id)

    @staticmethod
    def _require_authenticated(principal: Principal, action: str) -> None:
        if not principal.is_authenticated:
            raise AccessDeniedException(action, principal.id)

    @staticmethod
    def _sees_all_rows(principal: Principal) -> bool:
        return principal.is_admin or principal.is_elevated

    # CRUD

    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key (unscoped)."""
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            self.logger.error("Error getting %s by id %s: %s", self.model.__name__, id, e)
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {e}") from e

    def create(self, **kwargs: Any) -> T:
        """
        Create a new entity.

        Note: Does NOT commit - transaction management is handled by service layer.
        """
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()  # Get ID and surface constraint violations now
            return entity
        except IntegrityError as exc:
            self.logger.warning("Integrity error creating %s: %s", self.model.__name__, exc.orig)
            raise RepositoryException(f"Integrity constraint violated: {exc.orig}") from exc
        except SQLAlchemyError as e:
            self.logger.error("Error creating %s: %s", self.model.__name__, e)
            raise RepositoryException(f"Failed to create {self.model.__name__}: {e}") from e

    def update(self, entity: T, **kwargs: Any) -> T:
        """Update only the provided fields and flush."""
        try:
            for key, value in kwargs.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.db.flush()
            return entity
        except SQLAlchemyError as e:
            self.logger.error("Error updating %s: %s", self.model.__name__, e)
            raise RepositoryException(f"Failed to update {self.model.__name__}: {e}") from e

    def flush(self) -> None:
        """Flush pending ORM changes."""
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error("Flush failed for %s: %s", self.model.__name__, e)
            raise RepositoryException(f"Failed to flush {self.model.__name__}: {e}") from e

    # Protected helper methods for use by subclasses

    def _build_query(self) -> Query:
        """Get base query for the model."""
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        """Execute query with error handling."""
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error("Query execution error: %s", e)
            raise RepositoryException(f"Query failed: {e}") from e

    def _execute_first(self, query: Query) -> Optional[T]:
        try:
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error("Query execution error: %s", e)
            raise RepositoryException(f"Query failed: {e}") from e

    def _execute_scalar(self, query: Query) -> Any:
        """Execute scalar query with error handling."""
        try:
            return query.scalar()
        except SQLAlchemyError as e:
            self.logger.error("Scalar query error: %s", e)
            raise RepositoryException(f"Scalar query failed: {e}") from e


def is_unique_violation(exc: BaseException) -> bool:
    """True when ``exc`` (or its cause) is a uniqueness violation from the database."""
    cause = exc.__cause__ if isinstance(exc, RepositoryException) else exc
    if not isinstance(cause, IntegrityError):
        return False
    message = str(cause.orig).lower()
    return "unique" in message or "duplicate key" in message
