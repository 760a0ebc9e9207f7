# backend/courtside/repositories/base_repository.py
"""
Base Repository Pattern for the Courtside session platform.

Provides the foundation for all repository classes with:
- Type safety with generics
- Query and bulk-update helpers that wrap SQLAlchemy errors

Repositories flush but never commit: transactions belong to the service layer.
"""

from abc import ABC, abstractmethod
import logging
from typing import Any, Generic, List, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..database import get_dialect_name

T = TypeVar("T")

logger = logging.getLogger(__name__)


class IRepository(ABC, Generic[T]):
    """Abstract repository interface defining core data access methods."""

    @abstractmethod
    def exists(self, **kwargs) -> bool:
        """Check if an entity exists with given criteria."""


class BaseRepository(IRepository[T]):
    """
    Concrete base repository implementation with common data access patterns.

    Attributes:
        db: SQLAlchemy session
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def dialect_name(self) -> str:
        return get_dialect_name(self.db)

    def exists(self, **kwargs) -> bool:
        try:
            return self.db.query(self.model).filter_by(**kwargs).first() is not None
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking existence: {str(e)}")
            raise RepositoryException(f"Failed to check existence: {str(e)}")

    # Protected helper methods for use by subclasses

    def _build_query(self) -> Query:
        """Get base query for the model."""
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[Any]:
        """Execute query with error handling."""
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"Query execution error: {str(e)}")
            raise RepositoryException(f"Query failed: {str(e)}")

    def _execute_update(self, query: Query, values: dict) -> int:
        """Run a bulk UPDATE for ``query`` and return the affected row count."""
        try:
            return query.update(values, synchronize_session=False)
        except SQLAlchemyError as e:
            self.logger.error(f"Update execution error: {str(e)}")
            raise RepositoryException(f"Update failed: {str(e)}")
