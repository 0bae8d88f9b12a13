# backend/hourgym/repositories/base_repository.py
"""
Base Repository for HourGym

Generic data access shared by the space, availability and booking
repositories. Repositories flush but never commit: BaseService.transaction()
owns the commit, so a booking insert and its outbox rows land together.
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..database import get_dialect_name

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Lookup, insert and delete by primary key for one model.

    Attributes:
        db: SQLAlchemy session shared with the calling service
        model: Mapped class this repository serves
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def dialect_name(self) -> str:
        """Lowercased dialect of the bound engine, for Postgres-only locking."""
        return get_dialect_name(self.db)

    def _fail(self, action: str, error: SQLAlchemyError) -> RepositoryException:
        name = self.model.__name__
        self.logger.error(f"Error {action} {name}: {str(error)}")
        return RepositoryException(f"Failed {action} {name}: {str(error)}")

    def get_by_id(self, id: str) -> Optional[T]:
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            raise self._fail("loading", e)

    def find_one_by(self, **kwargs: Any) -> Optional[T]:
        try:
            return self.db.query(self.model).filter_by(**kwargs).first()
        except SQLAlchemyError as e:
            raise self._fail("querying", e)

    def create(self, **kwargs: Any) -> T:
        """
        Add and flush a new row so its id and server defaults are populated.

        ``IntegrityError`` is re-raised untouched; the booking service inspects
        the constraint name to tell a lost slot from any other violation.
        """
        entity = self.model(**kwargs)
        try:
            self.db.add(entity)
            self.db.flush()
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            raise self._fail("creating", e)
        return entity

    def delete(self, id: str) -> bool:
        """Delete by id. Returns False when there was nothing to delete."""
        entity = self.get_by_id(id)
        if entity is None:
            return False
        try:
            self.db.delete(entity)
            self.db.flush()
        except SQLAlchemyError as e:
            raise self._fail("deleting", e)
        return True
