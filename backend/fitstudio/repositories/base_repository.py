# backend/fitstudio/repositories/base_repository.py
"""
Base repository for the studio booking core.

Repositories own every query; services own transactions. Nothing here
commits: writes are flushed so ids and constraint errors surface inside the
caller's transaction, and the service decides whether to commit or roll
back.
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Common data access for a single model.

    Attributes:
        db: SQLAlchemy session (transaction managed by the service layer)
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        """Retrieve an entity by primary key, eager loading when requested."""
        try:
            query = self.db.query(self.model).filter(self.model.id == id)
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}")

    def get_for_update(self, id: str) -> Optional[T]:
        """
        Re-read a row under ``SELECT ... FOR UPDATE``.

        ``populate_existing`` overwrites any stale copy already in the
        identity map. SQLite has no row locks and ignores the clause.
        """
        try:
            return (
                self.db.query(self.model)
                .filter(self.model.id == id)
                .populate_existing()
                .with_for_update()
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to lock {self.model.__name__}: {str(e)}")

    def create(self, **kwargs: Any) -> T:
        """
        Create a new entity.

        Note: Does NOT commit - transaction management is handled by service layer.
        """
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()  # Get ID without committing
            return entity
        except IntegrityError as exc:
            self.logger.error("Integrity error creating %s: %s", self.model.__name__, exc)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}") from e

    def delete(self, entity: T) -> None:
        try:
            self.db.delete(entity)
            self.db.flush()
        except IntegrityError as e:
            self.logger.error(f"Cannot delete {self.model.__name__} due to constraints: {str(e)}")
            raise RepositoryException(f"Cannot delete due to existing references: {str(e)}") from e
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to delete {self.model.__name__}: {str(e)}") from e

    # Protected helper methods for use by subclasses

    def _apply_eager_loading(self, query: Query) -> Query:
        """Override in subclasses to add joinedload/selectinload options."""
        return query

    def _build_query(self) -> Query:
        return self.db.query(self.model)
