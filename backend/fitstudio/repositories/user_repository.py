# backend/fitstudio/repositories/user_repository.py
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_active(self, user_id: str) -> Optional[User]:
        """Active user by id; deactivated accounts read as missing."""
        try:
            return (
                self.db.query(User)
                .filter(User.id == user_id, User.is_active.is_(True))
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading active user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to load user: {str(e)}") from e
