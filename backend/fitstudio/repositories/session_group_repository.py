# backend/fitstudio/repositories/session_group_repository.py
"""
SessionGroup repository.

Queries used by the capacity allocator. Callers must already hold the
schedule lock (``core.schedule_lock``) before using the find-or-create
pair, otherwise two transactions could both decide to open the same
group number.
"""

from typing import Optional

from sqlalchemy import case, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.session_group import SessionGroup
from .base_repository import BaseRepository


class SessionGroupRepository(BaseRepository[SessionGroup]):
    def __init__(self, db: Session):
        super().__init__(db, SessionGroup)

    def find_first_with_space_for_update(self, schedule_id: str) -> Optional[SessionGroup]:
        """
        Lowest-numbered group of the schedule that still has a free seat,
        locked with ``FOR UPDATE``.
        """
        try:
            return (
                self.db.query(SessionGroup)
                .filter(
                    SessionGroup.schedule_id == schedule_id,
                    SessionGroup.current_count < SessionGroup.capacity,
                )
                .order_by(SessionGroup.group_number.asc())
                .populate_existing()
                .with_for_update()
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding open group for schedule {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to find open group: {str(e)}") from e

    def get_max_group_number(self, schedule_id: str) -> Optional[int]:
        """Highest group number used by the schedule, or None when it has no groups."""
        try:
            return (
                self.db.query(func.max(SessionGroup.group_number))
                .filter(SessionGroup.schedule_id == schedule_id)
                .scalar()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading max group number for {schedule_id}: {str(e)}")
            raise RepositoryException(f"Failed to read group numbers: {str(e)}") from e

    def increment(self, group: SessionGroup) -> SessionGroup:
        """Take one seat with an in-database ``current_count + 1``."""
        return self._shift_count(group, SessionGroup.current_count + 1)

    def decrement_floored(self, group: SessionGroup) -> SessionGroup:
        """
        Release one seat, never dropping below zero.

        The new count is computed by the database from the stored value, so a
        release that overlaps an admission on the same group keeps both
        changes even where ``FOR UPDATE`` is a no-op.
        """
        floored = case(
            (SessionGroup.current_count > 0, SessionGroup.current_count - 1),
            else_=0,
        )
        return self._shift_count(group, floored)

    def _shift_count(self, group: SessionGroup, expression) -> SessionGroup:
        try:
            self.db.execute(
                update(SessionGroup)
                .where(SessionGroup.id == group.id)
                .values(current_count=expression)
                .execution_options(synchronize_session=False)
            )
            self.db.refresh(group, attribute_names=["current_count"])
            return group
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating seat count of group {group.id}: {str(e)}")
            raise RepositoryException(f"Failed to update seat count: {str(e)}") from e
