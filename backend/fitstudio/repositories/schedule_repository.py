# backend/fitstudio/repositories/schedule_repository.py
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.schedule import ScheduleTimeSlot
from ..models.studio_session import StudioSession
from ..models.trainer import Trainer
from .base_repository import BaseRepository


class TimeSlotRepository(BaseRepository[ScheduleTimeSlot]):
    """Time slot lookups with the schedule and session needed for admission."""

    def __init__(self, db: Session):
        super().__init__(db, ScheduleTimeSlot)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(ScheduleTimeSlot.schedule),
            joinedload(ScheduleTimeSlot.session)
            .joinedload(StudioSession.trainer)
            .joinedload(Trainer.user),
        )

    def get_with_context(self, time_slot_id: str) -> Optional[ScheduleTimeSlot]:
        try:
            return self._apply_eager_loading(
                self.db.query(ScheduleTimeSlot).filter(ScheduleTimeSlot.id == time_slot_id)
            ).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading time slot {time_slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to load time slot: {str(e)}") from e
