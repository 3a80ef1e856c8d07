# backend/fitstudio/repositories/booking_repository.py
"""
Booking repository.

Reads used by the booking service: detail lookups with the slot context
eager loaded, role-scoped listings, and the ``FOR UPDATE`` re-read that
status changes and cancellations perform inside their transaction.
"""

from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload
from sqlalchemy.orm.attributes import set_committed_value

from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.schedule import ScheduleTimeSlot
from ..models.studio_session import StudioSession
from ..models.trainer import Trainer
from .base_repository import BaseRepository


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(Booking.user),
            joinedload(Booking.group),
            joinedload(Booking.schedule),
            joinedload(Booking.time_slot)
            .joinedload(ScheduleTimeSlot.session)
            .joinedload(StudioSession.trainer),
        )

    def list_bookings(
        self,
        *,
        user_id: Optional[str] = None,
        trainer_user_id: Optional[str] = None,
        schedule_id: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[Booking]:
        """
        List bookings newest first.

        Args:
            user_id: only bookings made by this user
            trainer_user_id: only bookings for sessions taught by this trainer login
            schedule_id: only bookings on this schedule
            status: only bookings in this status
        """
        try:
            query = self._build_query()
            if trainer_user_id is not None:
                query = (
                    query.join(Booking.time_slot)
                    .join(ScheduleTimeSlot.session)
                    .join(StudioSession.trainer)
                    .filter(Trainer.user_id == trainer_user_id)
                )
            if user_id is not None:
                query = query.filter(Booking.user_id == user_id)
            if schedule_id is not None:
                query = query.filter(Booking.schedule_id == schedule_id)
            if status is not None:
                query = query.filter(Booking.status == status)
            query = self._apply_eager_loading(query)
            return (
                query.order_by(Booking.date_booked.desc(), Booking.id.desc())
                .offset(skip)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}") from e

    def claim_status(self, booking: Booking, expected: str, new: str) -> bool:
        """
        Move ``booking`` from ``expected`` to ``new`` only if the stored status
        still equals ``expected``.

        Returns False when another transaction changed the status first.
        """
        try:
            result = self.db.execute(
                update(Booking)
                .where(Booking.id == booking.id, Booking.status == expected)
                .values(status=new)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return False
            set_committed_value(booking, "status", new)
            return True
        except SQLAlchemyError as e:
            self.logger.error(f"Error claiming status of booking {booking.id}: {str(e)}")
            raise RepositoryException(f"Failed to update booking status: {str(e)}") from e
