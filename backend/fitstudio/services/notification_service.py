# backend/fitstudio/services/notification_service.py
"""
Trainer notifications.

New bookings produce an in-app notification for the trainer who teaches
the session. The booking service calls this after its own commit and
treats failures as non-fatal.
"""

from datetime import date, time
from typing import Optional

from ..models.booking import Booking
from ..models.notification import NEW_BOOKING, Notification
from .base import BaseService

NEW_BOOKING_TITLE = "New Booking Received"


def format_session_time(slot_date: date, start_time: time) -> str:
    """``2025-03-14 07:00`` style label for notification text."""
    return f"{slot_date.isoformat()} {start_time.strftime('%H:%M')}"


class NotificationService(BaseService):
    @BaseService.measure_operation("notify_trainer_of_booking")
    def notify_trainer_of_booking(self, booking: Booking) -> Optional[Notification]:
        """
        Tell the session's trainer about a new booking.

        Returns the stored notification, or None when the session has no
        trainer with a login to notify.
        """
        slot = booking.time_slot
        session = slot.session if slot is not None else None
        trainer = session.trainer if session is not None else None
        if trainer is None or trainer.user_id is None:
            self.logger.info(
                "No trainer login to notify for booking",
                extra={"booking_id": booking.id},
            )
            return None

        session_time = format_session_time(slot.schedule.date, slot.start_time)
        body = (
            f"{booking.client_display_name} has booked your {session.display_name} "
            f"session for {session_time}"
        )

        with self.transaction():
            notification = Notification(
                user_id=trainer.user_id,
                booking_id=booking.id,
                type=NEW_BOOKING,
                title=NEW_BOOKING_TITLE,
                message=body,
            )
            self.db.add(notification)
            self.db.flush()

        self.log_operation(
            "notify_trainer_of_booking",
            booking_id=booking.id,
            trainer_user_id=trainer.user_id,
        )
        return notification
