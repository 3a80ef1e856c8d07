# backend/fitstudio/models/__init__.py
"""
SQLAlchemy models for the studio booking core.

Importing this package registers every table on ``Base.metadata``.
"""

from .booking import Booking, BookingStatus
from .cancellation_request import CancellationRequest, CancellationRequestStatus
from .notification import Notification
from .schedule import Schedule, ScheduleStatus, ScheduleTimeSlot
from .session_group import SessionGroup
from .studio_session import StudioSession
from .trainer import Trainer
from .user import User

__all__ = [
    "Booking",
    "BookingStatus",
    "CancellationRequest",
    "CancellationRequestStatus",
    "Notification",
    "Schedule",
    "ScheduleStatus",
    "ScheduleTimeSlot",
    "SessionGroup",
    "StudioSession",
    "Trainer",
    "User",
]
