# backend/fitstudio/repositories/__init__.py
"""
Repository layer for the studio booking core.

Repositories wrap every query so services only express business rules:

    repo = BookingRepository(db)
    booking = repo.get_for_update(booking_id)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .cancellation_request_repository import CancellationRequestRepository
from .schedule_repository import TimeSlotRepository
from .session_group_repository import SessionGroupRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "CancellationRequestRepository",
    "SessionGroupRepository",
    "TimeSlotRepository",
    "UserRepository",
]
