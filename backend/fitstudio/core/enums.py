# backend/fitstudio/core/enums.py
"""
Core enums for the studio booking platform.

Roles are stored as plain strings on ``users.role``; these enums give the
code a closed set to compare against.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles a studio user can hold."""

    ADMIN = "admin"
    MANAGER = "manager"
    TRAINER = "trainer"
    CLIENT = "client"


class Capability(str, Enum):
    """
    Entry points that are gated by role.

    Each one is checked exactly once, at the start of the operation that
    needs it (see ``core.permissions``).
    """

    VIEW_BOOKINGS = "view_bookings"
    UPDATE_BOOKING_STATUS = "update_booking_status"
    CANCEL_BOOKING = "cancel_booking"
    DELETE_BOOKING = "delete_booking"
    REQUEST_CANCELLATION = "request_cancellation"
    VIEW_CANCELLATION_REQUESTS = "view_cancellation_requests"
    DECIDE_CANCELLATION_REQUEST = "decide_cancellation_request"


class SessionCategory(str, Enum):
    YOGA = "yoga"
    PILATES = "pilates"
    STRENGTH_TRAINING = "strength_training"
