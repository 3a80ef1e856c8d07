# backend/fitstudio/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_user, get_optional_user, require_capability
from .database import get_db
from .services import get_booking_service, get_cancellation_request_service

__all__ = [
    # Auth
    "get_current_user",
    "get_optional_user",
    "require_capability",
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_cancellation_request_service",
]
