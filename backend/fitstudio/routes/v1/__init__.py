# backend/fitstudio/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import bookings, cancellation_requests

__all__ = [
    "bookings",
    "cancellation_requests",
]
