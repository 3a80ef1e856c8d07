# backend/fitstudio/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Services are built per request on the request's session so the booking
service and the cancellation request service share one transaction scope.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.cancellation_request_service import CancellationRequestService
from .database import get_db


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_cancellation_request_service(
    db: Session = Depends(get_db),
    booking_service: BookingService = Depends(get_booking_service),
) -> CancellationRequestService:
    return CancellationRequestService(db, booking_service)
