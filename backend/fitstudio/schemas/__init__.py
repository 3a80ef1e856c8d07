"""Pydantic request/response schemas for the booking API."""

from .booking import (
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
    PaymentConfirmationRequest,
    PaymentConfirmationResponse,
)
from .cancellation_request import (
    CancellationRequestCreate,
    CancellationRequestReject,
    CancellationRequestResponse,
)
from .health import HealthLiteResponse, HealthResponse

__all__ = [
    "BookingCreate",
    "BookingResponse",
    "BookingStatusUpdate",
    "CancellationRequestCreate",
    "CancellationRequestReject",
    "CancellationRequestResponse",
    "HealthLiteResponse",
    "HealthResponse",
    "PaymentConfirmationRequest",
    "PaymentConfirmationResponse",
]
