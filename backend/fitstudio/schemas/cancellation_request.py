# backend/fitstudio/schemas/cancellation_request.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from ..models.cancellation_request import CancellationRequestStatus
from ._strict_base import ResponseModel, StrictRequestModel


class CancellationRequestCreate(StrictRequestModel):
    booking_id: str = Field(..., min_length=1)
    message: Optional[str] = Field(None, max_length=1000, description="Why the client wants to cancel")


class CancellationRequestReject(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=500, description="Admin note appended to the message")


class CancellationRequestResponse(ResponseModel):
    id: str
    booking_id: str
    requester_id: Optional[str] = None
    approver_id: Optional[str] = None
    message: Optional[str] = None
    status: CancellationRequestStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
