# backend/fitstudio/schemas/booking.py
"""
Booking request/response schemas.

Guest-versus-registered rules are business validation and live in
BookingService, so an incomplete guest booking is reported the same way
whether it arrives over HTTP or from another service.
"""

from datetime import date, datetime, time
from typing import Any, Optional

from pydantic import EmailStr, Field, field_validator

from ..models.booking import BookingStatus
from ._strict_base import ResponseModel, StrictRequestModel


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class BookingCreate(StrictRequestModel):
    """Create a booking for a registered user (``user_id``) or a guest."""

    time_slot_id: str = Field(..., min_length=1, description="Schedule time slot to book")
    user_id: Optional[str] = Field(None, description="Registered user making the booking")
    guest_name: Optional[str] = Field(None, max_length=120)
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = Field(None, max_length=30)
    payment_method: Optional[str] = Field(
        None, max_length=30, description="e.g. mpesa, cash; mpesa with a reference starts completed"
    )
    payment_reference: Optional[str] = Field(None, max_length=120)

    @field_validator(
        "user_id",
        "guest_name",
        "guest_email",
        "guest_phone",
        "payment_method",
        "payment_reference",
        mode="before",
    )
    @classmethod
    def _empty_strings_are_missing(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("payment_method")
    @classmethod
    def _normalize_payment_method(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

    @property
    def is_guest(self) -> bool:
        return self.user_id is None


class BookingStatusUpdate(StrictRequestModel):
    status: BookingStatus
    payment_reference: Optional[str] = Field(None, max_length=120)

    @field_validator("payment_reference", mode="before")
    @classmethod
    def _empty_reference(cls, v: Any) -> Any:
        return _blank_to_none(v)


class PaymentConfirmationRequest(StrictRequestModel):
    payment_reference: Optional[str] = Field(None, max_length=120)

    @field_validator("payment_reference", mode="before")
    @classmethod
    def _empty_reference(cls, v: Any) -> Any:
        return _blank_to_none(v)


class BookingResponse(ResponseModel):
    id: str
    user_id: Optional[str] = None
    time_slot_id: str
    schedule_id: str
    group_id: Optional[str] = None
    group_number: Optional[int] = None
    group_label: Optional[str] = None
    session_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    payment_reference: Optional[str] = None
    status: BookingStatus
    date_booked: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking: Any) -> "BookingResponse":
        """Flatten the booking with its group number, roster label and slot times."""
        slot = booking.time_slot
        group = booking.group
        schedule = booking.schedule
        return cls(
            id=booking.id,
            user_id=booking.user_id,
            time_slot_id=booking.time_slot_id,
            schedule_id=booking.schedule_id,
            group_id=booking.group_id,
            group_number=group.group_number if group is not None else None,
            group_label=group.label if group is not None else None,
            session_date=schedule.date if schedule is not None else None,
            start_time=slot.start_time if slot is not None else None,
            end_time=slot.end_time if slot is not None else None,
            guest_name=booking.guest_name,
            guest_email=booking.guest_email,
            guest_phone=booking.guest_phone,
            payment_reference=booking.payment_reference,
            status=booking.status,
            date_booked=booking.date_booked,
        )


class PaymentConfirmationResponse(ResponseModel):
    booking: BookingResponse
    verified: bool
