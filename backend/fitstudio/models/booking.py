# backend/fitstudio/models/booking.py
"""
Booking model.

A booking reserves one seat in a capacity group for a schedule time slot.
It belongs either to a registered user or to a guest identified by name
and phone. Status changes go through ``domain.booking_state_machine``.
"""

from enum import Enum
import logging
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    BOOKED = "booked"  # Seat held, payment pending or confirmed manually
    CANCELLED = "cancelled"
    COMPLETED = "completed"  # Paid/attended; earns loyalty points
    MISSED = "missed"  # Client did not show up


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    user_id = Column(String(26), ForeignKey("users.id"), nullable=True, index=True)
    time_slot_id = Column(String(26), ForeignKey("schedule_time_slots.id"), nullable=False, index=True)
    # Denormalized from the time slot so group occupancy can be audited per schedule
    schedule_id = Column(String(26), ForeignKey("schedules.id"), nullable=False, index=True)
    group_id = Column(String(26), ForeignKey("session_groups.id"), nullable=True)

    guest_name = Column(String(120), nullable=True)
    guest_email = Column(String(255), nullable=True)
    guest_phone = Column(String(30), nullable=True)

    payment_reference = Column(String(120), nullable=True)
    status = Column(String(20), nullable=False, default=BookingStatus.BOOKED.value, index=True)

    date_booked = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="bookings")
    time_slot = relationship("ScheduleTimeSlot")
    schedule = relationship("Schedule")
    group = relationship("SessionGroup", back_populates="bookings")
    cancellation_requests = relationship(
        "CancellationRequest", back_populates="booking", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('booked', 'cancelled', 'completed', 'missed')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "user_id IS NOT NULL OR (guest_name IS NOT NULL AND guest_phone IS NOT NULL)",
            name="ck_bookings_user_or_guest",
        ),
        Index("ix_bookings_schedule_status", "schedule_id", "status"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.BOOKED.value

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: slot={self.time_slot_id} group={self.group_id} "
            f"user={self.user_id or 'guest'} status={self.status}>"
        )

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def holds_seat(self) -> bool:
        """Whether this booking still counts towards its group's occupancy."""
        return self.group_id is not None and self.status != BookingStatus.CANCELLED.value

    @property
    def client_display_name(self) -> str:
        if self.user is not None and self.user.full_name:
            return str(self.user.full_name)
        return str(self.guest_name or "A guest")

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        return user_id is not None and self.user_id == user_id
