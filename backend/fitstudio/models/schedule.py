# backend/fitstudio/models/schedule.py
"""
Schedule models.

A Schedule is one calendar day of the studio timetable; each
ScheduleTimeSlot binds a session to a start/end time on that day.
Capacity groups and bookings hang off the schedule.
"""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, String, Time
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class ScheduleStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class Schedule(Base):
    __tablename__ = "schedules"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    date = Column(Date, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ScheduleStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    time_slots = relationship(
        "ScheduleTimeSlot",
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="ScheduleTimeSlot.start_time",
    )
    groups = relationship("SessionGroup", back_populates="schedule", order_by="SessionGroup.group_number")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'cancelled')", name="ck_schedules_status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == ScheduleStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<Schedule {self.id}: {self.date} ({self.status})>"


class ScheduleTimeSlot(Base):
    __tablename__ = "schedule_time_slots"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    schedule_id = Column(String(26), ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False)
    session_id = Column(String(26), ForeignKey("sessions.id"), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    schedule = relationship("Schedule", back_populates="time_slots")
    session = relationship("StudioSession", back_populates="time_slots")

    __table_args__ = (
        Index("ix_schedule_time_slots_schedule_start", "schedule_id", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<ScheduleTimeSlot {self.id}: {self.start_time}-{self.end_time}>"
