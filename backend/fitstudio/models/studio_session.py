# backend/fitstudio/models/studio_session.py
"""
Session catalog model.

A session is a class type (a yoga flow, a reformer pilates class) with its
own capacity. It is offered through schedule time slots; bookings never
point at the session directly.
"""

from typing import Optional

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import SessionCategory
from ..database import Base

CATEGORY_VALUES = ", ".join(f"'{category.value}'" for category in SessionCategory)


class StudioSession(Base):
    __tablename__ = "sessions"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    trainer_id = Column(String(26), ForeignKey("trainers.id", ondelete="SET NULL"), nullable=True)
    category = Column(String(40), nullable=False, index=True)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=60)
    capacity = Column(Integer, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)

    trainer = relationship("Trainer", back_populates="sessions")
    time_slots = relationship("ScheduleTimeSlot", back_populates="session")

    __table_args__ = (
        CheckConstraint(
            f"category IN ({CATEGORY_VALUES})",
            name="ck_sessions_category",
        ),
        CheckConstraint("duration_minutes > 0", name="ck_sessions_duration_positive"),
        CheckConstraint("price >= 0", name="ck_sessions_price_non_negative"),
    )

    @property
    def display_name(self) -> str:
        """Name used in trainer notifications, e.g. ``Strength Training``."""
        return str(self.category).replace("_", " ").title()

    def effective_capacity(self, category_limit: Optional[int], default_capacity: int = 1) -> int:
        """
        Seats per group for this session.

        A missing or non-positive capacity counts as ``default_capacity``;
        a category limit, when configured, caps the result.
        """
        own = self.capacity if self.capacity and self.capacity > 0 else default_capacity
        if category_limit is None:
            return int(own)
        return int(min(own, category_limit))

    def __repr__(self) -> str:
        return f"<StudioSession {self.id}: {self.category} cap={self.capacity}>"
