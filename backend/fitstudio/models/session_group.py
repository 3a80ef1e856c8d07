# backend/fitstudio/models/session_group.py
"""
Capacity group model.

Groups are overflow buckets for one schedule: group 0 fills first, then
group 1 is opened with the same effective capacity, and so on. Groups are
created lazily by the allocator and never deleted; cancellations drain
``current_count`` back towards zero.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class SessionGroup(Base):
    __tablename__ = "session_groups"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    schedule_id = Column(String(26), ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False)
    group_number = Column(Integer, nullable=False)
    capacity = Column(Integer, nullable=False)
    current_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    schedule = relationship("Schedule", back_populates="groups")
    bookings = relationship("Booking", back_populates="group")

    __table_args__ = (
        UniqueConstraint("schedule_id", "group_number", name="uq_session_groups_schedule_number"),
        CheckConstraint("group_number >= 0", name="ck_session_groups_number_non_negative"),
        CheckConstraint("capacity > 0", name="ck_session_groups_capacity_positive"),
        CheckConstraint("current_count >= 0", name="ck_session_groups_count_non_negative"),
        CheckConstraint("current_count <= capacity", name="ck_session_groups_count_within_capacity"),
    )

    @property
    def has_space(self) -> bool:
        return self.current_count < self.capacity

    @property
    def label(self) -> str:
        """Human label used on rosters: group 0 is ``A``, group 1 is ``B``."""
        number = int(self.group_number)
        letters = ""
        while True:
            number, rem = divmod(number, 26)
            letters = chr(ord("A") + rem) + letters
            if number == 0:
                return letters
            number -= 1

    def __repr__(self) -> str:
        return (
            f"<SessionGroup {self.id}: schedule={self.schedule_id} "
            f"#{self.group_number} {self.current_count}/{self.capacity}>"
        )
