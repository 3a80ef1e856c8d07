# backend/fitstudio/models/notification.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base

NEW_BOOKING = "new_booking"


class Notification(Base):
    """In-app notification for a studio user (trainers hear about new bookings)."""

    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    booking_id = Column(String(26), ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True)
    type = Column(String(40), nullable=False, default=NEW_BOOKING)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<Notification {self.id}: user={self.user_id} {self.type}>"
