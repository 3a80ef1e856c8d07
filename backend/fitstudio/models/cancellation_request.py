# backend/fitstudio/models/cancellation_request.py
from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class CancellationRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CancellationRequest(Base):
    """
    A client's request to cancel a booking outside the self-service window.

    Only an admin moves a request out of ``pending``; approval runs the
    regular cancellation with admin privilege.
    """

    __tablename__ = "cancellation_requests"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    requester_id = Column(String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approver_id = Column(String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    message = Column(Text, nullable=True)
    status = Column(
        String(20), nullable=False, default=CancellationRequestStatus.PENDING.value, index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    booking = relationship("Booking", back_populates="cancellation_requests")
    requester = relationship("User", foreign_keys=[requester_id])
    approver = relationship("User", foreign_keys=[approver_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_cancellation_requests_status",
        ),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == CancellationRequestStatus.PENDING.value

    def __repr__(self) -> str:
        return f"<CancellationRequest {self.id}: booking={self.booking_id} {self.status}>"
