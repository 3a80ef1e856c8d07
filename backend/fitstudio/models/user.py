# backend/fitstudio/models/user.py
"""
User model for the studio.

Clients, trainers, managers and admins all live in ``users``; the role
column decides what each may do (see ``core.permissions``). Clients also
carry a loyalty points balance that grows as their bookings complete.
"""

import logging

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base

logger = logging.getLogger(__name__)

class User(Base):
    """
    A registered studio user.

    Attributes:
        id: ULID primary key
        email: Unique login email
        full_name: Display name used in notifications
        phone: Optional contact number
        role: One of admin, manager, trainer, client
        loyalty_points: Accumulated completion rewards
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String(120), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default=RoleName.CLIENT.value, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    loyalty_points = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    bookings = relationship("Booking", back_populates="user")

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'manager', 'trainer', 'client')",
            name="ck_users_role",
        ),
        CheckConstraint("loyalty_points >= 0", name="ck_users_loyalty_points_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} ({self.role})>"
