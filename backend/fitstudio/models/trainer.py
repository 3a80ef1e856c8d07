# backend/fitstudio/models/trainer.py
from sqlalchemy import Column, ForeignKey, String
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class Trainer(Base):
    """Trainer profile; ``user_id`` links to the login that receives notifications."""

    __tablename__ = "trainers"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(120), nullable=False)
    specialty = Column(String(120), nullable=True)

    user = relationship("User")
    sessions = relationship("StudioSession", back_populates="trainer")

    def __repr__(self) -> str:
        return f"<Trainer {self.id}: {self.name}>"
