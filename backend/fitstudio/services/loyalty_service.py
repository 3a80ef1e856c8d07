# backend/fitstudio/services/loyalty_service.py
"""
Loyalty points ledger.

Clients earn points when a booking completes. Awards run after the booking
change has committed and in their own transaction, so a failed award never
undoes the booking change.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.user_repository import UserRepository
from .base import BaseService


class LoyaltyService(BaseService):
    def __init__(self, db: Session, user_repository: Optional[UserRepository] = None):
        super().__init__(db)
        self.user_repository = user_repository or UserRepository(db)

    @BaseService.measure_operation("award_points")
    def award_points(self, user_id: str, points: int, reason: str) -> Optional[User]:
        """
        Add ``points`` to a user's balance.

        Returns the updated user, or None when the user no longer exists.
        """
        if points <= 0:
            raise ValueError("points must be positive")

        with self.transaction():
            user = self.user_repository.get_for_update(user_id)
            if user is None:
                self.logger.warning(
                    "Loyalty award skipped: user not found",
                    extra={"user_id": user_id, "points": points, "reason": reason},
                )
                return None
            user.loyalty_points = int(user.loyalty_points or 0) + points
            self.db.flush()

        prometheus_metrics.record_loyalty_award(reason, points)
        self.log_operation(
            "award_points",
            user_id=user_id,
            points=points,
            reason=reason,
            balance=user.loyalty_points,
        )
        return user
