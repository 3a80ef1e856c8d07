# backend/fitstudio/services/capacity_allocator.py
"""
Capacity group allocation.

Seats for a schedule are handed out from numbered groups: group 0 fills
first, and when every existing group is full a new group with the next
number is opened. The find-or-create decision runs under the schedule's
transaction-scoped lock, and the candidate group is read ``FOR UPDATE``,
so concurrent bookings can never push a group past its capacity or open
the same group number twice.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.schedule_lock import acquire_schedule_lock
from ..models.session_group import SessionGroup
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.session_group_repository import SessionGroupRepository

logger = logging.getLogger(__name__)


class CapacityGroupAllocator:
    """Find-or-create the group a new booking occupies. Never commits."""

    def __init__(self, db: Session, group_repository: Optional[SessionGroupRepository] = None):
        self.db = db
        self.group_repository = group_repository or SessionGroupRepository(db)

    def allocate(self, schedule_id: str, effective_capacity: int) -> SessionGroup:
        """
        Take one seat on ``schedule_id`` inside the caller's open transaction.

        Args:
            schedule_id: Schedule the booking is for
            effective_capacity: Seats per group, used only when a new group is opened

        Returns:
            The group whose ``current_count`` now includes this booking

        Any database error propagates; the caller's rollback undoes the increment.
        """
        if effective_capacity < 1:
            raise ValueError("effective_capacity must be at least 1")

        acquire_schedule_lock(self.db, schedule_id)

        group = self.group_repository.find_first_with_space_for_update(schedule_id)
        if group is not None:
            self.group_repository.increment(group)
            prometheus_metrics.record_group_allocation(created=False)
            logger.debug(
                "Reused group %s #%s (%s/%s)",
                group.id,
                group.group_number,
                group.current_count,
                group.capacity,
            )
            return group

        max_number = self.group_repository.get_max_group_number(schedule_id)
        next_number = 0 if max_number is None else int(max_number) + 1
        group = self.group_repository.create(
            schedule_id=schedule_id,
            group_number=next_number,
            capacity=effective_capacity,
            current_count=1,
        )
        prometheus_metrics.record_group_allocation(created=True)
        logger.info(
            "Opened capacity group",
            extra={
                "schedule_id": schedule_id,
                "group_number": next_number,
                "capacity": effective_capacity,
            },
        )
        return group
