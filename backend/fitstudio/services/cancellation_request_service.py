# backend/fitstudio/services/cancellation_request_service.py
"""
Cancellation request workflow.

Clients who are inside the self-service cancellation window ask an admin
instead. Approving a request cancels the booking and closes the request
in a single transaction.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import Capability, RoleName
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..core.permissions import ensure_capability, role_of
from ..models.cancellation_request import CancellationRequest, CancellationRequestStatus
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.cancellation_request_repository import CancellationRequestRepository
from .base import BaseService
from .booking_service import BookingService

ADMIN_NOTE_PREFIX = "[Admin note]"


class CancellationRequestService(BaseService):
    def __init__(self, db: Session, booking_service: Optional[BookingService] = None):
        super().__init__(db)
        self.booking_service = booking_service or BookingService(db)
        self.request_repository = CancellationRequestRepository(db)
        self.booking_repository = BookingRepository(db)

    @BaseService.measure_operation("create_cancellation_request")
    def create_request(
        self, booking_id: str, actor: User, message: Optional[str] = None
    ) -> CancellationRequest:
        """
        File a pending request to cancel ``booking_id``.

        Raises:
            NotFoundException: booking missing
            ForbiddenException: role may not request, or client does not own the booking
        """
        ensure_capability(actor, Capability.REQUEST_CANCELLATION)

        booking = self.booking_repository.get_by_id(booking_id, load_relationships=False)
        if booking is None:
            raise NotFoundException(f"Booking {booking_id} not found")
        if role_of(actor) == RoleName.CLIENT and not booking.is_owned_by(actor.id):
            raise ForbiddenException(
                "Not your booking", code="NOT_BOOKING_OWNER", details={"booking_id": booking_id}
            )

        with self.transaction():
            request = self.request_repository.create(
                booking_id=booking.id,
                requester_id=actor.id,
                message=message,
                status=CancellationRequestStatus.PENDING.value,
            )

        self.log_operation(
            "create_cancellation_request",
            request_id=request.id,
            booking_id=booking.id,
            requester_id=actor.id,
        )
        return request

    @BaseService.measure_operation("approve_cancellation_request")
    def approve_request(self, request_id: str, actor: User) -> CancellationRequest:
        """
        Approve a pending request: cancel the booking with admin privilege and
        mark the request approved. Both writes commit or neither does.
        """
        ensure_capability(actor, Capability.DECIDE_CANCELLATION_REQUEST)

        with self.transaction():
            request = self._get_pending_for_update(request_id)
            self.booking_service.apply_cancellation(request.booking_id, actor, bypass_window=True)
            request.status = CancellationRequestStatus.APPROVED.value
            request.approver_id = actor.id
            self.db.flush()

        prometheus_metrics.record_cancellation(str(actor.role))
        self.log_operation(
            "approve_cancellation_request",
            request_id=request.id,
            booking_id=request.booking_id,
            approver_id=actor.id,
        )
        return request

    @BaseService.measure_operation("reject_cancellation_request")
    def reject_request(
        self, request_id: str, actor: User, reason: Optional[str] = None
    ) -> CancellationRequest:
        """Reject a pending request, appending the admin's reason to its message."""
        ensure_capability(actor, Capability.DECIDE_CANCELLATION_REQUEST)

        with self.transaction():
            request = self._get_pending_for_update(request_id)
            if reason:
                note = f"{ADMIN_NOTE_PREFIX} {reason}"
                request.message = f"{request.message}\n{note}" if request.message else note
            request.status = CancellationRequestStatus.REJECTED.value
            request.approver_id = actor.id
            self.db.flush()

        self.log_operation(
            "reject_cancellation_request",
            request_id=request.id,
            booking_id=request.booking_id,
            approver_id=actor.id,
        )
        return request

    def list_requests(
        self,
        actor: User,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[CancellationRequest]:
        ensure_capability(actor, Capability.VIEW_CANCELLATION_REQUESTS)
        if status is not None:
            try:
                status = CancellationRequestStatus(status).value
            except ValueError as exc:
                raise ValidationException(
                    f"Unknown cancellation request status: {status}",
                    code="UNKNOWN_STATUS",
                    details={"status": status},
                ) from exc
        return self.request_repository.list_requests(status=status, skip=skip, limit=limit)

    def _get_pending_for_update(self, request_id: str) -> CancellationRequest:
        request = self.request_repository.get_for_update(request_id)
        if request is None:
            raise NotFoundException(f"Cancellation request {request_id} not found")
        if not request.is_pending:
            raise ConflictException(
                f"Cancellation request is already {request.status}",
                code="REQUEST_ALREADY_DECIDED",
                details={"request_id": request_id, "status": request.status},
            )
        return request
