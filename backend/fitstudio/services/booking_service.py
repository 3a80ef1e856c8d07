# backend/fitstudio/services/booking_service.py
"""
Booking Service for the studio booking core.

Handles booking admission into capacity groups, status changes through the
booking state machine, payment confirmation, cancellation and admin
removal. Loyalty awards and trainer notifications run after commit and
never fail the booking operation itself.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Callable, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.enums import Capability, RoleName
from ..core.exceptions import (
    CancellationWindowException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..core.permissions import ensure_capability, role_of
from ..core.timezone_utils import hours_until, slot_start_utc, utc_now
from ..domain.booking_state_machine import awards_completion_points, validate_transition
from ..models.booking import Booking, BookingStatus
from ..models.schedule import ScheduleTimeSlot
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.schedule_repository import TimeSlotRepository
from ..repositories.session_group_repository import SessionGroupRepository
from ..repositories.user_repository import UserRepository
from ..schemas.booking import BookingCreate
from .base import BaseService
from .capacity_allocator import CapacityGroupAllocator
from .loyalty_service import LoyaltyService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

COMPLETION_REASON = "booking_completed"


@dataclass
class PaymentConfirmation:
    booking: Booking
    verified: bool


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Every write runs in one transaction: allocation and insert, status
    change and seat release, commit or roll back together.
    """

    def __init__(
        self,
        db: Session,
        loyalty_service: Optional[LoyaltyService] = None,
        notification_service: Optional[NotificationService] = None,
        allocator: Optional[CapacityGroupAllocator] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session shared with the collaborators
            loyalty_service: Points ledger (defaults to one on the same session)
            notification_service: Trainer notification sink
            allocator: Capacity group allocator
            config: Settings override, mainly for tests
            clock: Returns the current UTC time; used by the cancellation window
        """
        super().__init__(db)
        self.config = config or default_settings
        self.clock = clock
        self.booking_repository = BookingRepository(db)
        self.time_slot_repository = TimeSlotRepository(db)
        self.user_repository = UserRepository(db)
        self.group_repository = SessionGroupRepository(db)
        self.allocator = allocator or CapacityGroupAllocator(db, self.group_repository)
        self.loyalty_service = loyalty_service or LoyaltyService(db, self.user_repository)
        self.notification_service = notification_service or NotificationService(db)

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_booking")
    def create_booking(self, data: BookingCreate) -> Booking:
        """
        Admit a booking into the first capacity group with a free seat.

        Raises:
            ValidationException: guest booking without name and phone
            NotFoundException: time slot, schedule, session or user missing
            ConflictException: the schedule has been cancelled
        """
        self._validate_guest_details(data)

        slot = self.time_slot_repository.get_with_context(data.time_slot_id)
        if slot is None:
            raise NotFoundException(f"Time slot {data.time_slot_id} not found")
        if slot.schedule is None:
            raise NotFoundException(f"Schedule for time slot {slot.id} not found")
        if slot.session is None:
            raise NotFoundException(f"Session for time slot {slot.id} not found")
        if not slot.schedule.is_active:
            raise ConflictException(
                "This schedule has been cancelled",
                code="SCHEDULE_CANCELLED",
                details={"schedule_id": slot.schedule_id},
            )

        user: Optional[User] = None
        if data.user_id is not None:
            user = self.user_repository.get_active(data.user_id)
            if user is None:
                raise NotFoundException(f"User {data.user_id} not found")

        capacity = self._effective_capacity(slot)
        initial_status = self._initial_status(data)

        with self.transaction():
            group = self.allocator.allocate(slot.schedule_id, capacity)
            booking = self.booking_repository.create(
                time_slot=slot,
                schedule=slot.schedule,
                group=group,
                user=user,
                guest_name=data.guest_name if user is None else None,
                guest_email=str(data.guest_email) if user is None and data.guest_email else None,
                guest_phone=data.guest_phone if user is None else None,
                payment_reference=data.payment_reference,
                status=initial_status.value,
            )

        prometheus_metrics.record_admission(initial_status.value, is_guest=booking.is_guest)
        self.log_operation(
            "create_booking",
            booking_id=booking.id,
            schedule_id=slot.schedule_id,
            group_number=group.group_number,
            status=initial_status.value,
            guest=booking.is_guest,
        )

        self.run_side_effect(
            "notification",
            lambda: self.notification_service.notify_trainer_of_booking(booking),
            booking_id=booking.id,
        )
        if initial_status == BookingStatus.COMPLETED:
            self._award_completion_points(booking)
        return booking

    def _validate_guest_details(self, data: BookingCreate) -> None:
        if not data.is_guest:
            return
        missing = [
            field for field in ("guest_name", "guest_phone") if not getattr(data, field)
        ]
        if missing:
            raise ValidationException(
                "Guest bookings require name and phone number",
                code="GUEST_DETAILS_REQUIRED",
                details={"missing": missing},
            )

    def _effective_capacity(self, slot: ScheduleTimeSlot) -> int:
        session = slot.session
        return session.effective_capacity(
            self.config.category_limit(session.category),
            self.config.default_session_capacity,
        )

    def _initial_status(self, data: BookingCreate) -> BookingStatus:
        method = (data.payment_method or "").lower()
        if data.payment_reference and method in self.config.instant_confirm_payment_methods:
            return BookingStatus.COMPLETED
        return BookingStatus.BOOKED

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    @BaseService.measure_operation("update_booking_status")
    def update_booking_status(
        self,
        booking_id: str,
        new_status: Union[BookingStatus, str],
        payment_reference: Optional[str] = None,
    ) -> Booking:
        """
        Move a booking to ``new_status`` through the state machine.

        Moving to ``cancelled`` releases the seat; re-confirming a cancelled
        booking takes a seat again through the allocator.

        Raises:
            NotFoundException: booking missing
            ValidationException: confirmation without a payment reference
            InvalidTransitionException: move not allowed
        """
        with self.transaction():
            booking = self._get_for_update(booking_id)
            previous = BookingStatus(booking.status)
            target = validate_transition(
                previous,
                new_status,
                stored_reference=booking.payment_reference,
                supplied_reference=payment_reference,
            )
            if payment_reference:
                booking.payment_reference = payment_reference

            if target == BookingStatus.CANCELLED:
                self._release_seat(booking)
            elif previous == BookingStatus.CANCELLED:
                self._retake_seat(booking)

            self._claim_status(booking, previous, target)
            self.db.flush()

        prometheus_metrics.record_status_transition(previous.value, target.value)
        self.log_operation(
            "update_booking_status",
            booking_id=booking.id,
            from_status=previous.value,
            to_status=target.value,
        )
        if awards_completion_points(previous, target):
            self._award_completion_points(booking)
        return booking

    @BaseService.measure_operation("confirm_payment")
    def confirm_payment(
        self, booking_id: str, payment_reference: Optional[str] = None
    ) -> PaymentConfirmation:
        """
        Store a payment reference and auto-complete the booking when it verifies.

        A reference verifies when it starts with one of the configured
        confirmation prefixes (case-insensitive). Only ``booked`` bookings are
        moved to ``completed``; others keep their status.
        """
        with self.transaction():
            booking = self._get_for_update(booking_id)
            if payment_reference:
                booking.payment_reference = payment_reference
            verified = self.is_verified_reference(booking.payment_reference)
            previous = BookingStatus(booking.status)

            completed_now = False
            if verified and previous == BookingStatus.BOOKED:
                target = validate_transition(previous, BookingStatus.COMPLETED)
                booking.status = target.value
                completed_now = True
            self.db.flush()

        self.log_operation(
            "confirm_payment",
            booking_id=booking.id,
            verified=verified,
            completed=completed_now,
        )
        if completed_now:
            prometheus_metrics.record_status_transition(previous.value, BookingStatus.COMPLETED.value)
            self._award_completion_points(booking)
        return PaymentConfirmation(booking=booking, verified=verified)

    def is_verified_reference(self, reference: Optional[str]) -> bool:
        if not reference:
            return False
        normalized = reference.strip().upper()
        return any(
            normalized.startswith(prefix.upper())
            for prefix in self.config.payment_confirmation_prefixes
        )

    # ------------------------------------------------------------------
    # Cancellation and removal
    # ------------------------------------------------------------------

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: str, actor: User) -> Booking:
        """
        Cancel a booking and release its seat.

        Clients may only cancel their own bookings, and only while the slot
        starts at least ``client_cancellation_window_hours`` from now. Admins
        and managers are not bound by the window.

        Raises:
            NotFoundException: booking missing
            ForbiddenException: role may not cancel, or client does not own the booking
            CancellationWindowException: client is inside the window
            InvalidTransitionException: booking is not ``booked``
        """
        ensure_capability(actor, Capability.CANCEL_BOOKING)
        with self.transaction():
            booking = self.apply_cancellation(booking_id, actor)

        prometheus_metrics.record_cancellation(str(actor.role))
        self.log_operation(
            "cancel_booking", booking_id=booking.id, actor_id=actor.id, actor_role=str(actor.role)
        )
        return booking

    def apply_cancellation(
        self, booking_id: str, actor: User, *, bypass_window: bool = False
    ) -> Booking:
        """
        Cancellation effect for use inside an already-open transaction.

        Re-reads the booking ``FOR UPDATE``, enforces client ownership and
        the window (unless ``bypass_window``), validates the move to
        ``cancelled`` and releases the group seat. Does not commit.
        """
        booking = self._get_for_update(booking_id)

        if role_of(actor) == RoleName.CLIENT:
            if not booking.is_owned_by(actor.id):
                raise ForbiddenException(
                    "Not your booking", code="NOT_BOOKING_OWNER", details={"booking_id": booking_id}
                )
            if not bypass_window:
                self._enforce_cancellation_window(booking)

        previous = BookingStatus(booking.status)
        validate_transition(previous, BookingStatus.CANCELLED)
        self._release_seat(booking)
        self._claim_status(booking, previous, BookingStatus.CANCELLED)
        self.db.flush()
        return booking

    def _enforce_cancellation_window(self, booking: Booking) -> None:
        window = self.config.client_cancellation_window_hours
        starts_at = self.slot_start(booking)
        remaining = hours_until(starts_at, self.clock())
        if remaining < window:
            raise CancellationWindowException(window, remaining)

    def slot_start(self, booking: Booking) -> datetime:
        """UTC start of the booked slot."""
        slot = booking.time_slot
        return slot_start_utc(slot.schedule.date, slot.start_time, self.config.studio_timezone)

    @BaseService.measure_operation("delete_booking")
    def delete_booking(self, booking_id: str, actor: User) -> None:
        """
        Hard-delete a booking (admin only).

        A booking that still holds a seat gives it back in the same
        transaction, so removal never leaves phantom occupancy.
        """
        ensure_capability(actor, Capability.DELETE_BOOKING)
        with self.transaction():
            booking = self._get_for_update(booking_id)
            released = booking.holds_seat
            if released:
                self._release_seat(booking)
                self._claim_status(booking, BookingStatus(booking.status), BookingStatus.CANCELLED)
            self.booking_repository.delete(booking)

        self.log_operation(
            "delete_booking", booking_id=booking_id, actor_id=actor.id, released_seat=released
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @BaseService.measure_operation("get_booking")
    def get_booking(self, booking_id: str, actor: User) -> Booking:
        ensure_capability(actor, Capability.VIEW_BOOKINGS)
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException(f"Booking {booking_id} not found")
        if not self._can_view(booking, actor):
            raise ForbiddenException("You do not have access to this booking")
        return booking

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self,
        actor: User,
        *,
        schedule_id: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[Booking]:
        """Bookings visible to ``actor``: own for clients, taught for trainers, all for staff."""
        ensure_capability(actor, Capability.VIEW_BOOKINGS)
        role = role_of(actor)
        return self.booking_repository.list_bookings(
            user_id=actor.id if role == RoleName.CLIENT else None,
            trainer_user_id=actor.id if role == RoleName.TRAINER else None,
            schedule_id=schedule_id,
            status=status,
            skip=skip,
            limit=limit,
        )

    def _can_view(self, booking: Booking, actor: User) -> bool:
        role = role_of(actor)
        if role == RoleName.CLIENT:
            return booking.is_owned_by(actor.id)
        if role == RoleName.TRAINER:
            trainer = booking.time_slot.session.trainer
            return trainer is not None and trainer.user_id == actor.id
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_for_update(self, booking_id: str) -> Booking:
        booking = self.booking_repository.get_for_update(booking_id)
        if booking is None:
            raise NotFoundException(f"Booking {booking_id} not found")
        return booking

    def _claim_status(
        self, booking: Booking, previous: BookingStatus, target: BookingStatus
    ) -> None:
        if not self.booking_repository.claim_status(booking, previous.value, target.value):
            raise ConflictException(
                "Booking status changed by another request",
                code="BOOKING_STATUS_CHANGED",
                details={"booking_id": booking.id, "expected_status": previous.value},
            )

    def _release_seat(self, booking: Booking) -> None:
        if booking.group_id is None:
            return
        group = self.group_repository.get_for_update(booking.group_id)
        if group is not None:
            self.group_repository.decrement_floored(group)

    def _retake_seat(self, booking: Booking) -> None:
        slot = booking.time_slot
        group = self.allocator.allocate(booking.schedule_id, self._effective_capacity(slot))
        booking.group = group

    def _award_completion_points(self, booking: Booking) -> None:
        points = self.config.completion_loyalty_points
        if booking.user_id is None or points <= 0:
            return
        user_id = booking.user_id
        self.run_side_effect(
            "loyalty",
            lambda: self.loyalty_service.award_points(user_id, points, COMPLETION_REASON),
            booking_id=booking.id,
            user_id=user_id,
        )
