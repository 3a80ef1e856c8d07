"""Booking status transitions.

Pure rules, no database access: services call ``validate_transition`` with
the stored status and the requested one before writing anything.
"""

from __future__ import annotations

from typing import FrozenSet, Mapping, Optional, Union

from fitstudio.core.exceptions import InvalidTransitionException, ValidationException
from fitstudio.models.booking import BookingStatus

StatusLike = Union[BookingStatus, str]

_ALLOWED_TRANSITIONS: Mapping[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.BOOKED: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.MISSED}
    ),
    BookingStatus.CANCELLED: frozenset({BookingStatus.BOOKED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.MISSED: frozenset(),
}

PAYMENT_REFERENCE_REQUIRED = "payment reference required to confirm"


def _as_status(value: StatusLike) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError as exc:
        raise ValidationException(
            f"Unknown booking status: {value}",
            code="UNKNOWN_STATUS",
            details={"status": str(value)},
        ) from exc


def allowed_targets(current: StatusLike) -> FrozenSet[BookingStatus]:
    """Statuses reachable from ``current`` through the table (confirmation aside)."""
    return _ALLOWED_TRANSITIONS.get(_as_status(current), frozenset())


def is_confirmation(target: StatusLike) -> bool:
    """Moving to ``booked`` is a payment/attendance confirmation, allowed from any state."""
    return _as_status(target) == BookingStatus.BOOKED


def validate_transition(
    current: StatusLike,
    target: StatusLike,
    *,
    stored_reference: Optional[str] = None,
    supplied_reference: Optional[str] = None,
) -> BookingStatus:
    """Validate ``current -> target`` and return the target as an enum.

    Confirmation (any state to ``booked``) needs a payment reference that is
    either already stored or supplied with the request.

    Raises:
        ValidationException: confirmation without a payment reference
        InvalidTransitionException: the move is not in the transition table
    """
    current_status = _as_status(current)
    target_status = _as_status(target)

    if is_confirmation(target_status):
        if not (stored_reference or supplied_reference):
            raise ValidationException(
                PAYMENT_REFERENCE_REQUIRED,
                code="PAYMENT_REFERENCE_REQUIRED",
                details={"from_status": current_status.value},
            )
        return target_status

    if target_status not in _ALLOWED_TRANSITIONS.get(current_status, frozenset()):
        raise InvalidTransitionException(current_status.value, target_status.value)
    return target_status


def awards_completion_points(previous: StatusLike, new: StatusLike) -> bool:
    """Points are earned on the move into ``completed``, never on a re-save."""
    return (
        _as_status(new) == BookingStatus.COMPLETED
        and _as_status(previous) != BookingStatus.COMPLETED
    )
