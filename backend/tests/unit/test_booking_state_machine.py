import pytest

from fitstudio.core.exceptions import InvalidTransitionException, ValidationException
from fitstudio.domain.booking_state_machine import (
    PAYMENT_REFERENCE_REQUIRED,
    allowed_targets,
    awards_completion_points,
    is_confirmation,
    validate_transition,
)
from fitstudio.models.booking import BookingStatus

BOOKED = BookingStatus.BOOKED
CANCELLED = BookingStatus.CANCELLED
COMPLETED = BookingStatus.COMPLETED
MISSED = BookingStatus.MISSED


class TestTransitionTable:
    @pytest.mark.parametrize("target", [COMPLETED, CANCELLED, MISSED])
    def test_booked_moves_forward(self, target):
        assert validate_transition(BOOKED, target) == target

    @pytest.mark.parametrize("target", [CANCELLED, MISSED])
    def test_completed_is_terminal(self, target):
        with pytest.raises(InvalidTransitionException) as exc_info:
            validate_transition(COMPLETED, target)
        assert exc_info.value.details == {"from_status": "completed", "to_status": target.value}
        assert exc_info.value.status_code == 409

    def test_completed_to_completed_is_rejected(self):
        with pytest.raises(InvalidTransitionException):
            validate_transition(COMPLETED, COMPLETED)

    @pytest.mark.parametrize("target", [COMPLETED, CANCELLED, MISSED])
    def test_missed_is_terminal(self, target):
        with pytest.raises(InvalidTransitionException):
            validate_transition(MISSED, target)

    @pytest.mark.parametrize("target", [COMPLETED, CANCELLED, MISSED])
    def test_cancelled_only_reconfirms(self, target):
        with pytest.raises(InvalidTransitionException):
            validate_transition(CANCELLED, target)

    def test_accepts_plain_strings(self):
        assert validate_transition("booked", "completed") is COMPLETED

    def test_unknown_status_is_validation_error(self):
        with pytest.raises(ValidationException) as exc_info:
            validate_transition(BOOKED, "refunded")
        assert exc_info.value.code == "UNKNOWN_STATUS"

    def test_allowed_targets(self):
        assert allowed_targets(BOOKED) == {COMPLETED, CANCELLED, MISSED}
        assert allowed_targets(COMPLETED) == frozenset()


class TestConfirmation:
    @pytest.mark.parametrize("current", list(BookingStatus))
    def test_confirmation_allowed_from_any_state_with_reference(self, current):
        assert validate_transition(current, BOOKED, supplied_reference="OK-123") is BOOKED

    def test_stored_reference_is_enough(self):
        assert validate_transition(CANCELLED, BOOKED, stored_reference="TXN-9") is BOOKED

    @pytest.mark.parametrize("current", list(BookingStatus))
    def test_confirmation_without_reference_fails(self, current):
        with pytest.raises(ValidationException) as exc_info:
            validate_transition(current, BOOKED)
        assert exc_info.value.message == PAYMENT_REFERENCE_REQUIRED
        assert exc_info.value.status_code == 400

    def test_empty_reference_counts_as_missing(self):
        with pytest.raises(ValidationException):
            validate_transition(BOOKED, BOOKED, stored_reference="", supplied_reference="")

    def test_is_confirmation(self):
        assert is_confirmation("booked")
        assert not is_confirmation(COMPLETED)


class TestCompletionPoints:
    def test_points_on_move_into_completed(self):
        assert awards_completion_points(BOOKED, COMPLETED)

    def test_no_points_when_already_completed(self):
        assert not awards_completion_points(COMPLETED, COMPLETED)

    @pytest.mark.parametrize("target", [BOOKED, CANCELLED, MISSED])
    def test_no_points_for_other_targets(self, target):
        assert not awards_completion_points(BOOKED, target)
