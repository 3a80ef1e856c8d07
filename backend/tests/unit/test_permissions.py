from types import SimpleNamespace

import pytest

from fitstudio.core.enums import Capability
from fitstudio.core.exceptions import ForbiddenException
from fitstudio.core.permissions import ensure_capability, has_capability, is_staff, role_of


def _user(role: str) -> SimpleNamespace:
    return SimpleNamespace(id="01HF4G12ABCDEF3456789XYZAB", role=role)


@pytest.mark.parametrize(
    "role, capability, allowed",
    [
        ("client", Capability.CANCEL_BOOKING, True),
        ("manager", Capability.CANCEL_BOOKING, True),
        ("admin", Capability.CANCEL_BOOKING, True),
        ("trainer", Capability.CANCEL_BOOKING, False),
        ("admin", Capability.DELETE_BOOKING, True),
        ("manager", Capability.DELETE_BOOKING, False),
        ("client", Capability.UPDATE_BOOKING_STATUS, False),
        ("manager", Capability.UPDATE_BOOKING_STATUS, True),
        ("admin", Capability.DECIDE_CANCELLATION_REQUEST, True),
        ("manager", Capability.DECIDE_CANCELLATION_REQUEST, False),
        ("client", Capability.REQUEST_CANCELLATION, True),
        ("trainer", Capability.REQUEST_CANCELLATION, False),
        ("trainer", Capability.VIEW_BOOKINGS, True),
        ("client", Capability.VIEW_CANCELLATION_REQUESTS, False),
    ],
)
def test_capability_table(role, capability, allowed):
    assert has_capability(_user(role), capability) is allowed


def test_unknown_role_has_no_capabilities():
    assert not has_capability(_user("janitor"), Capability.VIEW_BOOKINGS)
    assert not is_staff(_user("janitor"))


def test_role_is_case_insensitive():
    assert role_of(_user("ADMIN")).value == "admin"


def test_ensure_capability_raises_forbidden_with_details():
    with pytest.raises(ForbiddenException) as exc_info:
        ensure_capability(_user("trainer"), Capability.CANCEL_BOOKING)

    exc = exc_info.value
    assert exc.status_code == 403
    assert exc.code == "FORBIDDEN"
    assert exc.details == {"capability": "cancel_booking", "role": "trainer"}


def test_staff():
    assert is_staff(_user("admin"))
    assert is_staff(_user("manager"))
    assert not is_staff(_user("client"))
