# backend/fitstudio/core/permissions.py
"""
Role based capability checks.

The studio has four fixed roles, so capabilities are a static table rather
than database rows. Services call ``ensure_capability`` once per entry
point; routes can use ``require_capability`` from ``api.dependencies``.
"""

from typing import TYPE_CHECKING, FrozenSet, Mapping, Union

from .enums import Capability, RoleName
from .exceptions import ForbiddenException

if TYPE_CHECKING:
    from ..models.user import User

_STAFF: FrozenSet[RoleName] = frozenset({RoleName.ADMIN, RoleName.MANAGER})

CAPABILITY_ROLES: Mapping[Capability, FrozenSet[RoleName]] = {
    Capability.VIEW_BOOKINGS: frozenset(RoleName),
    Capability.UPDATE_BOOKING_STATUS: _STAFF,
    Capability.CANCEL_BOOKING: _STAFF | {RoleName.CLIENT},
    Capability.DELETE_BOOKING: frozenset({RoleName.ADMIN}),
    Capability.REQUEST_CANCELLATION: _STAFF | {RoleName.CLIENT},
    Capability.VIEW_CANCELLATION_REQUESTS: _STAFF,
    Capability.DECIDE_CANCELLATION_REQUEST: frozenset({RoleName.ADMIN}),
}


def role_of(user: "User") -> RoleName:
    """Return the user's role as an enum; unknown strings raise ValueError."""
    return RoleName(str(user.role).lower())


def has_capability(user: "User", capability: Union[Capability, str]) -> bool:
    try:
        role = role_of(user)
    except ValueError:
        return False
    return role in CAPABILITY_ROLES.get(Capability(capability), frozenset())


def ensure_capability(user: "User", capability: Union[Capability, str]) -> None:
    """Raise ForbiddenException unless the user's role grants ``capability``."""
    if not has_capability(user, capability):
        raise ForbiddenException(
            f"Role {user.role!r} may not {Capability(capability).value.replace('_', ' ')}",
            code="FORBIDDEN",
            details={"capability": Capability(capability).value, "role": str(user.role)},
        )


def is_staff(user: "User") -> bool:
    try:
        return role_of(user) in _STAFF
    except ValueError:
        return False
