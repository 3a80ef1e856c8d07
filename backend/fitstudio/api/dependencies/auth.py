# backend/fitstudio/api/dependencies/auth.py
"""
Acting-user dependencies.

Authentication happens upstream (gateway or session layer); it forwards the
authenticated user's id in the ``X-User-Id`` header. These dependencies
resolve that id to an active ``User`` and enforce role capabilities.
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from ...core.enums import Capability
from ...core.exceptions import ForbiddenException, UnauthorizedException
from ...core.permissions import has_capability
from ...models.user import User
from ...repositories.user_repository import UserRepository
from .database import get_db

logger = logging.getLogger(__name__)


def get_optional_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Acting user when the header is present; unknown or inactive ids are rejected."""
    if not x_user_id or not x_user_id.strip():
        return None
    user = UserRepository(db).get_active(x_user_id.strip())
    if user is None:
        logger.info("Rejected unknown or inactive acting user", extra={"user_id": x_user_id})
        raise UnauthorizedException(
            "Unknown or inactive user", code="UNAUTHORIZED", details={"user_id": x_user_id}
        ).to_http_exception()
    return user


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise UnauthorizedException(
            "X-User-Id header required", code="UNAUTHORIZED"
        ).to_http_exception()
    return user


def require_capability(capability: Capability) -> Callable[..., User]:
    """Dependency factory: the acting user must hold ``capability``."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        if not has_capability(user, capability):
            raise ForbiddenException(
                f"Role {user.role!r} may not {capability.value.replace('_', ' ')}",
                code="FORBIDDEN",
                details={"capability": capability.value, "role": str(user.role)},
            ).to_http_exception()
        return user

    return dependency
