# backend/fitstudio/core/exceptions.py
"""
Domain-specific exceptions for the studio booking core.

Services raise these; the API layer turns them into HTTP responses through
``to_http_exception``. Each carries a human readable ``message``, a stable
``code`` and an optional ``details`` mapping.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails (missing guest contact, missing reference)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when the request conflicts with the current state of a resource."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when the caller could not be identified."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when the actor lacks the role or ownership an action requires."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails for infrastructure reasons."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class InvalidTransitionException(ConflictException):
    """Raised when a booking status change is not in the transition table."""

    def __init__(self, from_status: str, to_status: str):
        super().__init__(
            message=f"Cannot move booking from {from_status} to {to_status}",
            code="INVALID_STATUS_TRANSITION",
            details={"from_status": from_status, "to_status": to_status},
        )
        self.from_status = from_status
        self.to_status = to_status


class CancellationWindowException(ConflictException):
    """Raised when a client tries to cancel inside the no-cancel window."""

    def __init__(self, window_hours: int, hours_until_start: float):
        super().__init__(
            message=f"Sorry, you can only cancel {window_hours} hrs prior.",
            code="CANCELLATION_WINDOW_CLOSED",
            details={
                "window_hours": window_hours,
                "hours_until_start": round(hours_until_start, 2),
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access fails: connection issues, query failures or
    constraint violations.
    """
