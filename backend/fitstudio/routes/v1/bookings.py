# backend/fitstudio/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    GET / - List bookings visible to the acting user
    POST / - Book a seat (guest or registered client)
    GET /{booking_id} - Booking details
    PATCH /{booking_id}/status - Move a booking through the status machine (staff)
    POST /{booking_id}/confirm-payment - Store/verify a payment reference
    POST /{booking_id}/cancel - Cancel a booking
    DELETE /{booking_id} - Remove a booking (admin)
"""

import asyncio
import logging
from typing import Any, List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from fastapi.params import Path

from ...api.dependencies import (
    get_booking_service,
    get_current_user,
    get_optional_user,
    require_capability,
)
from ...core.enums import Capability, RoleName
from ...core.exceptions import DomainException, ForbiddenException
from ...core.permissions import role_of
from ...models.booking import BookingStatus
from ...models.user import User
from ...ratelimit.dependency import rate_limit
from ...schemas.booking import (
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
    PaymentConfirmationRequest,
    PaymentConfirmationResponse,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def booking_id_path() -> Any:
    return Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    )


@router.get(
    "",
    response_model=List[BookingResponse],
    dependencies=[Depends(rate_limit("read"))],
)
async def list_bookings(
    schedule_id: Optional[str] = Query(None, pattern=ULID_PATH_PATTERN),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    """
    List bookings, newest first.

    Clients see their own bookings, trainers the bookings for sessions they
    teach, admins and managers everything.
    """
    try:
        bookings = await asyncio.to_thread(
            booking_service.list_bookings,
            current_user,
            schedule_id=schedule_id,
            status=booking_status.value if booking_status else None,
            skip=skip,
            limit=limit,
        )
        return [BookingResponse.from_booking(booking) for booking in bookings]
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("booking"))],
    responses={
        400: {"description": "Guest details missing"},
        404: {"description": "Time slot, session or user not found"},
        409: {"description": "Schedule cancelled"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    current_user: Optional[User] = Depends(get_optional_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Book a seat on a schedule time slot.

    Guests send name and phone; registered clients send ``user_id``. A
    signed-in client can only book for themselves.
    """
    try:
        if (
            current_user is not None
            and booking_data.user_id is not None
            and role_of(current_user) == RoleName.CLIENT
            and booking_data.user_id != current_user.id
        ):
            raise ForbiddenException("Clients can only book for themselves")

        booking = await asyncio.to_thread(booking_service.create_booking, booking_data)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    dependencies=[Depends(rate_limit("read"))],
    responses={404: {"description": "Booking not found"}},
)
async def get_booking_details(
    booking_id: str = booking_id_path(),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, booking_id, current_user)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch(
    "/{booking_id}/status",
    response_model=BookingResponse,
    dependencies=[Depends(rate_limit("write"))],
    responses={
        400: {"description": "Payment reference required to confirm"},
        404: {"description": "Booking not found"},
        409: {"description": "Transition not allowed"},
    },
)
async def update_booking_status(
    booking_id: str = booking_id_path(),
    update_data: BookingStatusUpdate = Body(...),
    current_user: User = Depends(require_capability(Capability.UPDATE_BOOKING_STATUS)),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Move a booking to a new status (admin and manager only)."""
    try:
        booking = await asyncio.to_thread(
            booking_service.update_booking_status,
            booking_id,
            update_data.status,
            update_data.payment_reference,
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/confirm-payment",
    response_model=PaymentConfirmationResponse,
    dependencies=[Depends(rate_limit("write"))],
    responses={404: {"description": "Booking not found"}},
)
async def confirm_booking_payment(
    booking_id: str = booking_id_path(),
    payment_data: Optional[PaymentConfirmationRequest] = Body(None),
    booking_service: BookingService = Depends(get_booking_service),
) -> PaymentConfirmationResponse:
    """
    Attach a payment reference and complete the booking when it verifies.

    ``verified`` reports whether the effective reference carries a known
    confirmation prefix.
    """
    try:
        result = await asyncio.to_thread(
            booking_service.confirm_payment,
            booking_id,
            payment_data.payment_reference if payment_data else None,
        )
        return PaymentConfirmationResponse(
            booking=BookingResponse.from_booking(result.booking),
            verified=result.verified,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    dependencies=[Depends(rate_limit("write"))],
    responses={
        403: {"description": "Not allowed to cancel this booking"},
        404: {"description": "Booking not found"},
        409: {"description": "Inside the cancellation window or not cancellable"},
    },
)
async def cancel_booking(
    booking_id: str = booking_id_path(),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Cancel a booking and free its seat."""
    try:
        booking = await asyncio.to_thread(booking_service.cancel_booking, booking_id, current_user)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(rate_limit("write"))],
    responses={404: {"description": "Booking not found"}},
)
async def delete_booking(
    booking_id: str = booking_id_path(),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> Response:
    """Remove a booking permanently (admin only)."""
    try:
        await asyncio.to_thread(booking_service.delete_booking, booking_id, current_user)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)
