# backend/fitstudio/routes/v1/cancellation_requests.py
"""
Cancellation request routes - API v1

Clients inside the self-service window ask an admin to cancel for them.

Endpoints:
    POST / - File a request for a booking
    GET / - List requests (admin, manager)
    POST /{request_id}/approve - Approve and cancel the booking (admin)
    POST /{request_id}/reject - Reject with an optional note (admin)
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.params import Path

from ...api.dependencies import (
    get_cancellation_request_service,
    get_current_user,
    require_capability,
)
from ...core.enums import Capability
from ...core.exceptions import DomainException
from ...models.cancellation_request import CancellationRequestStatus
from ...models.user import User
from ...ratelimit.dependency import rate_limit
from ...schemas.cancellation_request import (
    CancellationRequestCreate,
    CancellationRequestReject,
    CancellationRequestResponse,
)
from ...services.cancellation_request_service import CancellationRequestService
from .bookings import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cancellation-requests-v1"])


@router.post(
    "",
    response_model=CancellationRequestResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
    responses={
        403: {"description": "Not your booking"},
        404: {"description": "Booking not found"},
    },
)
async def create_cancellation_request(
    request_data: CancellationRequestCreate = Body(...),
    current_user: User = Depends(get_current_user),
    service: CancellationRequestService = Depends(get_cancellation_request_service),
) -> CancellationRequestResponse:
    try:
        request = await asyncio.to_thread(
            service.create_request,
            request_data.booking_id,
            current_user,
            request_data.message,
        )
        return CancellationRequestResponse.model_validate(request)
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "",
    response_model=List[CancellationRequestResponse],
    dependencies=[Depends(rate_limit("read"))],
)
async def list_cancellation_requests(
    request_status: Optional[CancellationRequestStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(require_capability(Capability.VIEW_CANCELLATION_REQUESTS)),
    service: CancellationRequestService = Depends(get_cancellation_request_service),
) -> List[CancellationRequestResponse]:
    try:
        requests = await asyncio.to_thread(
            service.list_requests,
            current_user,
            request_status.value if request_status else None,
            skip,
            limit,
        )
        return [CancellationRequestResponse.model_validate(request) for request in requests]
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{request_id}/approve",
    response_model=CancellationRequestResponse,
    dependencies=[Depends(rate_limit("write"))],
    responses={
        404: {"description": "Request or booking not found"},
        409: {"description": "Request already decided or booking not cancellable"},
    },
)
async def approve_cancellation_request(
    request_id: str = Path(..., description="Cancellation request ULID", pattern=ULID_PATH_PATTERN),
    current_user: User = Depends(require_capability(Capability.DECIDE_CANCELLATION_REQUEST)),
    service: CancellationRequestService = Depends(get_cancellation_request_service),
) -> CancellationRequestResponse:
    """Approve a pending request; the booking is cancelled in the same transaction."""
    try:
        request = await asyncio.to_thread(service.approve_request, request_id, current_user)
        return CancellationRequestResponse.model_validate(request)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{request_id}/reject",
    response_model=CancellationRequestResponse,
    dependencies=[Depends(rate_limit("write"))],
    responses={
        404: {"description": "Request not found"},
        409: {"description": "Request already decided"},
    },
)
async def reject_cancellation_request(
    request_id: str = Path(..., description="Cancellation request ULID", pattern=ULID_PATH_PATTERN),
    reject_data: Optional[CancellationRequestReject] = Body(None),
    current_user: User = Depends(require_capability(Capability.DECIDE_CANCELLATION_REQUEST)),
    service: CancellationRequestService = Depends(get_cancellation_request_service),
) -> CancellationRequestResponse:
    try:
        request = await asyncio.to_thread(
            service.reject_request,
            request_id,
            current_user,
            reject_data.reason if reject_data else None,
        )
        return CancellationRequestResponse.model_validate(request)
    except DomainException as e:
        handle_domain_exception(e)
