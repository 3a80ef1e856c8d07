from __future__ import annotations

import math
from typing import Any, Callable, Coroutine

from fastapi import HTTPException, Request, Response

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .headers import rate_headers, set_rate_headers
from .limiter import get_rate_limiter

USER_HEADER = "x-user-id"


def resolve_identity(request: Request) -> str:
    """
    Precedence:
    1) acting user id from the X-User-Id header
    2) client IP
    """
    user_id = request.headers.get(USER_HEADER)
    if user_id:
        return f"user:{user_id.strip()}"
    client = getattr(request, "client", None)
    host = getattr(client, "host", None) if client else None
    return f"ip:{host or request.headers.get('x-forwarded-for', 'unknown')}"


def rate_limit(bucket: str) -> Callable[[Request, Response], Coroutine[Any, Any, None]]:
    # FastAPI dependency to attach on routes
    async def dep(request: Request, response: Response) -> None:
        if not settings.enabled:
            return

        decision = get_rate_limiter().check(bucket, resolve_identity(request))
        prometheus_metrics.record_rate_limit_decision(bucket, decision.allowed)

        if decision.allowed:
            set_rate_headers(response, decision)
            return

        raise HTTPException(
            status_code=429,
            detail={
                "message": "Rate limit exceeded",
                "code": "RATE_LIMITED",
                "details": {
                    "bucket": bucket,
                    "retry_after_s": round(decision.retry_after_s, 3)
                    if math.isfinite(decision.retry_after_s)
                    else None,
                },
            },
            headers=rate_headers(decision),
        )

    return dep
