"""
Prometheus metrics middleware for HTTP request tracking.

Records duration and status of every request except the scrape endpoint
itself.
"""

import re
import time
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..monitoring.prometheus_metrics import prometheus_metrics

METRICS_PATH = "/metrics"

_ULID_SEGMENT = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$")


def normalize_path(raw_path: str) -> str:
    """Collapse ids to ``:id`` so the endpoint label stays low-cardinality."""
    # Example: /api/v1/bookings/01HF4G12ABCDEF3456789XYZAB/cancel -> /api/v1/bookings/:id/cancel
    return "/".join(
        ":id" if segment.isdigit() or _ULID_SEGMENT.match(segment) else segment
        for segment in raw_path.split("/")
    )


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path == METRICS_PATH:
            return await call_next(request)

        method = request.method
        path = normalize_path(request.url.path)
        start_time = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            prometheus_metrics.record_http_request(
                method=method,
                endpoint=path,
                duration=time.perf_counter() - start_time,
                status_code=status_code,
            )
