from typing import Dict, Optional

from fastapi import Response

from .gcra import Decision


def rate_headers(decision: Decision) -> Dict[str, str]:
    headers = {
        "X-RateLimit-Remaining": str(max(decision.remaining, 0)),
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Reset": str(int(decision.reset_epoch_s)),
    }
    retry_after: Optional[float] = None if decision.allowed else decision.retry_after_s
    if retry_after and 0 < retry_after < float("inf"):
        # round up so clients never retry a moment too early
        headers["Retry-After"] = str(max(1, int(retry_after + 0.999)))
    return headers


def set_rate_headers(res: Response, decision: Decision) -> None:
    for name, value in rate_headers(decision).items():
        res.headers[name] = value
