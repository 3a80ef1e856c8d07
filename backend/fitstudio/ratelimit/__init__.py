"""Rate limiting engine (GCRA) with in-memory and Redis backends."""

from .dependency import rate_limit
from .gcra import Decision, gcra_decide
from .limiter import (
    InMemoryRateLimiter,
    RateLimiter,
    RedisRateLimiter,
    get_rate_limiter,
    set_rate_limiter,
)

__all__ = [
    "Decision",
    "InMemoryRateLimiter",
    "RateLimiter",
    "RedisRateLimiter",
    "gcra_decide",
    "get_rate_limiter",
    "rate_limit",
    "set_rate_limiter",
]
