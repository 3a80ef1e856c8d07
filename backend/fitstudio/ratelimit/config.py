from dataclasses import dataclass
import os
from typing import Dict, Optional

from ..core.config import settings as app_settings


@dataclass(frozen=True)
class RateLimitSettings:
    enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    # "memory" keeps state per process; "redis" shares it across workers
    backend: str = os.getenv("RATE_LIMIT_BACKEND", "memory").strip().lower()
    redis_url: str = os.getenv("RATE_LIMIT_REDIS_URL", app_settings.redis_url)
    namespace: str = os.getenv("RATE_LIMIT_NAMESPACE", "fitstudio")
    default_policy: str = os.getenv("RATE_LIMIT_DEFAULT_POLICY", "read")


settings = RateLimitSettings()

# bucket policies
BUCKETS: Dict[str, Dict[str, int]] = {
    "read": dict(rate_per_min=120, burst=20, window_s=60),
    "write": dict(rate_per_min=30, burst=5, window_s=60),
    # booking admission takes the schedule lock, keep it tighter
    "booking": dict(rate_per_min=20, burst=5, window_s=60),
}


def get_policy(bucket: str, buckets: Optional[Dict[str, Dict[str, int]]] = None) -> Dict[str, int]:
    """Policy for ``bucket``, falling back to the default policy."""
    table = BUCKETS if buckets is None else buckets
    return dict(table.get(bucket) or table.get(settings.default_policy) or BUCKETS["read"])
