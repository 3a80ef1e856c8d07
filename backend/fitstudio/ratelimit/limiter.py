"""Rate limiter backends sharing the GCRA decision rules."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
import threading
import time
from typing import Callable, Dict, Optional

import redis

from .config import get_policy, settings
from .gcra import Decision, gcra_decide
from .redis_backend import GCRA_LUA, get_redis

logger = logging.getLogger(__name__)

Buckets = Dict[str, Dict[str, int]]


class RateLimiter(ABC):
    def __init__(self, buckets: Optional[Buckets] = None):
        self.buckets = buckets

    def key(self, bucket: str, identity: str) -> str:
        return f"{settings.namespace}:{bucket}:{identity}"

    @abstractmethod
    def check(self, bucket: str, identity: str) -> Decision:
        """Consume one request for ``identity`` in ``bucket`` and return the decision."""


class InMemoryRateLimiter(RateLimiter):
    """
    Process-local limiter; state is lost on restart and not shared between workers.

    A stored TAT that is already in the past decides exactly like a missing
    one, so such entries are swept every ``prune_interval_s`` seconds.
    """

    def __init__(
        self,
        buckets: Optional[Buckets] = None,
        clock: Callable[[], float] = time.time,
        prune_interval_s: float = 60.0,
    ):
        super().__init__(buckets)
        self._clock = clock
        self._prune_interval_s = prune_interval_s
        self._tats: Dict[str, float] = {}
        self._last_prune: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._tats)

    def check(self, bucket: str, identity: str) -> Decision:
        policy = get_policy(bucket, self.buckets)
        key = self.key(bucket, identity)
        with self._lock:
            now = self._clock()
            self._maybe_prune(now)
            new_tat, decision = gcra_decide(
                now,
                self._tats.get(key),
                int(policy.get("rate_per_min", 60)),
                int(policy.get("burst", 0)),
            )
            if decision.allowed:
                self._tats[key] = new_tat
        return decision

    def _maybe_prune(self, now: float) -> None:
        if self._last_prune is not None and now - self._last_prune < self._prune_interval_s:
            return
        expired = [key for key, tat in self._tats.items() if tat <= now]
        for key in expired:
            del self._tats[key]
        self._last_prune = now
        if expired:
            logger.debug(f"Pruned {len(expired)} idle rate limit keys")

    def reset(self) -> None:
        with self._lock:
            self._tats.clear()
            self._last_prune = None


class RedisRateLimiter(RateLimiter):
    """Shared limiter evaluating GCRA atomically inside Redis."""

    def __init__(self, client: Optional["redis.Redis"] = None, buckets: Optional[Buckets] = None):
        super().__init__(buckets)
        self._client = client

    @property
    def client(self) -> "redis.Redis":
        if self._client is None:
            self._client = get_redis()
        return self._client

    def check(self, bucket: str, identity: str) -> Decision:
        policy = get_policy(bucket, self.buckets)
        rate_per_min = int(policy.get("rate_per_min", 60))
        burst = int(policy.get("burst", 0))
        if rate_per_min <= 0:
            return gcra_decide(time.time(), None, rate_per_min, burst)[1]

        interval_ms = int(60000 / rate_per_min)
        now_ms = int(time.time() * 1000)
        ttl_s = max(1, int(policy.get("window_s", 60)) + (burst + 1) * interval_ms // 1000)
        try:
            res = self.client.eval(
                GCRA_LUA, 1, self.key(bucket, identity), now_ms, interval_ms, burst, ttl_s
            )
        except redis.RedisError as e:
            # Redis unavailable -> permissive decision
            logger.warning(f"Rate limiter unavailable for bucket {bucket}: {str(e)}")
            return Decision(
                allowed=True,
                retry_after_s=0.0,
                remaining=max(0, burst),
                limit=burst + 1,
                reset_epoch_s=time.time() + burst * (interval_ms / 1000.0),
            )
        # res: [allowed, retry_after_ms, remaining, limit, reset_epoch_s, new_tat_ms]
        return Decision(
            allowed=bool(int(res[0])),
            retry_after_s=float(res[1]) / 1000.0,
            remaining=int(res[2]),
            limit=int(res[3]),
            reset_epoch_s=float(res[4]),
        )


_limiter: Optional[RateLimiter] = None
_limiter_lock = threading.Lock()


def get_rate_limiter() -> RateLimiter:
    global _limiter
    with _limiter_lock:
        if _limiter is None:
            _limiter = RedisRateLimiter() if settings.backend == "redis" else InMemoryRateLimiter()
        return _limiter


def set_rate_limiter(limiter: Optional[RateLimiter]) -> None:
    """Install ``limiter`` process-wide; None rebuilds the configured one on next use."""
    global _limiter
    with _limiter_lock:
        _limiter = limiter
