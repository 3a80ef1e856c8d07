from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class Decision:
    allowed: bool
    retry_after_s: float
    remaining: int
    limit: int
    reset_epoch_s: float


def _to_interval_s(rate_per_min: int) -> float:
    if rate_per_min <= 0:
        return float("inf")
    return 60.0 / float(rate_per_min)


def gcra_decide(
    now_s: float,
    last_tat_s: Optional[float],
    rate_per_min: int,
    burst: int,
) -> Tuple[float, Decision]:
    """
    Generalized Cell Rate Algorithm (token-bucket equivalent) pure decision function.

    Args:
        now_s: current wall time in seconds (epoch)
        last_tat_s: last Theoretical Arrival Time stored for the key, or None if new
        rate_per_min: permitted average request rate per minute
        burst: extra requests allowed back to back on top of the first one

    Returns:
        (new_tat_s, Decision); the caller stores new_tat_s only when allowed
    """
    interval = _to_interval_s(rate_per_min)

    if interval == float("inf"):
        # Zero rate -> always blocked
        baseline = last_tat_s if last_tat_s is not None else now_s
        decision = Decision(False, retry_after_s=float("inf"), remaining=0, limit=0, reset_epoch_s=baseline)
        return baseline, decision

    burst_window = burst * interval
    tat = last_tat_s if last_tat_s is not None else now_s - burst_window
    reset_epoch_s = now_s + burst_window

    if now_s >= tat - burst_window:
        new_tat = max(tat, now_s) + interval
        used = (new_tat - now_s) / interval
        remaining = max(0, int(burst - (used - 1)))
        return new_tat, Decision(True, retry_after_s=0.0, remaining=remaining, limit=burst + 1, reset_epoch_s=reset_epoch_s)

    retry_after = max(0.0, (tat - burst_window) - now_s)
    return tat, Decision(False, retry_after_s=retry_after, remaining=0, limit=burst + 1, reset_epoch_s=reset_epoch_s)
