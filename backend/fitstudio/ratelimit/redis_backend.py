import redis

from .config import settings


def get_redis() -> "redis.Redis":
    return redis.Redis.from_url(settings.redis_url, decode_responses=True)


# Lua script implementing GCRA logic using TAT (Theoretical Arrival Time)
# KEYS[1] = storage key
# ARGV[1] = now_ms
# ARGV[2] = interval_ms (60_000 / rate_per_min)
# ARGV[3] = burst
# ARGV[4] = key ttl in seconds
# Returns: {allowed, retry_after_ms, remaining, limit, reset_epoch_s, new_tat_ms}
GCRA_LUA = r"""
local key = KEYS[1]
local now_ms = tonumber(ARGV[1])
local interval_ms = tonumber(ARGV[2])
local burst = tonumber(ARGV[3])
local ttl_s = tonumber(ARGV[4])

local tat_ms = redis.call('GET', key)
if tat_ms then tat_ms = tonumber(tat_ms) end

if not tat_ms then
  tat_ms = now_ms - (burst * interval_ms)
end

local limit = burst + 1
local reset_epoch_s = math.floor((now_ms + (burst * interval_ms)) / 1000)

if now_ms >= (tat_ms - (burst * interval_ms)) then
  local new_tat_ms = math.max(tat_ms, now_ms) + interval_ms
  local remaining = math.max(0, burst - math.floor(((new_tat_ms - now_ms) / interval_ms) - 1))
  redis.call('SET', key, new_tat_ms, 'EX', ttl_s)
  return {1, 0, remaining, limit, reset_epoch_s, new_tat_ms}
end

local retry_after_ms = math.max(0, (tat_ms - (burst * interval_ms)) - now_ms)
return {0, retry_after_ms, 0, limit, reset_epoch_s, tat_ms}
"""

__all__ = ["get_redis", "GCRA_LUA"]
