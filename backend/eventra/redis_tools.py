# backend/eventra/redis_tools.py
import asyncio
import logging
import os
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as redis_client

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
USE_REDIS_TOKEN_BUCKET = os.getenv("USE_REDIS_TOKEN_BUCKET", "false").lower() in ("1", "true", "yes")
CAROUSEL_LOCK_BACKEND = os.getenv("CAROUSEL_LOCK_BACKEND", "local")
CAROUSEL_LOCK_TIMEOUT = float(os.getenv("CAROUSEL_LOCK_TIMEOUT", 10))
CAROUSEL_LOCK_KEY = "carousel:lock"

# the client connects lazily, on first command
redis = redis_client.from_url(REDIS_URL, encoding="utf-8", decode_responses=True)

# Lua script for atomic decrement-if-enough
DECR_IF_ENOUGH = """
local key = KEYS[1]
local need = tonumber(ARGV[1])
local val = tonumber(redis.call("GET", key) or "-1")
if val == -1 then
  return -1
end
if val < need then
  return 0
end
redis.call("DECRBY", key, need)
return 1
"""


def _tokens_key(event_id: int) -> str:
    return f"event:{event_id}:tokens"


async def try_acquire_tokens(event_id: int, tokens: int = 1) -> bool | None:
    """
    Atomically attempt to consume `tokens` seats from the event's bucket.
    - Returns True on success
    - Returns False on insufficient tokens
    - Returns None if the bucket is disabled, the key is missing or Redis
      errored; the caller falls back to the database
    """
    if not USE_REDIS_TOKEN_BUCKET:
        return None
    try:
        res = await redis.eval(DECR_IF_ENOUGH, 1, _tokens_key(event_id), str(tokens))
        ival = int(res)
        if ival == 1:
            return True
        if ival == 0:
            return False
        return None
    except Exception:
        logger.exception("Redis error acquiring %s tokens for event %s", tokens, event_id)
        return None


async def try_refund_tokens(event_id: int, tokens: int = 1) -> None:
    """Add tokens back to the bucket (best-effort)."""
    if not USE_REDIS_TOKEN_BUCKET:
        return
    try:
        await redis.incrby(_tokens_key(event_id), int(tokens))
    except Exception:
        logger.exception("Redis error refunding %s tokens for event %s", tokens, event_id)


async def init_tokens_for_event(event_id: int, count: int) -> None:
    """Set the bucket for an event to `count` available seats. Overwrites existing value."""
    if not USE_REDIS_TOKEN_BUCKET:
        return
    try:
        await redis.set(_tokens_key(event_id), int(count))
    except Exception:
        logger.exception("Redis error initializing tokens for event %s", event_id)


async def delete_tokens_for_event(event_id: int) -> None:
    """Delete the bucket for an event (best-effort cleanup when deleting events)."""
    if not USE_REDIS_TOKEN_BUCKET:
        return
    try:
        await redis.delete(_tokens_key(event_id))
    except Exception:
        logger.exception("Redis error deleting tokens for event %s", event_id)


# asyncio.Lock binds to the loop it first waits on, so keep one per loop
_local_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = (
    weakref.WeakKeyDictionary()
)


def _local_carousel_lock() -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    lock = _local_locks.get(loop)
    if lock is None:
        lock = _local_locks[loop] = asyncio.Lock()
    return lock


@asynccontextmanager
async def carousel_lock() -> AsyncIterator[None]:
    """
    Serialize carousel mutations.
    The "local" backend only covers one process; "redis" holds a shared lock
    so several workers can serve the admin API.
    """
    if CAROUSEL_LOCK_BACKEND == "redis":
        async with redis.lock(
            CAROUSEL_LOCK_KEY,
            timeout=CAROUSEL_LOCK_TIMEOUT,
            blocking_timeout=CAROUSEL_LOCK_TIMEOUT,
        ):
            yield
    else:
        async with _local_carousel_lock():
            yield
