import asyncio

import pytest

from eventra import redis_tools
from eventra.errors import CapacityExceeded
from eventra.services.booking import create_reservation
from eventra.services.guests import Contact


class BrokenRedis:
    async def eval(self, *args, **kwargs):
        raise ConnectionError("redis is down")

    async def incrby(self, *args, **kwargs):
        raise ConnectionError("redis is down")

    async def set(self, *args, **kwargs):
        raise ConnectionError("redis is down")

    async def delete(self, *args, **kwargs):
        raise ConnectionError("redis is down")


class FakeBucket:
    """Just enough of the Redis API to drive the token bucket."""

    def __init__(self):
        self.values = {}

    async def eval(self, script, numkeys, key, need):
        if key not in self.values:
            return -1
        if self.values[key] < int(need):
            return 0
        self.values[key] -= int(need)
        return 1

    async def incrby(self, key, amount):
        self.values[key] = self.values.get(key, 0) + amount

    async def set(self, key, value):
        self.values[key] = int(value)

    async def delete(self, key):
        self.values.pop(key, None)


@pytest.mark.asyncio
async def test_bucket_disabled_defers_to_database(monkeypatch):
    monkeypatch.setattr(redis_tools, "USE_REDIS_TOKEN_BUCKET", False)
    monkeypatch.setattr(redis_tools, "redis", BrokenRedis())

    assert await redis_tools.try_acquire_tokens(1, 2) is None
    await redis_tools.try_refund_tokens(1, 2)
    await redis_tools.init_tokens_for_event(1, 10)
    await redis_tools.delete_tokens_for_event(1)


@pytest.mark.asyncio
async def test_redis_errors_fall_back(monkeypatch):
    monkeypatch.setattr(redis_tools, "USE_REDIS_TOKEN_BUCKET", True)
    monkeypatch.setattr(redis_tools, "redis", BrokenRedis())

    assert await redis_tools.try_acquire_tokens(1, 2) is None
    await redis_tools.try_refund_tokens(1, 2)
    await redis_tools.init_tokens_for_event(1, 10)


@pytest.mark.asyncio
async def test_token_bucket(monkeypatch):
    bucket = FakeBucket()
    monkeypatch.setattr(redis_tools, "USE_REDIS_TOKEN_BUCKET", True)
    monkeypatch.setattr(redis_tools, "redis", bucket)

    assert await redis_tools.try_acquire_tokens(7, 1) is None
    await redis_tools.init_tokens_for_event(7, 3)
    assert await redis_tools.try_acquire_tokens(7, 2) is True
    assert await redis_tools.try_acquire_tokens(7, 2) is False
    await redis_tools.try_refund_tokens(7, 2)
    assert bucket.values["event:7:tokens"] == 3
    await redis_tools.delete_tokens_for_event(7)
    assert bucket.values == {}


@pytest.mark.asyncio
async def test_bucket_rejection_surfaces_as_capacity_error(monkeypatch, session, make_event, fetch_event):
    bucket = FakeBucket()
    monkeypatch.setattr(redis_tools, "USE_REDIS_TOKEN_BUCKET", True)
    monkeypatch.setattr(redis_tools, "redis", bucket)
    event = await make_event(capacity=10)
    await redis_tools.init_tokens_for_event(event.id, 1)

    with pytest.raises(CapacityExceeded):
        await create_reservation(session, event.id, Contact(name="Layla", phone="+971500000001"), 2)

    assert (await fetch_event(event.id)).booked_seats == 0


@pytest.mark.asyncio
async def test_local_carousel_lock_serializes():
    order = []

    async def worker(name):
        async with redis_tools.carousel_lock():
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])
