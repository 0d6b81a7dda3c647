"""Seat inventory for events.

Owns the ``booked_seats <= capacity`` invariant. Callers own the transaction:
nothing here commits.
"""
import logging

from sqlalchemy import case, update
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.errors import CapacityExceeded, NotBookable, ValidationError
from eventra.models import BOOKABLE_STATUSES, Event
from eventra.redis_tools import try_acquire_tokens, try_refund_tokens
from eventra.store import get_event

logger = logging.getLogger(__name__)


async def reserve_seats(session: AsyncSession, event_id: int, count: int) -> Event:
    """Book `count` seats on an event, or raise without changing anything.

    The increment is a single conditional UPDATE, so two concurrent callers
    can never both pass the availability check against a stale read.
    """
    if count < 1:
        raise ValidationError("count must be at least 1", field="count")

    event = await get_event(session, event_id)
    if event.status not in BOOKABLE_STATUSES:
        raise NotBookable(event_id, event.status)

    # Optional Redis fast path. None -> disabled, missing key or error; the DB decides.
    reserved_in_redis = await try_acquire_tokens(event_id, count)
    if reserved_in_redis is False:
        raise CapacityExceeded(event_id, available=event.available_seats, requested=count)

    result = await session.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.status.in_(sorted(BOOKABLE_STATUSES)),
            Event.booked_seats + count <= Event.capacity,
        )
        .values(booked_seats=Event.booked_seats + count, version=Event.version + 1)
        .execution_options(synchronize_session=False)
    )
    # re-read rather than refresh: the row may have been deleted meanwhile
    event = await get_event(session, event_id)

    if result.rowcount != 1:
        if reserved_in_redis:
            await try_refund_tokens(event_id, count)
        if event.status not in BOOKABLE_STATUSES:
            raise NotBookable(event_id, event.status)
        raise CapacityExceeded(event_id, available=event.available_seats, requested=count)

    logger.debug("reserved %s seats on event %s (%s/%s)", count, event_id, event.booked_seats, event.capacity)
    return event


async def release_seats(session: AsyncSession, event_id: int, count: int) -> Event:
    """Give `count` seats back to an event, never going below zero."""
    event = await get_event(session, event_id)
    await session.execute(
        update(Event)
        .where(Event.id == event_id)
        .values(
            booked_seats=case((Event.booked_seats > count, Event.booked_seats - count), else_=0),
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    await session.refresh(event)
    await try_refund_tokens(event_id, count)
    logger.debug("released %s seats on event %s (%s/%s)", count, event_id, event.booked_seats, event.capacity)
    return event
