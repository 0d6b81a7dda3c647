"""Featured carousel curation.

The carousel is the set of events with ``is_featured`` set. Their
``carousel_position`` values always form a dense sequence 1..K with K <= 10.
Every mutation holds the carousel-wide lock and applies its change, re-pack
included, in a single transaction, so no caller sees a gapped sequence.
"""
import logging
from datetime import datetime, time
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.db import transaction
from eventra.errors import (
    AlreadyFeatured,
    CarouselFull,
    NotEligible,
    NotFeatured,
    ValidationError,
)
from eventra.models import CAROUSEL_ELIGIBLE_STATUSES, Event, as_utc, utcnow
from eventra.redis_tools import carousel_lock
from eventra.store import get_event

logger = logging.getLogger(__name__)

MAX_CAROUSEL_SIZE = 10


def _slot_order(event: Event):
    return (event.carousel_position or 0, as_utc(event.starts_at), event.id)


async def _featured(session: AsyncSession, *, for_update: bool = False) -> list[Event]:
    q = (
        select(Event)
        .where(Event.is_featured.is_(True))
        .order_by(Event.carousel_position, Event.starts_at, Event.id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        q = q.with_for_update()
    res = await session.execute(q)
    return sorted(res.scalars().all(), key=_slot_order)


def _repack(events: Iterable[Event]) -> list[Event]:
    ordered = list(events)
    for position, event in enumerate(ordered, start=1):
        event.carousel_position = position
    return ordered


def _unfeature(event: Event) -> None:
    event.is_featured = False
    event.carousel_position = None
    event.featured_at = None


def _check_eligible(event: Event, now: datetime) -> None:
    if event.status not in CAROUSEL_ELIGIBLE_STATUSES:
        raise NotEligible(event.id, "Only approved, live, upcoming or ongoing events can be featured in carousel")
    start_of_today = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    if as_utc(event.starts_at) < start_of_today:
        raise NotEligible(event.id, "Cannot add past events to carousel")


async def list_carousel(session: AsyncSession) -> list[Event]:
    """Featured events by position, ties broken by date."""
    return await _featured(session)


async def add_to_carousel(session: AsyncSession, event_id: int, now: datetime | None = None) -> list[Event]:
    """Append an event at the end of the carousel and return the carousel."""
    return await bulk_add(session, [event_id], now=now)


async def bulk_add(session: AsyncSession, event_ids: Sequence[int], now: datetime | None = None) -> list[Event]:
    """Append events in the given order. Either all are added or none."""
    if not event_ids:
        raise ValidationError("At least one event id is required", field="event_ids")
    if len(set(event_ids)) != len(event_ids):
        raise ValidationError("Event ids must be unique", field="event_ids")
    now = as_utc(now or utcnow())

    async with carousel_lock():
        async with transaction(session):
            featured = await _featured(session, for_update=True)
            for event_id in event_ids:
                event = await get_event(session, event_id, for_update=True)
                _check_eligible(event, now)
                if event.is_featured:
                    raise AlreadyFeatured(event_id)
                if len(featured) >= MAX_CAROUSEL_SIZE:
                    raise CarouselFull(MAX_CAROUSEL_SIZE)
                top = max((e.carousel_position or 0 for e in featured), default=0)
                event.is_featured = True
                event.carousel_position = top + 1
                event.featured_at = now
                featured.append(event)
    logger.info("carousel: added %s, now %s events", list(event_ids), len(featured))
    return featured


async def remove_from_carousel(session: AsyncSession, event_id: int) -> list[Event]:
    """Take an event off the carousel and close the gap it leaves."""
    return await bulk_remove(session, [event_id])


async def bulk_remove(session: AsyncSession, event_ids: Sequence[int]) -> list[Event]:
    """Remove events and re-pack the rest. Either all are removed or none."""
    if not event_ids:
        raise ValidationError("At least one event id is required", field="event_ids")

    async with carousel_lock():
        async with transaction(session):
            for event_id in event_ids:
                event = await get_event(session, event_id, for_update=True)
                if not event.is_featured:
                    raise NotFeatured(event_id)
            remaining = await _remove_featured(session, set(event_ids))
    logger.info("carousel: removed %s, now %s events", list(event_ids), len(remaining))
    return remaining


async def reorder_carousel(session: AsyncSession, assignments: Sequence[tuple[int, int]]) -> list[Event]:
    """Apply client-chosen positions, then re-pack so the result stays dense.

    Assigned events sort by their requested position; unassigned ones keep
    their current position and yield to an assigned event asking for the
    same slot. Ties fall back to the event date.
    """
    if not assignments:
        raise ValidationError("Invalid order data format", field="events")
    requested: dict[int, int] = {}
    for event_id, position in assignments:
        if not isinstance(position, int) or isinstance(position, bool) or position < 1:
            raise ValidationError("Each item must have eventId and a positive position", event_id=event_id)
        if event_id in requested:
            raise ValidationError("Each event may appear only once", event_id=event_id)
        requested[event_id] = position

    async with carousel_lock():
        async with transaction(session):
            featured = await _featured(session, for_update=True)
            featured_ids = {e.id for e in featured}
            for event_id in requested:
                if event_id not in featured_ids:
                    await get_event(session, event_id)
                    raise NotFeatured(event_id)

            def sort_key(event: Event):
                if event.id in requested:
                    return (requested[event.id], 0, as_utc(event.starts_at), event.id)
                return (event.carousel_position or 0, 1, as_utc(event.starts_at), event.id)

            ordered = _repack(sorted(featured, key=sort_key))
    logger.info("carousel: reordered %s", [(e.id, e.carousel_position) for e in ordered])
    return ordered


async def _remove_featured(session: AsyncSession, removing: set[int]) -> list[Event]:
    featured = await _featured(session, for_update=True)
    for event in featured:
        if event.id in removing:
            _unfeature(event)
    return _repack(e for e in featured if e.id not in removing)


async def unfeature_in_transaction(session: AsyncSession, event: Event) -> None:
    """Take an event off the carousel inside the caller's transaction.

    The caller must hold ``carousel_lock()``; the lock is not reentrant.
    """
    if event.is_featured:
        await _remove_featured(session, {event.id})
        logger.info("carousel: dropped %s", event.id)
