"""Event catalogue: creation, updates, approval and deletion."""
import logging
import os
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy import delete as sqla_delete
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.db import transaction
from eventra.errors import EventInUse, NotFound, ValidationError
from eventra.models import (
    CAROUSEL_ELIGIBLE_STATUSES,
    OPEN_RESERVATION_STATUSES,
    Event,
    EventStatus,
    GuestEntry,
    Reservation,
    utcnow,
)
from eventra.redis_tools import carousel_lock, delete_tokens_for_event, init_tokens_for_event
from eventra.services.carousel import unfeature_in_transaction
from eventra.store import get_event

logger = logging.getLogger(__name__)

DEFAULT_COMMISSION_RATE = Decimal(os.getenv("DEFAULT_COMMISSION_RATE", "10"))
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "AED")

EDITABLE_FIELDS = frozenset(
    {
        "title", "description", "venue", "location", "category", "organizer",
        "contact_whatsapp", "starts_at", "capacity", "price", "commission_rate", "currency",
    }
)


def _validate_money(fields: dict) -> None:
    if fields.get("price") is not None and Decimal(fields["price"]) < 0:
        raise ValidationError("price cannot be negative", field="price")
    rate = fields.get("commission_rate")
    if rate is not None and not 0 <= Decimal(rate) <= 100:
        raise ValidationError("commission_rate must be between 0 and 100", field="commission_rate")


async def create_event(session: AsyncSession, **fields) -> Event:
    """Create an event in ``pending`` status with no seats booked."""
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown event fields: {sorted(unknown)}")
    if not fields.get("title"):
        raise ValidationError("title is required", field="title")
    if fields.get("starts_at") is None:
        raise ValidationError("starts_at is required", field="starts_at")
    if int(fields.get("capacity") or 0) < 1:
        raise ValidationError("capacity must be at least 1", field="capacity")
    _validate_money(fields)

    fields.setdefault("price", Decimal("0"))
    if fields.get("commission_rate") is None:
        fields["commission_rate"] = DEFAULT_COMMISSION_RATE
    if not fields.get("currency"):
        fields["currency"] = DEFAULT_CURRENCY

    async with transaction(session):
        event = Event(**fields, booked_seats=0, status=EventStatus.PENDING.value, version=0)
        session.add(event)
        await session.flush()
    await init_tokens_for_event(event.id, event.available_seats)
    logger.info("event %s created with capacity %s", event.id, event.capacity)
    return event


async def list_events(
    session: AsyncSession,
    status: str | None = None,
    featured: bool | None = None,
    upcoming_only: bool = False,
    statuses: frozenset[str] | None = None,
    limit: int = 50,
) -> list[Event]:
    q = select(Event)
    if status is not None:
        q = q.where(Event.status == status)
    if statuses is not None:
        q = q.where(Event.status.in_(sorted(statuses)))
    if featured is not None:
        q = q.where(Event.is_featured.is_(featured))
    if upcoming_only:
        q = q.where(Event.starts_at >= utcnow())
    q = q.order_by(Event.starts_at, Event.id).limit(limit)
    res = await session.execute(q)
    return list(res.scalars().all())


async def update_event(session: AsyncSession, event_id: int, **changes) -> Event:
    """Edit an event. Price changes never touch existing reservations."""
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown event fields: {sorted(unknown)}")
    changes = {k: v for k, v in changes.items() if v is not None}
    _validate_money(changes)

    async with transaction(session):
        event = await get_event(session, event_id, for_update=True)
        capacity = changes.get("capacity")
        if capacity is not None and capacity < max(1, event.booked_seats):
            raise ValidationError(
                f"capacity {capacity} less than booked seats {event.booked_seats}",
                field="capacity",
                booked_seats=event.booked_seats,
            )
        for name, value in changes.items():
            setattr(event, name, value)

    if "capacity" in changes:
        await init_tokens_for_event(event.id, event.available_seats)
    return event


async def update_event_status(session: AsyncSession, event_id: int, status: str) -> Event:
    """Approve, reject, cancel or complete an event.

    An event leaving the carousel-eligible statuses is taken off the carousel
    in the same transaction.
    """
    try:
        target = EventStatus(status)
    except ValueError:
        raise ValidationError(f"Invalid status value {status!r}", field="status")

    async with carousel_lock():
        async with transaction(session):
            event = await get_event(session, event_id, for_update=True)
            previous = event.status
            event.status = target.value
            if target.value not in CAROUSEL_ELIGIBLE_STATUSES:
                await unfeature_in_transaction(session, event)

    logger.info("event %s: %s -> %s", event_id, previous, target.value)
    return event


async def delete_event(session: AsyncSession, event_id: int) -> None:
    """Delete an event with no open (pending or confirmed) reservations.

    Closed reservations and guest entries go with it. The event row is locked
    before the check, so no booking can slip in between the check and the
    delete, and a refused delete leaves the carousel untouched.
    """
    async with carousel_lock():
        async with transaction(session):
            event = await get_event(session, event_id, for_update=True)
            await _ensure_no_open_reservations(session, event_id)
            await unfeature_in_transaction(session, event)
            await session.execute(sqla_delete(GuestEntry).where(GuestEntry.event_id == event_id))
            await session.execute(sqla_delete(Reservation).where(Reservation.event_id == event_id))
            result = await session.execute(sqla_delete(Event).where(Event.id == event_id))
            if getattr(result, "rowcount", 0) < 1:
                raise NotFound("Event", event_id)

    await delete_tokens_for_event(event_id)
    logger.info("event %s deleted", event_id)


async def _ensure_no_open_reservations(session: AsyncSession, event_id: int) -> None:
    res = await session.execute(
        select(func.count())
        .select_from(Reservation)
        .where(
            Reservation.event_id == event_id,
            Reservation.status.in_(sorted(OPEN_RESERVATION_STATUSES)),
        )
    )
    open_count = int(res.scalar() or 0)
    if open_count:
        raise EventInUse(event_id, open_count)
