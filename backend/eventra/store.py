"""Lookups by id against the entity store.

Each helper returns the ORM object, reloaded from the database, or raises
NotFound. ``for_update`` takes a row lock on backends that support it
(PostgreSQL); SQLite ignores it.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.errors import NotFound
from eventra.models import Event, GuestEntry, Reservation


async def _get(session: AsyncSession, model, entity: str, entity_id: int, for_update: bool):
    q = select(model).where(model.id == entity_id).execution_options(populate_existing=True)
    if for_update:
        q = q.with_for_update()
    res = await session.execute(q)
    obj = res.scalars().first()
    if obj is None:
        raise NotFound(entity, entity_id)
    return obj


async def get_event(session: AsyncSession, event_id: int, *, for_update: bool = False) -> Event:
    return await _get(session, Event, "Event", event_id, for_update)


async def get_reservation(
    session: AsyncSession, reservation_id: int, *, for_update: bool = False
) -> Reservation:
    return await _get(session, Reservation, "Reservation", reservation_id, for_update)


async def get_guest(session: AsyncSession, guest_id: int, *, for_update: bool = False) -> GuestEntry:
    return await _get(session, GuestEntry, "Guest", guest_id, for_update)
