"""Guest registry: one admission record per (event, phone).

Admission is independent of payment. Uniqueness is enforced by the
``uq_guest_entries_event_phone`` index at write time; the lookup before the
insert only produces the same error earlier in the common case.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy import delete as sqla_delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.db import transaction
from eventra.errors import DuplicateGuest, ValidationError
from eventra.models import GuestEntry, GuestSource, RsvpStatus, utcnow
from eventra.store import get_event, get_guest

logger = logging.getLogger(__name__)

MAX_GROUP_SIZE = 10


@dataclass(frozen=True)
class Contact:
    """Who a reservation or guest entry is for. ``phone`` is the identity key."""

    name: str
    phone: str
    email: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("name is required", field="name")
        if not self.phone or not self.phone.strip():
            raise ValidationError("phone is required", field="phone")


def normalize_companions(companions: Iterable[dict]) -> list[dict]:
    """Drop companions without a name and keep name/phone/email only."""
    cleaned = []
    for companion in companions:
        name = (companion.get("name") or "").strip()
        if not name:
            continue
        cleaned.append(
            {
                "name": name,
                "phone": companion.get("phone") or "",
                "email": companion.get("email") or "",
            }
        )
    return cleaned


async def admit(
    session: AsyncSession,
    event_id: int,
    contact: Contact,
    group_size: int | None = None,
    companions: Sequence[dict] = (),
    *,
    source: GuestSource = GuestSource.CUSTOMER,
    reservation_id: int | None = None,
    special_requests: str | None = None,
) -> GuestEntry:
    """Register a guest for an event.

    ``group_size`` defaults to one plus the named companions.

    Raises:
        NotFound: the event does not exist.
        ValidationError: group size outside 1..10.
        DuplicateGuest: the phone is already on this event's list.
    """
    phone = contact.phone.strip()
    cleaned = normalize_companions(companions)
    if group_size is None:
        group_size = 1 + len(cleaned)
    if not 1 <= group_size <= MAX_GROUP_SIZE:
        raise ValidationError(
            f"Maximum {MAX_GROUP_SIZE} guests allowed per registration",
            field="group_size",
            group_size=group_size,
        )

    try:
        async with transaction(session):
            await get_event(session, event_id)
            res = await session.execute(
                select(GuestEntry.id).where(GuestEntry.event_id == event_id, GuestEntry.phone == phone)
            )
            if res.scalar() is not None:
                raise DuplicateGuest(event_id, phone)

            entry = GuestEntry(
                event_id=event_id,
                reservation_id=reservation_id,
                guest_name=contact.name.strip(),
                phone=phone,
                email=contact.email or None,
                companions=cleaned,
                group_size=group_size,
                rsvp_status=RsvpStatus.CONFIRMED.value,
                source=source.value,
                special_requests=special_requests,
            )
            session.add(entry)
            await session.flush()
    except IntegrityError as exc:
        # lost the race to a concurrent registration for the same phone
        raise DuplicateGuest(event_id, phone) from exc

    logger.info("admitted guest %s to event %s (group of %s)", entry.id, event_id, group_size)
    return entry


async def check_in(session: AsyncSession, guest_id: int) -> GuestEntry:
    """Mark a guest as arrived. Checking in twice keeps the first check-in time."""
    async with transaction(session):
        entry = await get_guest(session, guest_id, for_update=True)
        if entry.checked_in:
            return entry
        entry.checked_in = True
        entry.check_in_time = utcnow()
    logger.info("checked in guest %s for event %s", guest_id, entry.event_id)
    return entry


async def update_rsvp(session: AsyncSession, guest_id: int, rsvp_status: str) -> GuestEntry:
    try:
        new_status = RsvpStatus(rsvp_status)
    except ValueError:
        raise ValidationError(f"Invalid RSVP status {rsvp_status!r}", field="rsvp_status")

    async with transaction(session):
        entry = await get_guest(session, guest_id, for_update=True)
        entry.rsvp_status = new_status.value
        if new_status is RsvpStatus.ATTENDED and not entry.checked_in:
            entry.checked_in = True
            entry.check_in_time = utcnow()
    return entry


async def remove(session: AsyncSession, guest_id: int) -> None:
    """Hard delete. A linked reservation is left as it is."""
    async with transaction(session):
        entry = await get_guest(session, guest_id)
        await session.execute(sqla_delete(GuestEntry).where(GuestEntry.id == guest_id))
    logger.info("removed guest %s from event %s", guest_id, entry.event_id)


async def list_guests(
    session: AsyncSession,
    event_id: int,
    rsvp_status: str | None = None,
    checked_in: bool | None = None,
) -> list[GuestEntry]:
    q = select(GuestEntry).where(GuestEntry.event_id == event_id)
    if rsvp_status is not None:
        q = q.where(GuestEntry.rsvp_status == rsvp_status)
    if checked_in is not None:
        q = q.where(GuestEntry.checked_in.is_(checked_in))
    q = q.order_by(GuestEntry.created_at.desc(), GuestEntry.id.desc())
    res = await session.execute(q)
    return list(res.scalars().all())


async def guest_stats(session: AsyncSession, event_id: int) -> dict[str, int]:
    res = await session.execute(
        select(GuestEntry.rsvp_status, func.count())
        .where(GuestEntry.event_id == event_id)
        .group_by(GuestEntry.rsvp_status)
    )
    by_status = {status: int(count) for status, count in res.all()}
    checked = await session.execute(
        select(func.count()).select_from(GuestEntry).where(
            GuestEntry.event_id == event_id, GuestEntry.checked_in.is_(True)
        )
    )
    stats = {s.value: by_status.get(s.value, 0) for s in RsvpStatus}
    stats["total"] = sum(by_status.values())
    stats["checked_in"] = int(checked.scalar() or 0)
    return stats
