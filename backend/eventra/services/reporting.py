"""Read-only dashboard queries. Nothing here mutates state."""
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.models import Event, GuestEntry, Reservation, ReservationStatus

CENTS = Decimal("0.01")
REVENUE_STATUSES = (ReservationStatus.CONFIRMED.value, ReservationStatus.COMPLETED.value)


async def _counts_by(session: AsyncSession, column) -> dict[str, int]:
    res = await session.execute(select(column, func.count()).group_by(column))
    return {key: int(count) for key, count in res.all()}


async def dashboard_stats(session: AsyncSession) -> dict:
    events_by_status = await _counts_by(session, Event.status)
    reservations_by_status = await _counts_by(session, Reservation.status)

    money = await session.execute(
        select(
            func.coalesce(func.sum(Reservation.total_amount), 0),
            func.coalesce(func.sum(Reservation.commission_amount), 0),
        ).where(Reservation.status.in_(REVENUE_STATUSES))
    )
    revenue, commission = money.one()
    guests = await session.execute(select(func.count()).select_from(GuestEntry))
    featured = await session.execute(
        select(func.count()).select_from(Event).where(Event.is_featured.is_(True))
    )

    return {
        "total_events": sum(events_by_status.values()),
        "events_by_status": events_by_status,
        "total_reservations": sum(reservations_by_status.values()),
        "reservations_by_status": reservations_by_status,
        "confirmed_revenue": Decimal(str(revenue)).quantize(CENTS),
        "commission_earned": Decimal(str(commission)).quantize(CENTS),
        "total_guests": int(guests.scalar() or 0),
        "featured_events": int(featured.scalar() or 0),
    }


async def event_analytics(session: AsyncSession, limit: int = 100) -> list[dict]:
    """Per-event seat utilization, busiest first."""
    confirmed = (
        select(Reservation.event_id, func.count().label("confirmed"))
        .where(Reservation.status.in_(REVENUE_STATUSES))
        .group_by(Reservation.event_id)
        .subquery()
    )
    guests = (
        select(GuestEntry.event_id, func.count().label("guests"))
        .group_by(GuestEntry.event_id)
        .subquery()
    )
    res = await session.execute(
        select(
            Event.id,
            Event.title,
            Event.capacity,
            Event.booked_seats,
            func.coalesce(confirmed.c.confirmed, 0),
            func.coalesce(guests.c.guests, 0),
        )
        .join(confirmed, confirmed.c.event_id == Event.id, isouter=True)
        .join(guests, guests.c.event_id == Event.id, isouter=True)
        .order_by(Event.booked_seats.desc(), Event.id)
        .limit(limit)
    )

    rows = []
    for (eid, title, cap, booked, confirmed_count, guest_count) in res.all():
        cap = int(cap or 0)
        booked = int(booked or 0)
        utilized = 0.0
        if cap > 0:
            utilized = round(100.0 * booked / cap, 2)
        rows.append(
            {
                "event_id": eid,
                "title": title,
                "capacity": cap,
                "booked_seats": booked,
                "available_seats": max(0, cap - booked),
                "confirmed_reservations": int(confirmed_count),
                "guests": int(guest_count),
                "capacity_utilization_pct": utilized,
            }
        )
    return rows
