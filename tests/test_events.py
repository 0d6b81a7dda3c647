from datetime import timedelta
from decimal import Decimal

import pytest

from eventra.errors import EventInUse, NotFound, ValidationError
from eventra.models import Base, EventStatus, ReservationStatus, utcnow
from eventra.services import carousel as curator
from eventra.services import events as catalogue
from eventra.services.booking import create_reservation, list_reservations, update_status
from eventra.services.guests import Contact, list_guests


@pytest.mark.asyncio
async def test_create_event_starts_pending(session):
    event = await catalogue.create_event(
        session,
        title="Desert Run",
        starts_at=utcnow() + timedelta(days=3),
        capacity=200,
        price=Decimal("25.00"),
    )

    assert event.id is not None
    assert event.status == EventStatus.PENDING.value
    assert event.booked_seats == 0
    assert event.commission_rate == catalogue.DEFAULT_COMMISSION_RATE
    assert event.currency == catalogue.DEFAULT_CURRENCY


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields",
    [
        {"title": "", "capacity": 10},
        {"title": "No Seats", "capacity": 0},
        {"title": "Free Money", "capacity": 10, "price": Decimal("-1")},
        {"title": "Greedy", "capacity": 10, "commission_rate": Decimal("120")},
        {"title": "Unknown", "capacity": 10, "dress_code": "black tie"},
    ],
)
async def test_create_event_validation(session, fields):
    with pytest.raises(ValidationError):
        await catalogue.create_event(session, starts_at=utcnow() + timedelta(days=1), **fields)


@pytest.mark.asyncio
async def test_capacity_cannot_drop_below_booked(session, make_event):
    event = await make_event(capacity=10, booked_seats=6)

    with pytest.raises(ValidationError):
        await catalogue.update_event(session, event.id, capacity=5)

    updated = await catalogue.update_event(session, event.id, capacity=6, title="Rooftop Jazz II")
    assert updated.capacity == 6
    assert updated.available_seats == 0
    assert updated.title == "Rooftop Jazz II"


@pytest.mark.asyncio
async def test_list_events_filters(session, make_event):
    live = await make_event(title="Live Show")
    await make_event(title="Pending Show", status=EventStatus.PENDING.value)
    await make_event(title="Old Show", starts_at=utcnow() - timedelta(days=1))

    bookable = await catalogue.list_events(session, statuses=frozenset({"live"}), upcoming_only=True)
    pending = await catalogue.list_events(session, status=EventStatus.PENDING.value)

    assert [e.id for e in bookable] == [live.id]
    assert [e.title for e in pending] == ["Pending Show"]


@pytest.mark.asyncio
async def test_status_change_drops_event_from_carousel(session, make_event):
    first = await make_event(title="First", starts_at=utcnow() + timedelta(days=1))
    second = await make_event(title="Second", starts_at=utcnow() + timedelta(days=2))
    await curator.bulk_add(session, [first.id, second.id])

    updated = await catalogue.update_event_status(session, first.id, EventStatus.CANCELLED.value)

    assert updated.is_featured is False
    assert updated.carousel_position is None
    listed = await curator.list_carousel(session)
    assert [(e.id, e.carousel_position) for e in listed] == [(second.id, 1)]


@pytest.mark.asyncio
async def test_status_change_between_eligible_states_keeps_slot(session, make_event):
    event = await make_event(status=EventStatus.APPROVED.value)
    await curator.add_to_carousel(session, event.id)

    updated = await catalogue.update_event_status(session, event.id, EventStatus.LIVE.value)

    assert updated.is_featured is True
    assert updated.carousel_position == 1


@pytest.mark.asyncio
async def test_invalid_event_status(session, make_event):
    event = await make_event()

    with pytest.raises(ValidationError):
        await catalogue.update_event_status(session, event.id, "archived")


@pytest.mark.asyncio
async def test_delete_blocked_by_open_reservation(session, make_event, fetch_event):
    event = await make_event()
    await create_reservation(session, event.id, Contact(name="Layla", phone="+971500000001"), 2)

    with pytest.raises(EventInUse) as excinfo:
        await catalogue.delete_event(session, event.id)

    assert excinfo.value.details["open_reservations"] == 1
    assert await fetch_event(event.id) is not None


@pytest.mark.asyncio
async def test_delete_removes_closed_history_and_carousel_slot(session, make_event, fetch_event):
    keep = await make_event(title="Keep", starts_at=utcnow() + timedelta(days=1))
    event = await make_event(title="Gone", starts_at=utcnow() + timedelta(days=2))
    await curator.bulk_add(session, [event.id, keep.id])
    result = await create_reservation(session, event.id, Contact(name="Layla", phone="+971500000001"), 2)
    await update_status(session, result.reservation.id, ReservationStatus.CANCELLED.value)

    await catalogue.delete_event(session, event.id)

    assert await fetch_event(event.id) is None
    assert await list_reservations(session, event_id=event.id) == []
    assert await list_guests(session, event.id) == []
    listed = await curator.list_carousel(session)
    assert [(e.id, e.carousel_position) for e in listed] == [(keep.id, 1)]


@pytest.mark.asyncio
async def test_delete_unknown_event(session):
    with pytest.raises(NotFound):
        await catalogue.delete_event(session, 555)


@pytest.mark.asyncio
async def test_refused_delete_leaves_carousel_and_late_booking_alone(
    monkeypatch, session, session_factory, make_event, fetch_event
):
    event = await make_event(title="Gone", starts_at=utcnow() + timedelta(days=1))
    keep = await make_event(title="Keep", starts_at=utcnow() + timedelta(days=2))
    await curator.bulk_add(session, [event.id, keep.id])

    real_get_event = catalogue.get_event
    booked = []

    async def get_event_then_book(db, event_id, **kwargs):
        found = await real_get_event(db, event_id, **kwargs)
        async with session_factory() as other:
            result = await create_reservation(other, event_id, Contact(name="Layla", phone="+971500000001"), 2)
            booked.append(result.reservation.id)
        return found

    monkeypatch.setattr(catalogue, "get_event", get_event_then_book)

    with pytest.raises(EventInUse):
        await catalogue.delete_event(session, event.id)

    assert (await fetch_event(event.id)).booked_seats == 2
    async with session_factory() as fresh:
        listed = await curator.list_carousel(fresh)
        reservations = await list_reservations(fresh, event_id=event.id)
    assert [(e.id, e.carousel_position) for e in listed] == [(event.id, 1), (keep.id, 2)]
    assert [r.id for r in reservations] == booked


def test_model_indexes_match_initial_migration():
    indexes = {index.name for table in Base.metadata.sorted_tables for index in table.indexes}

    assert {
        "ix_events_starts_at",
        "ix_events_is_featured",
        "ix_reservations_event_id",
        "ix_reservations_phone",
        "ix_guest_entries_event_id",
    } <= indexes
