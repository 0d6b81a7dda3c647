# booking.py
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.db import transaction
from eventra.errors import DuplicateGuest, InvalidTransition, ValidationError
from eventra.models import (
    GuestEntry,
    GuestSource,
    PaymentMethod,
    PaymentStatus,
    Reservation,
    ReservationStatus,
)
from eventra.services.guests import Contact, admit
from eventra.services.seats import release_seats, reserve_seats
from eventra.store import get_reservation

logger = logging.getLogger(__name__)

MIN_TICKETS = 1
MAX_TICKETS = 20
CENTS = Decimal("0.01")

TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.CANCELLED, ReservationStatus.REFUNDED, ReservationStatus.COMPLETED}
    ),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.REFUNDED: frozenset(),
    ReservationStatus.COMPLETED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PAID, PaymentStatus.PENDING}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}

RELEASING_STATUSES = frozenset({ReservationStatus.CANCELLED, ReservationStatus.REFUNDED})


@dataclass(frozen=True)
class Amounts:
    total: Decimal
    commission: Decimal
    net: Decimal


@dataclass
class BookingResult:
    reservation: Reservation
    guest: GuestEntry | None


def compute_amounts(ticket_count: int, unit_price: Decimal, commission_rate: Decimal) -> Amounts:
    """Derive the money fields from the price and commission snapshots."""
    total = (Decimal(ticket_count) * Decimal(unit_price)).quantize(CENTS, rounding=ROUND_HALF_UP)
    commission = (total * Decimal(commission_rate) / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)
    return Amounts(total=total, commission=commission, net=total - commission)


async def create_reservation(
    session: AsyncSession,
    event_id: int,
    contact: Contact,
    ticket_count: int,
    payment_method: str = PaymentMethod.CASH.value,
    ticket_type: str = "regular",
    special_requirements: str | None = None,
) -> BookingResult:
    """Reserve seats and record the reservation in one transaction.

    A guest entry is then admitted in a second transaction. That link is
    best-effort: if admission fails (phone already on the list, or a group
    larger than the guest list allows) the reservation stands without one.
    """
    if not MIN_TICKETS <= ticket_count <= MAX_TICKETS:
        raise ValidationError(
            f"ticket_count must be between {MIN_TICKETS} and {MAX_TICKETS}",
            field="ticket_count",
            ticket_count=ticket_count,
        )
    try:
        method = PaymentMethod(payment_method)
    except ValueError:
        raise ValidationError(f"Invalid payment method {payment_method!r}", field="payment_method")

    async with transaction(session):
        event = await reserve_seats(session, event_id, ticket_count)
        unit_price = Decimal(event.price)
        commission_rate = Decimal(event.commission_rate)
        amounts = compute_amounts(ticket_count, unit_price, commission_rate)
        reservation = Reservation(
            event_id=event_id,
            full_name=contact.name.strip(),
            phone=contact.phone.strip(),
            email=contact.email or None,
            ticket_count=ticket_count,
            unit_price=unit_price,
            commission_rate=commission_rate,
            total_amount=amounts.total,
            commission_amount=amounts.commission,
            net_amount=amounts.net,
            currency=event.currency,
            payment_method=method.value,
            ticket_type=ticket_type,
            special_requirements=special_requirements,
            status=ReservationStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
        )
        session.add(reservation)
        await session.flush()

    reservation_id = reservation.id
    logger.info(
        "reservation %s created: %s tickets on event %s, total %s",
        reservation_id, ticket_count, event_id, amounts.total,
    )

    guest = None
    try:
        guest = await admit(
            session,
            event_id,
            contact,
            group_size=ticket_count,
            source=GuestSource.RESERVATION,
            reservation_id=reservation_id,
            special_requests=special_requirements,
        )
    except (DuplicateGuest, ValidationError) as exc:
        logger.warning("reservation %s has no guest entry: %s", reservation_id, exc)
        # the failed admission rolled back and expired everything in the session
        reservation = await get_reservation(session, reservation_id)
    return BookingResult(reservation=reservation, guest=guest)


async def update_status(session: AsyncSession, reservation_id: int, new_status: str) -> Reservation:
    """Move a reservation through its lifecycle.

    Cancelling or refunding gives the seats back exactly once. Cancelling an
    already cancelled reservation is a no-op.
    """
    try:
        target = ReservationStatus(new_status)
    except ValueError:
        raise ValidationError(f"Invalid reservation status {new_status!r}", field="status")

    async with transaction(session):
        reservation = await get_reservation(session, reservation_id, for_update=True)
        current = ReservationStatus(reservation.status)
        if current is ReservationStatus.CANCELLED and target is ReservationStatus.CANCELLED:
            return reservation
        if target not in TRANSITIONS[current]:
            raise InvalidTransition("reservation", current.value, target.value)

        if target in RELEASING_STATUSES and not reservation.seats_released:
            await release_seats(session, reservation.event_id, reservation.ticket_count)
            reservation.seats_released = True
        if target is ReservationStatus.REFUNDED:
            reservation.payment_status = PaymentStatus.REFUNDED.value
        reservation.status = target.value

    logger.info("reservation %s: %s -> %s", reservation_id, current.value, target.value)
    return reservation


async def update_payment_status(session: AsyncSession, reservation_id: int, payment_status: str) -> Reservation:
    try:
        target = PaymentStatus(payment_status)
    except ValueError:
        raise ValidationError(f"Invalid payment status {payment_status!r}", field="payment_status")

    async with transaction(session):
        reservation = await get_reservation(session, reservation_id, for_update=True)
        current = PaymentStatus(reservation.payment_status)
        if target not in PAYMENT_TRANSITIONS[current]:
            raise InvalidTransition("payment", current.value, target.value)
        reservation.payment_status = target.value

    logger.info("reservation %s payment: %s -> %s", reservation_id, current.value, target.value)
    return reservation


async def list_reservations(
    session: AsyncSession,
    event_id: int | None = None,
    status: str | None = None,
    phone: str | None = None,
    limit: int = 100,
) -> list[Reservation]:
    q = select(Reservation)
    if event_id is not None:
        q = q.where(Reservation.event_id == event_id)
    if status is not None:
        q = q.where(Reservation.status == status)
    if phone is not None:
        q = q.where(Reservation.phone == phone.strip())
    q = q.order_by(Reservation.created_at.desc(), Reservation.id.desc()).limit(limit)
    res = await session.execute(q)
    return list(res.scalars().all())
