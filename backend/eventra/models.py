from __future__ import annotations

import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import declarative_base, Mapped, mapped_column, relationship
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)


Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EventStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    LIVE = "live"
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    COMPLETED = "completed"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    ONLINE = "online"


class RsvpStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    ATTENDED = "attended"


class GuestSource(str, enum.Enum):
    CUSTOMER = "customer"
    RESERVATION = "reservation"
    HOSTER = "hoster"


BOOKABLE_STATUSES = frozenset(
    s.value for s in (EventStatus.LIVE, EventStatus.UPCOMING, EventStatus.ONGOING)
)
CAROUSEL_ELIGIBLE_STATUSES = BOOKABLE_STATUSES | {EventStatus.APPROVED.value}
OPEN_RESERVATION_STATUSES = frozenset(
    s.value for s in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
)


class Event(Base):
    __tablename__ = "events"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    venue: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    organizer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_whatsapp: Mapped[str | None] = mapped_column(String(32), nullable=True)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    booked_seats: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("10"))
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="AED")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=EventStatus.PENDING.value)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    carousel_position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    featured_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_events_capacity_positive"),
        CheckConstraint("booked_seats >= 0", name="ck_events_booked_seats_non_negative"),
        CheckConstraint("booked_seats <= capacity", name="ck_events_booked_within_capacity"),
        CheckConstraint("price >= 0", name="ck_events_price_non_negative"),
        CheckConstraint(
            "commission_rate >= 0 AND commission_rate <= 100", name="ck_events_commission_rate_range"
        ),
        CheckConstraint(
            "carousel_position IS NULL OR carousel_position >= 1", name="ck_events_carousel_position_positive"
        ),
    )

    reservations = relationship("Reservation", back_populates="event", passive_deletes=True)
    guests = relationship("GuestEntry", back_populates="event", passive_deletes=True)

    @property
    def available_seats(self) -> int:
        return max(0, self.capacity - self.booked_seats)

    def __repr__(self):
        return f"<Event id={self.id} title={self.title} booked={self.booked_seats}/{self.capacity}>"


class Reservation(Base):
    __tablename__ = "reservations"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ticket_count: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    commission_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="AED")
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    ticket_type: Mapped[str] = mapped_column(String(30), nullable=False, default="regular")
    special_requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ReservationStatus.PENDING.value)
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    seats_released: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("ticket_count >= 1 AND ticket_count <= 20", name="ck_reservations_ticket_count_range"),
    )

    event = relationship("Event", back_populates="reservations")

    def __repr__(self):
        return (
            f"<Reservation id={self.id} event_id={self.event_id} "
            f"tickets={self.ticket_count} status={self.status}>"
        )


class GuestEntry(Base):
    __tablename__ = "guest_entries"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reservation_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("reservations.id", ondelete="SET NULL"), nullable=True
    )
    guest_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    companions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    group_size: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rsvp_status: Mapped[str] = mapped_column(String(20), nullable=False, default=RsvpStatus.PENDING.value)
    checked_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    check_in_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default=GuestSource.CUSTOMER.value)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("event_id", "phone", name="uq_guest_entries_event_phone"),
        CheckConstraint("group_size >= 1 AND group_size <= 10", name="ck_guest_entries_group_size_range"),
    )

    event = relationship("Event", back_populates="guests")

    def __repr__(self):
        return f"<GuestEntry id={self.id} event_id={self.event_id} phone={self.phone} size={self.group_size}>"
