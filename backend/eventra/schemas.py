"""Response models shared by the routers."""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    venue: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    organizer: Optional[str] = None
    starts_at: datetime
    capacity: int
    booked_seats: int
    available_seats: int
    price: Decimal
    commission_rate: Decimal
    currency: str
    status: str
    is_featured: bool
    carousel_position: Optional[int] = None


class ReservationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    full_name: str
    phone: str
    email: Optional[str] = None
    ticket_count: int
    unit_price: Decimal
    commission_rate: Decimal
    total_amount: Decimal
    commission_amount: Decimal
    net_amount: Decimal
    currency: str
    payment_method: str
    ticket_type: str
    status: str
    payment_status: str
    created_at: datetime


class CompanionOut(BaseModel):
    name: str
    phone: str = ""
    email: str = ""


class GuestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    reservation_id: Optional[int] = None
    guest_name: str
    phone: str
    email: Optional[str] = None
    companions: list[CompanionOut] = []
    group_size: int
    rsvp_status: str
    checked_in: bool
    check_in_time: Optional[datetime] = None
    source: str
    created_at: datetime


class BookingOut(BaseModel):
    reservation: ReservationOut
    guest_entry_id: Optional[int] = None
    whatsapp_url: Optional[str] = None


class GuestRegistrationOut(BaseModel):
    guest: GuestOut
    whatsapp_url: Optional[str] = None


class CarouselOut(BaseModel):
    events: list[EventOut]


class GuestListOut(BaseModel):
    guests: list[GuestOut]
    stats: dict[str, int]
