from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.db import get_session
from eventra.models import PaymentMethod, PaymentStatus, ReservationStatus
from eventra.routes.deps import require_admin
from eventra.schemas import BookingOut, ReservationOut
from eventra.services.booking import (
    MAX_TICKETS,
    create_reservation,
    list_reservations,
    update_payment_status,
    update_status,
)
from eventra.services.guests import Contact
from eventra.services.links import reservation_message, whatsapp_url
from eventra.store import get_event


router = APIRouter()
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


class ReservationRequest(BaseModel):
    event_id: int
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=3, max_length=32)
    email: Optional[EmailStr] = None
    ticket_count: int = Field(..., ge=1, le=MAX_TICKETS)
    payment_method: PaymentMethod = PaymentMethod.CASH
    ticket_type: str = Field("regular", max_length=30)
    special_requirements: Optional[str] = None


class StatusUpdate(BaseModel):
    status: ReservationStatus


class PaymentUpdate(BaseModel):
    payment_status: PaymentStatus


@router.post("/reservations", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
async def post_reservation(req: ReservationRequest, session: AsyncSession = Depends(get_session)):
    result = await create_reservation(
        session=session,
        event_id=req.event_id,
        contact=Contact(name=req.full_name, phone=req.phone, email=req.email),
        ticket_count=req.ticket_count,
        payment_method=req.payment_method.value,
        ticket_type=req.ticket_type,
        special_requirements=req.special_requirements,
    )
    event = await get_event(session, req.event_id)
    message = reservation_message(event, result.reservation)
    return BookingOut(
        reservation=ReservationOut.model_validate(result.reservation),
        guest_entry_id=result.guest.id if result.guest else None,
        whatsapp_url=whatsapp_url(event.contact_whatsapp, message),
    )


@router.get("/reservations", response_model=List[ReservationOut])
async def lookup_reservations(phone: str, event_id: Optional[int] = None, session: AsyncSession = Depends(get_session)):
    """Let a customer check their reservations by phone number."""
    return await list_reservations(session, event_id=event_id, phone=phone)


@admin_router.get("/reservations", response_model=List[ReservationOut])
async def admin_list_reservations(
    event_id: Optional[int] = None,
    status: Optional[ReservationStatus] = None,
    limit: int = 100,
    session: AsyncSession = Depends(get_session),
):
    return await list_reservations(
        session, event_id=event_id, status=status.value if status else None, limit=limit
    )


@admin_router.patch("/reservations/{reservation_id}/status", response_model=ReservationOut)
async def patch_reservation_status(
    reservation_id: int, req: StatusUpdate, session: AsyncSession = Depends(get_session)
):
    return await update_status(session, reservation_id, req.status.value)


@admin_router.patch("/reservations/{reservation_id}/payment", response_model=ReservationOut)
async def patch_reservation_payment(
    reservation_id: int, req: PaymentUpdate, session: AsyncSession = Depends(get_session)
):
    return await update_payment_status(session, reservation_id, req.payment_status.value)
