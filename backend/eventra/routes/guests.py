from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.db import get_session
from eventra.models import RsvpStatus
from eventra.routes.deps import require_admin
from eventra.schemas import GuestListOut, GuestOut, GuestRegistrationOut
from eventra.services import guests as registry
from eventra.services.links import guest_message, whatsapp_url
from eventra.store import get_event


router = APIRouter()
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


class Companion(BaseModel):
    name: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None


class GuestRequest(BaseModel):
    event_id: int
    guest_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=3, max_length=32)
    email: Optional[EmailStr] = None
    companions: List[Companion] = []
    special_requests: Optional[str] = None


class RsvpUpdate(BaseModel):
    rsvp_status: RsvpStatus


@router.post("/guests", response_model=GuestRegistrationOut, status_code=status.HTTP_201_CREATED)
async def register_guest(req: GuestRequest, session: AsyncSession = Depends(get_session)):
    entry = await registry.admit(
        session,
        req.event_id,
        registry.Contact(name=req.guest_name, phone=req.phone, email=req.email),
        companions=[c.model_dump() for c in req.companions],
        special_requests=req.special_requests,
    )
    event = await get_event(session, req.event_id)
    return GuestRegistrationOut(
        guest=GuestOut.model_validate(entry),
        whatsapp_url=whatsapp_url(event.contact_whatsapp, guest_message(event, entry)),
    )


@admin_router.get("/events/{event_id}/guests", response_model=GuestListOut)
async def event_guests(
    event_id: int,
    rsvp_status: Optional[RsvpStatus] = None,
    checked_in: Optional[bool] = None,
    session: AsyncSession = Depends(get_session),
):
    await get_event(session, event_id)
    guests = await registry.list_guests(
        session, event_id, rsvp_status=rsvp_status.value if rsvp_status else None, checked_in=checked_in
    )
    stats = await registry.guest_stats(session, event_id)
    return GuestListOut(guests=[GuestOut.model_validate(g) for g in guests], stats=stats)


@admin_router.post("/guests/{guest_id}/check-in", response_model=GuestOut)
async def check_in_guest(guest_id: int, session: AsyncSession = Depends(get_session)):
    return await registry.check_in(session, guest_id)


@admin_router.patch("/guests/{guest_id}/rsvp", response_model=GuestOut)
async def update_guest_rsvp(guest_id: int, req: RsvpUpdate, session: AsyncSession = Depends(get_session)):
    return await registry.update_rsvp(session, guest_id, req.rsvp_status.value)


@admin_router.delete("/guests/{guest_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_guest(guest_id: int, session: AsyncSession = Depends(get_session)):
    await registry.remove(session, guest_id)
    return None
