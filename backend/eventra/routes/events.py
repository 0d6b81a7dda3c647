from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.db import get_session
from eventra.models import BOOKABLE_STATUSES, EventStatus
from eventra.routes.deps import require_admin
from eventra.schemas import EventOut
from eventra.services import events as catalogue
from eventra.store import get_event


router = APIRouter()
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    venue: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    organizer: Optional[str] = None
    contact_whatsapp: Optional[str] = Field(None, max_length=32)
    starts_at: datetime
    capacity: int = Field(..., ge=1)
    price: Decimal = Field(Decimal("0"), ge=0)
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    currency: Optional[str] = Field(None, max_length=8)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    venue: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    organizer: Optional[str] = None
    contact_whatsapp: Optional[str] = Field(None, max_length=32)
    starts_at: Optional[datetime] = None
    capacity: Optional[int] = Field(None, ge=1)
    price: Optional[Decimal] = Field(None, ge=0)
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    currency: Optional[str] = Field(None, max_length=8)


class EventStatusUpdate(BaseModel):
    status: EventStatus


@router.get("/events", response_model=List[EventOut])
async def list_events(limit: int = 50, upcoming_only: bool = True, session: AsyncSession = Depends(get_session)):
    """Events open for booking."""
    return await catalogue.list_events(
        session, statuses=BOOKABLE_STATUSES, upcoming_only=upcoming_only, limit=limit
    )


@router.get("/events/{event_id}", response_model=EventOut)
async def read_event(event_id: int, session: AsyncSession = Depends(get_session)):
    return await get_event(session, event_id)


@admin_router.get("/events", response_model=List[EventOut])
async def admin_list_events(
    status: Optional[EventStatus] = None,
    featured: Optional[bool] = None,
    limit: int = 100,
    session: AsyncSession = Depends(get_session),
):
    return await catalogue.list_events(
        session, status=status.value if status else None, featured=featured, limit=limit
    )


@admin_router.post("/events", response_model=EventOut, status_code=status.HTTP_201_CREATED)
async def create_event(payload: EventCreate, session: AsyncSession = Depends(get_session)):
    return await catalogue.create_event(session, **payload.model_dump())


@admin_router.put("/events/{event_id}", response_model=EventOut)
async def update_event(event_id: int, payload: EventUpdate, session: AsyncSession = Depends(get_session)):
    return await catalogue.update_event(session, event_id, **payload.model_dump(exclude_unset=True))


@admin_router.patch("/events/{event_id}/status", response_model=EventOut)
async def update_event_status(event_id: int, payload: EventStatusUpdate, session: AsyncSession = Depends(get_session)):
    return await catalogue.update_event_status(session, event_id, payload.status.value)


@admin_router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(event_id: int, session: AsyncSession = Depends(get_session)):
    await catalogue.delete_event(session, event_id)
    return None
