from typing import List, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.db import get_session
from eventra.routes.deps import require_admin
from eventra.schemas import CarouselOut, EventOut
from eventra.services import carousel as curator


router = APIRouter()
admin_router = APIRouter(prefix="/admin/carousel", dependencies=[Depends(require_admin)])


class CarouselAdd(BaseModel):
    event_id: int


class CarouselOrderItem(BaseModel):
    event_id: int
    position: int = Field(..., ge=1)


class CarouselOrder(BaseModel):
    events: List[CarouselOrderItem] = Field(..., min_length=1)


class CarouselBulk(BaseModel):
    action: Literal["add", "remove"]
    event_ids: List[int] = Field(..., min_length=1)


def _carousel_out(events) -> CarouselOut:
    return CarouselOut(events=[EventOut.model_validate(e) for e in events])


@router.get("/carousel", response_model=CarouselOut)
async def get_carousel(session: AsyncSession = Depends(get_session)):
    return _carousel_out(await curator.list_carousel(session))


@admin_router.post("", response_model=CarouselOut)
async def add_event(req: CarouselAdd, session: AsyncSession = Depends(get_session)):
    return _carousel_out(await curator.add_to_carousel(session, req.event_id))


@admin_router.delete("/{event_id}", response_model=CarouselOut)
async def remove_event(event_id: int, session: AsyncSession = Depends(get_session)):
    return _carousel_out(await curator.remove_from_carousel(session, event_id))


@admin_router.put("/order", response_model=CarouselOut)
async def reorder(req: CarouselOrder, session: AsyncSession = Depends(get_session)):
    assignments = [(item.event_id, item.position) for item in req.events]
    return _carousel_out(await curator.reorder_carousel(session, assignments))


@admin_router.post("/bulk", response_model=CarouselOut)
async def bulk(req: CarouselBulk, session: AsyncSession = Depends(get_session)):
    if req.action == "add":
        events = await curator.bulk_add(session, req.event_ids)
    else:
        events = await curator.bulk_remove(session, req.event_ids)
    return _carousel_out(events)
