from decimal import Decimal
from typing import Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from eventra.db import get_session
from eventra.routes.deps import require_admin
from eventra.services.reporting import dashboard_stats, event_analytics


admin_router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


class DashboardOut(BaseModel):
    total_events: int
    events_by_status: Dict[str, int]
    total_reservations: int
    reservations_by_status: Dict[str, int]
    confirmed_revenue: Decimal
    commission_earned: Decimal
    total_guests: int
    featured_events: int


class EventAnalytics(BaseModel):
    event_id: int
    title: str
    capacity: int
    booked_seats: int
    available_seats: int
    confirmed_reservations: int
    guests: int
    capacity_utilization_pct: float


@admin_router.get("/dashboard", response_model=DashboardOut)
async def dashboard(session: AsyncSession = Depends(get_session)):
    return await dashboard_stats(session)


@admin_router.get("/analytics", response_model=List[EventAnalytics])
async def analytics(limit: int = 100, session: AsyncSession = Depends(get_session)):
    return await event_analytics(session, limit=limit)
