# backend/scripts/seed_demo.py
"""
Usage:
  # ensure DATABASE_URL (and REDIS_URL if the token bucket is on) are set
  cd backend && python -m scripts.seed_demo
This script will:
 - create 3 demo events (idempotent by title)
 - approve them for booking
 - feature the first two in the carousel
"""
import asyncio
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select

from eventra.db import AsyncSessionLocal
from eventra.models import Event, EventStatus, utcnow
from eventra.services.carousel import add_to_carousel
from eventra.services.events import create_event, update_event_status


async def seed():
    now = utcnow()
    # small capacities to exercise the sold-out paths
    demo_events = [
        {"title": "Indie Concert", "venue": "Stadium A", "days": 7, "capacity": 5, "price": "150.00"},
        {"title": "Tech Talk", "venue": "Hall B", "days": 14, "capacity": 50, "price": "0"},
        {"title": "Art Expo", "venue": "Gallery C", "days": 21, "capacity": 100, "price": "75.50"},
    ]

    async with AsyncSessionLocal() as session:
        created, existing = [], []
        for ev in demo_events:
            res = await session.execute(select(Event).where(Event.title == ev["title"]))
            if res.scalars().first():
                existing.append(ev["title"])
                continue
            event = await create_event(
                session,
                title=ev["title"],
                venue=ev["venue"],
                location="Dubai",
                starts_at=now + timedelta(days=ev["days"]),
                capacity=ev["capacity"],
                price=Decimal(ev["price"]),
                contact_whatsapp="+971 50 000 0000",
            )
            await update_event_status(session, event.id, EventStatus.LIVE.value)
            created.append(event)

        for event in created[:2]:
            await add_to_carousel(session, event.id)

    print("Seed complete.")
    print("Events created:", [e.title for e in created])
    print("Events already present:", existing)


if __name__ == "__main__":
    asyncio.run(seed())
