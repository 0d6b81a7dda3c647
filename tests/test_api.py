"""HTTP surface tests using httpx against the ASGI app."""
from datetime import timedelta

import pytest

from eventra.models import EventStatus, utcnow


@pytest.mark.asyncio
async def test_health(async_client):
    response = await async_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_admin_routes_require_key(async_client):
    response = await async_client.get("/admin/dashboard")
    assert response.status_code == 401

    response = await async_client.get("/admin/dashboard", headers={"X-Admin-Key": "wrong"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_event_lifecycle_over_http(async_client, admin_headers):
    starts_at = (utcnow() + timedelta(days=10)).isoformat()
    response = await async_client.post(
        "/admin/events",
        json={
            "title": "Harbour Lights",
            "venue": "Pier 7",
            "starts_at": starts_at,
            "capacity": 4,
            "price": "120.00",
            "contact_whatsapp": "+971 50 123 4567",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    event = response.json()
    assert event["status"] == "pending"
    assert event["available_seats"] == 4

    listed = await async_client.get("/events")
    assert listed.json() == []

    response = await async_client.patch(
        f"/admin/events/{event['id']}/status", json={"status": "live"}, headers=admin_headers
    )
    assert response.status_code == 200

    listed = await async_client.get("/events")
    assert [e["id"] for e in listed.json()] == [event["id"]]

    response = await async_client.put(
        f"/admin/events/{event['id']}", json={"capacity": 6}, headers=admin_headers
    )
    assert response.json()["capacity"] == 6


@pytest.mark.asyncio
async def test_reservation_flow(async_client, admin_headers, make_event):
    event = await make_event(capacity=5, contact_whatsapp="+971 50 123 4567")

    response = await async_client.post(
        "/reservations",
        json={
            "event_id": event.id,
            "full_name": "Layla Haddad",
            "phone": "+971500000001",
            "email": "layla@example.com",
            "ticket_count": 2,
            "payment_method": "card",
        },
    )
    assert response.status_code == 201
    body = response.json()
    reservation = body["reservation"]
    assert reservation["status"] == "pending"
    assert reservation["total_amount"] == "100.00"
    assert body["guest_entry_id"] is not None
    assert body["whatsapp_url"].startswith("https://wa.me/971501234567?text=")

    mine = await async_client.get("/reservations", params={"phone": "+971500000001"})
    assert [r["id"] for r in mine.json()] == [reservation["id"]]

    response = await async_client.patch(
        f"/admin/reservations/{reservation['id']}/status", json={"status": "confirmed"}, headers=admin_headers
    )
    assert response.json()["status"] == "confirmed"

    response = await async_client.patch(
        f"/admin/reservations/{reservation['id']}/payment", json={"payment_status": "paid"}, headers=admin_headers
    )
    assert response.json()["payment_status"] == "paid"

    response = await async_client.patch(
        f"/admin/reservations/{reservation['id']}/status", json={"status": "pending"}, headers=admin_headers
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_TRANSITION"


@pytest.mark.asyncio
async def test_reservation_errors(async_client, make_event):
    event = await make_event(capacity=2)
    payload = {"event_id": event.id, "full_name": "Layla", "phone": "+971500000001"}

    response = await async_client.post("/reservations", json={**payload, "ticket_count": 3})
    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "CAPACITY_EXCEEDED"
    assert error["details"]["available"] == 2

    response = await async_client.post("/reservations", json={**payload, "ticket_count": 21})
    assert response.status_code == 422

    response = await async_client.post("/reservations", json={**payload, "event_id": 999, "ticket_count": 1})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_unbookable_event_over_http(async_client, make_event):
    event = await make_event(status=EventStatus.PENDING.value)

    response = await async_client.post(
        "/reservations",
        json={"event_id": event.id, "full_name": "Layla", "phone": "+971500000001", "ticket_count": 1},
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NOT_BOOKABLE"


@pytest.mark.asyncio
async def test_guest_registration_and_check_in(async_client, admin_headers, make_event):
    event = await make_event()
    payload = {
        "event_id": event.id,
        "guest_name": "Omar Saeed",
        "phone": "+971500000010",
        "companions": [{"name": "Sara", "phone": "+971500000011"}, {"name": ""}],
    }

    response = await async_client.post("/guests", json=payload)
    assert response.status_code == 201
    guest = response.json()["guest"]
    assert guest["group_size"] == 2
    assert guest["companions"] == [{"name": "Sara", "phone": "+971500000011", "email": ""}]
    assert response.json()["whatsapp_url"] is None

    response = await async_client.post("/guests", json=payload)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "DUPLICATE_GUEST"

    response = await async_client.post(f"/admin/guests/{guest['id']}/check-in", headers=admin_headers)
    assert response.json()["checked_in"] is True

    response = await async_client.get(f"/admin/events/{event.id}/guests", headers=admin_headers)
    body = response.json()
    assert [g["id"] for g in body["guests"]] == [guest["id"]]
    assert body["stats"]["checked_in"] == 1
    assert body["stats"]["total"] == 1

    response = await async_client.delete(f"/admin/guests/{guest['id']}", headers=admin_headers)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_reservation_for_phone_already_on_guest_list(async_client, make_event, fetch_event):
    event = await make_event()
    response = await async_client.post(
        "/guests", json={"event_id": event.id, "guest_name": "Omar Saeed", "phone": "+971500000010"}
    )
    assert response.status_code == 201

    response = await async_client.post(
        "/reservations",
        json={"event_id": event.id, "full_name": "Omar Saeed", "phone": "+971500000010", "ticket_count": 2},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["guest_entry_id"] is None
    assert body["reservation"]["ticket_count"] == 2
    assert (await fetch_event(event.id)).booked_seats == 2


@pytest.mark.asyncio
async def test_carousel_endpoints(async_client, admin_headers, make_event):
    first = await make_event(title="First", starts_at=utcnow() + timedelta(days=1))
    second = await make_event(title="Second", starts_at=utcnow() + timedelta(days=2))
    past = await make_event(title="Past", starts_at=utcnow() - timedelta(days=3))

    response = await async_client.post(
        "/admin/carousel/bulk", json={"action": "add", "event_ids": [first.id, second.id]}, headers=admin_headers
    )
    assert [e["carousel_position"] for e in response.json()["events"]] == [1, 2]

    response = await async_client.post("/admin/carousel", json={"event_id": past.id}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NOT_ELIGIBLE"

    response = await async_client.put(
        "/admin/carousel/order", json={"events": [{"event_id": second.id, "position": 1}]}, headers=admin_headers
    )
    assert [e["id"] for e in response.json()["events"]] == [second.id, first.id]

    response = await async_client.delete(f"/admin/carousel/{second.id}", headers=admin_headers)
    assert [(e["id"], e["carousel_position"]) for e in response.json()["events"]] == [(first.id, 1)]

    public = await async_client.get("/carousel")
    assert [e["id"] for e in public.json()["events"]] == [first.id]


@pytest.mark.asyncio
async def test_delete_event_in_use(async_client, admin_headers, make_event):
    event = await make_event()
    await async_client.post(
        "/reservations",
        json={"event_id": event.id, "full_name": "Layla", "phone": "+971500000001", "ticket_count": 1},
    )

    response = await async_client.delete(f"/admin/events/{event.id}", headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "EVENT_IN_USE"


@pytest.mark.asyncio
async def test_dashboard_and_analytics(async_client, admin_headers, make_event):
    event = await make_event(capacity=10)
    response = await async_client.post(
        "/reservations",
        json={"event_id": event.id, "full_name": "Layla", "phone": "+971500000001", "ticket_count": 4},
    )
    rid = response.json()["reservation"]["id"]
    await async_client.patch(f"/admin/reservations/{rid}/status", json={"status": "confirmed"}, headers=admin_headers)

    dashboard = (await async_client.get("/admin/dashboard", headers=admin_headers)).json()
    assert dashboard["total_events"] == 1
    assert dashboard["reservations_by_status"] == {"confirmed": 1}
    assert dashboard["confirmed_revenue"] == "200.00"
    assert dashboard["commission_earned"] == "20.00"
    assert dashboard["total_guests"] == 1

    [row] = (await async_client.get("/admin/analytics", headers=admin_headers)).json()
    assert row["event_id"] == event.id
    assert row["booked_seats"] == 4
    assert row["confirmed_reservations"] == 1
    assert row["capacity_utilization_pct"] == 40.0
