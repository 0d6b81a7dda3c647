"""WhatsApp deep links that let a hoster hear about new bookings.

Links are only built and handed back to the caller; nothing is sent.
"""
from urllib.parse import quote

from eventra.models import Event, GuestEntry, Reservation, as_utc

WHATSAPP_BASE = "https://wa.me/"


def whatsapp_url(number: str | None, message: str) -> str | None:
    if not number:
        return None
    digits = number.replace(" ", "").replace("+", "")
    if not digits:
        return None
    return f"{WHATSAPP_BASE}{digits}?text={quote(message)}"


def _event_lines(event: Event) -> list[str]:
    return [
        "EVENT DETAILS",
        f"Title: {event.title}",
        f"Date: {as_utc(event.starts_at):%Y-%m-%d %H:%M} UTC",
        f"Venue: {event.venue or 'N/A'}",
        f"Location: {event.location or 'N/A'}",
    ]


def reservation_message(event: Event, reservation: Reservation) -> str:
    lines = ["NEW RESERVATION RECEIVED", ""]
    lines += _event_lines(event)
    lines += [
        "",
        "CUSTOMER INFORMATION",
        f"Name: {reservation.full_name}",
        f"Phone: {reservation.phone}",
        f"Email: {reservation.email or 'Not provided'}",
        "",
        "BOOKING DETAILS",
        f"Ticket Type: {reservation.ticket_type}",
        f"Quantity: {reservation.ticket_count}",
        f"Unit Price: {reservation.currency} {reservation.unit_price}",
        f"Total Amount: {reservation.currency} {reservation.total_amount}",
        f"Payment Method: {reservation.payment_method}",
        f"Special Requirements: {reservation.special_requirements or 'None'}",
        "",
        f"Reservation ID: {reservation.id}",
        "Status: Pending Confirmation",
        "Please confirm this reservation as soon as possible.",
    ]
    return "\n".join(lines)


def guest_message(event: Event, guest: GuestEntry) -> str:
    lines = ["NEW GUEST LIST REGISTRATION", ""]
    lines += _event_lines(event)
    lines += [
        "",
        "GUEST INFORMATION",
        f"Name: {guest.guest_name}",
        f"Phone: {guest.phone}",
        f"Email: {guest.email or 'Not provided'}",
        "",
        f"Total Guests: {guest.group_size}",
    ]
    for index, companion in enumerate(guest.companions or [], start=1):
        line = f"  {index}. {companion['name']}"
        if companion.get("phone"):
            line += f" ({companion['phone']})"
        lines.append(line)
    lines += [
        f"Special Requests: {guest.special_requests or 'None'}",
        "",
        f"Guest List ID: {guest.id}",
        "Status: Confirmed",
    ]
    return "\n".join(lines)
