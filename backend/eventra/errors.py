"""Domain errors for the booking and curation services.

Every error carries a code, a user-safe message and a status code so the
HTTP layer can tell "no capacity" apart from "wrong state" and "duplicate".
"""

from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Domain error codes."""

    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    NOT_BOOKABLE = "NOT_BOOKABLE"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    DUPLICATE_GUEST = "DUPLICATE_GUEST"
    ALREADY_FEATURED = "ALREADY_FEATURED"
    NOT_FEATURED = "NOT_FEATURED"
    CAROUSEL_FULL = "CAROUSEL_FULL"
    EVENT_IN_USE = "EVENT_IN_USE"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "message": self.message, "details": self.details}


class NotFound(DomainError):
    """Raised when a referenced entity does not exist."""

    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity} not found", entity=entity, id=entity_id)


class ValidationError(DomainError):
    """Raised for malformed or out-of-range input."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class CapacityExceeded(DomainError):
    code = ErrorCode.CAPACITY_EXCEEDED
    status_code = 409

    def __init__(self, event_id: int, available: int, requested: int) -> None:
        super().__init__(
            f"Only {available} seats available",
            event_id=event_id,
            available=available,
            requested=requested,
        )


class NotBookable(DomainError):
    code = ErrorCode.NOT_BOOKABLE
    status_code = 409

    def __init__(self, event_id: int, status: str) -> None:
        super().__init__("Event is not available for booking", event_id=event_id, status=status)


class NotEligible(DomainError):
    """Raised when an event cannot be featured in the carousel."""

    code = ErrorCode.NOT_ELIGIBLE
    status_code = 409

    def __init__(self, event_id: int, reason: str) -> None:
        super().__init__(reason, event_id=event_id)


class InvalidTransition(DomainError):
    code = ErrorCode.INVALID_TRANSITION
    status_code = 409

    def __init__(self, entity: str, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot move {entity} from {current} to {requested}",
            current=current,
            requested=requested,
        )


class DuplicateGuest(DomainError):
    code = ErrorCode.DUPLICATE_GUEST
    status_code = 409

    def __init__(self, event_id: int, phone: str) -> None:
        super().__init__(
            "This phone number is already registered for this event",
            event_id=event_id,
            phone=phone,
        )


class AlreadyFeatured(DomainError):
    code = ErrorCode.ALREADY_FEATURED
    status_code = 409

    def __init__(self, event_id: int) -> None:
        super().__init__("Event already in carousel", event_id=event_id)


class NotFeatured(DomainError):
    code = ErrorCode.NOT_FEATURED
    status_code = 409

    def __init__(self, event_id: int) -> None:
        super().__init__("Event is not in carousel", event_id=event_id)


class CarouselFull(DomainError):
    code = ErrorCode.CAROUSEL_FULL
    status_code = 409

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Carousel already has maximum {limit} events. Please remove one first.",
            limit=limit,
        )


class EventInUse(DomainError):
    """Raised when deleting an event that still has open reservations."""

    code = ErrorCode.EVENT_IN_USE
    status_code = 409

    def __init__(self, event_id: int, open_reservations: int) -> None:
        super().__init__(
            "Event has open reservations",
            event_id=event_id,
            open_reservations=open_reservations,
        )
