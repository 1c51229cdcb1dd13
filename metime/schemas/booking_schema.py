"""Booking views and the tagged results returned by booking commands."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from metime.schemas.customer_schema import Customer
from metime.schemas.schedule_schema import Schedule, Service

SLOT_UNAVAILABLE_MESSAGE = "This time is no longer available. Please choose another time."


class BookingError(str, Enum):
    """Every expected way a booking command can fail."""

    INVALID_NAME = "invalid_name"
    INVALID_PHONE_NUMBER = "invalid_phone_number"
    INVALID_EMAIL = "invalid_email"
    NO_SERVICES = "no_services"
    SLOT_ALREADY_BOOKED = "slot_already_booked"
    INSUFFICIENT_SLOTS = "insufficient_slots"
    NETWORK_ERROR = "network_error"
    UNKNOWN_ERROR = "unknown_error"

    @property
    def message(self) -> str:
        """User-facing text for this error."""
        return _MESSAGES[self]

    @property
    def is_occupancy_conflict(self) -> bool:
        return self in (BookingError.SLOT_ALREADY_BOOKED, BookingError.INSUFFICIENT_SLOTS)


_MESSAGES: dict[BookingError, str] = {
    BookingError.INVALID_NAME: "Please enter a name between 2 and 50 characters.",
    BookingError.INVALID_PHONE_NUMBER: "Please enter a valid Danish phone number (+45XXXXXXXX).",
    BookingError.INVALID_EMAIL: "Please enter a valid email address.",
    BookingError.NO_SERVICES: "Please select at least one service.",
    BookingError.SLOT_ALREADY_BOOKED: SLOT_UNAVAILABLE_MESSAGE,
    BookingError.INSUFFICIENT_SLOTS: SLOT_UNAVAILABLE_MESSAGE,
    BookingError.NETWORK_ERROR: "Could not reach the booking system. Please try again.",
    BookingError.UNKNOWN_ERROR: "Something went wrong. Please reload and try again.",
}


class Booking(BaseModel):
    """Read-only view of one primary slot plus the continuation slots it claims."""
    schedule_id: str
    primary_slot_id: str
    customer: Customer
    services: list[Service]
    start_time: datetime
    end_time: datetime
    slot_ids: list[str]
    total_price: float


class BookingResult(BaseModel):
    """Outcome of reserve, cancel or update on one schedule."""
    ok: bool
    schedule: Optional[Schedule] = None
    error: Optional[BookingError] = None
    booking: Optional[Booking] = None

    @classmethod
    def success(cls, schedule: Schedule, booking: Optional[Booking] = None) -> "BookingResult":
        return cls(ok=True, schedule=schedule, booking=booking)

    @classmethod
    def failure(cls, schedule: Optional[Schedule], error: BookingError) -> "BookingResult":
        return cls(ok=False, schedule=schedule, error=error)

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        return "Booking saved."


class MoveResult(BaseModel):
    """Outcome of moving a booking from one schedule to another."""
    ok: bool
    source: Optional[Schedule] = None
    destination: Optional[Schedule] = None
    error: Optional[BookingError] = None
    booking: Optional[Booking] = None

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        return "Booking moved."
