"""
Booking confirmation notifications driven by schedule document changes.

In production this runs as a cloud function on every schedule write and
hands messages to an email or SMS provider. Here the sender is pluggable;
the default one only logs. A failed send is logged and recorded in the
``notification_errors`` collection, never raised back into the booking.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Protocol

from metime.config import AppConfig, settings
from metime.schemas.schedule_schema import Schedule, Slot
from metime.store.document_store import DocumentStore

logger = logging.getLogger(__name__)

ERRORS_COLLECTION = "notification_errors"


@dataclass(frozen=True)
class ConfirmationMessage:
    """A rendered confirmation ready for a sender."""

    to: str
    subject: str
    body: str
    customer_phone: str
    customer_email: Optional[str] = None


class NotificationSender(Protocol):
    async def send(self, message: ConfirmationMessage) -> None:
        ...


class LoggingSender:
    """Default sender when no provider is configured."""

    async def send(self, message: ConfirmationMessage) -> None:
        logger.info("Confirmation to %s: %s", message.to, message.subject)


def detect_new_bookings(before: Optional[dict], after: dict) -> list[Slot]:
    """
    Slots that went from free to booked between two versions of a schedule.

    Slots are compared by position, since a schedule's slot sequence never
    changes shape. Only slots with a contact phone count, which leaves out
    continuation slots.
    """
    previous = (before or {}).get("timeSlots", [])
    new_bookings = []
    for index, raw in enumerate(after.get("timeSlots", [])):
        was_booked = index < len(previous) and previous[index].get("isBooked", False)
        if raw.get("isBooked") and not was_booked and raw.get("customerPhone"):
            new_bookings.append(Slot.model_validate(raw))
    return new_bookings


def _format_time(moment: datetime) -> str:
    return moment.strftime("%H:%M")


def render_confirmation(
    slot: Slot, schedule_date: date, config: Optional[AppConfig] = None
) -> ConfirmationMessage:
    config = config or settings
    currency = config.studio.currency
    lines = [
        f"Hi {slot.customer_name}!",
        "",
        "Your appointment has been successfully booked.",
        f"Date: {schedule_date.strftime('%A, %B %d, %Y')}",
        f"Time: {_format_time(slot.start_time)} - {_format_time(slot.end_time)}",
        f"Phone: {slot.customer_phone}",
        "",
        "Services booked:",
    ]
    for service in slot.services:
        lines.append(
            f"  {service.emoji} {service.name} - {service.duration_minutes} min, "
            f"{service.price:g} {currency}"
        )
    lines += [
        f"Total: {slot.total_price:g} {currency}",
        "",
        "Please arrive 5 minutes before your appointment. If you need to cancel "
        "or reschedule, let us know at least 24 hours in advance.",
        "",
        f"See you soon! The {config.studio.name} Team",
    ]
    return ConfirmationMessage(
        to=config.notifications.admin_email,
        subject=f"Booking Confirmation - {config.studio.name}",
        body="\n".join(lines),
        customer_phone=slot.customer_phone or "",
        customer_email=slot.customer_email,
    )


class BookingNotifier:
    """Sends a confirmation for every new booking written to the store."""

    def __init__(
        self,
        store: DocumentStore,
        sender: Optional[NotificationSender] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._store = store
        self._sender = sender or LoggingSender()
        self._config = config or settings
        self._detach = None
        self.sent: int = 0

    def attach(self) -> None:
        if self._detach is None:
            self._detach = self._store.on_change(self.handle_change)

    def detach(self) -> None:
        if self._detach is not None:
            self._detach()
            self._detach = None

    async def handle_change(self, key: str, before: Optional[dict], after: dict) -> None:
        if not self._config.notifications.enabled:
            return
        new_bookings = detect_new_bookings(before, after)
        if not new_bookings:
            return
        schedule_date = Schedule.from_document(after).date
        for slot in new_bookings:
            await self._notify(key, slot, schedule_date)

    async def _notify(self, key: str, slot: Slot, schedule_date: date) -> None:
        message = render_confirmation(slot, schedule_date, self._config)
        try:
            await self._sender.send(message)
        except Exception as exc:
            logger.error("Error sending confirmation for schedule %s: %s", key, exc)
            await self._store.add(ERRORS_COLLECTION, {
                "timestamp": datetime.now(),
                "scheduleId": key,
                "booking": {
                    "customerName": slot.customer_name,
                    "customerPhone": slot.customer_phone,
                    "services": [s.name for s in slot.services],
                },
                "error": str(exc),
            })
            return
        self.sent += 1
        logger.info("Confirmation sent for %s on %s", slot.customer_name, schedule_date.isoformat())
