"""
Calendar sink for confirmed appointments.

In production this is the studio owner's device calendar. Pushing an entry
is best effort: a failing calendar never undoes or blocks a booking.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from metime.config import settings
from metime.schemas.schedule_schema import Slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalendarEntry:
    """One appointment as it appears in the owner's calendar."""

    title: str
    notes: str
    start_time: datetime
    end_time: datetime


class CalendarSink(Protocol):
    def add_entry(self, entry: CalendarEntry) -> None:
        ...


class LoggingCalendarSink:
    """Writes entries to the log. Default when no device calendar is attached."""

    def add_entry(self, entry: CalendarEntry) -> None:
        logger.info(
            "Calendar entry: %s (%s-%s)",
            entry.title, entry.start_time.strftime("%Y-%m-%d %H:%M"), entry.end_time.strftime("%H:%M"),
        )


class RecordingCalendarSink:
    """Keeps entries in memory; used by the console demo and tests."""

    def __init__(self) -> None:
        self.entries: list[CalendarEntry] = []

    def add_entry(self, entry: CalendarEntry) -> None:
        self.entries.append(entry)


def build_calendar_entry(slot: Slot, currency: Optional[str] = None) -> CalendarEntry:
    """Title is "<customer> - <services>"; notes carry phone, services and total."""
    currency = currency or settings.studio.currency
    service_names = ", ".join(s.name for s in slot.services)
    notes = "\n".join([
        f"Phone: {slot.customer_phone or 'N/A'}",
        f"Services: {service_names}",
        f"Total: {slot.total_price:g} {currency}",
    ])
    if slot.notes:
        notes += f"\nNotes: {slot.notes}"
    return CalendarEntry(
        title=f"{slot.customer_name or 'Customer'} - {service_names}",
        notes=notes,
        start_time=slot.start_time,
        end_time=slot.end_time,
    )


def push_to_calendar(sink: Optional[CalendarSink], slot: Slot) -> bool:
    """Add a booking to the calendar sink. Failures are logged, never raised."""
    if sink is None:
        return False
    try:
        sink.add_entry(build_calendar_entry(slot))
    except Exception:
        logger.exception("Error saving booking %s to calendar", slot.id)
        return False
    return True
