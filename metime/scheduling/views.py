"""Derived views over a schedule: unique bookings, booking count, revenue.

Nothing here is cached or stored. Each call rescans the slot sequence, so
the numbers are always in step with the latest slot state.
"""

from typing import Any, Optional, Sequence

from metime.config import SchedulingConfig, settings
from metime.schemas.booking_schema import Booking
from metime.schemas.customer_schema import Customer
from metime.schemas.schedule_schema import Schedule, Service, Slot
from metime.scheduling.availability import available_slots, claimed_indices
from metime.scheduling.slots import slots_needed


def _primary_indices(schedule: Schedule, config: Optional[SchedulingConfig] = None) -> list[int]:
    # Continuation slots don't identify themselves, so after each primary
    # slot the scan jumps over the run that primary claims.
    config = config or settings.scheduling
    indices = []
    i = 0
    while i < len(schedule.slots):
        slot = schedule.slots[i]
        if slot.is_primary:
            indices.append(i)
            i += max(slots_needed(slot.total_duration, config.slot_minutes), 1)
        else:
            i += 1
    return indices


def unique_bookings(schedule: Schedule, config: Optional[SchedulingConfig] = None) -> list[Slot]:
    """Primary slots of the day's bookings, in time order."""
    return [schedule.slots[i] for i in _primary_indices(schedule, config)]


def booking_view(
    schedule: Schedule, index: int, config: Optional[SchedulingConfig] = None
) -> Booking:
    """Build the Booking view for the primary slot at ``index``."""
    slot = schedule.slots[index]
    return Booking(
        schedule_id=schedule.id,
        primary_slot_id=slot.id,
        customer=Customer(
            name=slot.customer_name or "",
            phone=slot.customer_phone or "",
            email=slot.customer_email,
            notes=slot.notes,
        ),
        services=list(slot.services),
        start_time=slot.start_time,
        end_time=slot.end_time,
        slot_ids=[schedule.slots[i].id for i in claimed_indices(schedule, index, config)],
        total_price=slot.total_price,
    )


def bookings(schedule: Schedule, config: Optional[SchedulingConfig] = None) -> list[Booking]:
    return [booking_view(schedule, i, config) for i in _primary_indices(schedule, config)]


def booking_count(schedule: Schedule, config: Optional[SchedulingConfig] = None) -> int:
    return len(_primary_indices(schedule, config))


def daily_revenue(schedule: Schedule, config: Optional[SchedulingConfig] = None) -> float:
    return sum(slot.total_price for slot in unique_bookings(schedule, config))


def schedule_summary(
    schedule: Schedule,
    services: Optional[Sequence[Service]] = None,
    config: Optional[SchedulingConfig] = None,
) -> dict[str, Any]:
    """Headline numbers for one day, as shown on the owner's schedule list."""
    summary: dict[str, Any] = {
        "date": schedule.date.isoformat(),
        "bookings": booking_count(schedule, config),
        "revenue": daily_revenue(schedule, config),
        "free_slots": sum(1 for slot in schedule.slots if not slot.is_booked),
    }
    if services:
        summary["available_start_times"] = len(available_slots(schedule, services, config))
    return summary
