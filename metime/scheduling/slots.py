"""
Slot generation for new schedules.

A schedule's slots are generated once, when the day is added, and are
never regenerated afterwards: every booking lives in the slot fields, so
regenerating would wipe the day's bookings.
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta
from typing import Optional

from metime.config import SchedulingConfig, settings
from metime.schemas.schedule_schema import Schedule, Slot
from metime.utils import ceil_div

logger = logging.getLogger(__name__)


def slots_needed(total_minutes: int, slot_minutes: int) -> int:
    """Number of consecutive slots a booking of ``total_minutes`` occupies."""
    return ceil_div(total_minutes, slot_minutes)


def generate_slots(
    day: date,
    opening: Optional[time] = None,
    closing: Optional[time] = None,
    slot_minutes: Optional[int] = None,
) -> list[Slot]:
    """
    Generate one slot per tick from opening time until closing.

    The last slot starts one full tick before closing, so 09:00-22:00 at
    15 minutes yields 52 slots, the last one at 21:45.
    """
    opening = opening or settings.scheduling.opening_time
    closing = closing or settings.scheduling.closing_time
    step = timedelta(minutes=slot_minutes or settings.scheduling.slot_minutes)

    start = datetime.combine(day, opening)
    end = datetime.combine(day, closing)
    slots: list[Slot] = []
    while start + step <= end:
        slots.append(Slot(id=str(uuid.uuid4()), start_time=start))
        start += step
    return slots


def create_schedule(day: date, config: Optional[SchedulingConfig] = None) -> Schedule:
    """Create a new day with a fresh link token and its full slot sequence."""
    config = config or settings.scheduling
    schedule = Schedule(
        id=str(uuid.uuid4()),
        date=day,
        slots=generate_slots(day, config.opening_time, config.closing_time, config.slot_minutes),
        link_token=str(uuid.uuid4()),
    )
    logger.info("Schedule created for %s with %d slots", day.isoformat(), len(schedule.slots))
    return schedule


def closing_datetime(schedule: Schedule, config: Optional[SchedulingConfig] = None) -> datetime:
    """Closing time on the schedule's day."""
    config = config or settings.scheduling
    return datetime.combine(schedule.date, config.closing_time)
