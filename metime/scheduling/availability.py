"""
Availability search over a schedule's slot sequence.

A slot is available as the primary slot for a set of services when the
slot is free, the services finish by closing time, and every slot in the
run the booking would claim is free. A day has a few dozen slots, so a
linear scan is all this needs.
"""

import logging
from datetime import date, timedelta
from typing import AbstractSet, Iterable, Optional, Sequence

from metime.config import SchedulingConfig, settings
from metime.schemas.booking_schema import BookingError
from metime.schemas.schedule_schema import Schedule, Service, Slot
from metime.scheduling.slots import closing_datetime, slots_needed

logger = logging.getLogger(__name__)


def total_duration(services: Iterable[Service]) -> int:
    return sum(s.duration_minutes for s in services)


def claimed_indices(
    schedule: Schedule, index: int, config: Optional[SchedulingConfig] = None
) -> list[int]:
    """
    Indices of the slots held by the booking whose primary slot is at ``index``.

    The run length comes from the primary slot's own services. Slots in that
    run that were claimed by a different primary are not included.
    """
    config = config or settings.scheduling
    primary = schedule.slots[index]
    if not (primary.is_booked and primary.services):
        return []

    end = min(index + slots_needed(primary.total_duration, config.slot_minutes), len(schedule.slots))
    claimed = [index]
    for i in range(index + 1, end):
        slot = schedule.slots[i]
        if slot.is_booked and not slot.services and slot.booked_by in (None, primary.id):
            claimed.append(i)
    return claimed


def check_run(
    schedule: Schedule,
    index: int,
    services: Sequence[Service],
    config: Optional[SchedulingConfig] = None,
    free_slot_ids: AbstractSet[str] = frozenset(),
) -> Optional[BookingError]:
    """
    Check whether a booking of ``services`` can start at ``schedule.slots[index]``.

    Slots whose ids are in ``free_slot_ids`` count as free even when booked
    (the original range of a booking being edited).

    Returns:
        None if the run is free, else SLOT_ALREADY_BOOKED when the start slot
        itself is taken or INSUFFICIENT_SLOTS when the run is cut short.
    """
    config = config or settings.scheduling
    slots = schedule.slots

    def taken(slot: Slot) -> bool:
        return slot.is_booked and slot.id not in free_slot_ids

    if taken(slots[index]):
        return BookingError.SLOT_ALREADY_BOOKED

    duration = total_duration(services)
    if slots[index].start_time + timedelta(minutes=duration) > closing_datetime(schedule, config):
        return BookingError.INSUFFICIENT_SLOTS

    needed = slots_needed(duration, config.slot_minutes)
    run = slots[index:index + needed]
    if len(run) < needed or any(taken(slot) for slot in run):
        return BookingError.INSUFFICIENT_SLOTS
    return None


def available_slots(
    schedule: Schedule,
    services: Sequence[Service],
    config: Optional[SchedulingConfig] = None,
    free_slot_ids: AbstractSet[str] = frozenset(),
) -> list[Slot]:
    """Every slot that could be the primary slot for ``services``, in time order."""
    if not services:
        return []
    return [
        slot
        for index, slot in enumerate(schedule.slots)
        if check_run(schedule, index, services, config, free_slot_ids) is None
    ]


def available_slots_for_edit(
    schedule: Schedule,
    original_slot_id: str,
    services: Sequence[Service],
    config: Optional[SchedulingConfig] = None,
) -> list[Slot]:
    """Available slots when moving an existing booking within the same day."""
    index = schedule.index_of(original_slot_id)
    if index is None:
        return available_slots(schedule, services, config)
    own = {schedule.slots[i].id for i in claimed_indices(schedule, index, config)}
    return available_slots(schedule, services, config, free_slot_ids=own)


def count_available_slots(
    schedule: Schedule, services: Sequence[Service], config: Optional[SchedulingConfig] = None
) -> int:
    return len(available_slots(schedule, services, config))


def next_available_schedule(
    schedules: Iterable[Schedule],
    services: Sequence[Service],
    after: date,
    horizon_days: Optional[int] = None,
    config: Optional[SchedulingConfig] = None,
) -> Optional[Schedule]:
    """Earliest schedule after ``after`` (within the horizon) with a free slot for ``services``."""
    config = config or settings.scheduling
    horizon = after + timedelta(days=horizon_days or config.next_available_horizon_days)
    for schedule in sorted(schedules, key=lambda s: s.date):
        if not after < schedule.date <= horizon:
            continue
        if available_slots(schedule, services, config):
            return schedule
    logger.debug("No availability within %s..%s", after.isoformat(), horizon.isoformat())
    return None
