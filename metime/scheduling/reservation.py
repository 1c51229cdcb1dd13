"""
Booking commands: reserve, cancel, update and cross-day move.

Each command takes a Schedule value and returns a tagged result. The input
schedule is never modified: a command validates first and only then
applies its changes to a deep copy, so a failed command leaves nothing
half-done. Expected conflicts come back as ``BookingError`` values, never
as exceptions.

Usage:
    result = reserve(schedule, slot.id, customer, services)
    if result.ok:
        schedule = result.schedule
    else:
        print(result.error.message)
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from metime.config import AppConfig, settings
from metime.schemas.booking_schema import BookingError, BookingResult, MoveResult
from metime.schemas.customer_schema import Customer
from metime.schemas.schedule_schema import Schedule, Service
from metime.scheduling.availability import check_run, claimed_indices, total_duration
from metime.scheduling.slots import slots_needed
from metime.scheduling.validation import clean_customer, validate_customer
from metime.scheduling.views import booking_view

logger = logging.getLogger(__name__)


def reserve(
    schedule: Schedule,
    primary_slot_id: str,
    customer: Customer,
    services: Sequence[Service],
    *,
    config: Optional[AppConfig] = None,
    booked_at: Optional[datetime] = None,
) -> BookingResult:
    """
    Book ``services`` for ``customer`` starting at ``primary_slot_id``.

    Checks, in order: name, phone, email, at least one service, slot exists,
    slot free, full run free and finished by closing time.
    """
    config = config or settings
    error = validate_customer(customer, config.contact)
    if error is not None:
        logger.debug("Customer details rejected: %s", error.value)
        return BookingResult.failure(schedule, error)
    if not services:
        return BookingResult.failure(schedule, BookingError.NO_SERVICES)

    index = schedule.index_of(primary_slot_id)
    if index is None:
        logger.warning("Slot %s not found in schedule %s", primary_slot_id, schedule.id)
        return BookingResult.failure(schedule, BookingError.UNKNOWN_ERROR)

    error = check_run(schedule, index, services, config.scheduling)
    if error is not None:
        logger.info("Slot %s unavailable: %s", primary_slot_id, error.value)
        return BookingResult.failure(schedule, error)

    updated = schedule.model_copy(deep=True)
    cleaned = clean_customer(customer)
    primary = updated.slots[index]
    primary.is_booked = True
    primary.customer_name = cleaned.name
    primary.customer_phone = cleaned.phone
    primary.customer_email = cleaned.email
    primary.notes = cleaned.notes
    primary.services = list(services)
    primary.booked_at = booked_at or datetime.now()
    primary.booked_by = None

    needed = slots_needed(total_duration(services), config.scheduling.slot_minutes)
    for slot in updated.slots[index + 1:index + needed]:
        slot.clear()
        slot.is_booked = True
        slot.booked_by = primary.id

    logger.info(
        "Reserved %s on %s at %s (%d slots)",
        cleaned.name, schedule.date.isoformat(), primary.start_time.strftime("%H:%M"), needed,
    )
    return BookingResult.success(updated, booking_view(updated, index, config.scheduling))


def cancel(
    schedule: Schedule, primary_slot_id: str, *, config: Optional[AppConfig] = None
) -> BookingResult:
    """
    Free a booking's primary slot and the continuation slots it claims.

    Cancelling a free slot, or a continuation slot, changes nothing and
    still succeeds, so repeated cancels are safe.
    """
    config = config or settings
    index = schedule.index_of(primary_slot_id)
    if index is None:
        logger.warning("Cancel of unknown slot %s in schedule %s", primary_slot_id, schedule.id)
        return BookingResult.failure(schedule, BookingError.UNKNOWN_ERROR)

    claimed = claimed_indices(schedule, index, config.scheduling)
    if not claimed:
        logger.debug("Slot %s holds no booking, nothing to cancel", primary_slot_id)
        return BookingResult.success(schedule)

    updated = schedule.model_copy(deep=True)
    for i in claimed:
        updated.slots[i].clear()
    logger.info("Cancelled booking at slot %s (%d slots freed)", primary_slot_id, len(claimed))
    return BookingResult.success(updated)


def holds_booking(schedule: Schedule, slot_id: str) -> bool:
    """True if ``slot_id`` is the primary slot of a booking."""
    slot = schedule.slot(slot_id)
    return slot is not None and slot.is_booked and bool(slot.services)


def update(
    schedule: Schedule,
    original_slot_id: str,
    new_slot_id: str,
    customer: Customer,
    services: Sequence[Service],
    *,
    config: Optional[AppConfig] = None,
) -> BookingResult:
    """
    Replace a booking with new details, time or services on the same day.

    The new run may overlap the old one: the old range is freed before the
    new one is checked. If the new booking doesn't fit, the original
    schedule comes back unchanged.
    """
    if not holds_booking(schedule, original_slot_id):
        return BookingResult.failure(schedule, BookingError.UNKNOWN_ERROR)

    original = schedule.slot(original_slot_id)
    freed = cancel(schedule, original_slot_id, config=config)
    result = reserve(
        freed.schedule, new_slot_id, customer, services,
        config=config, booked_at=original.booked_at,
    )
    if not result.ok:
        return BookingResult.failure(schedule, result.error)
    logger.info("Updated booking %s -> %s", original_slot_id, new_slot_id)
    return result


def move_between_schedules(
    source: Schedule,
    destination: Schedule,
    original_slot_id: str,
    new_slot_id: str,
    customer: Customer,
    services: Sequence[Service],
    *,
    config: Optional[AppConfig] = None,
) -> MoveResult:
    """
    Move a booking to another day.

    The destination is booked first; only if that succeeds is the source
    booking cancelled. On failure both schedules come back unchanged.
    """
    if source.id == destination.id:
        result = update(source, original_slot_id, new_slot_id, customer, services, config=config)
        return MoveResult(
            ok=result.ok, source=result.schedule, destination=result.schedule,
            error=result.error, booking=result.booking,
        )

    if not holds_booking(source, original_slot_id):
        return MoveResult(
            ok=False, source=source, destination=destination, error=BookingError.UNKNOWN_ERROR
        )

    original = source.slot(original_slot_id)
    placed = reserve(
        destination, new_slot_id, customer, services,
        config=config, booked_at=original.booked_at,
    )
    if not placed.ok:
        return MoveResult(ok=False, source=source, destination=destination, error=placed.error)

    freed = cancel(source, original_slot_id, config=config)
    logger.info(
        "Moved booking from %s to %s", source.date.isoformat(), destination.date.isoformat()
    )
    return MoveResult(
        ok=True, source=freed.schedule, destination=placed.schedule, booking=placed.booking
    )


def release_orphaned_slots(
    schedule: Schedule, *, config: Optional[AppConfig] = None
) -> tuple[Schedule, list[str]]:
    """
    Free booked slots that no booking claims, and wipe free slots that
    still carry booking data.

    A continuation slot is orphaned when its primary slot lost its services
    or its ``is_booked`` flag without going through ``cancel``. The primary
    itself is then left free but still holding the old customer and
    services. Returns the repaired schedule and the ids of the slots that
    were reset.
    """
    config = config or settings
    covered: set[int] = set()
    for index, slot in enumerate(schedule.slots):
        if slot.is_booked and slot.services:
            covered.update(claimed_indices(schedule, index, config.scheduling))

    orphans = [
        i for i, slot in enumerate(schedule.slots)
        if (slot.is_booked and i not in covered) or (not slot.is_booked and slot.has_booking_data)
    ]
    if not orphans:
        return schedule, []

    updated = schedule.model_copy(deep=True)
    for i in orphans:
        updated.slots[i].clear()
    released = [updated.slots[i].id for i in orphans]
    logger.warning("Released %d orphaned slots in schedule %s", len(released), schedule.id)
    return updated, released
