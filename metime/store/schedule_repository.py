"""
Store-backed booking commands.

Each command validates the customer details locally, then re-runs the full
booking check inside a store transaction against the authoritative
document. Two customers racing for the same time on the public booking
page are serialised by that transaction: one wins, the other gets
``slot_already_booked`` or ``insufficient_slots``. Nothing is retried
automatically; the customer re-selects and tries again.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Optional, Sequence

from pydantic import ValidationError

from metime.config import AppConfig, settings
from metime.logging_context import get_request_logger, new_request_id, set_request_id
from metime.schemas.booking_schema import BookingError, BookingResult, MoveResult
from metime.schemas.customer_schema import Customer
from metime.schemas.schedule_schema import Schedule, Service
from metime.scheduling import reservation
from metime.scheduling.slots import create_schedule
from metime.scheduling.validation import validate_customer
from metime.store.document_store import DocumentStore, StoreError
from metime.tools.calendar_sink import CalendarSink, push_to_calendar

logger = get_request_logger(__name__)

Command = Callable[[Schedule], BookingResult]


class ScheduleRepository:
    """Schedules keyed by their shareable link token."""

    def __init__(
        self,
        store: DocumentStore,
        calendar_sink: Optional[CalendarSink] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._store = store
        self._calendar = calendar_sink
        self._config = config or settings

    # ------------------------------------------------------------------ #
    # Schedules
    # ------------------------------------------------------------------ #

    async def create_schedule(self, day: date) -> Schedule:
        """Add a new day. Raises StoreError if it can't be saved."""
        schedule = create_schedule(day, self._config.scheduling)
        await self._store.set(schedule.link_token, schedule.to_document())
        return schedule

    async def get_schedule(self, token: str) -> Optional[Schedule]:
        document = await self._store.get(token)
        return Schedule.from_document(document) if document is not None else None

    def share_link(self, schedule: Schedule) -> str:
        """Public booking page address for a schedule."""
        return f"{self._config.studio.web_domain}/book/{schedule.link_token}"

    # ------------------------------------------------------------------ #
    # Booking commands
    # ------------------------------------------------------------------ #

    async def _run(self, token: str, command: Command) -> BookingResult:
        """Apply ``command`` to the stored schedule inside one transaction."""

        def apply(document: Optional[dict]) -> tuple[Optional[dict], BookingResult]:
            if document is None:
                logger.warning("Schedule %s not found", token)
                return None, BookingResult.failure(None, BookingError.UNKNOWN_ERROR)
            try:
                current = Schedule.from_document(document)
            except ValidationError as exc:
                logger.error("Schedule %s is malformed: %s", token, exc)
                return None, BookingResult.failure(None, BookingError.UNKNOWN_ERROR)
            result = command(current)
            if not result.ok or result.schedule is current:
                return None, result
            return result.schedule.to_document(), result

        try:
            return await self._store.transaction(token, apply)
        except StoreError as exc:
            logger.error("Store transaction failed for %s: %s", token, exc)
            return BookingResult.failure(None, BookingError.NETWORK_ERROR)

    def _precheck(self, customer: Customer) -> Optional[BookingError]:
        error = validate_customer(customer, self._config.contact)
        if error is not None:
            logger.info("Booking rejected before submit: %s", error.value)
        return error

    def _sync_calendar(self, schedule: Optional[Schedule], slot_id: str) -> None:
        slot = schedule.slot(slot_id) if schedule is not None else None
        if slot is not None:
            push_to_calendar(self._calendar, slot)

    async def reserve(
        self, token: str, slot_id: str, customer: Customer, services: Sequence[Service]
    ) -> BookingResult:
        set_request_id(new_request_id())
        error = self._precheck(customer)
        if error is not None:
            return BookingResult.failure(None, error)

        result = await self._run(
            token,
            lambda s: reservation.reserve(s, slot_id, customer, services, config=self._config),
        )
        if result.ok:
            logger.info("Booking committed in schedule %s at slot %s", token, slot_id)
            self._sync_calendar(result.schedule, slot_id)
        return result

    async def cancel(self, token: str, slot_id: str) -> BookingResult:
        set_request_id(new_request_id())
        return await self._run(
            token, lambda s: reservation.cancel(s, slot_id, config=self._config)
        )

    async def update(
        self,
        token: str,
        original_slot_id: str,
        new_slot_id: str,
        customer: Customer,
        services: Sequence[Service],
    ) -> BookingResult:
        set_request_id(new_request_id())
        error = self._precheck(customer)
        if error is not None:
            return BookingResult.failure(None, error)

        result = await self._run(
            token,
            lambda s: reservation.update(
                s, original_slot_id, new_slot_id, customer, services, config=self._config
            ),
        )
        if result.ok:
            self._sync_calendar(result.schedule, new_slot_id)
        return result

    async def move_between_schedules(
        self,
        source_token: str,
        destination_token: str,
        original_slot_id: str,
        new_slot_id: str,
        customer: Customer,
        services: Sequence[Service],
    ) -> MoveResult:
        """
        Move a booking to another day as two independent writes.

        The destination is booked first, so a full destination leaves the
        source untouched. If freeing the source then fails, the destination
        booking is rolled back and the move reports ``network_error``.
        """
        if source_token == destination_token:
            result = await self.update(
                source_token, original_slot_id, new_slot_id, customer, services
            )
            return MoveResult(
                ok=result.ok, source=result.schedule, destination=result.schedule,
                error=result.error, booking=result.booking,
            )

        set_request_id(new_request_id())
        error = self._precheck(customer)
        if error is not None:
            return MoveResult(ok=False, error=error)

        try:
            source = await self.get_schedule(source_token)
        except StoreError as exc:
            logger.error("Could not load source schedule %s: %s", source_token, exc)
            return MoveResult(ok=False, error=BookingError.NETWORK_ERROR)
        except ValidationError as exc:
            logger.error("Source schedule %s is malformed: %s", source_token, exc)
            return MoveResult(ok=False, error=BookingError.UNKNOWN_ERROR)
        if source is None or not reservation.holds_booking(source, original_slot_id):
            return MoveResult(ok=False, source=source, error=BookingError.UNKNOWN_ERROR)

        booked_at = source.slot(original_slot_id).booked_at
        placed = await self._run(
            destination_token,
            lambda s: reservation.reserve(
                s, new_slot_id, customer, services, config=self._config, booked_at=booked_at
            ),
        )
        if not placed.ok:
            return MoveResult(
                ok=False, source=source, destination=placed.schedule, error=placed.error
            )

        freed = await self._run(
            source_token, lambda s: reservation.cancel(s, original_slot_id, config=self._config)
        )
        if not freed.ok:
            logger.error(
                "Source cancel failed after destination commit, rolling back %s", destination_token
            )
            rollback = await self._run(
                destination_token,
                lambda s: reservation.cancel(s, new_slot_id, config=self._config),
            )
            if not rollback.ok:
                logger.error("Rollback of %s failed, destination slot %s stays booked",
                             destination_token, new_slot_id)
            return MoveResult(ok=False, source=source, error=freed.error)

        logger.info("Booking moved from %s to %s", source_token, destination_token)
        self._sync_calendar(placed.schedule, new_slot_id)
        return MoveResult(
            ok=True, source=freed.schedule, destination=placed.schedule, booking=placed.booking
        )

    async def release_orphaned_slots(self, token: str) -> list[str]:
        """Free continuation slots no booking claims. Returns the freed slot ids."""
        set_request_id(new_request_id())
        released: list[str] = []

        def repair(schedule: Schedule) -> BookingResult:
            repaired, ids = reservation.release_orphaned_slots(schedule, config=self._config)
            released.extend(ids)
            return BookingResult.success(repaired)

        result = await self._run(token, repair)
        if not result.ok:
            logger.warning("Orphan release for %s failed: %s", token, result.error.value)
        return released
