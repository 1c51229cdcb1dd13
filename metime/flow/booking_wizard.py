"""
Customer booking flow behind a shared schedule link.

The public booking page walks the customer through three steps: pick
services, pick a start time, enter contact details. This module holds
that flow as a deterministic step machine over the booking engine, so
the page only renders whatever step the wizard is in.

Usage:
    wizard = BookingWizard(repository, token)
    await wizard.load()
    wizard.toggle_service("gel-manicure")
    wizard.continue_to_time()
    wizard.select_time(wizard.available_times()[0].id)
    wizard.continue_to_details()
    wizard.set_detail("name", "Freja Hansen")
    wizard.set_detail("phone", "+45 12 34 56 78")
    result = await wizard.submit()
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from metime.config import settings
from metime.scheduling.availability import available_slots, total_duration
from metime.scheduling.validation import validate_email, validate_name, validate_phone
from metime.schemas.booking_schema import BookingError, BookingResult
from metime.schemas.customer_schema import Customer
from metime.schemas.schedule_schema import Schedule, Service, Slot
from metime.store.document_store import StoreError
from metime.store.schedule_repository import ScheduleRepository
from metime.tools.services import get_service

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    SERVICES = "services"
    TIME = "time"
    DETAILS = "details"
    CONFIRMED = "confirmed"


class WizardTrigger(str, Enum):
    SERVICES_CHOSEN = "services_chosen"
    TIME_CHOSEN = "time_chosen"
    BACK = "back"
    BOOKING_CONFIRMED = "booking_confirmed"
    SLOT_TAKEN = "slot_taken"


@dataclass(frozen=True)
class Transition:
    from_step: WizardStep
    to_step: WizardStep
    trigger: WizardTrigger


@dataclass
class StepEntry:
    step: WizardStep
    entered_at: datetime
    trigger: Optional[WizardTrigger] = None


class InvalidStepError(Exception):
    """Raised when an action is not valid in the current step."""


class BookingWizard:
    """Three-step booking flow for one schedule."""

    TRANSITIONS: list[Transition] = [
        Transition(WizardStep.SERVICES, WizardStep.TIME, WizardTrigger.SERVICES_CHOSEN),
        Transition(WizardStep.TIME, WizardStep.DETAILS, WizardTrigger.TIME_CHOSEN),
        Transition(WizardStep.TIME, WizardStep.SERVICES, WizardTrigger.BACK),
        Transition(WizardStep.DETAILS, WizardStep.TIME, WizardTrigger.BACK),
        Transition(WizardStep.DETAILS, WizardStep.CONFIRMED, WizardTrigger.BOOKING_CONFIRMED),
        Transition(WizardStep.DETAILS, WizardStep.TIME, WizardTrigger.SLOT_TAKEN),
    ]

    DETAIL_FIELDS = ("name", "phone", "email", "notes")

    def __init__(self, repository: ScheduleRepository, token: str) -> None:
        self._repository = repository
        self._token = token
        self._step = WizardStep.SERVICES
        self._history: list[StepEntry] = [
            StepEntry(step=WizardStep.SERVICES, entered_at=datetime.now(timezone.utc))
        ]
        self.schedule: Optional[Schedule] = None
        self.selected_services: list[Service] = []
        self.selected_slot: Optional[Slot] = None
        self.details: dict[str, str] = {
            "name": "", "phone": settings.contact.phone_prefix, "email": "", "notes": "",
        }
        self.last_error: Optional[str] = None

    # ------------------------------------------------------------------ #
    # Step machine
    # ------------------------------------------------------------------ #

    @property
    def step(self) -> WizardStep:
        return self._step

    def transition(self, trigger: WizardTrigger) -> WizardStep:
        for t in self.TRANSITIONS:
            if t.from_step == self._step and t.trigger == trigger:
                old_step = self._step
                self._step = t.to_step
                self._history.append(StepEntry(
                    step=self._step, entered_at=datetime.now(timezone.utc), trigger=trigger,
                ))
                logger.debug("Wizard step: %s -> %s (%s)", old_step.value, self._step.value,
                             trigger.value)
                return self._step

        valid = [t.trigger.value for t in self.TRANSITIONS if t.from_step == self._step]
        raise InvalidStepError(
            f"Cannot '{trigger.value}' from step '{self._step.value}'. Valid: {valid}"
        )

    def get_step_trace(self) -> list[str]:
        return [entry.step.value for entry in self._history]

    # ------------------------------------------------------------------ #
    # Step 1: services
    # ------------------------------------------------------------------ #

    async def load(self) -> bool:
        """Fetch the schedule behind the link. Returns False for a bad link."""
        try:
            self.schedule = await self._repository.get_schedule(self._token)
        except StoreError as exc:
            logger.error("Error loading schedule %s: %s", self._token, exc)
            self.last_error = "Error loading booking information"
            return False
        if self.schedule is None:
            self.last_error = "Invalid booking link"
            return False
        return True

    def toggle_service(self, service_id: str) -> None:
        self._require(WizardStep.SERVICES)
        service = get_service(service_id)
        if service is None:
            raise ValueError(f"Unknown service: {service_id}")
        if service in self.selected_services:
            self.selected_services.remove(service)
        else:
            self.selected_services.append(service)

    @property
    def total_duration(self) -> int:
        return total_duration(self.selected_services)

    @property
    def total_price(self) -> float:
        return sum(s.price for s in self.selected_services)

    def continue_to_time(self) -> WizardStep:
        if not self.selected_services:
            raise InvalidStepError("Select at least one service first")
        return self.transition(WizardTrigger.SERVICES_CHOSEN)

    # ------------------------------------------------------------------ #
    # Step 2: time
    # ------------------------------------------------------------------ #

    def available_times(self) -> list[Slot]:
        if self.schedule is None:
            return []
        return available_slots(self.schedule, self.selected_services)

    def select_time(self, slot_id: str) -> bool:
        self._require(WizardStep.TIME)
        for slot in self.available_times():
            if slot.id == slot_id:
                self.selected_slot = slot
                return True
        return False

    def continue_to_details(self) -> WizardStep:
        if self.selected_slot is None:
            raise InvalidStepError("Select a time first")
        return self.transition(WizardTrigger.TIME_CHOSEN)

    def back(self) -> WizardStep:
        return self.transition(WizardTrigger.BACK)

    # ------------------------------------------------------------------ #
    # Step 3: details
    # ------------------------------------------------------------------ #

    def set_detail(self, field_name: str, value: str) -> tuple[bool, str]:
        """Record one contact field. Returns (valid, message) for the form."""
        if field_name not in self.DETAIL_FIELDS:
            raise ValueError(f"Unknown field: {field_name}")
        value = value.strip()
        self.details[field_name] = value
        if field_name == "name" and not validate_name(value):
            return False, "Name is required" if not value else BookingError.INVALID_NAME.message
        if field_name == "phone" and not validate_phone(value):
            if not value:
                return False, "Phone number is required"
            return False, BookingError.INVALID_PHONE_NUMBER.message
        if field_name == "email" and not validate_email(value):
            return False, BookingError.INVALID_EMAIL.message
        return True, ""

    async def submit(self) -> BookingResult:
        """Book the selected time. An occupancy conflict sends the customer back to step 2."""
        self._require(WizardStep.DETAILS)
        customer = Customer(
            name=self.details["name"],
            phone=self.details["phone"],
            email=self.details["email"] or None,
            notes=self.details["notes"] or None,
        )
        result = await self._repository.reserve(
            self._token, self.selected_slot.id, customer, self.selected_services
        )
        self.last_error = result.error.message if result.error is not None else None

        if result.ok:
            self.schedule = result.schedule
            self.transition(WizardTrigger.BOOKING_CONFIRMED)
        elif result.error.is_occupancy_conflict:
            self.selected_slot = None
            self.transition(WizardTrigger.SLOT_TAKEN)
            await self.load()
        return result

    def _require(self, step: WizardStep) -> None:
        if self._step != step:
            raise InvalidStepError(f"Expected step '{step.value}', currently '{self._step.value}'")
