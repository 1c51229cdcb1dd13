"""Shared test fixtures and helpers."""

from datetime import date
from typing import Optional

import pytest

from metime.schemas.customer_schema import Customer
from metime.schemas.schedule_schema import Schedule, Service, Slot
from metime.scheduling.slots import create_schedule
from metime.store.document_store import InMemoryDocumentStore
from metime.store.schedule_repository import ScheduleRepository
from metime.tools.calendar_sink import RecordingCalendarSink

DAY = date(2025, 8, 4)


@pytest.fixture
def schedule() -> Schedule:
    return create_schedule(DAY)


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def calendar():
    return RecordingCalendarSink()


@pytest.fixture
def repository(store, calendar):
    return ScheduleRepository(store, calendar_sink=calendar)


def make_service(
    minutes: int, price: float = 100, service_id: Optional[str] = None
) -> Service:
    """Helper to create a catalog-independent service."""
    return Service(
        id=service_id or f"svc-{minutes}",
        name=f"Treatment {minutes}",
        duration_minutes=minutes,
        price=price,
        emoji="💅",
    )


def make_customer(
    name: str = "Freja Hansen",
    phone: str = "+4512345678",
    email: Optional[str] = None,
    notes: Optional[str] = None,
) -> Customer:
    return Customer(name=name, phone=phone, email=email, notes=notes)


def slot_at(schedule: Schedule, hhmm: str) -> Slot:
    """Find the slot starting at HH:MM."""
    for slot in schedule.slots:
        if slot.start_time.strftime("%H:%M") == hhmm:
            return slot
    raise LookupError(f"No slot at {hhmm}")


def booked_times(schedule: Schedule) -> list[str]:
    """Start times of every occupied slot, primary or continuation."""
    return [s.start_time.strftime("%H:%M") for s in schedule.slots if s.is_booked]


def slot_states(schedule: Schedule) -> list[dict]:
    """Field-level dump of every slot, for before/after comparisons."""
    return [slot.model_dump() for slot in schedule.slots]
