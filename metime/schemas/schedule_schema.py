"""Service, slot and schedule data models.

Field names follow Python conventions; ``to_document()`` dumps the
camelCase shape stored in the schedules collection (``timeSlots``,
``isBooked``, ``uniqueLink`` ...), and ``from_document()`` reads it back.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Service(BaseModel):
    """One bookable treatment from the studio's catalog."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    duration_minutes: int = Field(gt=0)
    price: float = Field(ge=0)
    emoji: str = ""
    description: Optional[str] = None


class Slot(BaseModel):
    """One fixed-length tick of a business day.

    Only the primary slot of a booking carries customer data and services.
    Continuation slots are just ``is_booked`` plus ``booked_by``, the id of
    the primary slot that claimed them.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    start_time: datetime
    is_booked: bool = False
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    services: list[Service] = Field(default_factory=list)
    booked_at: Optional[datetime] = None
    booked_by: Optional[str] = None

    @property
    def total_duration(self) -> int:
        return sum(s.duration_minutes for s in self.services)

    @property
    def total_price(self) -> float:
        return sum(s.price for s in self.services)

    @property
    def end_time(self) -> datetime:
        """Start time plus the booked services; only meaningful on primary slots."""
        return self.start_time + timedelta(minutes=self.total_duration)

    @property
    def is_primary(self) -> bool:
        return self.is_booked and bool(self.customer_name) and bool(self.services)

    @property
    def has_booking_data(self) -> bool:
        """True if any booking field is set, booked or not."""
        return any((
            self.customer_name, self.customer_phone, self.customer_email, self.notes,
            self.services, self.booked_at, self.booked_by,
        ))

    def clear(self) -> None:
        """Reset every booking field, keeping id and start time."""
        self.is_booked = False
        self.customer_name = None
        self.customer_phone = None
        self.customer_email = None
        self.notes = None
        self.services = []
        self.booked_at = None
        self.booked_by = None


class Schedule(BaseModel):
    """One business day: its ordered slots and its shareable link token."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    date: date
    slots: list[Slot] = Field(default_factory=list, alias="timeSlots")
    link_token: str = Field(alias="uniqueLink")

    def index_of(self, slot_id: str) -> Optional[int]:
        for index, slot in enumerate(self.slots):
            if slot.id == slot_id:
                return index
        return None

    def slot(self, slot_id: str) -> Optional[Slot]:
        index = self.index_of(slot_id)
        return None if index is None else self.slots[index]

    def to_document(self) -> dict:
        """Dump the stored document shape."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, document: dict) -> "Schedule":
        return cls.model_validate(document)
