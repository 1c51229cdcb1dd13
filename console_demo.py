"""
Offline console demo: runs booking scenarios against the in-memory store.

Uses the real scheduling engine, repository, booking wizard, calendar sink
and notifier. No database, no email provider, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario race
    python console_demo.py --scenario edit
    python console_demo.py --scenario move
"""

import argparse
import asyncio
from datetime import date, timedelta

from metime.config import settings
from metime.flow.booking_wizard import BookingWizard
from metime.schemas.customer_schema import Customer
from metime.schemas.schedule_schema import Schedule
from metime.scheduling.availability import available_slots_for_edit
from metime.scheduling.views import bookings, daily_revenue
from metime.store.document_store import InMemoryDocumentStore
from metime.store.feed import ScheduleFeed
from metime.store.schedule_repository import ScheduleRepository
from metime.tools.calendar_sink import RecordingCalendarSink
from metime.tools.notifications import BookingNotifier
from metime.tools.services import resolve_services

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


class ConsoleSession:
    """Wires the booking stack together around one in-memory store."""

    SCENARIOS = ("booking", "race", "edit", "move")

    def __init__(self) -> None:
        self.store = InMemoryDocumentStore(latency=0.01)
        self.calendar = RecordingCalendarSink()
        self.repository = ScheduleRepository(self.store, calendar_sink=self.calendar)
        self.feed = ScheduleFeed(self.store)
        self.notifier = BookingNotifier(self.store)
        self.feed.add_alert_handler(lambda message: self.say(message, RED))

    def say(self, text: str, colour: str = GREEN) -> None:
        print(f"{colour}{text}{RESET}")

    def log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def show_day(self, schedule: Schedule) -> None:
        for booking in bookings(schedule):
            services = ", ".join(s.name for s in booking.services)
            self.log(
                f"{booking.start_time:%H:%M}-{booking.end_time:%H:%M} "
                f"{booking.customer.name}: {services} ({booking.total_price:g} "
                f"{settings.studio.currency})"
            )
        self.log(f"Revenue {schedule.date.isoformat()}: "
                 f"{daily_revenue(schedule):g} {settings.studio.currency}")

    async def run(self, scenario: str) -> None:
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.studio.name} booking demo - scenario: {scenario}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        self.feed.start()
        self.notifier.attach()
        await getattr(self, f"_scenario_{scenario}")()
        self.log(f"Calendar entries: {len(self.calendar.entries)}, "
                 f"confirmations sent: {self.notifier.sent}")
        self.notifier.detach()
        self.feed.stop()

    async def _new_day(self, offset: int = 1) -> Schedule:
        schedule = await self.repository.create_schedule(date.today() + timedelta(days=offset))
        self.say(f"Added {schedule.date.isoformat()}: {self.repository.share_link(schedule)}")
        return schedule

    async def _scenario_booking(self) -> None:
        schedule = await self._new_day()
        wizard = BookingWizard(self.repository, schedule.link_token)
        await wizard.load()
        wizard.toggle_service("gel-manicure")
        wizard.toggle_service("nail-art")
        self.log(f"Selected {wizard.total_duration} min, {wizard.total_price:g} "
                 f"{settings.studio.currency}")
        wizard.continue_to_time()
        times = wizard.available_times()
        self.log(f"{len(times)} start times available, first {times[0].start_time:%H:%M}")
        wizard.select_time(times[0].id)
        wizard.continue_to_details()
        for field_name, value in [("name", "Freja Hansen"), ("phone", "+45 12 34 56 78")]:
            ok, message = wizard.set_detail(field_name, value)
            self.log(f"{field_name}: {'ok' if ok else message}")
        result = await wizard.submit()
        self.say(result.message, GREEN if result.ok else RED)
        self.log(f"Steps: {' -> '.join(wizard.get_step_trace())}")
        self.show_day(self.feed.find(schedule.link_token))

    async def _scenario_race(self) -> None:
        schedule = await self._new_day()
        services = resolve_services(["spa-pedicure"])
        slot_id = schedule.slots[4].id
        results = await asyncio.gather(
            self.repository.reserve(
                schedule.link_token, slot_id, Customer(name="Ida", phone="+4511111111"), services
            ),
            self.repository.reserve(
                schedule.link_token, slot_id, Customer(name="Emma", phone="+4522222222"), services
            ),
        )
        for result in results:
            colour = GREEN if result.ok else YELLOW
            self.say(f"{'booked' if result.ok else result.error.value}: {result.message}", colour)
        self.show_day(self.feed.find(schedule.link_token))

    async def _scenario_edit(self) -> None:
        schedule = await self._new_day()
        customer = Customer(name="Sofie Jensen", phone="+4533333333")
        services = resolve_services(["nail-art"])
        start = schedule.slots[4]
        await self.repository.reserve(schedule.link_token, start.id, customer, services)
        current = self.feed.find(schedule.link_token)
        options = available_slots_for_edit(current, start.id, services)
        self.log(f"{len(options)} possible new times when editing")
        result = await self.repository.update(
            schedule.link_token, start.id, schedule.slots[5].id, customer, services
        )
        self.say(result.message, GREEN if result.ok else RED)
        self.show_day(self.feed.find(schedule.link_token))

    async def _scenario_move(self) -> None:
        first = await self._new_day(1)
        second = await self._new_day(2)
        customer = Customer(name="Maja Nielsen", phone="+4544444444")
        services = resolve_services(["gel-manicure"])
        await self.repository.reserve(first.link_token, first.slots[0].id, customer, services)
        result = await self.repository.move_between_schedules(
            first.link_token, second.link_token, first.slots[0].id, second.slots[8].id,
            customer, services,
        )
        self.say(result.message, GREEN if result.ok else RED)
        for schedule in self.feed.schedules:
            self.show_day(schedule)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Offline booking demo")
    parser.add_argument("--scenario", choices=ConsoleSession.SCENARIOS, default="booking")
    args = parser.parse_args(argv)
    asyncio.run(ConsoleSession().run(args.scenario))


if __name__ == "__main__":
    main()
