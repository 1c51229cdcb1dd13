"""Tests for the live schedule feed."""

from datetime import date

import pytest

from metime.scheduling.slots import create_schedule
from metime.store.feed import LOAD_ERROR_MESSAGE, ScheduleFeed

from tests.conftest import DAY, make_customer, make_service, slot_at


class TestScheduleFeed:
    @pytest.mark.asyncio
    async def test_start_loads_current_schedules(self, store, repository):
        later = await repository.create_schedule(date(2025, 8, 6))
        earlier = await repository.create_schedule(DAY)
        feed = ScheduleFeed(store)
        feed.start()
        assert [s.link_token for s in feed.schedules] == [earlier.link_token, later.link_token]

    @pytest.mark.asyncio
    async def test_listeners_see_bookings(self, store, repository):
        feed = ScheduleFeed(store)
        published = []
        feed.add_listener(published.append)
        feed.start()

        schedule = await repository.create_schedule(DAY)
        await repository.reserve(
            schedule.link_token, slot_at(schedule, "10:00").id, make_customer(), [make_service(30)]
        )

        latest = published[-1]
        assert len(latest) == 1
        assert slot_at(latest[0], "10:00").customer_name == "Freja Hansen"
        assert feed.find(schedule.link_token) == latest[0]

    @pytest.mark.asyncio
    async def test_error_keeps_last_known_list(self, store, repository):
        schedule = await repository.create_schedule(DAY)
        feed = ScheduleFeed(store)
        alerts = []
        feed.add_alert_handler(alerts.append)
        feed.start()

        store.broadcast_error(ConnectionError("lost connection"))

        assert alerts == [LOAD_ERROR_MESSAGE]
        assert isinstance(feed.last_error, ConnectionError)
        assert [s.link_token for s in feed.schedules] == [schedule.link_token]

    @pytest.mark.asyncio
    async def test_malformed_document_is_an_error(self, store, repository):
        await repository.create_schedule(DAY)
        feed = ScheduleFeed(store)
        alerts = []
        feed.add_alert_handler(alerts.append)
        feed.start()

        await store.set("broken", {"date": date(2025, 8, 6)})

        assert alerts == [LOAD_ERROR_MESSAGE]
        assert len(feed.schedules) == 1

    @pytest.mark.asyncio
    async def test_next_snapshot_clears_error(self, store, repository):
        feed = ScheduleFeed(store)
        feed.start()
        store.broadcast_error(ConnectionError("lost connection"))
        await repository.create_schedule(DAY)
        assert feed.last_error is None

    @pytest.mark.asyncio
    async def test_local_schedule_added_in_date_order(self, store, repository):
        existing = await repository.create_schedule(DAY)
        feed = ScheduleFeed(store)
        published = []
        feed.add_listener(published.append)
        feed.start()

        local = create_schedule(date(2025, 8, 3))
        feed.apply_local(local)

        assert [s.link_token for s in feed.schedules] == [local.link_token, existing.link_token]
        assert published[-1] == feed.schedules

        await repository.create_schedule(date(2025, 8, 5))
        assert feed.find(local.link_token) is None

    @pytest.mark.asyncio
    async def test_store_wins_over_local_edit(self, store, repository):
        schedule = await repository.create_schedule(DAY)
        feed = ScheduleFeed(store)
        feed.start()

        local = schedule.model_copy(deep=True)
        slot_at(local, "12:00").is_booked = True
        feed.apply_local(local)
        assert slot_at(feed.find(schedule.link_token), "12:00").is_booked

        await repository.create_schedule(date(2025, 8, 5))
        assert not slot_at(feed.find(schedule.link_token), "12:00").is_booked

    @pytest.mark.asyncio
    async def test_stop(self, store, repository):
        feed = ScheduleFeed(store)
        feed.start()
        feed.stop()
        await repository.create_schedule(DAY)
        assert feed.schedules == []

    def test_find_unknown(self, store):
        feed = ScheduleFeed(store)
        feed.start()
        assert feed.find("nope") is None
