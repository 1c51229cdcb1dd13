"""Tests for availability search."""

from datetime import date, timedelta

from metime.scheduling.availability import (
    available_slots,
    available_slots_for_edit,
    check_run,
    claimed_indices,
    count_available_slots,
    next_available_schedule,
)
from metime.scheduling.reservation import reserve
from metime.scheduling.slots import closing_datetime, create_schedule, slots_needed
from metime.schemas.booking_schema import BookingError

from tests.conftest import make_customer, make_service, slot_at


def _times(slots):
    return [slot.start_time.strftime("%H:%M") for slot in slots]


def _book(schedule, hhmm, minutes):
    result = reserve(schedule, slot_at(schedule, hhmm).id, make_customer(), [make_service(minutes)])
    assert result.ok, result.error
    return result.schedule


class TestAvailableSlots:
    def test_no_services_means_no_times(self, schedule):
        assert available_slots(schedule, []) == []

    def test_empty_day_45_minutes(self, schedule):
        times = _times(available_slots(schedule, [make_service(45)]))
        assert times[0] == "09:00"
        assert times[-1] == "21:15"
        assert len(times) == 50

    def test_short_service_fits_last_slot(self, schedule):
        times = _times(available_slots(schedule, [make_service(15)]))
        assert times[-1] == "21:45"
        assert len(times) == 52

    def test_partial_last_tick_counts(self, schedule):
        # 20 minutes from 21:30 ends at 21:50, from 21:45 it would end at 22:05
        times = _times(available_slots(schedule, [make_service(20)]))
        assert "21:30" in times
        assert "21:45" not in times

    def test_booking_blocks_overlapping_starts(self, schedule):
        booked = _book(schedule, "10:00", 30)
        times = _times(available_slots(booked, [make_service(45)]))
        assert "09:15" in times
        assert "09:30" not in times
        assert "09:45" not in times
        assert "10:00" not in times
        assert "10:15" not in times
        assert "10:30" in times

    def test_gap_too_small(self, schedule):
        booked = _book(_book(schedule, "10:00", 15), "10:30", 15)
        times = _times(available_slots(booked, [make_service(15)]))
        assert "10:15" in times
        assert "10:15" not in _times(available_slots(booked, [make_service(30)]))

    def test_every_result_has_free_run_before_closing(self, schedule):
        booked = _book(_book(schedule, "11:00", 60), "15:15", 45)
        services = [make_service(45), make_service(30)]
        closing = closing_datetime(booked)
        needed = slots_needed(75, 15)
        for slot in available_slots(booked, services):
            index = booked.index_of(slot.id)
            run = booked.slots[index:index + needed]
            assert len(run) == needed
            assert not any(s.is_booked for s in run)
            assert slot.start_time + timedelta(minutes=75) <= closing

    def test_count(self, schedule):
        assert count_available_slots(schedule, [make_service(60)]) == 49


class TestCheckRun:
    def test_free_run(self, schedule):
        assert check_run(schedule, 0, [make_service(45)]) is None

    def test_start_slot_taken(self, schedule):
        booked = _book(schedule, "10:00", 30)
        index = booked.index_of(slot_at(booked, "10:00").id)
        assert check_run(booked, index, [make_service(15)]) == BookingError.SLOT_ALREADY_BOOKED

    def test_continuation_slot_taken(self, schedule):
        booked = _book(schedule, "10:00", 30)
        index = booked.index_of(slot_at(booked, "10:15").id)
        assert check_run(booked, index, [make_service(15)]) == BookingError.SLOT_ALREADY_BOOKED

    def test_run_overlaps_booking(self, schedule):
        booked = _book(schedule, "10:00", 30)
        index = booked.index_of(slot_at(booked, "09:30").id)
        assert check_run(booked, index, [make_service(45)]) == BookingError.INSUFFICIENT_SLOTS

    def test_past_closing(self, schedule):
        index = schedule.index_of(slot_at(schedule, "21:30").id)
        assert check_run(schedule, index, [make_service(45)]) == BookingError.INSUFFICIENT_SLOTS

    def test_free_slot_ids_ignored(self, schedule):
        booked = _book(schedule, "10:00", 30)
        own = {slot_at(booked, "10:00").id, slot_at(booked, "10:15").id}
        index = booked.index_of(slot_at(booked, "10:15").id)
        assert check_run(booked, index, [make_service(30)], free_slot_ids=own) is None


class TestClaimedIndices:
    def test_primary_claims_its_run(self, schedule):
        booked = _book(schedule, "10:00", 45)
        index = booked.index_of(slot_at(booked, "10:00").id)
        assert claimed_indices(booked, index) == [index, index + 1, index + 2]

    def test_free_slot_claims_nothing(self, schedule):
        assert claimed_indices(schedule, 0) == []

    def test_continuation_claims_nothing(self, schedule):
        booked = _book(schedule, "10:00", 45)
        index = booked.index_of(slot_at(booked, "10:15").id)
        assert claimed_indices(booked, index) == []

    def test_adjacent_booking_not_claimed(self, schedule):
        booked = _book(_book(schedule, "10:30", 30), "10:00", 30)
        index = booked.index_of(slot_at(booked, "10:00").id)
        assert len(claimed_indices(booked, index)) == 2


class TestAvailableSlotsForEdit:
    def test_own_range_counts_as_free(self, schedule):
        booked = _book(schedule, "10:00", 30)
        original = slot_at(booked, "10:00").id
        times = _times(available_slots_for_edit(booked, original, [make_service(45)]))
        assert "10:00" in times
        assert "09:45" in times
        assert "09:30" in times

    def test_other_bookings_still_block(self, schedule):
        booked = _book(_book(schedule, "10:00", 30), "10:45", 15)
        original = slot_at(booked, "10:00").id
        times = _times(available_slots_for_edit(booked, original, [make_service(45)]))
        assert "10:00" in times
        assert "10:15" not in times

    def test_unknown_original_behaves_like_plain_search(self, schedule):
        services = [make_service(30)]
        assert _times(available_slots_for_edit(schedule, "missing", services)) == _times(
            available_slots(schedule, services)
        )


class TestNextAvailableSchedule:
    def test_skips_full_and_earlier_days(self):
        today = date(2025, 8, 1)
        earlier = create_schedule(today - timedelta(days=1))
        full = create_schedule(today + timedelta(days=1))
        for slot in full.slots:
            slot.is_booked = True
        open_day = create_schedule(today + timedelta(days=3))
        found = next_available_schedule([open_day, full, earlier], [make_service(30)], today)
        assert found is open_day

    def test_respects_horizon(self):
        today = date(2025, 8, 1)
        far = create_schedule(today + timedelta(days=40))
        assert next_available_schedule([far], [make_service(30)], today, horizon_days=30) is None
        assert next_available_schedule([far], [make_service(30)], today, horizon_days=60) is far

    def test_today_not_included(self):
        today = date(2025, 8, 1)
        assert next_available_schedule([create_schedule(today)], [make_service(30)], today) is None
