"""Tests for the customer booking wizard."""

import pytest

from metime.flow.booking_wizard import BookingWizard, InvalidStepError, WizardStep, WizardTrigger
from metime.schemas.booking_schema import SLOT_UNAVAILABLE_MESSAGE, BookingError

from tests.conftest import DAY, booked_times, slot_at


async def _wizard_at_details(repository, token, hhmm="10:00", services=("gel-manicure",)):
    wizard = BookingWizard(repository, token)
    assert await wizard.load()
    for service_id in services:
        wizard.toggle_service(service_id)
    wizard.continue_to_time()
    assert wizard.select_time(slot_at(wizard.schedule, hhmm).id)
    wizard.continue_to_details()
    wizard.set_detail("name", "Freja Hansen")
    wizard.set_detail("phone", "+45 12 34 56 78")
    return wizard


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_full_booking(self, repository):
        schedule = await repository.create_schedule(DAY)
        wizard = await _wizard_at_details(repository, schedule.link_token)

        result = await wizard.submit()

        assert result.ok
        assert wizard.step == WizardStep.CONFIRMED
        assert wizard.last_error is None
        assert wizard.get_step_trace() == ["services", "time", "details", "confirmed"]
        stored = await repository.get_schedule(schedule.link_token)
        assert booked_times(stored) == ["10:00", "10:15", "10:30"]
        assert slot_at(stored, "10:00").customer_phone == "+4512345678"

    @pytest.mark.asyncio
    async def test_totals(self, repository):
        schedule = await repository.create_schedule(DAY)
        wizard = BookingWizard(repository, schedule.link_token)
        await wizard.load()
        wizard.toggle_service("gel-manicure")
        wizard.toggle_service("nail-art")
        assert wizard.total_duration == 75
        assert wizard.total_price == 700


class TestServicesStep:
    @pytest.mark.asyncio
    async def test_toggle_twice_removes(self, repository):
        schedule = await repository.create_schedule(DAY)
        wizard = BookingWizard(repository, schedule.link_token)
        await wizard.load()
        wizard.toggle_service("nail-art")
        wizard.toggle_service("nail-art")
        assert wizard.selected_services == []

    @pytest.mark.asyncio
    async def test_needs_a_service(self, repository):
        schedule = await repository.create_schedule(DAY)
        wizard = BookingWizard(repository, schedule.link_token)
        await wizard.load()
        with pytest.raises(InvalidStepError):
            wizard.continue_to_time()

    def test_unknown_service(self, repository):
        wizard = BookingWizard(repository, "token")
        with pytest.raises(ValueError, match="waxing"):
            wizard.toggle_service("waxing")

    @pytest.mark.asyncio
    async def test_invalid_link(self, repository):
        wizard = BookingWizard(repository, "nope")
        assert not await wizard.load()
        assert wizard.last_error == "Invalid booking link"

    @pytest.mark.asyncio
    async def test_load_error(self, repository, store):
        schedule = await repository.create_schedule(DAY)
        store.fail_next(ConnectionError("offline"))
        wizard = BookingWizard(repository, schedule.link_token)
        assert not await wizard.load()
        assert wizard.last_error == "Error loading booking information"


class TestTimeStep:
    @pytest.mark.asyncio
    async def test_unavailable_time_rejected(self, repository):
        schedule = await repository.create_schedule(DAY)
        wizard = BookingWizard(repository, schedule.link_token)
        await wizard.load()
        wizard.toggle_service("gel-manicure")
        wizard.continue_to_time()
        assert not wizard.select_time(slot_at(schedule, "21:30").id)
        with pytest.raises(InvalidStepError):
            wizard.continue_to_details()

    @pytest.mark.asyncio
    async def test_back_to_services(self, repository):
        schedule = await repository.create_schedule(DAY)
        wizard = BookingWizard(repository, schedule.link_token)
        await wizard.load()
        wizard.toggle_service("nail-art")
        wizard.continue_to_time()
        assert wizard.back() == WizardStep.SERVICES

    def test_select_time_in_wrong_step(self, repository):
        wizard = BookingWizard(repository, "token")
        with pytest.raises(InvalidStepError):
            wizard.select_time("any")

    def test_invalid_transition(self, repository):
        wizard = BookingWizard(repository, "token")
        with pytest.raises(InvalidStepError, match="booking_confirmed"):
            wizard.transition(WizardTrigger.BOOKING_CONFIRMED)


class TestDetailsStep:
    @pytest.mark.asyncio
    async def test_field_messages(self, repository):
        schedule = await repository.create_schedule(DAY)
        wizard = await _wizard_at_details(repository, schedule.link_token)
        assert wizard.set_detail("name", "  ") == (False, "Name is required")
        assert wizard.set_detail("name", "J") == (False, BookingError.INVALID_NAME.message)
        assert wizard.set_detail("phone", "") == (False, "Phone number is required")
        assert wizard.set_detail("phone", "+451234567") == (
            False, BookingError.INVALID_PHONE_NUMBER.message,
        )
        assert wizard.set_detail("email", "freja@") == (False, BookingError.INVALID_EMAIL.message)
        assert wizard.set_detail("email", "") == (True, "")
        assert wizard.set_detail("notes", "French tips") == (True, "")

    def test_unknown_field(self, repository):
        wizard = BookingWizard(repository, "token")
        with pytest.raises(ValueError):
            wizard.set_detail("address", "Main St")

    def test_phone_prefilled(self, repository):
        assert BookingWizard(repository, "token").details["phone"] == "+45"

    @pytest.mark.asyncio
    async def test_invalid_details_stay_on_step(self, repository):
        schedule = await repository.create_schedule(DAY)
        wizard = await _wizard_at_details(repository, schedule.link_token)
        wizard.set_detail("phone", "+45 1234")
        result = await wizard.submit()
        assert result.error == BookingError.INVALID_PHONE_NUMBER
        assert wizard.step == WizardStep.DETAILS

    @pytest.mark.asyncio
    async def test_back_to_time(self, repository):
        schedule = await repository.create_schedule(DAY)
        wizard = await _wizard_at_details(repository, schedule.link_token)
        assert wizard.back() == WizardStep.TIME


class TestSlotTaken:
    @pytest.mark.asyncio
    async def test_lost_race_returns_to_time_step(self, repository):
        schedule = await repository.create_schedule(DAY)
        first = await _wizard_at_details(repository, schedule.link_token)
        second = await _wizard_at_details(repository, schedule.link_token, hhmm="10:15")

        assert (await first.submit()).ok
        result = await second.submit()

        assert result.error.is_occupancy_conflict
        assert second.step == WizardStep.TIME
        assert second.selected_slot is None
        assert second.last_error == SLOT_UNAVAILABLE_MESSAGE
        times = [s.start_time.strftime("%H:%M") for s in second.available_times()]
        assert "10:15" not in times
        assert second.get_step_trace()[-1] == "time"
