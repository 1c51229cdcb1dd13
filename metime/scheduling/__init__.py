from metime.scheduling.availability import (
    available_slots,
    available_slots_for_edit,
    count_available_slots,
    next_available_schedule,
    total_duration,
)
from metime.scheduling.reservation import (
    cancel,
    move_between_schedules,
    release_orphaned_slots,
    reserve,
    update,
)
from metime.scheduling.slots import create_schedule, generate_slots, slots_needed
from metime.scheduling.views import (
    booking_count,
    bookings,
    daily_revenue,
    schedule_summary,
    unique_bookings,
)

__all__ = [
    "generate_slots", "create_schedule", "slots_needed",
    "available_slots", "available_slots_for_edit", "count_available_slots",
    "next_available_schedule", "total_duration",
    "reserve", "cancel", "update", "move_between_schedules", "release_orphaned_slots",
    "unique_bookings", "bookings", "booking_count", "daily_revenue", "schedule_summary",
]
