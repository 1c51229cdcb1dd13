"""
Command line entry point.

Usage:
    Demo scenarios:   python main.py demo --scenario race
    Day availability: python main.py availability 2025-08-01 gel-manicure nail-art
"""

import argparse
import logging
import sys
from datetime import date

from metime.config import settings
from metime.scheduling.availability import available_slots
from metime.scheduling.slots import create_schedule
from metime.scheduling.views import schedule_summary
from metime.tools.services import resolve_services

logger = logging.getLogger(__name__)


def _run_demo(args: argparse.Namespace) -> None:
    """Start the offline console demo."""
    from console_demo import main as demo_main

    demo_main(["--scenario", args.scenario])


def _run_availability(args: argparse.Namespace) -> int:
    """Print the start times an empty day offers for a set of services."""
    try:
        day = date.fromisoformat(args.date)
        services = resolve_services(args.services)
    except (ValueError, KeyError) as exc:
        logger.error("%s", exc)
        return 2

    schedule = create_schedule(day, settings.scheduling)
    times = [f"{slot.start_time:%H:%M}" for slot in available_slots(schedule, services)]
    print(f"{day.isoformat()}: {len(times)} start times for "
          f"{', '.join(s.name for s in services)}")
    print("  " + " ".join(times))
    print(f"  {schedule_summary(schedule, services)}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="metime", description=settings.studio.name)
    commands = parser.add_subparsers(dest="command", required=True)

    demo = commands.add_parser("demo", help="run an offline booking scenario")
    demo.add_argument("--scenario", default="booking",
                      choices=["booking", "race", "edit", "move"])

    availability = commands.add_parser("availability", help="show start times for services")
    availability.add_argument("date", help="YYYY-MM-DD")
    availability.add_argument("services", nargs="+", help="catalog service ids")

    args = parser.parse_args(argv)
    if args.command == "demo":
        _run_demo(args)
        return 0
    return _run_availability(args)


if __name__ == "__main__":
    sys.exit(main())
