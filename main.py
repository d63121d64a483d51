"""
Tour Booking Desk entry point.

Usage:
    Console desk:       python main.py console
    Scripted scenario:  python main.py scenario booking|payment|bulk
    Slot listing:       python main.py slots [START END]
"""

import logging
import sys

from bookdesk.config import settings

logger = logging.getLogger(__name__)


def _run_console_mode() -> None:
    """Start the interactive console desk over the demo store."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    session.run()


def _run_scenario(name: str) -> None:
    from console_demo import ConsoleSession

    ConsoleSession().run_scenario(name)


def _print_slots(start: str, end: str) -> None:
    """Print live capacity for the demo slots in a date range."""
    from bookdesk.desk.workflow import CalendarWorkflow
    from bookdesk.tools.seed import build_demo_store

    workflow = CalendarWorkflow(build_demo_store())
    rows = workflow.list_slots(start, end)
    logger.info("%s: %d slot(s) between %s and %s", settings.app_name, len(rows), start, end)
    for row in rows:
        cap = row.capacity
        print(f"{row.id}\t{cap.booked}/{cap.max_capacity}\t{cap.remaining} remaining")


if __name__ == "__main__":
    command = sys.argv[1] if len(sys.argv) > 1 else "console"
    if command == "scenario" and len(sys.argv) > 2:
        _run_scenario(sys.argv[2])
    elif command == "slots":
        from console_demo import FIRST_DAY, LAST_DAY

        start, end = (sys.argv[2], sys.argv[3]) if len(sys.argv) > 3 else (FIRST_DAY, LAST_DAY)
        _print_slots(start, end)
    else:
        _run_console_mode()
