"""
Offline console demo: drives the booking desk and bulk editor in a terminal.

Uses the real engine, desk controllers and actions against the in-memory
demo store. No database, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario bulk
"""

import argparse
from datetime import timedelta
from typing import Callable, Optional

from bookdesk.config import settings
from bookdesk.desk.booking_desk import BookingDesk
from bookdesk.desk.workflow import CalendarWorkflow
from bookdesk.engine.directives import DirectiveKind, StaffMode
from bookdesk.engine.filters import DateRangeFilter, DayOfWeekFilter, HasBookingsFilter
from bookdesk.errors import BookingEngineError, InputValidationError, user_message
from bookdesk.tools.seed import DEMO_DAYS, DEMO_START, build_demo_store
from bookdesk.utils import format_money

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

FIRST_DAY = DEMO_START.isoformat()
LAST_DAY = (DEMO_START + timedelta(days=DEMO_DAYS - 1)).isoformat()

HELP = """Commands:
  list                          show slots with live capacity
  open <availability_id>        start a new booking on a slot
  edit <booking_id>             reopen a stored booking
  pax <type> <count>            set a passenger count (adult, child, infant)
  tier <name>                   switch pricing tier
  status <payment_status>       paid_full | paid_partial | pay_later | no_payment
  method <method>               credit_card | crypto | cash
  amount <value>                amount paid (paid_partial only)
  override <value|clear>        override the grand total
  save                          submit the draft
  cancel                        cancel the open booking
  help | quit"""


class ConsoleSession:
    """Terminal front end over one workflow and at most one open desk."""

    def __init__(self) -> None:
        self.store = build_demo_store()
        self.workflow = CalendarWorkflow(self.store)
        self.desk: Optional[BookingDesk] = None

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def warn(self, text: str) -> None:
        print(f"{YELLOW}{text}{RESET}")

    def error(self, text: str) -> None:
        print(f"{RED}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.app_name.upper()} - {title}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    def show_slots(self) -> None:
        for row in self.workflow.list_slots(FIRST_DAY, LAST_DAY):
            a, cap = row.availability, row.capacity
            marker = "*" if row.id in self.workflow.selection else " "
            print(
                f" {marker} {a.id:<24} {a.start_date} {a.start_time or 'all day':<7} "
                f"{a.online_booking_status.value:<6} {cap.booked:>2}/{cap.max_capacity:<2} "
                f"({cap.remaining} left)"
            )

    def show_desk(self) -> None:
        desk = self.desk
        if desk is None:
            return
        totals = desk.totals
        for item in totals.line_items:
            self.system_log(f"{item.describe()} = {format_money(item.subtotal)}")
        figures = totals.as_display()
        self.system_log(
            f"Subtotal {figures['subtotal']}  Tax {figures['tax']}  Total {figures['total']}"
            + ("  (override)" if totals.override_applied else "")
        )
        method = desk.payment.method.value if desk.payment.method else "-"
        self.system_log(
            f"Payment {desk.payment.status.value} via {method}: "
            f"{format_money(desk.payment.amount)} paid, balance {desk.payment.balance_display()}"
        )
        if desk.capacity is not None:
            self.system_log(f"Remaining seats: {desk.capacity.remaining}")
        if desk.capacity_warning:
            self.warn(desk.capacity_warning)
        for blocker in desk.blockers:
            self.warn(f"Cannot save yet: {blocker}")

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def _need_desk(self) -> BookingDesk:
        if self.desk is None:
            raise InputValidationError("Open a slot or a booking first.")
        return self.desk

    def _cmd_open(self, args: list[str]) -> None:
        self.desk = self.workflow.open_new_booking(args[0])
        self.say(f"New booking on {args[0]} (tier {self.desk.tier}).")
        self.show_desk()

    def _cmd_edit(self, args: list[str]) -> None:
        self.desk = self.workflow.open_booking(args[0])
        self.say(f"Editing {self.desk.confirmation_number or args[0]}.")
        self.show_desk()

    def _cmd_pax(self, args: list[str]) -> None:
        self._need_desk().set_passenger_count(args[0], int(args[1]))
        self.show_desk()

    def _cmd_tier(self, args: list[str]) -> None:
        self._need_desk().select_tier(" ".join(args))
        self.show_desk()

    def _cmd_status(self, args: list[str]) -> None:
        self._need_desk().select_payment_status(args[0])
        self.show_desk()

    def _cmd_method(self, args: list[str]) -> None:
        self._need_desk().select_payment_method(args[0])
        self.show_desk()

    def _cmd_amount(self, args: list[str]) -> None:
        self._need_desk().enter_amount(args[0])
        self.show_desk()

    def _cmd_override(self, args: list[str]) -> None:
        value = None if args[0] == "clear" else args[0]
        self._need_desk().set_override_total(value)
        self.show_desk()

    def _cmd_save(self, args: list[str]) -> None:
        result = self._need_desk().submit()
        (self.say if result.get("success") else self.error)(result.get("message", ""))

    def _cmd_cancel(self, args: list[str]) -> None:
        result = self._need_desk().cancel_booking()
        (self.say if result.get("success") else self.error)(result.get("message", ""))

    def _cmd_list(self, args: list[str]) -> None:
        self.show_slots()

    def handle(self, line: str) -> bool:
        """Run one command line. Returns False when the session should end."""
        parts = line.split()
        if not parts:
            return True
        name, args = parts[0].lower(), parts[1:]
        if name in ("quit", "exit"):
            return False
        if name == "help":
            print(HELP)
            return True
        command: Optional[Callable[[list[str]], None]] = getattr(self, f"_cmd_{name}", None)
        if command is None:
            self.error(f"Unknown command: {name}. Type 'help'.")
            return True
        try:
            command(args)
        except IndexError:
            self.error(f"'{name}' needs more arguments. Type 'help'.")
        except (BookingEngineError, ValueError) as exc:
            self.error(user_message(exc) if isinstance(exc, BookingEngineError) else str(exc))
        return True

    # ------------------------------------------------------------------ #
    # Scripted scenarios
    # ------------------------------------------------------------------ #

    SCENARIOS: dict[str, list[str]] = {
        "booking": [
            "list",
            f"open av-{FIRST_DAY}-0900",
            "pax adult 2",
            "pax child 1",
            "status paid_partial",
            "amount 100",
            "save",
            f"open av-{FIRST_DAY}-0900",
            "pax adult 8",
            "save",
            "list",
        ],
        "payment": [
            f"open av-{FIRST_DAY}-1400",
            "pax adult 2",
            "pax child 1",
            "override 200",
            "status pay_later",
            "method cash",
            "status no_payment",
            "status paid_full",
            "override -5",
            "save",
        ],
    }

    def run_scenario(self, scenario: str) -> None:
        if scenario == "bulk":
            self.run_bulk_scenario()
            return
        steps = self.SCENARIOS.get(scenario)
        if steps is None:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return
        self.banner(f"Scenario: {scenario}")
        for step in steps:
            print(f"\n{BLUE}[Operator] {RESET}{step}")
            self.handle(step)
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        if self.desk is not None:
            print(f"{DIM}  Payment trace: {' -> '.join(self.desk.payment.get_status_trace())}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run_bulk_scenario(self) -> None:
        self.banner("Scenario: bulk")
        editor = self.workflow.open_bulk_editor(use_selection=False)

        editor.add_filter(DateRangeFilter(FIRST_DAY, LAST_DAY))
        editor.add_filter(DayOfWeekFilter(["SAT", "SUN"]))
        editor.add_directive(DirectiveKind.MAX_CAPACITY, 20)
        editor.add_directive(DirectiveKind.STAFF, ["staff-lena"], StaffMode.ADD)
        self.system_log(f"Plan: {editor.preview()}")
        result = editor.apply()
        (self.say if result.get("success") else self.error)(result.get("message", ""))

        editor.add_filter(DateRangeFilter(FIRST_DAY, FIRST_DAY))
        editor.add_filter(HasBookingsFilter(True))
        editor.add_directive(DirectiveKind.DELETE)
        self.system_log(f"Plan: {editor.preview()}")
        result = editor.apply()
        (self.say if result.get("success") else self.error)(result.get("message", ""))

        editor.reset()
        rows = self.workflow.list_slots(FIRST_DAY, LAST_DAY)
        self.workflow.selection.select_all(self.workflow.visible_ids(rows)[-2:])
        self.system_log(f"Selected: {self.workflow.selection.ids()}")
        result = self.workflow.delete_selected()
        (self.say if result.get("success") else self.error)(result.get("message", ""))
        self.show_slots()

    def run(self) -> None:
        self.banner("Console Demo")
        print(HELP)
        while True:
            try:
                line = input(f"\n{BLUE}desk> {RESET}")
            except (EOFError, KeyboardInterrupt):
                print(f"\n{DIM}Session ended.{RESET}")
                break
            if not self.handle(line):
                break


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=["booking", "payment", "bulk"],
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
