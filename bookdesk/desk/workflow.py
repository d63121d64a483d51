"""
Calendar workflow: the top-level controller for the availability views.

Owns the selection set and hands it by reference to the bulk editor and
the list actions. Booked and remaining figures in listings are always
rebuilt from the live bookings, never read from the cached counter.
"""

import logging
from dataclasses import dataclass

from bookdesk.desk.booking_desk import BookingDesk
from bookdesk.desk.bulk_editor import BulkEditor
from bookdesk.desk.selection import SelectionSet
from bookdesk.engine.bulk import BulkMutationPlanner
from bookdesk.engine.capacity import CapacityAccountant, CapacitySnapshot, compute_capacity
from bookdesk.engine.directives import DirectiveKind, DirectiveSet, directive
from bookdesk.engine.filters import DateRangeFilter, FilterSet
from bookdesk.schemas.availability_schema import Availability
from bookdesk.schemas.booking_schema import BookingStatus
from bookdesk.tools.availability import AvailabilityActionResult, apply_bulk_plan
from bookdesk.tools.store import AVAILABILITIES, BOOKINGS, DataStore, field_in

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotRow:
    """One line of the availability list."""

    availability: Availability
    capacity: CapacitySnapshot

    @property
    def id(self) -> str:
        return self.availability.id


class CalendarWorkflow:
    """Top-level booking/calendar controller."""

    def __init__(self, store: DataStore) -> None:
        self._store = store
        self._accountant = CapacityAccountant(store)
        self.selection = SelectionSet()

    def list_slots(self, start_date: str, end_date: str) -> list[SlotRow]:
        """Slots in an inclusive date range, ordered by date then time."""
        date_range = DateRangeFilter(start_date, end_date)
        rows = self._store.query(AVAILABILITIES, date_range.matches)
        slots = sorted(
            (Availability.model_validate(r) for r in rows),
            key=lambda a: (a.start_date, a.start_time or "", a.id),
        )
        if not slots:
            return []

        bookings = self._store.query(
            BOOKINGS,
            field_in("availability_id", [a.id for a in slots]),
            projection=("id", "availability_id", "status", "pax_count", "pax_breakdown"),
        )
        by_slot: dict[str, list[dict]] = {}
        for booking in bookings:
            if booking.get("status") != BookingStatus.CANCELLED.value:
                by_slot.setdefault(booking["availability_id"], []).append(booking)

        return [
            SlotRow(a, compute_capacity(a.max_capacity, by_slot.get(a.id, [])))
            for a in slots
        ]

    def capacity(self, availability_id: str) -> CapacitySnapshot:
        """Re-derive one slot's capacity, e.g. after a booking changed."""
        return self._accountant.snapshot(availability_id)

    def open_new_booking(self, availability_id: str) -> BookingDesk:
        desk = BookingDesk(self._store)
        desk.open_new(availability_id)
        return desk

    def open_booking(self, booking_id: str) -> BookingDesk:
        desk = BookingDesk(self._store)
        desk.open_existing(booking_id)
        return desk

    def open_bulk_editor(self, use_selection: bool = True) -> BulkEditor:
        """Bulk editor over the current selection, or over filters when none is passed."""
        return BulkEditor(self._store, self.selection if use_selection else None)

    def delete_selected(self) -> AvailabilityActionResult:
        """Delete every selected slot in one batch; rejected if any has bookings."""
        plan = BulkMutationPlanner(self._store).build_plan(
            FilterSet(),
            DirectiveSet([directive(DirectiveKind.DELETE)]),
            self.selection.ids(),
        )
        result = apply_bulk_plan(self._store, plan)
        if result.get("success"):
            self.selection.clear()
        return result

    def visible_ids(self, rows: list[SlotRow]) -> list[str]:
        return [row.id for row in rows]

    def selected_rows(self, rows: list[SlotRow]) -> list[SlotRow]:
        return [row for row in rows if row.id in self.selection]
