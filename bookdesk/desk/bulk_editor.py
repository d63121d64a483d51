"""
Bulk edit session: filters and directives in, one plan out.

The plan is rebuilt every time a filter or directive is added or removed,
so ``plan`` always reflects exactly what ``apply`` would do.
"""

import logging
from typing import Any, Optional, Union

from bookdesk.desk.selection import SelectionSet
from bookdesk.engine.bulk import BulkMutationPlanner, BulkPlan
from bookdesk.engine.directives import Directive, DirectiveKind, DirectiveSet, StaffMode, directive
from bookdesk.engine.filters import AvailabilityFilter, FilterKind, FilterSet
from bookdesk.tools.availability import AvailabilityActionResult, apply_bulk_plan
from bookdesk.tools.store import DataStore

logger = logging.getLogger(__name__)


class BulkEditor:
    """
    Bulk edit controller.

    With a selection, the editor acts on exactly the selected ids and the
    filters are ignored. Without one, candidates come from the filters.
    """

    def __init__(
        self,
        store: DataStore,
        selection: Optional[SelectionSet] = None,
        planner: Optional[BulkMutationPlanner] = None,
    ) -> None:
        self._store = store
        self._planner = planner or BulkMutationPlanner(store)
        self.selection = selection
        self.filters = FilterSet()
        self.directives = DirectiveSet()
        self._plan = self._planner.build_plan(self.filters, self.directives, self._explicit_ids())

    def _explicit_ids(self) -> Optional[list[str]]:
        if self.selection is not None and len(self.selection) > 0:
            return self.selection.ids()
        return None

    def recompute(self) -> BulkPlan:
        self._plan = self._planner.build_plan(self.filters, self.directives, self._explicit_ids())
        return self._plan

    @property
    def plan(self) -> BulkPlan:
        return self._plan

    # ------------------------------------------------------------------ #
    # Filters
    # ------------------------------------------------------------------ #

    def add_filter(self, new_filter: AvailabilityFilter) -> BulkPlan:
        self.filters.add(new_filter)
        return self.recompute()

    def replace_filter(self, new_filter: AvailabilityFilter) -> BulkPlan:
        self.filters.replace(new_filter)
        return self.recompute()

    def remove_filter(self, kind: Union[FilterKind, str]) -> BulkPlan:
        self.filters.remove(FilterKind(kind))
        return self.recompute()

    # ------------------------------------------------------------------ #
    # Directives
    # ------------------------------------------------------------------ #

    def add_directive(
        self,
        kind: Union[DirectiveKind, str],
        value: Any = None,
        staff_mode: Union[StaffMode, str] = StaffMode.REPLACE,
    ) -> BulkPlan:
        self.directives.add(directive(kind, value, staff_mode))
        return self.recompute()

    def update_directive(
        self,
        kind: Union[DirectiveKind, str],
        value: Any = None,
        staff_mode: Union[StaffMode, str] = StaffMode.REPLACE,
    ) -> BulkPlan:
        """Change the value of a directive already in the edit."""
        self.directives.replace(directive(kind, value, staff_mode))
        return self.recompute()

    def toggle_staff(self, staff_id: str) -> BulkPlan:
        """Add or remove one staff member on the staff directive."""
        current: Optional[Directive] = self.directives.get(DirectiveKind.STAFF)
        if current is None:
            return self.add_directive(DirectiveKind.STAFF, [staff_id])
        ids = list(current.value)
        if staff_id in ids:
            ids.remove(staff_id)
        else:
            ids.append(staff_id)
        return self.update_directive(DirectiveKind.STAFF, ids, current.staff_mode)

    def remove_directive(self, kind: Union[DirectiveKind, str]) -> BulkPlan:
        self.directives.remove(kind)
        return self.recompute()

    def reset(self) -> None:
        self.filters.clear()
        self.directives.clear()
        self.recompute()

    # ------------------------------------------------------------------ #
    # Apply
    # ------------------------------------------------------------------ #

    def preview(self) -> str:
        return self._plan.preview()

    def apply(self) -> AvailabilityActionResult:
        """
        Rebuild the plan against the store and hand it to the bulk action.

        On success the edit is reset and the selection cleared; on failure
        everything is kept so the operator can adjust and retry.
        """
        plan = self.recompute()
        result = apply_bulk_plan(self._store, plan)
        if result.get("success"):
            logger.info("Bulk edit applied to %d slot(s)", plan.count)
            if self.selection is not None:
                self.selection.clear()
            self.reset()
        return result
