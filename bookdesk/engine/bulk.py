"""
Bulk mutation planner.

A plan is a pure function of the current filters, directives and optional
explicit selection. It is rebuilt from scratch on every change; nothing is
carried over from the previous plan.

Usage:
    planner = BulkMutationPlanner(store)
    plan = planner.build_plan(
        FilterSet.of(DateRangeFilter("2025-01-01", "2025-01-31")),
        DirectiveSet([directive("delete")]),
    )
    if plan.executable:
        apply_bulk_plan(store, plan)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from bookdesk.engine.directives import DirectiveSet
from bookdesk.engine.filters import FilterSet
from bookdesk.engine.guards import SubmitGuardPipeline
from bookdesk.schemas.booking_schema import BookingStatus
from bookdesk.tools.store import AVAILABILITIES, BOOKINGS, DataStore, all_of, field_in

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BulkPlan:
    """What a bulk apply would do. Either ``delete`` or a non-empty ``patch``."""

    candidate_ids: tuple[str, ...]
    patch: dict[str, Any] = field(default_factory=dict)
    delete: bool = False
    executable: bool = False
    blockers: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()

    @property
    def count(self) -> int:
        return len(self.candidate_ids)

    def preview(self) -> str:
        """One-line summary for the confirm button."""
        if self.delete:
            return f"Delete {self.count} availability slot(s)"
        if not self.labels:
            return f"No changes for {self.count} slot(s)"
        return f"Update {', '.join(self.labels)} for {self.count} slot(s)"


def compose_patch(directives: DirectiveSet) -> dict[str, Any]:
    """Fold field directives, in order, into one merge patch keyed by field.

    Cleared values stay in the patch as explicit ``None`` so the store
    nulls the column instead of leaving it untouched.
    """
    patch: dict[str, Any] = {}
    for d in directives.field_directives():
        patch[d.field_name] = d.patch_value()
    return patch


class BulkMutationPlanner:
    """Resolves candidate availabilities and builds executable plans."""

    def __init__(self, store: DataStore, guards: Optional[SubmitGuardPipeline] = None) -> None:
        self._store = store
        self._guards = guards or SubmitGuardPipeline()

    def resolve_candidates(
        self,
        filters: FilterSet,
        explicit_ids: Optional[Iterable[str]] = None,
    ) -> list[str]:
        """
        Return candidate availability ids.

        An explicit id set always wins over filters. With neither, nothing
        is selected; a bulk edit never falls through to "every slot".
        """
        if explicit_ids is not None:
            return list(dict.fromkeys(explicit_ids))
        if len(filters) == 0:
            return []

        record_filters = filters.record_filters()
        predicate = all_of(*(f.matches for f in record_filters))
        rows = self._store.query(
            AVAILABILITIES,
            predicate,
            projection=("id", "start_date", "start_time"),
        )
        rows.sort(key=lambda r: (r.get("start_date") or "", r.get("start_time") or "", r["id"]))
        candidate_ids = [r["id"] for r in rows]

        has_bookings = filters.has_bookings_filter
        if has_bookings is not None and candidate_ids:
            booked_ids = self.booked_availability_ids(candidate_ids)
            candidate_ids = has_bookings.select(candidate_ids, booked_ids)

        logger.debug("Resolved %d candidate(s) from %s", len(candidate_ids), filters.kinds())
        return candidate_ids

    def booked_availability_ids(self, availability_ids: Iterable[str]) -> set[str]:
        """Ids among ``availability_ids`` that carry at least one active booking."""
        rows = self._store.query(
            BOOKINGS,
            all_of(
                field_in("availability_id", availability_ids),
                lambda r: r.get("status") != BookingStatus.CANCELLED.value,
            ),
            projection=("availability_id",),
        )
        return {r["availability_id"] for r in rows}

    def build_plan(
        self,
        filters: FilterSet,
        directives: DirectiveSet,
        explicit_ids: Optional[Iterable[str]] = None,
    ) -> BulkPlan:
        candidate_ids = self.resolve_candidates(filters, explicit_ids)
        failures = self._guards.check_bulk_plan(candidate_ids, directives)

        delete = directives.has_delete
        patch = {} if delete else compose_patch(directives)
        labels = () if delete else tuple(d.label for d in directives.field_directives())

        return BulkPlan(
            candidate_ids=tuple(candidate_ids),
            patch=patch,
            delete=delete,
            executable=not failures,
            blockers=tuple(r.message for r in failures if r.message),
            labels=labels,
        )
