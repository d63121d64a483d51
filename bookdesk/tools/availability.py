"""
Availability actions: capacity lookup, single-slot edit and delete, bulk apply.

Like the booking actions, each function is an action boundary that turns
errors into a result message.
"""

from typing import Any, Mapping, Optional, TypedDict

from pydantic import ValidationError

from bookdesk.engine.bulk import BulkMutationPlanner, BulkPlan
from bookdesk.engine.capacity import CapacityAccountant
from bookdesk.errors import (
    ActiveBookingsError,
    BookingEngineError,
    ConflictError,
    InputValidationError,
    RecordNotFoundError,
    user_message,
)
from bookdesk.logging_context import get_action_logger, new_action_id
from bookdesk.schemas.availability_schema import Availability
from bookdesk.tools.store import AVAILABILITIES, DELETE, DataStore, where

logger = get_action_logger(__name__)

# The cached counter is owned by the store; edits never write it.
READ_ONLY_FIELDS = frozenset({"id", "booked_count"})


class CapacityResult(TypedDict, total=False):
    """Result from get_capacity."""

    success: bool
    message: str
    availability_id: str
    max_capacity: int
    booked: int
    remaining: int
    overbooked: bool


class AvailabilityActionResult(TypedDict, total=False):
    """Result from update_availability, delete_availability, or apply_bulk_plan."""

    success: bool
    message: str
    action_id: str
    ids: list[str]
    count: int
    warning: str
    error_type: str


def _fail(action: str, action_id: str, exc: Exception, generic: Optional[str] = None) -> AvailabilityActionResult:
    if isinstance(exc, BookingEngineError):
        logger.warning("%s failed: %s", action, exc)
    else:
        logger.exception("%s failed unexpectedly", action)
    message = user_message(exc)
    if generic and not isinstance(exc, (InputValidationError, ConflictError)):
        message = generic
    result: AvailabilityActionResult = {
        "success": False,
        "message": message,
        "action_id": action_id,
        "error_type": type(exc).__name__,
    }
    if isinstance(exc, ActiveBookingsError):
        result["ids"] = list(exc.availability_ids)
        result["count"] = len(exc.availability_ids)
    return result


def get_capacity(
    store: DataStore,
    availability_id: str,
    in_progress_count: int = 0,
    editing_booking_id: Optional[str] = None,
) -> CapacityResult:
    """Live booked/remaining figures for one slot, rebuilt from its bookings."""
    try:
        snap = CapacityAccountant(store).snapshot(
            availability_id, in_progress_count, editing_booking_id
        )
    except (BookingEngineError, ValueError) as exc:
        logger.warning("Capacity lookup failed for %s: %s", availability_id, exc)
        return {"success": False, "message": user_message(exc), "availability_id": availability_id}
    return {
        "success": True,
        "message": f"{snap.remaining} of {snap.max_capacity} seat(s) remaining.",
        "availability_id": availability_id,
        "max_capacity": snap.max_capacity,
        "booked": snap.booked,
        "remaining": snap.remaining,
        "overbooked": snap.overbooked,
    }


def update_availability(
    store: DataStore, availability_id: str, changes: Mapping[str, Any]
) -> AvailabilityActionResult:
    """
    Edit one slot. Only the given fields are written.

    Lowering capacity below the seats already booked is allowed; the result
    carries a warning instead of failing.
    """
    action_id = new_action_id("EDIT")
    try:
        blocked = sorted(READ_ONLY_FIELDS & set(changes))
        if blocked:
            raise InputValidationError(f"Field(s) cannot be edited: {', '.join(blocked)}.")
        unknown = sorted(set(changes) - set(Availability.model_fields))
        if unknown:
            raise InputValidationError(f"Unknown availability field(s): {', '.join(unknown)}.")

        rows = store.query(AVAILABILITIES, where(id=availability_id))
        if not rows:
            raise RecordNotFoundError(AVAILABILITIES, availability_id)
        try:
            merged = Availability.model_validate({**rows[0], **changes})
        except ValidationError as exc:
            problems = [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()]
            raise InputValidationError("Availability details are invalid.", problems) from None

        dumped = merged.model_dump(mode="json")
        patch = {field: dumped[field] for field in changes}
        store.mutate(AVAILABILITIES, [availability_id], patch)
        logger.info("Availability %s updated: %s", availability_id, sorted(patch))

        result: AvailabilityActionResult = {
            "success": True,
            "message": "Availability updated successfully.",
            "action_id": action_id,
            "ids": [availability_id],
            "count": 1,
        }
        if "max_capacity" in changes:
            snap = CapacityAccountant(store).snapshot(availability_id)
            if snap.overbooked:
                result["warning"] = (
                    f"{snap.booked} seat(s) are already booked; "
                    f"capacity {snap.max_capacity} is now overbooked."
                )
        return result
    except Exception as exc:
        return _fail("Update availability", action_id, exc)


def delete_availability(store: DataStore, availability_id: str) -> AvailabilityActionResult:
    """Delete one slot. Rejected while it still has active bookings."""
    action_id = new_action_id("DELETE")
    try:
        booked = BulkMutationPlanner(store).booked_availability_ids([availability_id])
        if booked:
            raise ActiveBookingsError(booked)
        store.mutate(AVAILABILITIES, [availability_id], DELETE)
        logger.info("Availability deleted: %s", availability_id)
        return {
            "success": True,
            "message": "Availability deleted successfully.",
            "action_id": action_id,
            "ids": [availability_id],
            "count": 1,
        }
    except Exception as exc:
        return _fail("Delete availability", action_id, exc)


def apply_bulk_plan(store: DataStore, plan: BulkPlan) -> AvailabilityActionResult:
    """
    Hand a plan to the store as one id set and one change.

    A failure is reported once for the whole batch; no attempt is made to
    work out which records were touched.
    """
    action_id = new_action_id("BULK")
    ids = list(plan.candidate_ids)
    try:
        if not plan.executable:
            blockers = list(plan.blockers) or ["Nothing to apply."]
            raise InputValidationError(blockers[0], blockers)

        if plan.delete:
            booked = BulkMutationPlanner(store).booked_availability_ids(ids)
            if booked:
                raise ActiveBookingsError(booked)
            store.mutate(AVAILABILITIES, ids, DELETE)
            message = f"Deleted {len(ids)} availabilities"
        else:
            store.mutate(AVAILABILITIES, ids, plan.patch)
            message = f"Updated {len(ids)} availabilities ({len(plan.patch)} field(s))"

        logger.info("Bulk apply: %s", message)
        return {
            "success": True,
            "message": message,
            "action_id": action_id,
            "ids": ids,
            "count": len(ids),
        }
    except Exception as exc:
        return _fail(
            "Bulk apply",
            action_id,
            exc,
            generic=f"Bulk update of {len(ids)} slot(s) failed. Refresh before retrying.",
        )
