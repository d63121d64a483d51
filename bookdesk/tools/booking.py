"""
Booking actions: save, cancel, delete.

These are the action boundaries of the booking desk. Every error raised
below them is recovered here and turned into the result message; the
caller keeps its draft either way.
"""

import uuid
from datetime import date, datetime
from typing import Any, Mapping, Optional, TypedDict

from pydantic import ValidationError

from bookdesk.config import settings
from bookdesk.engine.capacity import CapacityAccountant
from bookdesk.errors import (
    BookingEngineError,
    InputValidationError,
    RecordNotFoundError,
    user_message,
)
from bookdesk.logging_context import get_action_logger, new_action_id
from bookdesk.schemas.booking_schema import Booking, BookingStatus
from bookdesk.tools.store import (
    AVAILABILITIES,
    BOOKINGS,
    DELETE,
    EXPERIENCES,
    DataStore,
    where,
)

logger = get_action_logger(__name__)

# Columns the desk never rewrites when updating an existing booking.
IMMUTABLE_ON_EDIT = ("id", "created_at", "confirmation_number", "status")


class BookingActionResult(TypedDict, total=False):
    """Result from save_booking, cancel_booking, or delete_booking."""

    success: bool
    message: str
    action_id: str
    booking_id: str
    confirmation_number: Optional[str]
    remaining: int
    booking: dict[str, Any]
    error_type: str


def _validate_booking(record: Mapping[str, Any]) -> Booking:
    try:
        return Booking.model_validate(record)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(p) for p in err['loc']) or 'booking'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise InputValidationError("Booking details are invalid.", problems) from None


def _fail(action: str, action_id: str, exc: Exception) -> BookingActionResult:
    if isinstance(exc, BookingEngineError):
        logger.warning("%s failed: %s", action, exc)
    else:
        logger.exception("%s failed unexpectedly", action)
    return {
        "success": False,
        "message": user_message(exc),
        "action_id": action_id,
        "error_type": type(exc).__name__,
    }


def make_confirmation_number(
    store: DataStore, availability_id: str, today: Optional[date] = None
) -> str:
    """Build ``<CODE>-<MMDDYY>-<seq>`` for a booking created today.

    ``seq`` is one more than the bookings created the same day across all
    availabilities of the same experience.
    """
    today = today or date.today()
    rows = store.query(AVAILABILITIES, where(id=availability_id))
    if not rows:
        raise RecordNotFoundError(AVAILABILITIES, availability_id)
    experience_id = rows[0].get("experience_id")

    code = settings.booking.confirmation_fallback_code
    if experience_id:
        experiences = store.query(EXPERIENCES, where(id=experience_id), projection=("short_code",))
        if experiences and experiences[0].get("short_code"):
            code = experiences[0]["short_code"]
        siblings = store.query(AVAILABILITIES, where(experience_id=experience_id), projection=("id",))
        availability_ids = [r["id"] for r in siblings]
    else:
        availability_ids = [availability_id]

    day = today.isoformat()
    created_today = store.query(
        BOOKINGS,
        lambda r: r.get("availability_id") in availability_ids
        and (r.get("created_at") or "")[:10] == day,
        projection=("id",),
    )
    return f"{code}-{today:%m%d%y}-{len(created_today) + 1}"


def save_booking(
    store: DataStore,
    fields: Mapping[str, Any],
    booking_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BookingActionResult:
    """
    Create a booking, or update one in place when ``booking_id`` is given.

    Args:
        store: Data store.
        fields: Booking columns from the desk (availability, passengers,
            options, notes, customer and payment fields).
        booking_id: Existing booking to update; None creates a new one.
        now: Creation timestamp, for tests.
    """
    action_id = new_action_id("SAVE")
    action = "Update booking" if booking_id else "Create booking"
    try:
        now = now or datetime.now()
        record = {k: v for k, v in fields.items() if k not in IMMUTABLE_ON_EDIT}

        if booking_id:
            existing = store.query(BOOKINGS, where(id=booking_id))
            if not existing:
                raise RecordNotFoundError(BOOKINGS, booking_id)
            booking = _validate_booking({**existing[0], **record, "id": booking_id})
        else:
            booking = _validate_booking({
                **record,
                "id": f"bk-{uuid.uuid4().hex[:8]}",
                "status": BookingStatus.CONFIRMED.value,
                "created_at": now.isoformat(timespec="seconds"),
            })

        if booking.pax_count == 0:
            raise InputValidationError("Add at least one passenger.")

        accountant = CapacityAccountant(store)
        snapshot = accountant.ensure_can_book(booking.availability_id, booking.pax_count, booking_id)

        if booking_id:
            patch = booking.model_dump(mode="json", exclude=set(IMMUTABLE_ON_EDIT))
            store.mutate(BOOKINGS, [booking_id], patch)
            message = "Booking updated successfully."
        else:
            booking.confirmation_number = make_confirmation_number(
                store, booking.availability_id, now.date()
            )
            store.insert(BOOKINGS, booking.model_dump(mode="json"))
            message = f"Booking created. Confirmation number {booking.confirmation_number}."

        logger.info(
            "%s: %s on %s (%d pax, %s)",
            action, booking.id, booking.availability_id, booking.pax_count,
            booking.payment_status.value,
        )
        return {
            "success": True,
            "message": message,
            "action_id": action_id,
            "booking_id": booking.id,
            "confirmation_number": booking.confirmation_number,
            "remaining": snapshot.remaining,
            "booking": booking.model_dump(mode="json"),
        }
    except Exception as exc:
        return _fail(action, action_id, exc)


def cancel_booking(store: DataStore, booking_id: str) -> BookingActionResult:
    """Soft-cancel a booking; its seats are free on the next capacity read."""
    action_id = new_action_id("CANCEL")
    try:
        rows = store.query(BOOKINGS, where(id=booking_id))
        if not rows:
            raise RecordNotFoundError(BOOKINGS, booking_id)
        booking = _validate_booking(rows[0])
        if booking.status == BookingStatus.CANCELLED:
            message = "Booking was already cancelled."
        else:
            store.mutate(BOOKINGS, [booking_id], {"status": BookingStatus.CANCELLED.value})
            message = "Booking cancelled."
            logger.info("Booking cancelled: %s", booking_id)
        remaining = CapacityAccountant(store).snapshot(booking.availability_id).remaining
        return {
            "success": True,
            "message": message,
            "action_id": action_id,
            "booking_id": booking_id,
            "remaining": remaining,
        }
    except Exception as exc:
        return _fail("Cancel booking", action_id, exc)


def delete_booking(store: DataStore, booking_id: str) -> BookingActionResult:
    """Hard-delete a booking."""
    action_id = new_action_id("DELETE")
    try:
        store.mutate(BOOKINGS, [booking_id], DELETE)
        logger.info("Booking deleted: %s", booking_id)
        return {
            "success": True,
            "message": "Booking deleted successfully.",
            "action_id": action_id,
            "booking_id": booking_id,
        }
    except Exception as exc:
        return _fail("Delete booking", action_id, exc)

