"""
Capacity accountant: booked and remaining seats for one availability.

The booked count is always rebuilt from the live booking set. A cached
``booked_count`` column on the availability is never consulted, so a
cancellation frees its seats on the very next read.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from bookdesk.config import settings
from bookdesk.errors import CapacityExceededError, RecordNotFoundError
from bookdesk.schemas.availability_schema import Availability
from bookdesk.schemas.booking_schema import Booking, BookingStatus
from bookdesk.tools.store import AVAILABILITIES, BOOKINGS, DataStore, where

logger = logging.getLogger(__name__)

BookingLike = Union[Booking, Mapping[str, Any]]


@dataclass(frozen=True)
class CapacitySnapshot:
    """Derived capacity figures; never persisted."""

    max_capacity: int
    booked: int
    remaining: int

    @property
    def overbooked(self) -> bool:
        return self.booked > self.max_capacity

    @property
    def is_full(self) -> bool:
        return self.remaining == 0


def _booking_fields(booking: BookingLike) -> tuple[Optional[str], str, int]:
    if isinstance(booking, Booking):
        return booking.id, booking.status.value, booking.pax_count
    status = booking.get("status") or BookingStatus.CONFIRMED.value
    breakdown = booking.get("pax_breakdown")
    if isinstance(breakdown, dict) and breakdown and all(
        isinstance(v, int) and not isinstance(v, bool) for v in breakdown.values()
    ):
        pax = sum(breakdown.values())
    else:
        pax = int(booking.get("pax_count") or 0)
    return booking.get("id"), str(status).lower(), pax


def compute_capacity(
    max_capacity: int,
    active_bookings: Iterable[BookingLike],
    in_progress_count: int = 0,
    editing_booking_id: Optional[str] = None,
) -> CapacitySnapshot:
    """
    Compute booked and remaining seats.

    Args:
        max_capacity: The slot's maximum capacity.
        active_bookings: Bookings on the slot. Cancelled ones are skipped
            even if the caller passes them in.
        in_progress_count: Passengers in the draft currently being composed,
            so remaining shows the "would be" value before submit.
        editing_booking_id: When reopening an existing booking, its stored
            passengers are excluded so the draft is not counted twice.

    Raises:
        ValueError: On negative capacity or a negative draft count.
    """
    if max_capacity < 0:
        raise ValueError(f"max_capacity cannot be negative, got {max_capacity}")
    if in_progress_count < 0:
        raise ValueError(f"in_progress_count cannot be negative, got {in_progress_count}")

    booked = 0
    for booking in active_bookings:
        booking_id, status, pax = _booking_fields(booking)
        if status == BookingStatus.CANCELLED.value:
            continue
        if editing_booking_id is not None and booking_id == editing_booking_id:
            continue
        booked += pax
    booked += in_progress_count

    return CapacitySnapshot(
        max_capacity=max_capacity,
        booked=booked,
        remaining=max(0, max_capacity - booked),
    )


class CapacityAccountant:
    """Reads live bookings from the store and derives capacity."""

    def __init__(self, store: DataStore) -> None:
        self._store = store

    def get_availability(self, availability_id: str) -> Availability:
        rows = self._store.query(AVAILABILITIES, where(id=availability_id))
        if not rows:
            raise RecordNotFoundError(AVAILABILITIES, availability_id)
        return Availability.model_validate(rows[0])

    def active_bookings(self, availability_id: str) -> list[Booking]:
        rows = self._store.query(
            BOOKINGS,
            lambda r: r.get("availability_id") == availability_id
            and r.get("status") != BookingStatus.CANCELLED.value,
        )
        return [Booking.model_validate(r) for r in rows]

    def snapshot(
        self,
        availability_id: str,
        in_progress_count: int = 0,
        editing_booking_id: Optional[str] = None,
    ) -> CapacitySnapshot:
        availability = self.get_availability(availability_id)
        return compute_capacity(
            availability.max_capacity,
            self.active_bookings(availability_id),
            in_progress_count,
            editing_booking_id,
        )

    def ensure_can_book(
        self,
        availability_id: str,
        pax_count: int,
        editing_booking_id: Optional[str] = None,
    ) -> CapacitySnapshot:
        """
        Authoritative submit-time check against a fresh booking query.

        Raises:
            CapacityExceededError: If the draft needs more seats than remain,
                unless overbooking is enabled in configuration.
        """
        baseline = self.snapshot(availability_id, 0, editing_booking_id)
        if pax_count > baseline.remaining:
            if settings.booking.allow_overbooking:
                logger.warning(
                    "Overbooking %s: %d requested, %d remaining",
                    availability_id, pax_count, baseline.remaining,
                )
            else:
                raise CapacityExceededError(pax_count, baseline.remaining)
        return compute_capacity(
            baseline.max_capacity, [], baseline.booked + pax_count
        )
