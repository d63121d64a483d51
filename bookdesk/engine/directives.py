"""
Bulk-edit directives: what to change on every candidate availability.

A directive is a tagged variant ``(kind, value)``. A DirectiveSet keeps the
user's order and rejects a second directive of the same kind when it is
added, so patch composition never has to resolve duplicates.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Union

from bookdesk.errors import InputValidationError
from bookdesk.schemas.availability_schema import OnlineBookingStatus
from bookdesk.tools.store import ListMerge
from bookdesk.utils import blank_to_none, is_valid_time


class DirectiveKind(str, Enum):
    """Directive kinds; every value except ``delete`` is the patched field."""

    ONLINE_BOOKING_STATUS = "online_booking_status"
    MAX_CAPACITY = "max_capacity"
    START_TIME = "start_time"
    HOURS_LONG = "hours_long"
    TRANSPORTATION_ROUTE = "transportation_route_id"
    VEHICLE = "vehicle_id"
    PRICING_SCHEDULE = "pricing_schedule_id"
    BOOKING_OPTION_SCHEDULE = "booking_option_schedule_id"
    STAFF = "staff_ids"
    PRIVATE_NOTE = "private_announcement"
    DELETE = "delete"


DIRECTIVE_LABELS: dict[DirectiveKind, str] = {
    DirectiveKind.ONLINE_BOOKING_STATUS: "Online Booking Status",
    DirectiveKind.MAX_CAPACITY: "Capacity",
    DirectiveKind.START_TIME: "Start Time",
    DirectiveKind.HOURS_LONG: "Duration",
    DirectiveKind.TRANSPORTATION_ROUTE: "Route Schedule",
    DirectiveKind.VEHICLE: "Vehicle",
    DirectiveKind.PRICING_SCHEDULE: "Pricing Schedule",
    DirectiveKind.BOOKING_OPTION_SCHEDULE: "Booking Options",
    DirectiveKind.STAFF: "Assigned Staff",
    DirectiveKind.PRIVATE_NOTE: "Private Notes",
    DirectiveKind.DELETE: "Delete Availabilities",
}

REFERENCE_KINDS = frozenset({
    DirectiveKind.TRANSPORTATION_ROUTE,
    DirectiveKind.VEHICLE,
    DirectiveKind.PRICING_SCHEDULE,
    DirectiveKind.BOOKING_OPTION_SCHEDULE,
})


class StaffMode(str, Enum):
    REPLACE = "replace"
    ADD = "add"
    REMOVE = "remove"


def _normalize(kind: DirectiveKind, value: Any) -> Any:
    if kind == DirectiveKind.DELETE:
        return None

    if kind == DirectiveKind.ONLINE_BOOKING_STATUS:
        try:
            return OnlineBookingStatus(value)
        except ValueError:
            raise InputValidationError(
                f"Online booking status must be 'open' or 'closed', got {value!r}"
            ) from None

    if kind == DirectiveKind.MAX_CAPACITY:
        # Capacity 0 is a real value (closes the slot to bookings), never null.
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise InputValidationError(f"Capacity must be a whole number, got {value!r}")
        try:
            capacity = int(value.strip() if isinstance(value, str) else value)
        except (TypeError, ValueError):
            raise InputValidationError(f"Capacity must be a whole number, got {value!r}") from None
        if capacity < 0:
            raise InputValidationError("Capacity cannot be negative.")
        return capacity

    if kind == DirectiveKind.START_TIME:
        value = blank_to_none(value)
        if value is None:
            return None
        if not is_valid_time(value):
            raise InputValidationError(f"Start time must be HH:MM, got {value!r}")
        return value.strip()

    if kind == DirectiveKind.HOURS_LONG:
        value = blank_to_none(value)
        if value is None:
            return None
        try:
            hours = float(value)
        except (TypeError, ValueError):
            raise InputValidationError(f"Duration must be a number of hours, got {value!r}") from None
        if hours < 0:
            raise InputValidationError("Duration cannot be negative.")
        # A zero duration clears the field.
        return hours or None

    if kind == DirectiveKind.STAFF:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        return tuple(dict.fromkeys(v for v in value if v))

    # Reference ids and the private note: empty input clears the field.
    value = blank_to_none(value)
    return value.strip() if isinstance(value, str) else value


@dataclass(frozen=True)
class Directive:
    """One requested change. Construct with :func:`directive` to validate."""

    kind: DirectiveKind
    value: Any = None
    staff_mode: StaffMode = StaffMode.REPLACE

    @property
    def label(self) -> str:
        return DIRECTIVE_LABELS[self.kind]

    @property
    def is_delete(self) -> bool:
        return self.kind == DirectiveKind.DELETE

    @property
    def field_name(self) -> Optional[str]:
        return None if self.is_delete else self.kind.value

    def patch_value(self) -> Any:
        """Value written under ``field_name`` in the merge patch."""
        if self.kind == DirectiveKind.STAFF:
            if self.staff_mode == StaffMode.REPLACE:
                return list(self.value)
            return ListMerge(self.staff_mode.value, tuple(self.value))
        if isinstance(self.value, Enum):
            return self.value.value
        return self.value


def directive(
    kind: Union[DirectiveKind, str],
    value: Any = None,
    staff_mode: Union[StaffMode, str] = StaffMode.REPLACE,
) -> Directive:
    """Build a validated directive.

    Raises:
        InputValidationError: If the value is not valid for the kind.
    """
    try:
        kind = DirectiveKind(kind)
    except ValueError:
        raise InputValidationError(f"Unknown directive kind: {kind!r}") from None
    return Directive(kind=kind, value=_normalize(kind, value), staff_mode=StaffMode(staff_mode))


class DirectiveSet:
    """Ordered directives, at most one per kind."""

    def __init__(self, directives: Optional[Iterable[Directive]] = None) -> None:
        self._directives: dict[DirectiveKind, Directive] = {}
        for d in directives or []:
            self.add(d)

    def add(self, new: Directive) -> None:
        if new.kind in self._directives:
            raise InputValidationError(f"'{new.label}' is already in this bulk edit.")
        self._directives[new.kind] = new

    def replace(self, new: Directive) -> None:
        """Swap the value of an existing directive, keeping its position."""
        self._directives[new.kind] = new

    def remove(self, kind: Union[DirectiveKind, str]) -> Optional[Directive]:
        return self._directives.pop(DirectiveKind(kind), None)

    def get(self, kind: Union[DirectiveKind, str]) -> Optional[Directive]:
        return self._directives.get(DirectiveKind(kind))

    def clear(self) -> None:
        self._directives.clear()

    @property
    def has_delete(self) -> bool:
        return DirectiveKind.DELETE in self._directives

    def field_directives(self) -> list[Directive]:
        return [d for d in self._directives.values() if not d.is_delete]

    def labels(self) -> list[str]:
        return [d.label for d in self._directives.values()]

    def __contains__(self, kind: object) -> bool:
        return kind in self._directives

    def __iter__(self) -> Iterator[Directive]:
        return iter(self._directives.values())

    def __len__(self) -> int:
        return len(self._directives)
