"""
Bulk-edit filters over availability records.

Each filter is a small variant with one concern. A FilterSet holds at most
one filter per kind; absence from the set means "not filtering on that".
Filters of different kinds combine with AND; inside one filter a list of
values means "any of".

The has-bookings filter cannot be answered from the availability row
alone (the cached booked counter is not trusted), so the planner resolves
it with a second query over active bookings.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Optional

from bookdesk.errors import InputValidationError
from bookdesk.schemas.availability_schema import OnlineBookingStatus
from bookdesk.utils import WEEKDAY_KEYS, is_valid_date, is_valid_time, weekday_key


class FilterKind(str, Enum):
    DATE_RANGE = "date_range"
    STATUS = "status"
    DAY_OF_WEEK = "day_of_week"
    TIME_RANGE = "time_range"
    DURATION = "duration"
    CAPACITY = "capacity"
    SEARCH = "search"
    HAS_BOOKINGS = "has_bookings"
    CREW = "crew"
    CUSTOMER_TYPE = "customer_type"
    PICKUP_ROUTE = "pickup_route"


FILTER_LABELS: dict[FilterKind, str] = {
    FilterKind.DATE_RANGE: "Date Range",
    FilterKind.STATUS: "Booking Status",
    FilterKind.DAY_OF_WEEK: "Day of Week",
    FilterKind.TIME_RANGE: "Time Range",
    FilterKind.DURATION: "Duration",
    FilterKind.CAPACITY: "Capacity",
    FilterKind.SEARCH: "Search",
    FilterKind.HAS_BOOKINGS: "Has Bookings",
    FilterKind.CREW: "Crew",
    FilterKind.CUSTOMER_TYPE: "Customer Type",
    FilterKind.PICKUP_ROUTE: "Pickup Route",
}


class AvailabilityFilter:
    """Base variant. Record-level filters answer ``matches`` per row."""

    kind: FilterKind
    record_level = True

    @property
    def label(self) -> str:
        return FILTER_LABELS[self.kind]

    def matches(self, record: Mapping[str, Any]) -> bool:
        raise NotImplementedError


def _require_ids(values: Iterable[str], what: str) -> frozenset[str]:
    ids = frozenset(v for v in values if v)
    if not ids:
        raise InputValidationError(f"Select at least one {what}.")
    return ids


def _hhmm(value: Optional[str]) -> Optional[str]:
    return value[:5] if value else None


@dataclass(frozen=True)
class DateRangeFilter(AvailabilityFilter):
    """Inclusive start-date range; dates are compared as literal strings."""

    start: str
    end: str
    kind = FilterKind.DATE_RANGE

    def __post_init__(self) -> None:
        for value in (self.start, self.end):
            if not is_valid_date(value):
                raise InputValidationError(f"Dates must be YYYY-MM-DD, got {value!r}")
        if self.start > self.end:
            raise InputValidationError("Date range start must not be after its end.")

    def matches(self, record: Mapping[str, Any]) -> bool:
        start_date = record.get("start_date") or ""
        return self.start <= start_date <= self.end


@dataclass(frozen=True)
class StatusFilter(AvailabilityFilter):
    statuses: frozenset[OnlineBookingStatus]
    kind = FilterKind.STATUS

    def __init__(self, statuses: Iterable[Any]) -> None:
        try:
            parsed = frozenset(OnlineBookingStatus(s) for s in statuses)
        except ValueError as e:
            raise InputValidationError(f"Unknown booking status: {e}") from None
        if not parsed:
            raise InputValidationError("Select at least one status.")
        object.__setattr__(self, "statuses", parsed)

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get("online_booking_status") in {s.value for s in self.statuses}


@dataclass(frozen=True)
class DayOfWeekFilter(AvailabilityFilter):
    days: frozenset[str]
    kind = FilterKind.DAY_OF_WEEK

    def __init__(self, days: Iterable[str]) -> None:
        parsed = frozenset(d.strip().upper()[:3] for d in days if d)
        unknown = parsed - set(WEEKDAY_KEYS)
        if unknown:
            raise InputValidationError(f"Unknown day(s): {sorted(unknown)}")
        if not parsed:
            raise InputValidationError("Select at least one day.")
        object.__setattr__(self, "days", parsed)

    def matches(self, record: Mapping[str, Any]) -> bool:
        start_date = record.get("start_date")
        if not start_date or not is_valid_date(start_date):
            return False
        return weekday_key(start_date) in self.days


@dataclass(frozen=True)
class TimeRangeFilter(AvailabilityFilter):
    """Inclusive start-time window. All-day slots never match."""

    start: str
    end: str
    kind = FilterKind.TIME_RANGE

    def __post_init__(self) -> None:
        for value in (self.start, self.end):
            if not is_valid_time(value):
                raise InputValidationError(f"Times must be HH:MM, got {value!r}")
        if self.start > self.end:
            raise InputValidationError("Time range start must not be after its end.")

    def matches(self, record: Mapping[str, Any]) -> bool:
        start_time = _hhmm(record.get("start_time"))
        if start_time is None:
            return False
        return self.start <= start_time <= self.end


@dataclass(frozen=True)
class DurationFilter(AvailabilityFilter):
    """Hours-long range; either bound may be open."""

    min_hours: Optional[float] = None
    max_hours: Optional[float] = None
    kind = FilterKind.DURATION

    def __post_init__(self) -> None:
        if self.min_hours is None and self.max_hours is None:
            raise InputValidationError("Duration filter needs a minimum or a maximum.")
        if (
            self.min_hours is not None
            and self.max_hours is not None
            and self.min_hours > self.max_hours
        ):
            raise InputValidationError("Minimum duration must not exceed the maximum.")

    def matches(self, record: Mapping[str, Any]) -> bool:
        hours = record.get("hours_long")
        if hours is None:
            return False
        if self.min_hours is not None and hours < self.min_hours:
            return False
        if self.max_hours is not None and hours > self.max_hours:
            return False
        return True


@dataclass(frozen=True)
class CapacityFilter(AvailabilityFilter):
    """Max-capacity range; either bound may be open."""

    min_capacity: Optional[int] = None
    max_capacity: Optional[int] = None
    kind = FilterKind.CAPACITY

    def __post_init__(self) -> None:
        if self.min_capacity is None and self.max_capacity is None:
            raise InputValidationError("Capacity filter needs a minimum or a maximum.")
        if (
            self.min_capacity is not None
            and self.max_capacity is not None
            and self.min_capacity > self.max_capacity
        ):
            raise InputValidationError("Minimum capacity must not exceed the maximum.")

    def matches(self, record: Mapping[str, Any]) -> bool:
        capacity = record.get("max_capacity") or 0
        if self.min_capacity is not None and capacity < self.min_capacity:
            return False
        if self.max_capacity is not None and capacity > self.max_capacity:
            return False
        return True


@dataclass(frozen=True)
class SearchFilter(AvailabilityFilter):
    """Case-insensitive substring search over headline and private notes."""

    text: str
    kind = FilterKind.SEARCH

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise InputValidationError("Search text cannot be empty.")

    def matches(self, record: Mapping[str, Any]) -> bool:
        needle = self.text.strip().lower()
        haystack = " ".join(
            record.get(f) or "" for f in ("headline", "private_announcement")
        ).lower()
        return needle in haystack


@dataclass(frozen=True)
class HasBookingsFilter(AvailabilityFilter):
    """Keep slots with (or, when ``has_bookings`` is False, without) active bookings."""

    has_bookings: bool = True
    kind = FilterKind.HAS_BOOKINGS
    record_level = False

    def matches(self, record: Mapping[str, Any]) -> bool:
        raise TypeError("has-bookings is resolved against the booking set, not a single row")

    def select(self, candidate_ids: Iterable[str], booked_ids: Iterable[str]) -> list[str]:
        booked = set(booked_ids)
        return [cid for cid in candidate_ids if (cid in booked) == self.has_bookings]


@dataclass(frozen=True)
class CrewFilter(AvailabilityFilter):
    """Slots with any of the given staff assigned."""

    staff_ids: frozenset[str]
    kind = FilterKind.CREW

    def __init__(self, staff_ids: Iterable[str]) -> None:
        object.__setattr__(self, "staff_ids", _require_ids(staff_ids, "staff member"))

    def matches(self, record: Mapping[str, Any]) -> bool:
        return bool(self.staff_ids & set(record.get("staff_ids") or []))


@dataclass(frozen=True)
class CustomerTypeFilter(AvailabilityFilter):
    """Slots that allow any of the given customer types."""

    customer_type_ids: frozenset[str]
    kind = FilterKind.CUSTOMER_TYPE

    def __init__(self, customer_type_ids: Iterable[str]) -> None:
        object.__setattr__(
            self, "customer_type_ids", _require_ids(customer_type_ids, "customer type")
        )

    def matches(self, record: Mapping[str, Any]) -> bool:
        return bool(self.customer_type_ids & set(record.get("customer_type_ids") or []))


@dataclass(frozen=True)
class PickupRouteFilter(AvailabilityFilter):
    route_ids: frozenset[str]
    kind = FilterKind.PICKUP_ROUTE

    def __init__(self, route_ids: Iterable[str]) -> None:
        object.__setattr__(self, "route_ids", _require_ids(route_ids, "route"))

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get("transportation_route_id") in self.route_ids


class FilterSet:
    """At most one filter per kind, kept in the order they were added."""

    def __init__(self) -> None:
        self._filters: dict[FilterKind, AvailabilityFilter] = {}

    @classmethod
    def of(cls, *filters: AvailabilityFilter) -> "FilterSet":
        filter_set = cls()
        for f in filters:
            filter_set.add(f)
        return filter_set

    def add(self, new_filter: AvailabilityFilter) -> None:
        if new_filter.kind in self._filters:
            raise InputValidationError(f"A '{new_filter.label}' filter is already applied.")
        self._filters[new_filter.kind] = new_filter

    def replace(self, new_filter: AvailabilityFilter) -> None:
        self._filters[new_filter.kind] = new_filter

    def remove(self, kind: FilterKind) -> Optional[AvailabilityFilter]:
        return self._filters.pop(FilterKind(kind), None)

    def get(self, kind: FilterKind) -> Optional[AvailabilityFilter]:
        return self._filters.get(FilterKind(kind))

    def clear(self) -> None:
        self._filters.clear()

    def kinds(self) -> list[FilterKind]:
        return list(self._filters)

    def record_filters(self) -> list[AvailabilityFilter]:
        """Record-level filters, date range first."""
        ordered = sorted(
            (f for f in self._filters.values() if f.record_level),
            key=lambda f: f.kind != FilterKind.DATE_RANGE,
        )
        return ordered

    @property
    def has_bookings_filter(self) -> Optional[HasBookingsFilter]:
        found = self._filters.get(FilterKind.HAS_BOOKINGS)
        return found if isinstance(found, HasBookingsFilter) else None

    def __contains__(self, kind: object) -> bool:
        return kind in self._filters

    def __iter__(self) -> Iterator[AvailabilityFilter]:
        return iter(self._filters.values())

    def __len__(self) -> int:
        return len(self._filters)
