"""Availability (bookable slot) data model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from bookdesk.utils import is_valid_date, is_valid_time


class OnlineBookingStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class DurationType(str, Enum):
    ALL_DAY = "all_day"
    TIME_RANGE = "time_range"


class Availability(BaseModel):
    """A bookable slot for one experience on one calendar date.

    ``booked_count`` mirrors a cached column in the store. It is never used
    for capacity decisions; the capacity accountant recomputes it from the
    live booking set.
    """

    id: str
    start_date: str
    start_time: Optional[str] = None
    duration_type: DurationType = DurationType.TIME_RANGE
    hours_long: Optional[float] = Field(default=None, ge=0)
    max_capacity: int = Field(default=0, ge=0)
    online_booking_status: OnlineBookingStatus = OnlineBookingStatus.OPEN
    private_announcement: Optional[str] = None
    headline: Optional[str] = None
    experience_id: Optional[str] = None
    pricing_schedule_id: Optional[str] = None
    booking_option_schedule_id: Optional[str] = None
    transportation_route_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    staff_ids: list[str] = Field(default_factory=list)
    customer_type_ids: list[str] = Field(default_factory=list)
    booked_count: Optional[int] = None

    @field_validator("start_date")
    @classmethod
    def _check_start_date(cls, value: str) -> str:
        if not is_valid_date(value):
            raise ValueError(f"start_date must be YYYY-MM-DD, got {value!r}")
        return value

    @field_validator("start_time")
    @classmethod
    def _check_start_time(cls, value: Optional[str]) -> Optional[str]:
        if value in (None, ""):
            return None
        # Stores often return HH:MM:SS; keep the wall-clock minutes only.
        trimmed = value[:5]
        if not is_valid_time(trimmed):
            raise ValueError(f"start_time must be HH:MM, got {value!r}")
        return trimmed

    @property
    def is_all_day(self) -> bool:
        return self.start_time is None or self.duration_type == DurationType.ALL_DAY
