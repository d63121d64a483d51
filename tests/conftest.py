"""Shared test fixtures and helpers."""

from typing import Any, Optional

import pytest

from bookdesk.engine.guards import SubmitGuardPipeline
from bookdesk.engine.payment import PaymentStateMachine
from bookdesk.engine.pricing import ResolvedRate
from bookdesk.tools.store import (
    AVAILABILITIES,
    BOOKINGS,
    CUSTOMER_TYPES,
    EXPERIENCES,
    PRICING_RATES,
    PRICING_SCHEDULES,
    InMemoryStore,
)
from bookdesk.utils import to_decimal


def make_availability(
    availability_id: str = "av-1",
    start_date: str = "2025-01-15",
    start_time: Optional[str] = "09:00",
    max_capacity: int = 10,
    **overrides: Any,
) -> dict[str, Any]:
    """Helper to create an availability row with sensible defaults."""
    row = {
        "id": availability_id,
        "start_date": start_date,
        "start_time": start_time,
        "duration_type": "time_range" if start_time else "all_day",
        "hours_long": 2.0,
        "max_capacity": max_capacity,
        "online_booking_status": "open",
        "headline": "Harbour Sunset Cruise",
        "private_announcement": None,
        "experience_id": "exp-1",
        "pricing_schedule_id": "sched-1",
        "booking_option_schedule_id": None,
        "transportation_route_id": None,
        "vehicle_id": None,
        "staff_ids": [],
        "customer_type_ids": ["adult", "child"],
    }
    row.update(overrides)
    return row


def make_booking(
    booking_id: str = "bk-1",
    availability_id: str = "av-1",
    pax: Optional[dict[str, int]] = None,
    status: str = "confirmed",
    **overrides: Any,
) -> dict[str, Any]:
    """Helper to create a booking row."""
    row = {
        "id": booking_id,
        "availability_id": availability_id,
        "status": status,
        "pax_breakdown": pax if pax is not None else {"adult": 1},
        "created_at": "2025-01-02T09:00:00",
        "payment_status": "paid_full",
        "payment_method": "credit_card",
        "amount_paid": "0.00",
        "total_amount": "0.00",
    }
    row.update(overrides)
    return row


def make_rate(type_id: str, price: Any, tax: Any = 0, name: Optional[str] = None) -> ResolvedRate:
    """Helper to create a resolved rate."""
    return ResolvedRate(
        passenger_type_id=type_id,
        price=to_decimal(price),
        tax_percentage=to_decimal(tax),
        passenger_type_name=name or type_id.title(),
    )


SCHEDULE = {
    "id": "sched-1",
    "name": "Harbour 2025",
    "tiers": [
        {"name": "Wholesale", "sort_order": 1},
        {"name": "Retail", "sort_order": 0},
    ],
}

RATES = [
    {"id": "r1", "schedule_id": "sched-1", "tier": "Retail", "customer_type_id": "adult", "price": "100", "tax_percentage": "10"},
    {"id": "r2", "schedule_id": "sched-1", "tier": "Retail", "customer_type_id": "child", "price": "50", "tax_percentage": "10"},
    {"id": "r3", "schedule_id": "sched-1", "tier": "Wholesale", "customer_type_id": "adult", "price": "80", "tax_percentage": "10"},
]


def seed_store(
    availabilities: Optional[list[dict[str, Any]]] = None,
    bookings: Optional[list[dict[str, Any]]] = None,
) -> InMemoryStore:
    """Store with one schedule (Retail + Wholesale), two passenger types and one experience."""
    return InMemoryStore({
        CUSTOMER_TYPES: [{"id": "adult", "name": "Adult"}, {"id": "child", "name": "Child"}],
        EXPERIENCES: [{"id": "exp-1", "name": "Harbour Sunset Cruise", "short_code": "HSC"}],
        PRICING_SCHEDULES: [SCHEDULE],
        PRICING_RATES: RATES,
        AVAILABILITIES: availabilities if availabilities is not None else [make_availability()],
        BOOKINGS: bookings or [],
    })


@pytest.fixture
def store():
    return seed_store()


@pytest.fixture
def payment():
    return PaymentStateMachine()


@pytest.fixture
def guard_pipeline():
    return SubmitGuardPipeline()


@pytest.fixture
def scenario_b_rates():
    return [make_rate("adult", 100, 10), make_rate("child", 50, 10)]
