"""
Demo data for the console walkthrough.

One experience with two pricing tiers and a week of morning and afternoon
slots. Deterministic so the walkthrough reads the same on every run.
"""

from datetime import date, timedelta
from typing import Any, Optional

from bookdesk.tools.store import (
    AVAILABILITIES,
    BOOKINGS,
    CUSTOMER_TYPES,
    EXPERIENCES,
    PRICING_RATES,
    PRICING_SCHEDULES,
    InMemoryStore,
)

DEMO_START = date(2025, 1, 6)  # a Monday
DEMO_DAYS = 7
DEPARTURES = ("09:00", "14:00")

CUSTOMER_TYPE_ROWS: list[dict[str, Any]] = [
    {"id": "adult", "name": "Adult"},
    {"id": "child", "name": "Child"},
    {"id": "infant", "name": "Infant"},
]

EXPERIENCE_ROWS: list[dict[str, Any]] = [
    {"id": "exp-reef", "name": "Reef Snorkel Cruise", "short_code": "RSC"},
]

SCHEDULE_ROWS: list[dict[str, Any]] = [
    {
        "id": "sched-reef",
        "name": "Reef Cruise 2025",
        "tiers": [
            {"name": "Retail", "sort_order": 0},
            {"name": "Wholesale", "sort_order": 1},
        ],
    },
]

RATE_ROWS: list[dict[str, Any]] = [
    {"schedule_id": "sched-reef", "tier": "Retail", "customer_type_id": "adult", "price": "100.00", "tax_percentage": "10"},
    {"schedule_id": "sched-reef", "tier": "Retail", "customer_type_id": "child", "price": "50.00", "tax_percentage": "10"},
    {"schedule_id": "sched-reef", "tier": "Retail", "customer_type_id": "infant", "price": "0.00", "tax_percentage": "0"},
    {"schedule_id": "sched-reef", "tier": "Wholesale", "customer_type_id": "adult", "price": "80.00", "tax_percentage": "10"},
    {"schedule_id": "sched-reef", "tier": "Wholesale", "customer_type_id": "child", "price": "40.00", "tax_percentage": "10"},
]


def demo_availabilities(start: date = DEMO_START, days: int = DEMO_DAYS) -> list[dict[str, Any]]:
    rows = []
    for offset in range(days):
        day = (start + timedelta(days=offset)).isoformat()
        for departure in DEPARTURES:
            rows.append({
                "id": f"av-{day}-{departure.replace(':', '')}",
                "start_date": day,
                "start_time": departure,
                "duration_type": "time_range",
                "hours_long": 3.5,
                "max_capacity": 12,
                "online_booking_status": "open",
                "headline": "Reef Snorkel Cruise",
                "experience_id": "exp-reef",
                "pricing_schedule_id": "sched-reef",
                "transportation_route_id": "route-north" if departure == "09:00" else "route-south",
                "staff_ids": ["staff-kai"],
                "customer_type_ids": ["adult", "child", "infant"],
            })
    return rows


def demo_bookings() -> list[dict[str, Any]]:
    first = f"av-{DEMO_START.isoformat()}-0900"
    return [
        {
            "id": "bk-demo-1",
            "availability_id": first,
            "pax_breakdown": {"adult": 3},
            "created_at": "2025-01-02T10:15:00",
            "confirmation_number": "RSC-010225-1",
            "payment_status": "paid_full",
            "amount_paid": "330.00",
            "total_amount": "330.00",
        },
        {
            "id": "bk-demo-2",
            "availability_id": first,
            "pax_breakdown": {"adult": 2, "child": 2},
            "created_at": "2025-01-02T11:40:00",
            "confirmation_number": "RSC-010225-2",
            "payment_status": "pay_later",
            "amount_paid": "0.00",
            "total_amount": "330.00",
        },
    ]


def build_demo_store(extra: Optional[dict[str, list[dict[str, Any]]]] = None) -> InMemoryStore:
    """Return a fresh in-memory store loaded with the demo data."""
    seed: dict[str, list[dict[str, Any]]] = {
        CUSTOMER_TYPES: list(CUSTOMER_TYPE_ROWS),
        EXPERIENCES: list(EXPERIENCE_ROWS),
        PRICING_SCHEDULES: list(SCHEDULE_ROWS),
        PRICING_RATES: [{"id": f"rate-{i}", **row} for i, row in enumerate(RATE_ROWS, 1)],
        AVAILABILITIES: demo_availabilities(),
        BOOKINGS: demo_bookings(),
    }
    for collection, rows in (extra or {}).items():
        seed.setdefault(collection, []).extend(rows)
    return InMemoryStore(seed)
