"""Tests for booking actions (save, cancel, delete)."""

from datetime import date, datetime

import pytest

from bookdesk.errors import GENERIC_FAILURE_MESSAGE
from bookdesk.tools.booking import (
    cancel_booking,
    delete_booking,
    make_confirmation_number,
    save_booking,
)
from bookdesk.tools.store import AVAILABILITIES, BOOKINGS
from tests.conftest import make_availability, make_booking, seed_store

NOW = datetime(2025, 1, 2, 10, 30)


def booking_fields(**overrides):
    fields = {
        "availability_id": "av-1",
        "pax_breakdown": {"adult": 2, "child": 1},
        "payment_status": "paid_full",
        "payment_method": "credit_card",
        "amount_paid": "275.00",
        "total_amount": "275.00",
        "notes": "Window seats",
    }
    fields.update(overrides)
    return fields


class TestConfirmationNumber:
    def test_first_booking_of_the_day(self, store):
        assert make_confirmation_number(store, "av-1", date(2025, 1, 2)) == "HSC-010225-1"

    def test_counts_siblings_of_same_experience(self):
        store = seed_store(
            availabilities=[make_availability("av-1"), make_availability("av-2", start_date="2025-01-20")],
            bookings=[
                make_booking("b1", availability_id="av-1"),
                make_booking("b2", availability_id="av-2"),
                make_booking("b3", availability_id="av-2", created_at="2025-01-01T18:00:00"),
            ],
        )
        assert make_confirmation_number(store, "av-1", date(2025, 1, 2)) == "HSC-010225-3"

    def test_fallback_code_without_experience(self):
        store = seed_store(availabilities=[make_availability("av-9", experience_id=None)])
        assert make_confirmation_number(store, "av-9", date(2025, 3, 4)).startswith("EXP-030425-")


class TestSaveBooking:
    def test_create(self, store):
        result = save_booking(store, booking_fields(), now=NOW)
        assert result["success"] is True
        assert result["confirmation_number"] == "HSC-010225-1"
        assert result["message"] == "Booking created. Confirmation number HSC-010225-1."
        assert result["remaining"] == 7
        saved = store.get(BOOKINGS, result["booking_id"])
        assert saved["pax_count"] == 3
        assert saved["status"] == "confirmed"
        assert saved["created_at"] == "2025-01-02T10:30:00"

    def test_second_booking_increments_sequence(self, store):
        save_booking(store, booking_fields(pax_breakdown={"adult": 1}), now=NOW)
        result = save_booking(store, booking_fields(pax_breakdown={"adult": 1}), now=NOW)
        assert result["confirmation_number"] == "HSC-010225-2"

    def test_zero_passengers_rejected(self, store):
        result = save_booking(store, booking_fields(pax_breakdown={"adult": 0}), now=NOW)
        assert result["success"] is False
        assert result["message"] == "Add at least one passenger."
        assert store.count(BOOKINGS) == 0

    def test_capacity_conflict_reported_verbatim(self, store):
        result = save_booking(store, booking_fields(pax_breakdown={"adult": 11}), now=NOW)
        assert result["success"] is False
        assert result["error_type"] == "CapacityExceededError"
        assert result["message"].startswith("Only 10 seat(s) remaining")

    def test_invalid_payment_fields(self, store):
        result = save_booking(store, booking_fields(payment_method="cheque"), now=NOW)
        assert result["error_type"] == "InputValidationError"
        assert "payment_method" in result["message"]

    def test_store_failure_is_generic(self, store):
        store.fail_next()
        result = save_booking(store, booking_fields(), now=NOW)
        assert result["success"] is False
        assert result["message"] == GENERIC_FAILURE_MESSAGE

    def test_unexpected_error_is_generic(self, store):
        store.fail_next(KeyError("shape"))
        result = save_booking(store, booking_fields(), now=NOW)
        assert result["message"] == GENERIC_FAILURE_MESSAGE
        assert result["error_type"] == "KeyError"

    def test_edit_in_place(self):
        store = seed_store(bookings=[make_booking("b1", pax={"adult": 8}, confirmation_number="HSC-010225-1")])
        result = save_booking(store, booking_fields(pax_breakdown={"adult": 9}), booking_id="b1", now=NOW)
        assert result["success"] is True
        assert result["message"] == "Booking updated successfully."
        assert result["remaining"] == 1
        saved = store.get(BOOKINGS, "b1")
        assert saved["pax_count"] == 9
        assert saved["confirmation_number"] == "HSC-010225-1"
        assert saved["created_at"] == "2025-01-02T09:00:00"
        assert store.count(BOOKINGS) == 1

    def test_edit_cannot_change_status(self):
        store = seed_store(bookings=[make_booking("b1")])
        save_booking(store, booking_fields(status="cancelled"), booking_id="b1", now=NOW)
        assert store.get(BOOKINGS, "b1")["status"] == "confirmed"

    def test_edit_missing_booking(self, store):
        result = save_booking(store, booking_fields(), booking_id="ghost", now=NOW)
        assert result["error_type"] == "RecordNotFoundError"

    def test_unknown_availability(self, store):
        result = save_booking(store, booking_fields(availability_id="nowhere"), now=NOW)
        assert result["success"] is False
        assert "not found" in result["message"]


class TestCancelAndDelete:
    @pytest.fixture
    def booked_store(self):
        return seed_store(bookings=[make_booking("b1", pax={"adult": 4})])

    def test_cancel_frees_seats(self, booked_store):
        result = cancel_booking(booked_store, "b1")
        assert result["success"] is True
        assert result["message"] == "Booking cancelled."
        assert result["remaining"] == 10
        assert booked_store.get(BOOKINGS, "b1")["status"] == "cancelled"

    def test_cancel_twice(self, booked_store):
        cancel_booking(booked_store, "b1")
        assert cancel_booking(booked_store, "b1")["message"] == "Booking was already cancelled."

    def test_cancel_missing(self, booked_store):
        assert cancel_booking(booked_store, "nope")["success"] is False

    def test_delete(self, booked_store):
        result = delete_booking(booked_store, "b1")
        assert result["success"] is True
        assert booked_store.count(BOOKINGS) == 0
        assert booked_store.count(AVAILABILITIES) == 1

    def test_delete_missing(self, booked_store):
        result = delete_booking(booked_store, "nope")
        assert result["error_type"] == "RecordNotFoundError"
