"""
Booking desk: one booking draft, create or edit.

Owns the draft inputs and recomputes every derived figure (rates, totals,
payment amount, capacity) from scratch after each change. Nothing derived
is patched incrementally.

Usage:
    desk = BookingDesk(store)
    desk.open_new("av-2025-01-06-0900")
    desk.set_passenger_count("adult", 2)
    desk.set_passenger_count("child", 1)
    desk.totals.grand_total          # Decimal("275.00")
    result = desk.submit()
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from bookdesk.engine.capacity import CapacityAccountant, CapacitySnapshot, compute_capacity
from bookdesk.engine.guards import GuardResult, SubmitGuardPipeline
from bookdesk.engine.payment import PaymentStateMachine
from bookdesk.engine.pricing import PricingResolver, ResolvedRate
from bookdesk.engine.totals import Totals, compute_totals
from bookdesk.errors import InputValidationError, RecordNotFoundError
from bookdesk.schemas.availability_schema import Availability
from bookdesk.schemas.booking_schema import Booking, PaymentMethod, PaymentStatus
from bookdesk.schemas.pricing_schema import PricingTier
from bookdesk.tools import booking as booking_actions
from bookdesk.tools.booking import BookingActionResult
from bookdesk.tools.store import BOOKINGS, DataStore, where
from bookdesk.utils import Number

logger = logging.getLogger(__name__)


class DeskMode(str, Enum):
    CLOSED = "closed"
    CREATE = "create"
    EDIT = "edit"


class BookingDesk:
    """Single booking draft controller."""

    def __init__(self, store: DataStore, guards: Optional[SubmitGuardPipeline] = None) -> None:
        self._store = store
        self._pricing = PricingResolver(store)
        self._accountant = CapacityAccountant(store)
        self._guards = guards or SubmitGuardPipeline()
        self._reset()

    def _reset(self) -> None:
        self.mode = DeskMode.CLOSED
        self.availability: Optional[Availability] = None
        self.booking_id: Optional[str] = None
        self.confirmation_number: Optional[str] = None
        self.schedule_id: Optional[str] = None
        self.tier: Optional[str] = None
        self.tiers: list[PricingTier] = []
        self.rates: list[ResolvedRate] = []
        self.option_schedule_id: Optional[str] = None
        self.option_values: dict[str, Any] = {}
        self.notes = ""
        self.customer_id: Optional[str] = None
        self.payment = PaymentStateMachine()
        self._pax: dict[str, int] = {}
        self._active_bookings: list[Booking] = []
        self._totals = compute_totals([], {})
        self._initial_snapshot: Optional[dict[str, Any]] = None

    # ------------------------------------------------------------------ #
    # Opening
    # ------------------------------------------------------------------ #

    def open_new(self, availability_id: str) -> None:
        """Start a new booking on a slot, using the slot's default schedules."""
        self._reset()
        self.mode = DeskMode.CREATE
        self._load_availability(availability_id)
        self._load_pricing(self.availability.pricing_schedule_id if self.availability else None)
        self._recompute()
        self._initial_snapshot = self.snapshot()
        logger.info("Desk opened for new booking on %s", availability_id)

    def open_existing(self, booking_id: str) -> None:
        """Reopen a stored booking for editing."""
        rows = self._store.query(BOOKINGS, where(id=booking_id))
        if not rows:
            raise RecordNotFoundError(BOOKINGS, booking_id)
        booking = Booking.model_validate(rows[0])

        self._reset()
        self.mode = DeskMode.EDIT
        self.booking_id = booking.id
        self.confirmation_number = booking.confirmation_number
        self._load_availability(booking.availability_id)
        self._load_pricing(self.availability.pricing_schedule_id if self.availability else None)

        if booking.has_breakdown:
            self._pax = dict(booking.pax_breakdown)
        elif booking.pax_count > 0 and self.rates:
            # Legacy rows only carry a head count; put it on the first priced type.
            self._pax = {self.rates[0].passenger_type_id: booking.pax_count}
            logger.info("Mapped legacy pax_count %d onto %s", booking.pax_count, self.rates[0].passenger_type_id)

        self.option_values = dict(booking.option_values)
        self.notes = booking.notes
        self.customer_id = booking.customer_id

        self.payment.restore(
            booking.payment_status,
            booking.payment_method,
            booking.amount_paid,
            override_total=booking.override_total,
            promo_code=booking.promo_code,
        )
        self._recompute()
        self._initial_snapshot = self.snapshot()
        logger.info("Desk opened booking %s for edit", booking_id)

    def close(self) -> None:
        self._reset()

    def _load_availability(self, availability_id: str) -> None:
        self.availability = self._accountant.get_availability(availability_id)
        self.option_schedule_id = self.availability.booking_option_schedule_id
        self._active_bookings = self._accountant.active_bookings(availability_id)

    def _load_pricing(self, schedule_id: Optional[str], tier: Optional[str] = None) -> None:
        self.schedule_id = schedule_id
        if not schedule_id:
            self.tiers, self.tier, self.rates = [], None, []
            return
        self.tiers = self._pricing.list_tiers(schedule_id)
        self.tier = tier or self._pricing.default_tier(schedule_id)
        self.rates = self._pricing.resolve_rates(schedule_id, self.tier) if self.tier else []

    def _require_open(self) -> None:
        if self.mode == DeskMode.CLOSED:
            raise InputValidationError("Open a slot or a booking first.")

    # ------------------------------------------------------------------ #
    # Inputs
    # ------------------------------------------------------------------ #

    def set_passenger_count(self, passenger_type_id: str, count: int) -> None:
        self._require_open()
        if count < 0:
            raise InputValidationError("Passenger count cannot be negative.")
        if count == 0:
            self._pax.pop(passenger_type_id, None)
        else:
            self._pax[passenger_type_id] = count
        self._recompute()

    def adjust_passengers(self, passenger_type_id: str, delta: int) -> int:
        """Plus/minus buttons; never goes below zero."""
        count = max(0, self._pax.get(passenger_type_id, 0) + delta)
        self.set_passenger_count(passenger_type_id, count)
        return count

    def select_schedule(self, schedule_id: str) -> None:
        """Switch pricing schedule; the tier falls back to the new schedule's default."""
        self._require_open()
        self._load_pricing(schedule_id)
        self._recompute()

    def select_tier(self, tier: str) -> None:
        self._require_open()
        if not self.schedule_id:
            raise InputValidationError("Select a pricing schedule first.")
        self.rates = self._pricing.resolve_rates(self.schedule_id, tier)
        self.tier = tier
        self._recompute()

    def select_option_schedule(self, option_schedule_id: Optional[str]) -> None:
        self._require_open()
        if option_schedule_id != self.option_schedule_id:
            self.option_values = {}
        self.option_schedule_id = option_schedule_id or None

    def set_option_value(self, key: str, value: Any) -> None:
        self._require_open()
        if value in (None, ""):
            self.option_values.pop(key, None)
        else:
            self.option_values[key] = value

    def set_notes(self, notes: str) -> None:
        self._require_open()
        self.notes = notes or ""

    def set_customer(self, customer_id: Optional[str]) -> None:
        self._require_open()
        self.customer_id = customer_id or None

    def select_payment_status(self, status: Union[PaymentStatus, str]) -> None:
        self._require_open()
        self.payment.select_status(status)

    def select_payment_method(self, method: Union[PaymentMethod, str]) -> None:
        self._require_open()
        self.payment.select_method(method)

    def enter_amount(self, amount: Number) -> None:
        self._require_open()
        self.payment.enter_amount(amount)

    def set_override_total(self, value: Optional[Number]) -> None:
        self._require_open()
        self.payment.set_override_total(value)
        self._recompute()

    def set_promo_code(self, code: Optional[str]) -> None:
        self._require_open()
        self.payment.set_promo_code(code)
        self._recompute()

    def refresh(self) -> None:
        """Reload the slot and its bookings, e.g. after another desk saved."""
        self._require_open()
        if self.availability is not None:
            self.availability = self._accountant.get_availability(self.availability.id)
            self._active_bookings = self._accountant.active_bookings(self.availability.id)

    # ------------------------------------------------------------------ #
    # Derived state
    # ------------------------------------------------------------------ #

    def _recompute(self) -> None:
        self._totals = compute_totals(
            self.rates,
            self._pax,
            override_total=self.payment.override_total,
            promo_code=self.payment.promo_code,
        )
        self.payment.update_total(self._totals.grand_total)

    @property
    def passenger_counts(self) -> dict[str, int]:
        return dict(self._pax)

    @property
    def total_pax(self) -> int:
        return sum(self._pax.values())

    @property
    def totals(self) -> Totals:
        return self._totals

    @property
    def balance(self) -> Decimal:
        return self.payment.balance

    @property
    def capacity(self) -> Optional[CapacitySnapshot]:
        """Live "would be" capacity, counting this draft and not its stored self."""
        if self.availability is None:
            return None
        return compute_capacity(
            self.availability.max_capacity,
            self._active_bookings,
            self.total_pax,
            self.booking_id,
        )

    @property
    def capacity_warning(self) -> Optional[str]:
        snapshot = self.capacity
        if snapshot is None:
            return None
        result = self._guards.capacity.check_capacity(snapshot)
        return None if result.passed else result.message

    def check(self) -> list[GuardResult]:
        """All failing guard results for the current draft."""
        return self._guards.check_booking(
            self._pax,
            self._totals,
            has_rates=bool(self.rates),
            amount=self.payment.amount,
            override_total=self.payment.override_total,
            capacity=self.capacity,
        )

    @property
    def blockers(self) -> list[str]:
        return [r.message or "" for r in self._guards.blocking(self.check())]

    @property
    def can_save(self) -> bool:
        return self.mode != DeskMode.CLOSED and not self.blockers

    def snapshot(self) -> dict[str, Any]:
        """Canonical form of the user-editable draft, for dirty tracking."""
        return {
            "pax": sorted((k, v) for k, v in self._pax.items() if v > 0),
            "schedule_id": self.schedule_id,
            "tier": self.tier,
            "option_schedule_id": self.option_schedule_id,
            "option_values": sorted(self.option_values.items(), key=lambda kv: kv[0]),
            "notes": self.notes.strip(),
            "customer_id": self.customer_id,
            "payment_status": self.payment.status.value,
            "payment_method": self.payment.method.value if self.payment.method else None,
            "amount": str(self.payment.amount),
            "override_total": str(self.payment.override_total) if self.payment.override_total is not None else None,
            "promo_code": self.payment.promo_code,
        }

    @property
    def is_dirty(self) -> bool:
        return self._initial_snapshot is not None and self.snapshot() != self._initial_snapshot

    def booking_fields(self) -> dict[str, Any]:
        """Columns handed to the save action."""
        if self.availability is None:
            raise InputValidationError("Open a slot or a booking first.")
        return {
            "availability_id": self.availability.id,
            "pax_breakdown": {k: v for k, v in self._pax.items() if v > 0},
            "pax_count": self.total_pax,
            "option_values": dict(self.option_values),
            "notes": self.notes,
            "customer_id": self.customer_id,
            **self.payment.to_booking_fields(),
        }

    # ------------------------------------------------------------------ #
    # Actions
    # ------------------------------------------------------------------ #

    def submit(self) -> BookingActionResult:
        """
        Validate locally, then save through the booking action.

        The draft is kept on any failure so the operator can correct it.
        """
        if self.mode == DeskMode.CLOSED:
            return {"success": False, "message": "Open a slot or a booking first."}

        blocking = self._guards.blocking(self.check())
        if blocking:
            problems = [r.message or "" for r in blocking]
            return {
                "success": False,
                "message": " ".join(problems),
                "error_type": InputValidationError.__name__,
            }

        result = booking_actions.save_booking(self._store, self.booking_fields(), self.booking_id)
        if result.get("success"):
            self.mode = DeskMode.EDIT
            self.booking_id = result.get("booking_id")
            self.confirmation_number = result.get("confirmation_number")
            self.refresh()
            self._initial_snapshot = self.snapshot()
        return result

    def cancel_booking(self) -> BookingActionResult:
        if self.mode != DeskMode.EDIT or not self.booking_id:
            return {"success": False, "message": "Only a saved booking can be cancelled."}
        result = booking_actions.cancel_booking(self._store, self.booking_id)
        if result.get("success"):
            self.refresh()
        return result

    def delete_booking(self) -> BookingActionResult:
        if self.mode != DeskMode.EDIT or not self.booking_id:
            return {"success": False, "message": "Only a saved booking can be deleted."}
        result = booking_actions.delete_booking(self._store, self.booking_id)
        if result.get("success"):
            self._reset()
        return result
