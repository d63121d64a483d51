"""
Submit-time guards for booking drafts and bulk plans.

Independent checks, each returning a GuardResult. Failing ``block``
results stop the store call; ``warning`` results are shown but do not.

1. PassengerGuard  -- at least one passenger, no negative counts
2. PaymentGuard    -- override and amount are valid money
3. PricingGuard    -- the booking can be priced
4. CapacityGuard   -- live remaining-capacity warning
5. BulkPlanGuard   -- candidates, directives and staff selection

These are composed into a SubmitGuardPipeline.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from bookdesk.engine.capacity import CapacitySnapshot
from bookdesk.engine.directives import DirectiveKind, DirectiveSet
from bookdesk.engine.totals import Totals
from bookdesk.errors import InputValidationError

logger = logging.getLogger(__name__)


@dataclass
class GuardResult:
    """Outcome of a single guard check."""
    passed: bool
    violation_type: Optional[str] = None
    message: Optional[str] = None
    severity: str = "block"  # "warning" | "block"


class PassengerGuard:
    """A booking must carry at least one passenger."""

    def check_passengers(self, passenger_counts: Mapping[str, int]) -> GuardResult:
        negative = [t for t, c in passenger_counts.items() if c < 0]
        if negative:
            return GuardResult(
                passed=False,
                violation_type="negative_passengers",
                message=f"Passenger counts cannot be negative: {sorted(negative)}.",
            )
        if sum(passenger_counts.values()) == 0:
            return GuardResult(
                passed=False,
                violation_type="zero_passengers",
                message="Add at least one passenger.",
            )
        return GuardResult(passed=True)


class PaymentGuard:
    """Money fields must be non-negative."""

    def check_override(self, override_total: Optional[Decimal]) -> GuardResult:
        if override_total is not None and override_total < 0:
            return GuardResult(
                passed=False,
                violation_type="negative_override",
                message="Override total cannot be negative.",
            )
        return GuardResult(passed=True)

    def check_amount(self, amount: Decimal) -> GuardResult:
        if amount < 0:
            return GuardResult(
                passed=False,
                violation_type="negative_amount",
                message="Amount paid cannot be negative.",
            )
        return GuardResult(passed=True)


class PricingGuard:
    """A booking with passengers needs rates, unless the total is overridden."""

    def check_priced(self, totals: Totals, has_rates: bool) -> GuardResult:
        if totals.override_applied:
            return GuardResult(passed=True)
        if not has_rates:
            return GuardResult(
                passed=False,
                violation_type="unpriced_booking",
                message="No rates for the selected schedule and tier; cannot price this booking yet.",
            )
        if totals.unpriced_type_ids:
            return GuardResult(
                passed=False,
                violation_type="unpriced_passenger_type",
                message=(
                    "Some passengers have no rate under this tier: "
                    f"{', '.join(totals.unpriced_type_ids)}."
                ),
                severity="warning",
            )
        return GuardResult(passed=True)


class CapacityGuard:
    """Live warning; the authoritative check runs against the store at submit."""

    def check_capacity(self, snapshot: CapacitySnapshot) -> GuardResult:
        if snapshot.overbooked:
            over = snapshot.booked - snapshot.max_capacity
            return GuardResult(
                passed=False,
                violation_type="capacity_exceeded",
                message=f"This booking exceeds capacity by {over} seat(s).",
                severity="warning",
            )
        return GuardResult(passed=True)


class BulkPlanGuard:
    """The three independent executable guards of a bulk plan."""

    def check_candidates(self, candidate_ids: Iterable[str]) -> GuardResult:
        if not list(candidate_ids):
            return GuardResult(
                passed=False,
                violation_type="no_candidates",
                message="No availabilities match the current selection.",
            )
        return GuardResult(passed=True)

    def check_directives(self, directives: DirectiveSet) -> GuardResult:
        if len(directives) == 0:
            return GuardResult(
                passed=False,
                violation_type="no_directives",
                message="Choose at least one field to update.",
            )
        return GuardResult(passed=True)

    def check_staff(self, directives: DirectiveSet) -> GuardResult:
        staff = directives.get(DirectiveKind.STAFF)
        if staff is not None and not staff.value:
            return GuardResult(
                passed=False,
                violation_type="empty_staff_selection",
                message="Select at least one staff member.",
            )
        return GuardResult(passed=True)


class SubmitGuardPipeline:
    """Composes the guards for booking submits and bulk applies."""

    def __init__(self) -> None:
        self.passengers = PassengerGuard()
        self.payment = PaymentGuard()
        self.pricing = PricingGuard()
        self.capacity = CapacityGuard()
        self.bulk = BulkPlanGuard()

    def check_booking(
        self,
        passenger_counts: Mapping[str, int],
        totals: Totals,
        has_rates: bool,
        amount: Decimal,
        override_total: Optional[Decimal] = None,
        capacity: Optional[CapacitySnapshot] = None,
    ) -> list[GuardResult]:
        """Check a booking draft; returns only the failing results."""
        results = [
            self.passengers.check_passengers(passenger_counts),
            self.payment.check_override(override_total),
            self.payment.check_amount(amount),
        ]
        if sum(passenger_counts.values()) > 0:
            results.append(self.pricing.check_priced(totals, has_rates))
        if capacity is not None:
            results.append(self.capacity.check_capacity(capacity))
        return [r for r in results if not r.passed]

    def check_bulk_plan(
        self, candidate_ids: Iterable[str], directives: DirectiveSet
    ) -> list[GuardResult]:
        """Check a bulk plan; every guard runs so each blocker is reported."""
        results = [
            self.bulk.check_candidates(candidate_ids),
            self.bulk.check_directives(directives),
            self.bulk.check_staff(directives),
        ]
        return [r for r in results if not r.passed]

    @staticmethod
    def blocking(results: Iterable[GuardResult]) -> list[GuardResult]:
        return [r for r in results if not r.passed and r.severity == "block"]

    def raise_for(self, results: Iterable[GuardResult]) -> None:
        """Raise InputValidationError listing every blocking message."""
        blockers = self.blocking(results)
        if blockers:
            problems = [r.message or r.violation_type or "invalid" for r in blockers]
            logger.info("Submit blocked: %s", [r.violation_type for r in blockers])
            raise InputValidationError(problems[0], problems)
