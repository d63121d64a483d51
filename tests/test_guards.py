"""Tests for submit-time guards."""

from decimal import Decimal

import pytest

from bookdesk.engine.capacity import compute_capacity
from bookdesk.engine.directives import DirectiveKind, DirectiveSet, directive
from bookdesk.engine.guards import (
    BulkPlanGuard,
    CapacityGuard,
    PassengerGuard,
    PaymentGuard,
    PricingGuard,
)
from bookdesk.engine.totals import compute_totals
from bookdesk.errors import InputValidationError
from tests.conftest import make_rate


class TestPassengerGuard:
    def setup_method(self):
        self.guard = PassengerGuard()

    def test_at_least_one_passenger(self):
        result = self.guard.check_passengers({"adult": 0, "child": 0})
        assert not result.passed
        assert result.violation_type == "zero_passengers"

    def test_negative_counts(self):
        result = self.guard.check_passengers({"adult": -1, "child": 3})
        assert result.violation_type == "negative_passengers"

    def test_passes(self):
        assert self.guard.check_passengers({"adult": 1}).passed


class TestPaymentGuard:
    def setup_method(self):
        self.guard = PaymentGuard()

    def test_negative_override_blocks(self):
        result = self.guard.check_override(Decimal("-1"))
        assert not result.passed
        assert result.severity == "block"

    def test_no_override_passes(self):
        assert self.guard.check_override(None).passed

    def test_negative_amount_blocks(self):
        assert not self.guard.check_amount(Decimal("-0.01")).passed


class TestPricingGuard:
    def setup_method(self):
        self.guard = PricingGuard()

    def test_no_rates_blocks(self):
        totals = compute_totals([], {"adult": 2})
        result = self.guard.check_priced(totals, has_rates=False)
        assert result.violation_type == "unpriced_booking"
        assert result.severity == "block"

    def test_override_allows_unpriced_booking(self):
        totals = compute_totals([], {"adult": 2}, override_total=150)
        assert self.guard.check_priced(totals, has_rates=False).passed

    def test_negative_override_does_not_skip_pricing(self):
        totals = compute_totals([], {"adult": 2}, override_total=-1)
        result = self.guard.check_priced(totals, has_rates=False)
        assert result.violation_type == "unpriced_booking"

    def test_partially_unpriced_warns(self):
        totals = compute_totals([make_rate("adult", 100)], {"adult": 1, "child": 1})
        result = self.guard.check_priced(totals, has_rates=True)
        assert result.severity == "warning"
        assert "child" in result.message


class TestCapacityGuard:
    def test_overbooked_warns(self):
        result = CapacityGuard().check_capacity(compute_capacity(4, [], in_progress_count=6))
        assert result.severity == "warning"
        assert result.message == "This booking exceeds capacity by 2 seat(s)."

    def test_full_slot_passes(self):
        assert CapacityGuard().check_capacity(compute_capacity(4, [], in_progress_count=4)).passed


class TestBulkPlanGuard:
    def setup_method(self):
        self.guard = BulkPlanGuard()

    def test_no_candidates(self):
        assert not self.guard.check_candidates([]).passed

    def test_no_directives(self):
        result = self.guard.check_directives(DirectiveSet())
        assert result.message == "Choose at least one field to update."

    def test_empty_staff_selection(self):
        directives = DirectiveSet([directive(DirectiveKind.STAFF, [])])
        assert self.guard.check_staff(directives).violation_type == "empty_staff_selection"

    def test_staff_selected(self):
        directives = DirectiveSet([directive(DirectiveKind.STAFF, ["s1"], staff_mode="add")])
        assert self.guard.check_staff(directives).passed


class TestSubmitGuardPipeline:
    def test_clean_booking(self, guard_pipeline, scenario_b_rates):
        counts = {"adult": 2}
        totals = compute_totals(scenario_b_rates, counts)
        failures = guard_pipeline.check_booking(counts, totals, True, totals.grand_total)
        assert failures == []

    def test_zero_pax_skips_pricing(self, guard_pipeline):
        totals = compute_totals([], {})
        failures = guard_pipeline.check_booking({}, totals, False, Decimal("0"))
        assert [f.violation_type for f in failures] == ["zero_passengers"]

    def test_warnings_do_not_block(self, guard_pipeline, scenario_b_rates):
        counts = {"adult": 5}
        totals = compute_totals(scenario_b_rates, counts)
        failures = guard_pipeline.check_booking(
            counts, totals, True, Decimal("0"),
            capacity=compute_capacity(3, [], in_progress_count=5),
        )
        assert [f.violation_type for f in failures] == ["capacity_exceeded"]
        assert guard_pipeline.blocking(failures) == []
        guard_pipeline.raise_for(failures)

    def test_raise_for_lists_every_blocker(self, guard_pipeline):
        totals = compute_totals([], {})
        failures = guard_pipeline.check_booking({}, totals, False, Decimal("0"), override_total=Decimal("-5"))
        with pytest.raises(InputValidationError) as excinfo:
            guard_pipeline.raise_for(failures)
        assert excinfo.value.problems == [
            "Add at least one passenger.",
            "Override total cannot be negative.",
        ]

    def test_bulk_reports_all_blockers(self, guard_pipeline):
        failures = guard_pipeline.check_bulk_plan([], DirectiveSet())
        assert [f.violation_type for f in failures] == ["no_candidates", "no_directives"]
