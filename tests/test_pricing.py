"""Tests for the pricing resolver."""

from decimal import Decimal

import pytest

from bookdesk.engine.pricing import PricingResolver, pick_default_tier, select_tier_rates
from bookdesk.errors import InputValidationError, RecordNotFoundError
from bookdesk.schemas.pricing_schema import PricingRate, PricingTier
from bookdesk.tools.store import PRICING_RATES, PRICING_SCHEDULES, InMemoryStore


@pytest.fixture
def resolver(store):
    return PricingResolver(store)


class TestDefaultTier:
    def test_prefers_retail_when_declared(self):
        tiers = [PricingTier(name="Wholesale", sort_order=0), PricingTier(name="Retail", sort_order=5)]
        assert pick_default_tier(tiers) == "Retail"

    def test_falls_back_to_first_by_sort_order(self):
        tiers = [PricingTier(name="Agent", sort_order=2), PricingTier(name="Locals", sort_order=1)]
        assert pick_default_tier(tiers) == "Locals"

    def test_no_tiers(self):
        assert pick_default_tier([]) is None

    def test_schedule_default(self, resolver):
        assert resolver.default_tier("sched-1") == "Retail"

    def test_tiers_listed_in_sort_order(self, resolver):
        assert [t.name for t in resolver.list_tiers("sched-1")] == ["Retail", "Wholesale"]


class TestResolveRates:
    def test_retail_rates(self, resolver):
        rates = resolver.resolve_rates("sched-1", "Retail")
        by_type = {r.passenger_type_id: r for r in rates}
        assert set(by_type) == {"adult", "child"}
        assert by_type["adult"].price == Decimal("100")
        assert by_type["adult"].tax_percentage == Decimal("10")
        assert by_type["child"].passenger_type_name == "Child"

    def test_tier_defaults_when_omitted(self, resolver):
        assert resolver.resolve_rates("sched-1") == resolver.resolve_rates("sched-1", "Retail")

    def test_other_tier(self, resolver):
        rates = resolver.resolve_rates("sched-1", "Wholesale")
        assert [(r.passenger_type_id, r.price) for r in rates] == [("adult", Decimal("80"))]

    def test_unknown_schedule_is_not_found(self, resolver):
        with pytest.raises(RecordNotFoundError):
            resolver.resolve_rates("missing")

    def test_unknown_tier_is_validation_error(self, resolver):
        with pytest.raises(InputValidationError, match="Unknown pricing tier"):
            resolver.resolve_rates("sched-1", "VIP")

    def test_declared_tier_without_rates_is_empty(self):
        store = InMemoryStore({
            PRICING_SCHEDULES: [{"id": "s", "name": "S", "tiers": [{"name": "Retail"}]}],
            PRICING_RATES: [],
        })
        assert PricingResolver(store).resolve_rates("s", "Retail") == []

    def test_schedule_without_tiers_is_empty(self):
        store = InMemoryStore({PRICING_SCHEDULES: [{"id": "s", "name": "S", "tiers": []}]})
        assert PricingResolver(store).resolve_rates("s") == []

    def test_unknown_type_gets_fallback_name(self):
        rates = [PricingRate(schedule_id="s", tier="Retail", customer_type_id="senior", price=Decimal("20"))]
        resolved = select_tier_rates(rates, "Retail", {})
        assert resolved[0].passenger_type_name == "Unknown Type"

    def test_list_schedules_sorted_by_name(self, store):
        store.insert(PRICING_SCHEDULES, {"id": "sched-0", "name": "Airport 2025", "tiers": []})
        names = [s.name for s in PricingResolver(store).list_schedules()]
        assert names == ["Airport 2025", "Harbour 2025"]


class TestRateSchema:
    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            PricingRate(schedule_id="s", tier="Retail", customer_type_id="adult", price=Decimal("-1"))

    def test_tax_above_hundred_rejected(self):
        with pytest.raises(ValueError):
            PricingRate(
                schedule_id="s", tier="Retail", customer_type_id="adult",
                price=Decimal("10"), tax_percentage=Decimal("101"),
            )
