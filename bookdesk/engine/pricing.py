"""
Pricing resolver: (schedule, tier) -> priced rate per passenger type.

A pure read over the store. An empty result means the booking cannot be
priced yet; it never means "free".

Usage:
    resolver = PricingResolver(store)
    tier = resolver.default_tier("sched-1")
    rates = resolver.resolve_rates("sched-1", tier)
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from bookdesk.config import settings
from bookdesk.errors import InputValidationError, RecordNotFoundError
from bookdesk.schemas.pricing_schema import CustomerType, PricingRate, PricingSchedule, PricingTier
from bookdesk.tools.store import (
    CUSTOMER_TYPES,
    PRICING_RATES,
    PRICING_SCHEDULES,
    DataStore,
    where,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedRate:
    """Price and tax for one passenger type under the selected tier."""

    passenger_type_id: str
    price: Decimal
    tax_percentage: Decimal
    passenger_type_name: str


def pick_default_tier(tiers: Iterable[PricingTier], preferred: Optional[str] = None) -> Optional[str]:
    """Return the preferred tier if declared, else the first by sort order."""
    preferred = preferred or settings.pricing.default_tier
    ordered = sorted(tiers, key=lambda t: t.sort_order)
    if any(t.name == preferred for t in ordered):
        return preferred
    return ordered[0].name if ordered else None


def select_tier_rates(
    rates: Iterable[PricingRate],
    tier: str,
    type_names: Optional[dict[str, str]] = None,
) -> list[ResolvedRate]:
    """Filter a schedule's rate rows down to one tier and join type names."""
    names = type_names or {}
    return [
        ResolvedRate(
            passenger_type_id=rate.customer_type_id,
            price=rate.price,
            tax_percentage=rate.tax_percentage,
            passenger_type_name=names.get(rate.customer_type_id, settings.pricing.unknown_type_label),
        )
        for rate in rates
        if rate.tier == tier
    ]


class PricingResolver:
    """Looks up schedules, tiers and rates through the data store."""

    def __init__(self, store: DataStore) -> None:
        self._store = store

    def get_schedule(self, schedule_id: str) -> PricingSchedule:
        rows = self._store.query(PRICING_SCHEDULES, where(id=schedule_id))
        if not rows:
            raise RecordNotFoundError(PRICING_SCHEDULES, schedule_id)
        return PricingSchedule.model_validate(rows[0])

    def list_schedules(self) -> list[PricingSchedule]:
        rows = self._store.query(PRICING_SCHEDULES)
        return sorted(
            (PricingSchedule.model_validate(r) for r in rows),
            key=lambda s: s.name,
        )

    def list_tiers(self, schedule_id: str) -> list[PricingTier]:
        """Return the schedule's declared tiers in sort order."""
        return self.get_schedule(schedule_id).sorted_tiers()

    def default_tier(self, schedule_id: str) -> Optional[str]:
        return pick_default_tier(self.list_tiers(schedule_id))

    def passenger_type_names(self) -> dict[str, str]:
        rows = self._store.query(CUSTOMER_TYPES, projection=("id", "name"))
        types = [CustomerType.model_validate(r) for r in rows]
        return {t.id: t.name for t in types}

    def resolve_rates(self, schedule_id: str, tier: Optional[str] = None) -> list[ResolvedRate]:
        """
        Resolve the rates of one schedule under one tier.

        Args:
            schedule_id: Must reference an existing pricing schedule.
            tier: Tier name; defaults to the configured tier when the
                schedule declares it, else the schedule's first tier.

        Returns:
            One ResolvedRate per passenger type priced under the tier,
            in store order. Empty when nothing is priced for the pair.

        Raises:
            RecordNotFoundError: If the schedule does not exist.
            InputValidationError: If ``tier`` is not declared by the schedule.
        """
        schedule = self.get_schedule(schedule_id)
        declared = [t.name for t in schedule.sorted_tiers()]
        if tier is None:
            tier = pick_default_tier(schedule.tiers)
            if tier is None:
                logger.info("Schedule %s declares no tiers; nothing to price", schedule_id)
                return []
        elif tier not in declared:
            raise InputValidationError(
                f"Unknown pricing tier '{tier}' for schedule '{schedule.name}'. "
                f"Valid tiers: {declared}"
            )

        rows = self._store.query(PRICING_RATES, where(schedule_id=schedule_id, tier=tier))
        rates = [PricingRate.model_validate(r) for r in rows]
        resolved = select_tier_rates(rates, tier, self.passenger_type_names())
        if not resolved:
            logger.info("No rates for schedule %s tier %s", schedule_id, tier)
        return resolved
