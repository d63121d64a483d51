"""Pricing schedule, tier, rate and passenger-type models."""

from decimal import Decimal

from pydantic import BaseModel, Field


class PricingTier(BaseModel):
    """A named pricing variant (Retail, Wholesale, ...)."""
    name: str
    sort_order: int = 0


class PricingSchedule(BaseModel):
    """A pricing schedule and its declared tiers."""
    id: str
    name: str
    tiers: list[PricingTier] = Field(default_factory=list)

    def sorted_tiers(self) -> list[PricingTier]:
        return sorted(self.tiers, key=lambda t: t.sort_order)


class PricingRate(BaseModel):
    """One (tier, passenger type) -> (price, tax %) row of a schedule."""
    schedule_id: str
    tier: str
    customer_type_id: str
    price: Decimal = Field(ge=0)
    tax_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class CustomerType(BaseModel):
    """A passenger type (Adult, Child, ...)."""
    id: str
    name: str
