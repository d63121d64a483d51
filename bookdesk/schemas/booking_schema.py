"""Booking data models."""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PAID_FULL = "paid_full"
    PAID_PARTIAL = "paid_partial"
    PAY_LATER = "pay_later"
    NO_PAYMENT = "no_payment"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    CRYPTO = "crypto"
    CASH = "cash"


class Booking(BaseModel):
    """A reservation of some passenger count against one availability.

    When a breakdown is present, ``pax_count`` always equals the sum of
    its values. Legacy records that only carry ``pax_count`` keep it as-is.
    """

    id: str
    availability_id: str
    status: BookingStatus = BookingStatus.CONFIRMED
    pax_breakdown: dict[str, int] = Field(default_factory=dict)
    pax_count: int = Field(default=0, ge=0)
    option_values: dict[str, Any] = Field(default_factory=dict)
    notes: str = ""
    customer_id: Optional[str] = None
    confirmation_number: Optional[str] = None
    created_at: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.PAID_FULL
    payment_method: Optional[PaymentMethod] = PaymentMethod.CREDIT_CARD
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0)
    total_amount: Decimal = Field(default=Decimal("0"), ge=0)
    override_total: Optional[Decimal] = Field(default=None, ge=0)
    promo_code: Optional[str] = None

    @field_validator("pax_breakdown", mode="before")
    @classmethod
    def _drop_unusable_breakdown(cls, value: Any) -> Any:
        # Older rows stored a list of passenger dicts or non-numeric values.
        if not isinstance(value, dict):
            return {}
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in value.values()):
            return {}
        return value

    @field_validator("pax_breakdown")
    @classmethod
    def _check_counts(cls, value: dict[str, int]) -> dict[str, int]:
        for type_id, count in value.items():
            if count < 0:
                raise ValueError(f"Passenger count for '{type_id}' cannot be negative")
        return value

    @model_validator(mode="after")
    def _sync_pax_count(self) -> "Booking":
        if self.pax_breakdown:
            self.pax_count = sum(self.pax_breakdown.values())
        return self

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.CANCELLED

    @property
    def has_breakdown(self) -> bool:
        return bool(self.pax_breakdown)
