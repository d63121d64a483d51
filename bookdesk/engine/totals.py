"""
Line-item and total calculator.

Pure function of its inputs: same rates, counts and override always give
the same Totals. Intermediate sums keep full Decimal precision; rounding to
cents happens on the calculated total and on display/persistence.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from bookdesk.engine.pricing import ResolvedRate
from bookdesk.utils import Number, format_money, to_decimal, to_money


@dataclass(frozen=True)
class LineItem:
    """One priced passenger type."""

    passenger_type_id: str
    passenger_type_name: str
    count: int
    price: Decimal
    tax_percentage: Decimal
    subtotal: Decimal
    tax: Decimal

    def describe(self) -> str:
        return f"{self.count} x {self.passenger_type_name} (@ {format_money(self.price)})"


@dataclass(frozen=True)
class Totals:
    """Result of compute_totals."""

    line_items: tuple[LineItem, ...]
    subtotal: Decimal
    tax_total: Decimal
    calculated_total: Decimal
    grand_total: Decimal
    is_overridden: bool
    promo_code: Optional[str] = None
    unpriced_type_ids: tuple[str, ...] = field(default_factory=tuple)
    override_total: Optional[Decimal] = None

    @property
    def has_items(self) -> bool:
        return bool(self.line_items)

    @property
    def override_applied(self) -> bool:
        """True when the override replaced the calculated total."""
        return self.override_total is not None and self.override_total >= 0

    def as_display(self) -> dict[str, str]:
        """Cent-rounded, formatted figures for presentation."""
        return {
            "subtotal": format_money(self.subtotal),
            "tax": format_money(self.tax_total),
            "total": format_money(self.grand_total),
        }


def compute_totals(
    rates: Iterable[ResolvedRate],
    passenger_counts: Mapping[str, int],
    override_total: Optional[Number] = None,
    promo_code: Optional[str] = None,
) -> Totals:
    """
    Price a passenger breakdown against resolved rates.

    The promo code is carried through as a label only; it never changes
    the total. An override marks the totals as overridden, but only a
    non-negative one replaces the calculated total.

    Raises:
        ValueError: If any passenger count is negative.
    """
    for type_id, count in passenger_counts.items():
        if count < 0:
            raise ValueError(f"Passenger count for '{type_id}' cannot be negative")

    items: list[LineItem] = []
    priced: set[str] = set()
    for rate in rates:
        priced.add(rate.passenger_type_id)
        count = passenger_counts.get(rate.passenger_type_id, 0)
        if count == 0:
            continue
        price = to_decimal(rate.price)
        tax_percentage = to_decimal(rate.tax_percentage)
        subtotal = count * price
        items.append(LineItem(
            passenger_type_id=rate.passenger_type_id,
            passenger_type_name=rate.passenger_type_name,
            count=count,
            price=price,
            tax_percentage=tax_percentage,
            subtotal=subtotal,
            tax=subtotal * tax_percentage / Decimal(100),
        ))

    subtotal = sum((i.subtotal for i in items), Decimal(0))
    tax_total = sum((i.tax for i in items), Decimal(0))
    calculated = to_money(subtotal + tax_total)

    override = to_decimal(override_total) if override_total is not None else None
    is_overridden = override is not None
    grand_total = to_money(override) if is_overridden and override >= 0 else calculated

    unpriced = tuple(
        type_id for type_id, count in passenger_counts.items()
        if count > 0 and type_id not in priced
    )

    return Totals(
        line_items=tuple(items),
        subtotal=subtotal,
        tax_total=tax_total,
        calculated_total=calculated,
        grand_total=grand_total,
        is_overridden=is_overridden,
        promo_code=promo_code or None,
        unpriced_type_ids=unpriced,
        override_total=override,
    )
