"""
Payment state machine for a booking draft.

Four statuses, each with an entry effect on the amount being collected.
Any status can be selected from any other; what differs is the effect:

    paid_full     amount := grand total, and keeps tracking it
    paid_partial  amount := deposit suggestion, then free to edit
    pay_later     amount := 0, method forced to card on file
    no_payment    amount := 0, payment method hidden

Usage:
    pm = PaymentStateMachine(grand_total=Decimal("275.00"))
    pm.select_status(PaymentStatus.PAID_PARTIAL)   # amount -> 55.00
    pm.enter_amount("100")
    assert pm.balance == Decimal("175.00")
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Union

from bookdesk.config import settings
from bookdesk.errors import InputValidationError
from bookdesk.schemas.booking_schema import PaymentMethod, PaymentStatus
from bookdesk.utils import Number, format_money, to_decimal, to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class PaymentStateError(InputValidationError):
    """Raised when an edit is not allowed in the current payment status."""


@dataclass
class StatusEntry:
    """Recorded history entry for a status visit."""
    status: PaymentStatus
    entered_at: datetime
    amount: Decimal


class PaymentStateMachine:
    """
    Keeps amount paid consistent with the grand total.

    The grand total itself is owned by the caller (it comes from the
    totals calculator); the machine is told about every change through
    ``update_total`` and re-derives the amount while in paid_full.
    """

    FORBIDDEN_METHODS: dict[PaymentStatus, frozenset[PaymentMethod]] = {
        PaymentStatus.PAY_LATER: frozenset({PaymentMethod.CASH}),
    }

    def __init__(
        self,
        grand_total: Number = ZERO,
        method: Optional[PaymentMethod] = None,
        deposit_rate: Optional[float] = None,
    ) -> None:
        self._grand_total = to_money(grand_total)
        self._method = method or PaymentMethod(settings.payment.default_method)
        self._deposit_rate = to_decimal(
            deposit_rate if deposit_rate is not None else settings.payment.deposit_rate
        )
        self._status = PaymentStatus.PAID_FULL
        self._amount = self._grand_total
        self._override_total: Optional[Decimal] = None
        self._promo_code: Optional[str] = None
        self._history: list[StatusEntry] = [
            StatusEntry(self._status, datetime.now(timezone.utc), self._amount)
        ]

    # ------------------------------------------------------------------ #
    # Read-only state
    # ------------------------------------------------------------------ #

    @property
    def status(self) -> PaymentStatus:
        return self._status

    @property
    def method(self) -> Optional[PaymentMethod]:
        """Selected method; None while no payment is taken."""
        if self._status == PaymentStatus.NO_PAYMENT:
            return None
        return self._method

    @property
    def amount(self) -> Decimal:
        return self._amount

    @property
    def grand_total(self) -> Decimal:
        return self._grand_total

    @property
    def override_total(self) -> Optional[Decimal]:
        return self._override_total

    @property
    def promo_code(self) -> Optional[str]:
        return self._promo_code

    @property
    def method_visible(self) -> bool:
        return self._status != PaymentStatus.NO_PAYMENT

    @property
    def amount_editable(self) -> bool:
        return self._status == PaymentStatus.PAID_PARTIAL

    @property
    def balance(self) -> Decimal:
        """Grand total minus amount. Negative means overpaid; never clamped."""
        return self._grand_total - self._amount

    @property
    def is_overpaid(self) -> bool:
        return self.balance < 0

    def balance_display(self) -> str:
        if self.is_overpaid:
            return f"{format_money(self.balance)} (overpaid)"
        return format_money(self.balance)

    # ------------------------------------------------------------------ #
    # User actions
    # ------------------------------------------------------------------ #

    def select_status(self, status: Union[PaymentStatus, str]) -> PaymentStatus:
        """
        Apply an explicit status selection and its entry effect.

        Re-selecting the current status is a no-op, so a hand-edited
        partial amount is not reset by it.
        """
        status = PaymentStatus(status)
        if status == self._status:
            return self._status

        old = self._status
        self._status = status
        if status == PaymentStatus.PAID_FULL:
            self._amount = self._grand_total
        elif status == PaymentStatus.PAID_PARTIAL:
            self._amount = to_money(self._grand_total * self._deposit_rate)
        elif status == PaymentStatus.PAY_LATER:
            self._amount = ZERO
            self._method = PaymentMethod.CREDIT_CARD
        elif status == PaymentStatus.NO_PAYMENT:
            self._amount = ZERO

        self._history.append(StatusEntry(status, datetime.now(timezone.utc), self._amount))
        logger.debug(
            "Payment status: %s -> %s (amount %s)", old.value, status.value, self._amount
        )
        return self._status

    def select_method(self, method: Union[PaymentMethod, str]) -> PaymentMethod:
        """
        Choose a payment method.

        Raises:
            PaymentStateError: While no payment is taken, or for a method
                the current status does not accept (cash on pay-later).
        """
        method = PaymentMethod(method)
        if self._status == PaymentStatus.NO_PAYMENT:
            raise PaymentStateError("No payment method is used when no payment is taken.")
        if method in self.FORBIDDEN_METHODS.get(self._status, frozenset()):
            raise PaymentStateError(
                f"'{method.value}' is not accepted for status '{self._status.value}'."
            )
        self._method = method
        return self._method

    def enter_amount(self, amount: Number) -> Decimal:
        """
        Hand-enter the amount collected (paid_partial only).

        Raises:
            PaymentStateError: Outside paid_partial, or for a negative or
                non-numeric amount.
        """
        if not self.amount_editable:
            raise PaymentStateError(
                f"Amount is derived automatically in status '{self._status.value}'."
            )
        value = self._parse_amount(amount, "Amount")
        if value < 0:
            raise PaymentStateError("Amount cannot be negative.")
        self._amount = to_money(value)
        return self._amount

    def set_override_total(self, value: Optional[Number]) -> Optional[Decimal]:
        """Store the operator's override (None clears it).

        A negative override is kept so the draft shows what was typed; the
        totals calculator ignores it and the submit guards block it.
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            self._override_total = None
        else:
            self._override_total = self._parse_amount(value, "Override total")
        return self._override_total

    def set_promo_code(self, code: Optional[str]) -> Optional[str]:
        self._promo_code = code.strip() if code and code.strip() else None
        return self._promo_code

    # ------------------------------------------------------------------ #
    # Derived updates
    # ------------------------------------------------------------------ #

    def update_total(self, grand_total: Number) -> Decimal:
        """Record a new grand total; paid_full keeps the amount in sync."""
        self._grand_total = to_money(grand_total)
        if self._status == PaymentStatus.PAID_FULL:
            self._amount = self._grand_total
        return self._amount

    def restore(
        self,
        status: Union[PaymentStatus, str],
        method: Optional[Union[PaymentMethod, str]],
        amount: Number,
        override_total: Optional[Number] = None,
        promo_code: Optional[str] = None,
    ) -> None:
        """Load stored payment fields when reopening a booking for edit.

        No entry effect runs; the stored amount is taken as-is until the
        next total update or status selection. A stored method the status
        does not accept falls back to credit_card.
        """
        self._status = PaymentStatus(status)
        if method:
            self._method = PaymentMethod(method)
        if self._method in self.FORBIDDEN_METHODS.get(self._status, frozenset()):
            logger.info(
                "Stored method %s not accepted for %s; using credit_card",
                self._method.value, self._status.value,
            )
            self._method = PaymentMethod.CREDIT_CARD
        self._amount = to_money(amount or 0)
        self.set_override_total(override_total)
        self.set_promo_code(promo_code)
        self._history.append(StatusEntry(self._status, datetime.now(timezone.utc), self._amount))

    def to_booking_fields(self) -> dict[str, Any]:
        """Payment columns written onto the booking at submit time."""
        return {
            "payment_status": self._status.value,
            "payment_method": self.method.value if self.method else None,
            "amount_paid": to_money(self._amount),
            "total_amount": to_money(self._grand_total),
            "override_total": (
                to_money(self._override_total) if self._override_total is not None else None
            ),
            "promo_code": self._promo_code,
        }

    def get_history(self) -> list[StatusEntry]:
        """Return the full status history."""
        return list(self._history)

    def get_status_trace(self) -> list[str]:
        """Return ordered list of status names visited."""
        return [entry.status.value for entry in self._history]

    @staticmethod
    def _parse_amount(value: Number, label: str) -> Decimal:
        try:
            return to_decimal(value)
        except ValueError:
            raise PaymentStateError(f"{label} must be a number, got {value!r}") from None
