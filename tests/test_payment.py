"""Tests for the payment state machine."""

from decimal import Decimal

import pytest

from bookdesk.engine.payment import PaymentStateError, PaymentStateMachine
from bookdesk.errors import InputValidationError
from bookdesk.schemas.booking_schema import PaymentMethod, PaymentStatus


@pytest.fixture
def pm():
    return PaymentStateMachine(grand_total=Decimal("275.00"))


class TestInitialState:
    def test_starts_paid_full(self, pm):
        assert pm.status == PaymentStatus.PAID_FULL

    def test_amount_tracks_total(self, pm):
        assert pm.amount == Decimal("275.00")
        assert pm.balance == Decimal("0.00")

    def test_default_method_is_card(self, pm):
        assert pm.method == PaymentMethod.CREDIT_CARD

    def test_empty_draft_owes_nothing(self, payment):
        assert payment.amount == Decimal("0.00")
        assert payment.balance_display() == "$0.00"

    def test_initial_history_has_one_entry(self, pm):
        assert pm.get_status_trace() == ["paid_full"]


class TestStatusEffects:
    def test_scenario_partial_deposit_then_manual_amount(self, pm):
        pm.select_status(PaymentStatus.PAID_PARTIAL)
        assert pm.amount == Decimal("55.00")
        pm.enter_amount("100")
        assert pm.balance == Decimal("175.00")

    def test_partial_amount_not_rederived_on_total_change(self, pm):
        pm.select_status("paid_partial")
        pm.enter_amount(80)
        pm.update_total(Decimal("400"))
        assert pm.amount == Decimal("80.00")
        assert pm.balance == Decimal("320.00")

    def test_deposit_rounds_half_up(self):
        pm = PaymentStateMachine(grand_total=Decimal("10.05"))
        pm.select_status(PaymentStatus.PAID_PARTIAL)
        assert pm.amount == Decimal("2.01")

    def test_custom_deposit_rate(self):
        pm = PaymentStateMachine(grand_total=Decimal("200"), deposit_rate=0.5)
        pm.select_status(PaymentStatus.PAID_PARTIAL)
        assert pm.amount == Decimal("100.00")

    def test_back_to_paid_full_discards_manual_amount(self, pm):
        pm.select_status(PaymentStatus.PAID_PARTIAL)
        pm.enter_amount("10")
        pm.select_status(PaymentStatus.PAID_FULL)
        assert pm.amount == Decimal("275.00")

    def test_pay_later_forces_card(self, pm):
        pm.select_method(PaymentMethod.CASH)
        pm.select_status(PaymentStatus.PAY_LATER)
        assert pm.amount == Decimal("0.00")
        assert pm.method == PaymentMethod.CREDIT_CARD

    def test_pay_later_rejects_cash(self, pm):
        pm.select_status(PaymentStatus.PAY_LATER)
        with pytest.raises(PaymentStateError):
            pm.select_method(PaymentMethod.CASH)

    def test_pay_later_accepts_crypto(self, pm):
        pm.select_status(PaymentStatus.PAY_LATER)
        assert pm.select_method("crypto") == PaymentMethod.CRYPTO

    def test_no_payment_hides_method(self, pm):
        pm.select_status(PaymentStatus.NO_PAYMENT)
        assert pm.amount == Decimal("0.00")
        assert pm.method is None
        assert not pm.method_visible
        assert pm.to_booking_fields()["payment_method"] is None

    def test_no_payment_rejects_method_change(self, pm):
        pm.select_status(PaymentStatus.NO_PAYMENT)
        with pytest.raises(PaymentStateError):
            pm.select_method(PaymentMethod.CRYPTO)

    def test_method_kept_when_returning_to_paid_full(self, pm):
        pm.select_method(PaymentMethod.CRYPTO)
        pm.select_status(PaymentStatus.NO_PAYMENT)
        pm.select_status(PaymentStatus.PAID_FULL)
        assert pm.method == PaymentMethod.CRYPTO

    def test_reselecting_status_is_noop(self, pm):
        pm.select_status(PaymentStatus.PAID_PARTIAL)
        pm.enter_amount("42")
        pm.select_status(PaymentStatus.PAID_PARTIAL)
        assert pm.amount == Decimal("42.00")
        assert pm.get_status_trace() == ["paid_full", "paid_partial"]


class TestPaidFullTracking:
    @pytest.mark.parametrize("total", ["0", "110.00", "275.55", "1000"])
    def test_amount_equals_total_after_every_change(self, pm, total):
        pm.update_total(total)
        assert pm.amount == pm.grand_total

    def test_tracking_resumes_after_round_trip(self, pm):
        pm.select_status(PaymentStatus.PAY_LATER)
        pm.select_status(PaymentStatus.PAID_FULL)
        pm.update_total("99.99")
        assert pm.amount == Decimal("99.99")


class TestAmountEdits:
    def test_amount_locked_outside_partial(self, pm):
        with pytest.raises(PaymentStateError, match="derived automatically"):
            pm.enter_amount("5")

    def test_payment_state_error_is_validation_error(self):
        assert issubclass(PaymentStateError, InputValidationError)

    def test_negative_amount_rejected(self, pm):
        pm.select_status(PaymentStatus.PAID_PARTIAL)
        with pytest.raises(PaymentStateError):
            pm.enter_amount("-1")

    def test_non_numeric_amount_rejected(self, pm):
        pm.select_status(PaymentStatus.PAID_PARTIAL)
        with pytest.raises(PaymentStateError, match="must be a number"):
            pm.enter_amount("ten")

    def test_overpayment_shows_negative_balance(self, pm):
        pm.select_status(PaymentStatus.PAID_PARTIAL)
        pm.enter_amount("300")
        assert pm.balance == Decimal("-25.00")
        assert pm.is_overpaid
        assert pm.balance_display() == "-$25.00 (overpaid)"


class TestOverrideAndPromo:
    def test_override_stored(self, pm):
        assert pm.set_override_total("200") == Decimal("200")

    def test_blank_override_clears(self, pm):
        pm.set_override_total("200")
        assert pm.set_override_total("  ") is None

    def test_negative_override_kept_for_guards(self, pm):
        assert pm.set_override_total(-10) == Decimal("-10")

    def test_bad_override_rejected(self, pm):
        with pytest.raises(PaymentStateError):
            pm.set_override_total("lots")

    def test_promo_code_trimmed(self, pm):
        assert pm.set_promo_code("  SUMMER  ") == "SUMMER"
        assert pm.set_promo_code("") is None


class TestRestoreAndPersist:
    def test_restore_keeps_stored_amount(self, pm):
        pm.restore("paid_partial", "cash", "60.00", promo_code="VIP")
        assert pm.status == PaymentStatus.PAID_PARTIAL
        assert pm.method == PaymentMethod.CASH
        assert pm.amount == Decimal("60.00")
        assert pm.promo_code == "VIP"

    def test_restore_replaces_cash_on_pay_later(self, pm):
        pm.restore("pay_later", "cash", "0")
        assert pm.status == PaymentStatus.PAY_LATER
        assert pm.method == PaymentMethod.CREDIT_CARD
        assert pm.to_booking_fields()["payment_method"] == "credit_card"

    def test_restore_keeps_override(self, pm):
        pm.restore("paid_full", "credit_card", "0", override_total="0")
        assert pm.override_total == Decimal("0")
        assert pm.to_booking_fields()["override_total"] == Decimal("0.00")

    def test_booking_fields(self, pm):
        pm.select_status(PaymentStatus.PAID_PARTIAL)
        fields = pm.to_booking_fields()
        assert fields == {
            "payment_status": "paid_partial",
            "payment_method": "credit_card",
            "amount_paid": Decimal("55.00"),
            "total_amount": Decimal("275.00"),
            "override_total": None,
            "promo_code": None,
        }
