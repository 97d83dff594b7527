"""Tests for the pure balance arithmetic and choice normalization."""
from decimal import Decimal

import pytest

from app.core.enum_utils import normalize_choice, to_enum
from app.models.withdrawal import WithdrawalMethod
from app.services.balance import calculate_commission_amount, compute_balance, to_money


# ===================================================================
# Commission amount
# ===================================================================

class TestCommissionAmount:
    """commission = sale x rate / 100, rounded to paise."""

    def test_two_percent(self):
        assert calculate_commission_amount(Decimal("10000"), Decimal("2")) == Decimal("200.00")

    def test_zero_rate(self):
        assert calculate_commission_amount(Decimal("10000"), Decimal("0")) == Decimal("0.00")

    def test_fractional_rate(self):
        assert calculate_commission_amount(Decimal("300000"), Decimal("3.5")) == Decimal("10500.00")

    def test_rounds_half_up(self):
        """0.125 becomes 0.13, not banker's 0.12."""
        assert calculate_commission_amount(Decimal("12.50"), Decimal("1")) == Decimal("0.13")

    def test_accepts_plain_numbers(self):
        assert calculate_commission_amount(20000, 2) == Decimal("400.00")


# ===================================================================
# Balance snapshot
# ===================================================================

class TestComputeBalance:
    """available = earned - withdrawn - pending."""

    def test_formula(self):
        balance = compute_balance(
            commission_count=2,
            total_earned=Decimal("5000"),
            total_withdrawn=Decimal("1000"),
            pending_withdrawal=Decimal("500"),
        )
        assert balance.available_balance == Decimal("3500.00")
        assert balance.total_earned == Decimal("5000.00")
        assert balance.avg_commission == Decimal("2500.00")

    def test_empty_ledger(self):
        """No rows: every figure is zero, no division by zero."""
        balance = compute_balance(0, None, None, None)
        assert balance.total_commissions == 0
        assert balance.available_balance == Decimal("0.00")
        assert balance.avg_commission == Decimal("0.00")

    def test_to_dict_keys(self):
        balance = compute_balance(1, 100, 0, 0)
        assert set(balance.to_dict()) == {
            "total_commissions", "total_earned", "total_withdrawn",
            "pending_withdrawal", "available_balance", "avg_commission",
        }

    def test_to_money_quantizes(self):
        assert to_money(None) == Decimal("0.00")
        assert to_money(12.345) == Decimal("12.35")
        assert str(to_money(7)) == "7.00"


# ===================================================================
# Choice normalization
# ===================================================================

class TestNormalizeChoice:

    @pytest.mark.parametrize("raw, expected", [
        ("Bank Transfer", "BANK_TRANSFER"),
        ("BankTransfer", "BANK_TRANSFER"),
        ("bank-transfer", "BANK_TRANSFER"),
        (" completed ", "COMPLETED"),
        ("UPI", "UPI"),
    ])
    def test_display_values(self, raw, expected):
        assert normalize_choice(raw) == expected

    def test_empty_is_none(self):
        assert normalize_choice("") is None
        assert normalize_choice("   ") is None
        assert normalize_choice(None) is None

    def test_to_enum(self):
        assert to_enum("Cheque", WithdrawalMethod) is WithdrawalMethod.CHEQUE
        assert to_enum(WithdrawalMethod.UPI, WithdrawalMethod) is WithdrawalMethod.UPI
        assert to_enum("Paypal", WithdrawalMethod) is None
