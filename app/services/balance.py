"""
Balance Calculator

Pure arithmetic over an associate's commissions and withdrawals. No I/O:
the services fetch the rows (or SQL aggregates) and hand the numbers here,
so the formula lives in exactly one place.

    available = earned - withdrawn (COMPLETED) - pending (PENDING)

FAILED and CANCELLED withdrawals release their amount back to the balance.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union


PAISE = Decimal("0.01")

Number = Union[Decimal, int, float, str, None]


def to_money(value: Number) -> Decimal:
    """Coerce a DB/aggregate value to a 2-place Decimal (None -> 0.00)."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(PAISE, rounding=ROUND_HALF_UP)


def calculate_commission_amount(sale_amount: Number, rate: Number) -> Decimal:
    """commission = sale x rate / 100, rounded half-up to paise."""
    sale = Decimal(str(sale_amount))
    pct = Decimal(str(rate))
    return (sale * pct / Decimal("100")).quantize(PAISE, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class AssociateBalance:
    total_commissions: int
    total_earned: Decimal
    total_withdrawn: Decimal
    pending_withdrawal: Decimal
    available_balance: Decimal
    avg_commission: Decimal

    def to_dict(self) -> dict:
        return {
            "total_commissions": self.total_commissions,
            "total_earned": self.total_earned,
            "total_withdrawn": self.total_withdrawn,
            "pending_withdrawal": self.pending_withdrawal,
            "available_balance": self.available_balance,
            "avg_commission": self.avg_commission,
        }


def compute_balance(
    commission_count: int,
    total_earned: Number,
    total_withdrawn: Number,
    pending_withdrawal: Number,
) -> AssociateBalance:
    """Build the balance snapshot from pre-aggregated sums."""
    earned = to_money(total_earned)
    withdrawn = to_money(total_withdrawn)
    pending = to_money(pending_withdrawal)
    count = int(commission_count or 0)

    avg = to_money(earned / count) if count else Decimal("0.00")

    return AssociateBalance(
        total_commissions=count,
        total_earned=earned,
        total_withdrawn=withdrawn,
        pending_withdrawal=pending,
        available_balance=earned - withdrawn - pending,
        avg_commission=avg,
    )

