"""Numeric ledger calculator.

Pure functions: nothing here reads or writes the record store.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from estate_ledger.exceptions import InvalidAmount

if TYPE_CHECKING:
    from estate_ledger.models.ledger import Balance


@dataclass(frozen=True)
class LedgerSnapshot:
    """Ledger counters before a payment."""

    amount_paid: Decimal
    remaining_balance: Decimal
    months_paid_count: int

    @classmethod
    def of(cls, balance: Balance) -> LedgerSnapshot:
        """Snapshot of a Balance; cleared (null) counters read as zero."""
        return cls(
            amount_paid=balance.amount_paid or Decimal("0"),
            remaining_balance=balance.remaining_balance or Decimal("0"),
            months_paid_count=balance.months_paid_count or 0,
        )


@dataclass(frozen=True)
class LedgerUpdate:
    """Ledger counters after a payment."""

    new_amount_paid: Decimal
    new_remaining_balance: Decimal
    new_months_paid_count: int


def parse_payment_amount(value: Any) -> Decimal:
    """Parse a payment amount strictly.

    Unlike stored values, a payment entered by staff must be a plain
    non-negative number; separators and currency signs are not stripped.

    Raises
    ------
    InvalidAmount
        If the value is missing, not numeric, not finite or negative.
    """
    amount = _parse_number(value, "Payment amount")
    if amount < 0:
        raise InvalidAmount(f"Payment amount {value!r} is negative")
    return amount


def parse_penalty_amount(value: Any) -> Decimal | None:
    """Parse the penalty paid with a payment.

    Blank, zero and negative penalties mean no penalty and return ``None``.

    Raises
    ------
    InvalidAmount
        If the value is not numeric.
    """
    if value is None or str(value).strip() == "":
        return None
    penalty = _parse_number(value, "Penalty")
    return penalty if penalty > 0 else None


def _parse_number(value: Any, label: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidAmount(f"{label} {value!r} is not a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise InvalidAmount(f"{label} {value!r} is not a number") from exc
    if not amount.is_finite():
        raise InvalidAmount(f"{label} {value!r} is not a number")
    return amount


def apply_payment(prior: LedgerSnapshot, payment_amount: Any) -> LedgerUpdate:
    """Advance a ledger by one payment event.

    Value moves from the remaining balance to the amount paid, so their sum
    is unchanged. The remaining balance is not floored at zero: an
    overpayment leaves it negative. The months counter counts payment
    events and always advances by exactly one.

    Parameters
    ----------
    prior : LedgerSnapshot
        Counters before the payment.
    payment_amount : Any
        Amount of this payment only.

    Returns
    -------
    LedgerUpdate
        Counters after the payment.

    Raises
    ------
    InvalidAmount
        If ``payment_amount`` is negative or not numeric.
    """
    amount = parse_payment_amount(payment_amount)
    return LedgerUpdate(
        new_amount_paid=prior.amount_paid + amount,
        new_remaining_balance=prior.remaining_balance - amount,
        new_months_paid_count=prior.months_paid_count + 1,
    )


def is_complete(balance: Balance) -> bool:
    """Whether a ledger is fully paid.

    Exact equality on both sides: the amount paid equals the TCP and the
    payments counter equals the term length. Overpaid ledgers
    (``amount_paid > tcp``) are not complete. A ledger missing its TCP or
    term is never complete.
    """
    if balance.tcp is None or balance.amount_paid is None:
        return False
    if balance.terms is None or balance.months_paid_count is None:
        return False
    return balance.amount_paid == balance.tcp and balance.months_paid_count == balance.terms
