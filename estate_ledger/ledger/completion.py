"""Completion policy: whether a ledger still accepts payments."""

from typing import Any, Mapping

from estate_ledger.exceptions import PaymentCompletedError
from estate_ledger.ledger.calculator import is_complete
from estate_ledger.models.ledger import Balance


def _as_balance(balance: Balance | Mapping[str, Any]) -> Balance:
    if isinstance(balance, Balance):
        return balance
    return Balance.from_row(balance)


def is_payment_complete(balance: Balance | Mapping[str, Any]) -> bool:
    """Read-only completion flag for a Balance or a raw ``Balance`` row."""
    return is_complete(_as_balance(balance))


def ensure_payment_allowed(balance: Balance | Mapping[str, Any]) -> None:
    """Gate for callers offering a payment action.

    Raises
    ------
    PaymentCompletedError
        If the ledger is already complete.
    """
    resolved = _as_balance(balance)
    if is_complete(resolved):
        raise PaymentCompletedError(
            f"Ledger for {resolved.key} is fully paid; no further payments are accepted"
        )
