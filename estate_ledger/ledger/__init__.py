"""Ledger arithmetic and completion policy."""

from estate_ledger.ledger.calculator import (
    LedgerSnapshot,
    LedgerUpdate,
    apply_payment,
    is_complete,
    parse_payment_amount,
    parse_penalty_amount,
)
from estate_ledger.ledger.completion import ensure_payment_allowed, is_payment_complete

__all__ = [
    "LedgerSnapshot",
    "LedgerUpdate",
    "apply_payment",
    "ensure_payment_allowed",
    "is_complete",
    "is_payment_complete",
    "parse_payment_amount",
    "parse_penalty_amount",
]
