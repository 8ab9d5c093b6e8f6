"""Payment application: advance a unit's ledger and keep an audit trail."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from estate_ledger.events import BALANCE_UPDATED, PAYMENT_APPLIED, EventPublisher
from estate_ledger.exceptions import RecordNotFoundError, ValidationError
from estate_ledger.ledger.calculator import (
    LedgerSnapshot,
    apply_payment,
    is_complete,
    parse_payment_amount,
    parse_penalty_amount,
)
from estate_ledger.models.base import BALANCE, PAYMENT_RECORD, Row, UnitKey
from estate_ledger.models.enums import DueDate, PaymentType, VatStatus
from estate_ledger.models.ledger import (
    AMOUNT,
    DUE_DATE,
    EDITABLE_BALANCE_FIELDS,
    IDEMPOTENCY_KEY,
    MONTHS_PAID_COUNT,
    MONTHS_PAID_LABEL,
    NAME,
    NUMERIC_BALANCE_FIELDS,
    REMAINING_BALANCE,
    TERMS,
    VAT,
    Balance,
    PaymentInput,
    PaymentRecord,
    PaymentResult,
)
from estate_ledger.models.values import is_blank, to_amount, to_count, to_text
from estate_ledger.saga import Saga, SagaStep
from estate_ledger.store.base import RecordStore

logger = logging.getLogger(__name__)


def _choice(enum_type, value: Any, label: str) -> str:
    try:
        return enum_type(value).value
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(f"{label} must be one of: {allowed} (got {value!r})") from None


class PaymentApplicationService:
    """Apply payments to Balance rows and record them in ``Payment Record``.

    A payment is two writes: the Balance update, which must succeed, and
    the audit row, which may fail without undoing the first.
    """

    def __init__(self, store: RecordStore, publisher: EventPublisher | None = None) -> None:
        self.store = store
        self.publisher = publisher or EventPublisher()

    def _balance_row(self, balance_id: UnitKey) -> Row:
        row = self.store.get(BALANCE, balance_id.balance_filter())
        if row is None:
            raise RecordNotFoundError(f"No Balance row for {balance_id}")
        return row

    def get_balance(self, balance_id: UnitKey) -> Balance:
        """Current ledger of a unit.

        Raises
        ------
        RecordNotFoundError
            If the unit has no Balance row.
        """
        return Balance.from_row(self._balance_row(balance_id))

    def _find_replay(self, balance_id: UnitKey, idempotency_key: str | None) -> Row | None:
        """Payment Record already written for this key on this unit.

        Raises
        ------
        ValidationError
            If the key was used for a payment on another unit.
        """
        if not idempotency_key:
            return None
        existing = self.store.list(PAYMENT_RECORD, {IDEMPOTENCY_KEY: idempotency_key})
        if not existing:
            return None
        same_unit = self.store.list(
            PAYMENT_RECORD,
            {IDEMPOTENCY_KEY: idempotency_key, **balance_id.balance_filter()},
        )
        if not same_unit:
            other = PaymentRecord.from_row(existing[0]).key
            raise ValidationError(
                f"Idempotency key {idempotency_key!r} was already used for {other}, not {balance_id}"
            )
        return same_unit[0]

    def apply_payment(self, balance_id: UnitKey, payment: PaymentInput) -> PaymentResult:
        """Apply one payment to a unit's ledger.

        Parameters
        ----------
        balance_id : UnitKey
            Unit whose Balance row is charged.
        payment : PaymentInput
            Amount and the details recorded with it.

        Returns
        -------
        PaymentResult
            The updated Balance, the Payment Record (None if the audit
            write failed) and any warnings. A payment whose idempotency key
            was already recorded returns the current Balance with
            ``replayed=True`` and writes nothing.

        Raises
        ------
        InvalidAmount
            If the amount is negative or not numeric, or the penalty is not
            numeric. A zero or negative penalty is left off the record.
        ValidationError
            If the payment type, due date or VAT status is unknown, no
            buyer holds the ledger, or the idempotency key was used on
            another unit.
        RecordNotFoundError
            If the unit has no Balance row.
        PersistenceError
            If the Balance update failed. No audit row was written.
        """
        amount = parse_payment_amount(payment.amount)
        penalty = parse_penalty_amount(payment.penalty)
        payment_type = _choice(PaymentType, payment.payment_type, "Payment type")
        due_date = _choice(DueDate, payment.due_date, "Due date")
        vat = _choice(VatStatus, payment.vat, "VAT status")

        replay = self._find_replay(balance_id, payment.idempotency_key)
        if replay is not None:
            logger.info(
                "Payment %s already recorded for %s, not applying again",
                payment.idempotency_key,
                balance_id,
            )
            return PaymentResult(
                balance=self.get_balance(balance_id),
                payment_record=PaymentRecord.from_row(replay),
                replayed=True,
            )

        balance = self.get_balance(balance_id)
        if not balance.is_assigned:
            raise ValidationError(f"No buyer holds the ledger for {balance_id}")
        if is_complete(balance):
            logger.warning("Ledger for %s is already complete; applying payment anyway", balance_id)

        update = apply_payment(LedgerSnapshot.of(balance), amount)
        patch: Row = {
            AMOUNT: update.new_amount_paid,
            REMAINING_BALANCE: update.new_remaining_balance,
            MONTHS_PAID_COUNT: str(update.new_months_paid_count),
            DUE_DATE: due_date,
            VAT: vat,
        }
        if payment.months_paid_label is not None:
            patch[MONTHS_PAID_LABEL] = to_text(payment.months_paid_label)
        record =PaymentRecord(
            name=balance.name,
            amount=amount,
            key=balance_id,
            payment_type=payment_type,
            payment_month_label=to_text(payment.payment_month_label),
            due_date=due_date,
            vat=vat,
            penalty=penalty,
            idempotency_key=payment.idempotency_key or None,
        )

        saga = Saga(
            "apply_payment",
            [
                SagaStep("update_balance", lambda: self._write_balance(balance_id, patch)),
                SagaStep(
                    "record_payment",
                    lambda: self.store.insert(PAYMENT_RECORD, record.to_row()),
                    critical=False,
                ),
            ],
            unit=str(balance_id),
        )
        outcome = saga.run()

        inserted = outcome.results.get("record_payment")
        result = PaymentResult(
            balance=Balance.from_row(outcome.results["update_balance"]),
            payment_record=PaymentRecord.from_row(inserted) if inserted else None,
            warnings=outcome.warnings,
        )
        self.publisher.publish(
            PAYMENT_APPLIED,
            balance_id,
            {
                "buyer": balance.name,
                "amount": amount,
                "payment_type": payment_type,
                "amount_paid": update.new_amount_paid,
                "remaining_balance": update.new_remaining_balance,
                "months_paid": update.new_months_paid_count,
                "complete": is_complete(result.balance),
            },
            warnings=result.warnings,
        )
        return result

    def _write_balance(self, balance_id: UnitKey, patch: Row) -> Row:
        updated = self.store.update(BALANCE, balance_id.balance_filter(), patch)
        if not updated:
            raise RecordNotFoundError(f"Balance row for {balance_id} disappeared")
        return updated[0]

    def update_balance_details(self, balance_id: UnitKey, changes: Mapping[str, Any]) -> Balance:
        """Correct ledger columns by hand.

        Money columns are parsed leniently (blank clears them), counters
        must be whole numbers, and ``Due Date`` must be 15th or 30th.

        Raises
        ------
        ValidationError
            If a column is not editable or a value does not fit it.
        RecordNotFoundError
            If the unit has no Balance row.
        """
        unknown = sorted(name for name in changes if name not in EDITABLE_BALANCE_FIELDS)
        if unknown:
            raise ValidationError(f"Balance fields {unknown} cannot be edited")

        patch: Row = {}
        for name, value in changes.items():
            if name in NUMERIC_BALANCE_FIELDS:
                patch[name] = to_amount(value, default=None)
            elif name in (TERMS, MONTHS_PAID_COUNT):
                count = to_count(value)
                if count is None and not is_blank(value):
                    raise ValidationError(f"{name} must be a whole number (got {value!r})")
                patch[name] = count if name == TERMS else (None if count is None else str(count))
            elif name == DUE_DATE:
                patch[name] = _choice(DueDate, value, "Due date")
            else:
                patch[name] = to_text(value)

        self._balance_row(balance_id)
        balance = Balance.from_row(self._write_balance(balance_id, patch))
        logger.info("Updated %s on Balance %s", ", ".join(sorted(patch)), balance_id)
        self.publisher.publish(
            BALANCE_UPDATED,
            balance_id,
            {"fields": sorted(patch), "changes": patch},
        )
        return balance

    def payment_history(self, balance_id: UnitKey) -> list[PaymentRecord]:
        """Payments recorded against the unit's current buyer, oldest first."""
        balance = self.get_balance(balance_id)
        if not balance.is_assigned:
            return []
        criteria = {NAME: balance.name, **balance_id.balance_filter()}
        records = [PaymentRecord.from_row(row) for row in self.store.list(PAYMENT_RECORD, criteria)]
        return sorted(
            records,
            key=lambda record: (record.created_at or datetime.min, record.record_id or 0),
        )

    def total_paid(self, balance_id: UnitKey) -> Decimal:
        """Sum of recorded payments for the unit's current buyer."""
        return sum((record.amount for record in self.payment_history(balance_id)), Decimal("0"))
