"""Tests for the payment application service."""

import logging
from decimal import Decimal

import pytest

from estate_ledger.exceptions import (
    InvalidAmount,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from estate_ledger.models import BALANCE, PAYMENT_RECORD, PaymentInput, PaymentType, UnitKey
from estate_ledger.payments import PaymentApplicationService

from conftest import FaultyRecordStore, RecordingSink


class TestApplyPayment:
    """Tests for PaymentApplicationService.apply_payment."""

    def test_scenario(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        """100000 paid of 500000, pay 15000 -> 115000 / 385000 / "3"."""
        result = payments.apply_payment(balance_key, PaymentInput(amount=15000, payment_month_label="March 2026"))

        stored = store.get(BALANCE, balance_key.balance_filter())
        assert stored["Amount"] == Decimal("115000")
        assert stored["Remaining Balance"] == Decimal("385000")
        assert stored["MONTHS PAID"] == "3"

        records = store.list(PAYMENT_RECORD)
        assert len(records) == 1
        assert records[0]["Amount"] == Decimal("15000")
        assert records[0]["Name"] == "Maria Santos"
        assert records[0]["Payment for the Month of"] == "March 2026"

        assert result.balance.amount_paid == Decimal("115000")
        assert result.balance.months_paid_count == 3
        assert result.payment_record.amount == Decimal("15000")
        assert result.fully_recorded is True
        assert result.replayed is False
        assert result.warnings == []

    def test_balance_patch_columns(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        payments.apply_payment(balance_key, PaymentInput(amount="15000", due_date="30th", vat="Vatable"))

        stored = store.get(BALANCE, balance_key.balance_filter())
        assert stored["Due Date"] == "30th"
        assert stored["Vat"] == "Vatable"
        assert stored["Months Paid"] == "2"  # free-text label is left alone
        assert stored["TCP"] == Decimal("500000")

    def test_negative_amount_no_mutation(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        before = store.get(BALANCE, balance_key.balance_filter())
        store.calls.clear()

        with pytest.raises(InvalidAmount):
            payments.apply_payment(balance_key, PaymentInput(amount=-50))

        assert store.get(BALANCE, balance_key.balance_filter()) == before
        assert store.list(PAYMENT_RECORD) == []
        assert store.writes() == []

    @pytest.mark.parametrize(
        "payment",
        [
            PaymentInput(amount="abc"),
            PaymentInput(amount=100, penalty="late"),
        ],
    )
    def test_invalid_amounts(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict, payment
    ) -> None:
        with pytest.raises(InvalidAmount):
            payments.apply_payment(balance_key, payment)
        assert store.writes() == [("insert", BALANCE)]

    @pytest.mark.parametrize(
        "payment,field",
        [
            (PaymentInput(amount=100, payment_type="bitcoin"), "Payment type"),
            (PaymentInput(amount=100, due_date="31st"), "Due date"),
            (PaymentInput(amount=100, vat="Exempt"), "VAT status"),
        ],
    )
    def test_invalid_choices(
        self, payments: PaymentApplicationService, balance_key: UnitKey, balance_row: dict, payment, field
    ) -> None:
        with pytest.raises(ValidationError, match=field):
            payments.apply_payment(balance_key, payment)

    def test_missing_balance(self, payments: PaymentApplicationService) -> None:
        with pytest.raises(RecordNotFoundError):
            payments.apply_payment(UnitKey("Havahills Estate", "9", "9"), PaymentInput(amount=100))

    def test_unassigned_ledger_rejected(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        store.update(BALANCE, balance_key.balance_filter(), {"Name": ""})

        with pytest.raises(ValidationError, match="No buyer"):
            payments.apply_payment(balance_key, PaymentInput(amount=100))

    def test_cleared_counters_start_from_zero(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        store.update(
            BALANCE,
            balance_key.balance_filter(),
            {"Amount": None, "Remaining Balance": None, "MONTHS PAID": None},
        )

        result = payments.apply_payment(balance_key, PaymentInput(amount="12500"))

        assert result.balance.amount_paid == Decimal("12500")
        assert result.balance.remaining_balance == Decimal("-12500")
        assert result.balance.months_paid_count == 1

    def test_loose_stored_values(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        """Money stored with separators still adds up."""
        store.update(
            BALANCE,
            balance_key.balance_filter(),
            {"Amount": "100,000.00", "Remaining Balance": "400,000.00", "MONTHS PAID": 2},
        )

        result = payments.apply_payment(balance_key, PaymentInput(amount=15000))

        assert result.balance.amount_paid == Decimal("115000.00")
        assert result.balance.remaining_balance == Decimal("385000.00")
        assert store.get(BALANCE, balance_key.balance_filter())["MONTHS PAID"] == "3"

    def test_penalty_recorded_only_when_positive(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        payments.apply_payment(balance_key, PaymentInput(amount=15000, penalty="0"))
        payments.apply_payment(balance_key, PaymentInput(amount=15000, penalty="750"))

        first, second = store.list(PAYMENT_RECORD)
        assert "Penalty" not in first
        assert second["Penalty"] == Decimal("750")

    def test_negative_penalty_left_off(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        result = payments.apply_payment(balance_key, PaymentInput(amount=15000, penalty="-5"))

        assert result.payment_record.penalty is None
        assert "Penalty" not in store.list(PAYMENT_RECORD)[0]
        assert store.get(BALANCE, balance_key.balance_filter())["Amount"] == Decimal("115000")

    def test_months_paid_label_written_when_given(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        payments.apply_payment(balance_key, PaymentInput(amount=15000, months_paid_label="3 of 36"))

        stored = store.get(BALANCE, balance_key.balance_filter())
        assert stored["Months Paid"] == "3 of 36"
        assert stored["MONTHS PAID"] == "3"

    def test_payment_type_recorded(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        payments.apply_payment(balance_key, PaymentInput(amount=15000, payment_type=PaymentType.GCASH))

        assert store.list(PAYMENT_RECORD)[0]["Payment Type"] == "GCASH"

    def test_balance_failure_writes_no_record(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        store.fail_on("update", BALANCE)

        with pytest.raises(PersistenceError):
            payments.apply_payment(balance_key, PaymentInput(amount=15000))
        assert store.list(PAYMENT_RECORD) == []

    def test_record_failure_keeps_balance(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        store.fail_on("insert", PAYMENT_RECORD)

        result = payments.apply_payment(balance_key, PaymentInput(amount=15000))

        assert result.payment_record is None
        assert result.fully_recorded is False
        assert result.warnings[0].startswith("record_payment:")
        assert store.get(BALANCE, balance_key.balance_filter())["Amount"] == Decimal("115000")

    def test_idempotency_key_replay(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        payment = PaymentInput(amount=15000, idempotency_key="OR-2026-0042")

        first = payments.apply_payment(balance_key, payment)
        store.calls.clear()
        second = payments.apply_payment(balance_key, payment)

        assert first.replayed is False
        assert second.replayed is True
        assert second.balance.amount_paid == Decimal("115000")
        assert second.payment_record.idempotency_key == "OR-2026-0042"
        assert len(store.list(PAYMENT_RECORD)) == 1
        assert store.writes() == []

    def test_idempotency_key_reused_on_another_unit(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        other_key = UnitKey(balance_key.project, "9", "9")
        store.insert(
            BALANCE,
            {
                **other_key.balance_filter(),
                "Name": "Jose Rizal",
                "TCP": Decimal("300000"),
                "Amount": Decimal("0"),
                "Remaining Balance": Decimal("300000"),
                "MONTHS PAID": "0",
                "Terms": "24",
            },
        )
        payments.apply_payment(balance_key, PaymentInput(amount=15000, idempotency_key="OR-2026-0042"))
        store.calls.clear()

        with pytest.raises(ValidationError, match="OR-2026-0042"):
            payments.apply_payment(other_key, PaymentInput(amount=12500, idempotency_key="OR-2026-0042"))

        assert store.get(BALANCE, other_key.balance_filter())["Amount"] == Decimal("0")
        assert len(store.list(PAYMENT_RECORD)) == 1
        assert store.writes() == []

    def test_complete_ledger_warns(
        self,
        payments: PaymentApplicationService,
        store: FaultyRecordStore,
        balance_key: UnitKey,
        balance_row: dict,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        store.update(
            BALANCE,
            balance_key.balance_filter(),
            {"Amount": Decimal("500000"), "Remaining Balance": Decimal("0"), "MONTHS PAID": "36"},
        )

        with caplog.at_level(logging.WARNING, logger="estate_ledger.payments"):
            result = payments.apply_payment(balance_key, PaymentInput(amount=100))

        assert result.balance.amount_paid == Decimal("500100")
        assert "already complete" in caplog.text

    def test_publishes_event(
        self, payments: PaymentApplicationService, sink: RecordingSink, balance_key: UnitKey, balance_row: dict
    ) -> None:
        payments.apply_payment(balance_key, PaymentInput(amount=15000))

        topic, event = sink.events[-1]
        assert topic == "dev.estate.balance-ledger"
        assert event.event_type == "payment.applied"
        assert event.data["amount"] == Decimal("15000")
        assert event.data["months_paid"] == 3
        assert event.data["complete"] is False


class TestUpdateBalanceDetails:
    """Tests for PaymentApplicationService.update_balance_details."""

    def test_updates_fields(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        balance = payments.update_balance_details(
            balance_key,
            {"Terms": "48", "Monthly Amortization": "8,333.33", "Due Date": "30th", "Name": " Maria C. Santos "},
        )

        assert balance.terms == 48
        assert balance.monthly_amortization == Decimal("8333.33")
        assert balance.due_date == "30th"
        assert balance.name == "Maria C. Santos"
        assert store.get(BALANCE, balance_key.balance_filter())["Terms"] == 48

    def test_months_paid_count_stored_as_text(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        payments.update_balance_details(balance_key, {"MONTHS PAID": 5})

        assert store.get(BALANCE, balance_key.balance_filter())["MONTHS PAID"] == "5"

    def test_blank_money_clears(
        self, payments: PaymentApplicationService, balance_key: UnitKey, balance_row: dict
    ) -> None:
        balance = payments.update_balance_details(balance_key, {"sqm": ""})

        assert balance.sqm is None

    def test_unknown_field_rejected(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        store.calls.clear()

        with pytest.raises(ValidationError, match="Project"):
            payments.update_balance_details(balance_key, {"Project": "Elsewhere"})
        assert store.writes() == []

    def test_bad_due_date_rejected(
        self, payments: PaymentApplicationService, balance_key: UnitKey, balance_row: dict
    ) -> None:
        with pytest.raises(ValidationError, match="Due date"):
            payments.update_balance_details(balance_key, {"Due Date": "1st"})

    def test_bad_terms_rejected(
        self, payments: PaymentApplicationService, balance_key: UnitKey, balance_row: dict
    ) -> None:
        with pytest.raises(ValidationError, match="whole number"):
            payments.update_balance_details(balance_key, {"Terms": "forever"})

    def test_missing_balance(self, payments: PaymentApplicationService) -> None:
        with pytest.raises(RecordNotFoundError):
            payments.update_balance_details(UnitKey("Havahills Estate", "9", "9"), {"Terms": "48"})

    def test_publishes_event(
        self, payments: PaymentApplicationService, sink: RecordingSink, balance_key: UnitKey, balance_row: dict
    ) -> None:
        payments.update_balance_details(balance_key, {"Terms": "48"})

        _, event = sink.events[-1]
        assert event.event_type == "balance.updated"
        assert event.data["fields"] == ["Terms"]


class TestPaymentHistory:
    """Tests for payment_history and total_paid."""

    def test_oldest_first_for_current_buyer(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        store.insert(PAYMENT_RECORD, {**balance_key.balance_filter(), "Name": "Previous Owner", "Amount": 99})
        payments.apply_payment(balance_key, PaymentInput(amount=15000, payment_month_label="March 2026"))
        payments.apply_payment(balance_key, PaymentInput(amount=16000, payment_month_label="April 2026"))

        history = payments.payment_history(balance_key)

        assert [record.payment_month_label for record in history] == ["March 2026", "April 2026"]
        assert payments.total_paid(balance_key) == Decimal("31000")

    def test_unassigned_ledger_has_no_history(
        self, payments: PaymentApplicationService, store: FaultyRecordStore, balance_key: UnitKey, balance_row: dict
    ) -> None:
        payments.apply_payment(balance_key, PaymentInput(amount=15000))
        store.update(BALANCE, balance_key.balance_filter(), {"Name": ""})

        assert payments.payment_history(balance_key) == []
