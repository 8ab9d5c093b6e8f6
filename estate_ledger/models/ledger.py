"""Balance ledger and payment audit models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from estate_ledger.models.base import Row, UnitKey
from estate_ledger.models.enums import DueDate, PaymentType, VatStatus
from estate_ledger.models.values import to_amount, to_count, to_text

# Balance columns
NAME = "Name"
TCP = "TCP"
AMOUNT = "Amount"
REMAINING_BALANCE = "Remaining Balance"
MONTHS_PAID_LABEL = "Months Paid"  # Free-text label
MONTHS_PAID_COUNT = "MONTHS PAID"  # Count of payments applied
TERMS = "Terms"
DUE_DATE = "Due Date"
VAT = "Vat"
MONTHLY_AMORTIZATION = "Monthly Amortization"
SQM = "sqm"
PRICE_PER_SQM = "pricepersqm"
PENALTY = "penalty"

# Payment Record columns
PAYMENT_TYPE = "Payment Type"
PAYMENT_PENALTY = "Penalty"
PAYMENT_MONTH = "Payment for the Month of"
IDEMPOTENCY_KEY = "Idempotency Key"

# Columns staff may correct on a Balance row
EDITABLE_BALANCE_FIELDS = (
    NAME,
    TERMS,
    TCP,
    AMOUNT,
    REMAINING_BALANCE,
    MONTHLY_AMORTIZATION,
    SQM,
    PRICE_PER_SQM,
    MONTHS_PAID_LABEL,
    MONTHS_PAID_COUNT,
    DUE_DATE,
)
NUMERIC_BALANCE_FIELDS = (TCP, AMOUNT, REMAINING_BALANCE, MONTHLY_AMORTIZATION, SQM, PRICE_PER_SQM)


@dataclass
class Balance:
    """One unit's running ledger, as read from the ``Balance`` table."""

    key: UnitKey
    name: str
    tcp: Decimal | None
    amount_paid: Decimal | None
    remaining_balance: Decimal | None
    months_paid_label: str
    months_paid_count: int | None
    terms: int | None
    due_date: str | None = None
    vat: str | None = None
    monthly_amortization: Decimal | None = None
    sqm: Decimal | None = None
    price_per_sqm: Decimal | None = None
    penalty: Decimal | None = None
    record_id: Any = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Balance":
        """Build a Balance from a store row, tolerating loose types."""
        return cls(
            key=UnitKey(to_text(row.get("Project")), row.get("Block", ""), row.get("Lot", "")),
            name=to_text(row.get(NAME)),
            tcp=to_amount(row.get(TCP), default=None),
            amount_paid=to_amount(row.get(AMOUNT), default=None),
            remaining_balance=to_amount(row.get(REMAINING_BALANCE), default=None),
            months_paid_label=to_text(row.get(MONTHS_PAID_LABEL)),
            months_paid_count=to_count(row.get(MONTHS_PAID_COUNT)),
            terms=to_count(row.get(TERMS)),
            due_date=row.get(DUE_DATE) or None,
            vat=row.get(VAT) or None,
            monthly_amortization=to_amount(row.get(MONTHLY_AMORTIZATION), default=None),
            sqm=to_amount(row.get(SQM), default=None),
            price_per_sqm=to_amount(row.get(PRICE_PER_SQM), default=None),
            penalty=to_amount(row.get(PENALTY), default=None),
            record_id=row.get("id"),
        )

    @property
    def is_assigned(self) -> bool:
        """Whether a buyer currently holds this unit's ledger."""
        return bool(self.name)


@dataclass
class PaymentInput:
    """One payment as entered by staff.

    ``amount`` is kept as given so that the calculator can reject
    negative or non-numeric input itself. ``months_paid_label`` replaces the
    Balance row's free-text ``Months Paid`` when given.
    """

    amount: Any
    payment_type: PaymentType | str = PaymentType.CASH
    payment_month_label: str = ""
    due_date: DueDate | str = DueDate.THIRTIETH
    vat: VatStatus | str = VatStatus.NON_VAT
    penalty: Any = None
    idempotency_key: str | None = None
    months_paid_label: str | None = None


@dataclass
class PaymentRecord:
    """Append-only audit row for one payment event."""

    name: str
    amount: Decimal
    key: UnitKey
    payment_type: str
    payment_month_label: str
    due_date: str
    vat: str
    penalty: Decimal | None = None
    idempotency_key: str | None = None
    created_at: datetime | None = None
    record_id: Any = None

    def to_row(self) -> Row:
        """Row inserted into ``Payment Record``; optional columns only when set."""
        row: Row = {
            NAME: self.name,
            AMOUNT: self.amount,
            "Project": self.key.project,
            "Block": self.key.block,
            "Lot": self.key.lot,
            PAYMENT_TYPE: self.payment_type,
            PAYMENT_MONTH: self.payment_month_label,
            DUE_DATE: self.due_date,
            VAT: self.vat,
        }
        if self.penalty is not None and self.penalty > 0:
            row[PAYMENT_PENALTY] = self.penalty
        if self.idempotency_key:
            row[IDEMPOTENCY_KEY] = self.idempotency_key
        return row

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PaymentRecord":
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            name=to_text(row.get(NAME)),
            amount=to_amount(row.get(AMOUNT)),
            key=UnitKey(to_text(row.get("Project")), row.get("Block", ""), row.get("Lot", "")),
            payment_type=to_text(row.get(PAYMENT_TYPE)),
            payment_month_label=to_text(row.get(PAYMENT_MONTH)),
            due_date=to_text(row.get(DUE_DATE)),
            vat=to_text(row.get(VAT)),
            penalty=to_amount(row.get(PAYMENT_PENALTY), default=None),
            idempotency_key=row.get(IDEMPOTENCY_KEY) or None,
            created_at=created_at,
            record_id=row.get("id"),
        )


@dataclass
class PaymentResult:
    """Outcome of one payment application."""

    balance: Balance
    payment_record: PaymentRecord | None
    warnings: list[str] = field(default_factory=list)
    replayed: bool = False

    @property
    def fully_recorded(self) -> bool:
        """False when the ledger advanced but the audit row was not written."""
        return self.payment_record is not None
