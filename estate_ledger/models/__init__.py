"""Domain models for property inventory, balances and payments."""

from estate_ledger.models.base import (
    BALANCE,
    CLIENTS,
    DOCUMENTS,
    PAYMENT_RECORD,
    Event,
    Row,
    UnitKey,
)
from estate_ledger.models.enums import (
    DueDate,
    FieldKind,
    PaymentType,
    PropertyStatus,
    VatStatus,
)
from estate_ledger.models.ledger import (
    Balance,
    PaymentInput,
    PaymentRecord,
    PaymentResult,
)
from estate_ledger.models.property import (
    HAVAHILLS,
    LIVING_WATER,
    PROJECT_SCHEMAS,
    ProjectSchema,
    detect_schema,
    get_schema,
)

__all__ = [
    "BALANCE",
    "CLIENTS",
    "DOCUMENTS",
    "HAVAHILLS",
    "LIVING_WATER",
    "PAYMENT_RECORD",
    "PROJECT_SCHEMAS",
    "Balance",
    "DueDate",
    "Event",
    "FieldKind",
    "PaymentInput",
    "PaymentRecord",
    "PaymentResult",
    "PaymentType",
    "ProjectSchema",
    "PropertyStatus",
    "Row",
    "UnitKey",
    "VatStatus",
    "detect_schema",
    "get_schema",
]
