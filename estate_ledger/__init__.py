"""estate-ledger: property lifecycle and balance ledger orchestration."""

from estate_ledger.api import EstateLedger
from estate_ledger.config import EstateLedgerConfig
from estate_ledger.models import Balance, PaymentInput, PaymentRecord, PaymentResult, UnitKey

__version__ = "0.1.0"

__all__ = [
    "Balance",
    "EstateLedger",
    "EstateLedgerConfig",
    "PaymentInput",
    "PaymentRecord",
    "PaymentResult",
    "UnitKey",
    "__version__",
]
