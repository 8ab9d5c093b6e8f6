"""Base models shared across the ledger and lifecycle code."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# Collections in the hosted record store. Project tables are named after the
# project itself (see ``estate_ledger.models.property``).
CLIENTS = "Clients"
BALANCE = "Balance"
PAYMENT_RECORD = "Payment Record"
DOCUMENTS = "Documents"

Row = dict[str, Any]


@dataclass(frozen=True)
class UnitKey:
    """Identity of a lot: ``(project, block, lot)``.

    Block and lot are held as stripped strings; the store keeps them as
    text and some project tables hand them back as numbers.
    """

    project: str
    block: str
    lot: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "block", str(self.block).strip())
        object.__setattr__(self, "lot", str(self.lot).strip())

    def balance_filter(self) -> Row:
        """Filter matching this unit's row in ``Balance``."""
        return {"Project": self.project, "Block": self.block, "Lot": self.lot}

    def property_filter(self) -> Row:
        """Filter matching this unit's row in its project table."""
        return {"Block": self.block, "Lot": self.lot}

    def __str__(self) -> str:
        return f"{self.project}/{self.block}/{self.lot}"


@dataclass
class Event:
    """Standard event envelope for lifecycle and ledger notifications."""

    event_id: str
    event_type: str  # entity.action (e.g., payment.applied)
    event_time: datetime
    source: str  # Service/system that generated
    subject: str  # Unit affected, "<project>/<block>/<lot>"
    data: dict
    metadata: dict = field(default_factory=dict)
