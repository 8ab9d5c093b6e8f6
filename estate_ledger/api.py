"""Single entry point for back-office callers."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from estate_ledger.config import EstateLedgerConfig
from estate_ledger.events import EventPublisher, build_sink
from estate_ledger.ledger.completion import is_payment_complete
from estate_ledger.lifecycle.coordinator import PropertyLifecycleCoordinator, TransitionResult
from estate_ledger.models.base import UnitKey
from estate_ledger.models.ledger import Balance, PaymentInput, PaymentRecord, PaymentResult
from estate_ledger.payments.service import PaymentApplicationService
from estate_ledger.store.base import RecordStore
from estate_ledger.store.memory import InMemoryRecordStore

logger = logging.getLogger(__name__)


class EstateLedger:
    """Property lifecycle, payments and completion over one record store.

    Example
    -------
    >>> ledger = EstateLedger(InMemoryRecordStore())
    >>> result = ledger.sell_property(unit_row, {"Owner": "Juan Dela Cruz"})
    >>> ledger.apply_payment(result.property_id, PaymentInput(amount="12500"))
    """

    def __init__(self, store: RecordStore, publisher: EventPublisher | None = None) -> None:
        self.store = store
        self.publisher = publisher or EventPublisher()
        self.lifecycle = PropertyLifecycleCoordinator(store, self.publisher)
        self.payments = PaymentApplicationService(store, self.publisher)

    @classmethod
    def from_config(cls, config: EstateLedgerConfig | None = None) -> "EstateLedger":
        """Build the store and event sink named by ``config``."""
        config = config or EstateLedgerConfig.from_env()

        if config.store_backend == "postgres":
            from estate_ledger.store.postgres import PostgresRecordStore

            store: RecordStore = PostgresRecordStore(config.postgres.connection_string)
        else:
            store = InMemoryRecordStore()

        publisher = EventPublisher(build_sink(config.events, config.kafka), config.events)
        logger.info(
            "Estate ledger ready: store=%s, events=%s",
            config.store_backend,
            config.events.sink,
        )
        return cls(store, publisher)

    def sell_property(
        self,
        property_row: Mapping[str, Any],
        sale_details: Mapping[str, Any] | None = None,
        project: str | None = None,
    ) -> TransitionResult:
        return self.lifecycle.sell(property_row, sale_details, project=project)

    def reopen_property(self, property_row: Mapping[str, Any], project: str | None = None) -> TransitionResult:
        return self.lifecycle.reopen(property_row, project=project)

    def apply_payment(self, balance_id: UnitKey, payment: PaymentInput) -> PaymentResult:
        return self.payments.apply_payment(balance_id, payment)

    def is_payment_complete(self, balance: Balance | Mapping[str, Any] | UnitKey) -> bool:
        """Completion flag for a Balance, a raw row, or a unit to look up."""
        if isinstance(balance, UnitKey):
            balance = self.payments.get_balance(balance)
        return is_payment_complete(balance)

    def update_balance_details(self, balance_id: UnitKey, changes: Mapping[str, Any]) -> Balance:
        return self.payments.update_balance_details(balance_id, changes)

    def payment_history(self, balance_id: UnitKey) -> list[PaymentRecord]:
        return self.payments.payment_history(balance_id)

    def get_balance(self, balance_id: UnitKey) -> Balance:
        return self.payments.get_balance(balance_id)

    def close(self) -> None:
        """Flush the event sink and release the store connection."""
        self.publisher.close()
        close = getattr(self.store, "close", None)
        if close is not None:
            close()
