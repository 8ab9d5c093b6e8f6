"""Pytest configuration and fixtures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

import pytest

from estate_ledger.api import EstateLedger
from estate_ledger.events import EventPublisher
from estate_ledger.exceptions import PersistenceError
from estate_ledger.lifecycle import PropertyLifecycleCoordinator
from estate_ledger.models import BALANCE, HAVAHILLS, LIVING_WATER, Row, UnitKey
from estate_ledger.payments import PaymentApplicationService
from estate_ledger.store.memory import InMemoryRecordStore

TODAY = date(2026, 3, 14)


@dataclass
class FaultyRecordStore(InMemoryRecordStore):
    """In-memory store that fails chosen ``(operation, collection)`` calls."""

    failures: set = field(default_factory=set)
    calls: list = field(default_factory=list)

    def fail_on(self, operation: str, collection: str) -> None:
        self.failures.add((operation, collection))

    def _check(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        if (operation, collection) in self.failures:
            raise PersistenceError(f"injected {operation} failure on {collection}")

    def get(self, collection: str, key: Mapping[str, Any]) -> Row | None:
        self._check("get", collection)
        return super().get(collection, key)

    def list(self, collection: str, filter: Mapping[str, Any] | None = None) -> list[Row]:
        self._check("list", collection)
        return super().list(collection, filter)

    def insert(self, collection: str, row: Mapping[str, Any]) -> Row:
        self._check("insert", collection)
        return super().insert(collection, row)

    def update(self, collection: str, key: Mapping[str, Any], patch: Mapping[str, Any]) -> list[Row]:
        self._check("update", collection)
        return super().update(collection, key, patch)

    def delete(self, collection: str, filter: Mapping[str, Any]) -> int:
        self._check("delete", collection)
        return super().delete(collection, filter)

    def writes(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] in ("insert", "update", "delete")]


class RecordingSink:
    """Event sink that keeps what it was given."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []
        self.closed = False

    def write_batch(self, topic: str, records: list[Any]) -> None:
        self.events.extend((topic, record) for record in records)

    def close(self) -> None:
        self.closed = True

    def types(self) -> list[str]:
        return [record.event_type for _, record in self.events]


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def store() -> FaultyRecordStore:
    """Fresh fault-injecting store for each test."""
    return FaultyRecordStore()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def publisher(sink: RecordingSink) -> EventPublisher:
    return EventPublisher(sink)


@pytest.fixture
def coordinator(store: FaultyRecordStore, publisher: EventPublisher) -> PropertyLifecycleCoordinator:
    return PropertyLifecycleCoordinator(store, publisher, today=lambda: TODAY)


@pytest.fixture
def payments(store: FaultyRecordStore, publisher: EventPublisher) -> PaymentApplicationService:
    return PaymentApplicationService(store, publisher)


@pytest.fixture
def ledger(store: FaultyRecordStore, publisher: EventPublisher) -> EstateLedger:
    ledger = EstateLedger(store, publisher)
    ledger.lifecycle.today = lambda: TODAY
    return ledger


@pytest.fixture
def living_water_unit(store: FaultyRecordStore) -> Row:
    """Available Living Water lot 3/12 with its pricing filled in."""
    return store.insert(
        LIVING_WATER.project,
        {
            "Block": "3",
            "Lot": "12",
            "Owner": "",
            "Status": "Available",
            "Lot Area": Decimal("150"),
            "Price per sqm": Decimal("3000"),
            "TSP": Decimal("450000"),
            "TCP": Decimal("460000"),
            "Net Contract Price": Decimal("450000"),
            "First MA": Decimal("12500"),
            "Term": "60",
        },
    )


@pytest.fixture
def havahills_unit(store: FaultyRecordStore) -> Row:
    """Available Havahills lot 1/4."""
    return store.insert(
        HAVAHILLS.project,
        {
            "Block": "1",
            "Lot": "4",
            "Buyers Name": "",
            "Status": "Available",
            "Lot Size": Decimal("200"),
            "Price": Decimal("3500"),
            "TCP": Decimal("749000"),
            "1ST MA": Decimal("15395.83"),
            "Terms": "48",
        },
    )


@pytest.fixture
def balance_key() -> UnitKey:
    return UnitKey(HAVAHILLS.project, "2", "7")


@pytest.fixture
def balance_row(store: FaultyRecordStore, balance_key: UnitKey) -> Row:
    """Ledger two payments in: 100000 paid of 500000 over 36 months."""
    return store.insert(
        BALANCE,
        {
            **balance_key.balance_filter(),
            "Name": "Maria Santos",
            "TCP": Decimal("500000"),
            "Amount": Decimal("100000"),
            "Remaining Balance": Decimal("400000"),
            "Months Paid": "2",
            "MONTHS PAID": "2",
            "Terms": "36",
            "Due Date": "15th",
            "Vat": "Non Vat",
        },
    )
