"""Record store clients."""

from estate_ledger.store.base import RecordStore
from estate_ledger.store.memory import InMemoryRecordStore

__all__ = ["InMemoryRecordStore", "RecordStore"]
