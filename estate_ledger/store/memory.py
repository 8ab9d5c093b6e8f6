"""In-memory record store."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from estate_ledger.exceptions import PersistenceError
from estate_ledger.models.base import Row


def _matches(row: Mapping[str, Any], criteria: Mapping[str, Any]) -> bool:
    """Equality match; numbers and their text form compare equal (5 == "5")."""
    for column, expected in criteria.items():
        actual = row.get(column)
        if actual == expected:
            continue
        if actual is None or expected is None:
            return False
        if str(actual).strip() != str(expected).strip():
            return False
    return True


@dataclass
class InMemoryRecordStore:
    """Dict-backed store with the same semantics as the hosted one.

    Rows are copied on the way in and out so callers never share state
    with the store, ``id`` and ``created_at`` are assigned on insert, and
    updates are last-write-wins.
    """

    collections: dict[str, list[Row]] = field(default_factory=dict)
    _next_id: dict[str, int] = field(default_factory=dict)

    def seed(self, collection: str, rows: list[Mapping[str, Any]]) -> list[Row]:
        """Insert several rows at once (inventory seeding)."""
        return [self.insert(collection, row) for row in rows]

    def get(self, collection: str, key: Mapping[str, Any]) -> Row | None:
        for row in self.collections.get(collection, []):
            if _matches(row, key):
                return copy.deepcopy(row)
        return None

    def list(self, collection: str, filter: Mapping[str, Any] | None = None) -> list[Row]:
        rows = self.collections.get(collection, [])
        return [copy.deepcopy(row) for row in rows if _matches(row, filter or {})]

    def insert(self, collection: str, row: Mapping[str, Any]) -> Row:
        stored = copy.deepcopy(dict(row))
        next_id = self._next_id.get(collection, 1)
        stored.setdefault("id", next_id)
        self._next_id[collection] = max(next_id, int(stored["id"])) + 1
        if stored.get("created_at") is None:
            stored["created_at"] = datetime.now()
        self.collections.setdefault(collection, []).append(stored)
        return copy.deepcopy(stored)

    def update(self, collection: str, key: Mapping[str, Any], patch: Mapping[str, Any]) -> list[Row]:
        if not key:
            raise PersistenceError(f"Refusing to update every row of {collection!r}")
        updated = []
        for row in self.collections.get(collection, []):
            if _matches(row, key):
                row.update(copy.deepcopy(dict(patch)))
                updated.append(copy.deepcopy(row))
        return updated

    def delete(self, collection: str, filter: Mapping[str, Any]) -> int:
        if not filter:
            raise PersistenceError(f"Refusing to delete every row of {collection!r}")
        rows = self.collections.get(collection, [])
        kept = [row for row in rows if not _matches(row, filter)]
        self.collections[collection] = kept
        return len(rows) - len(kept)

    def summary(self) -> dict[str, int]:
        """Return row counts per collection."""
        return {name: len(rows) for name, rows in self.collections.items()}
