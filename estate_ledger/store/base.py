"""Record store contract used by the lifecycle and payment code."""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from estate_ledger.models.base import Row


class RecordStore(Protocol):
    """Keyed CRUD over named collections.

    Each call succeeds or fails on its own; there are no transactions that
    span calls. Failures surface as ``PersistenceError``. ``key`` and
    ``filter`` are column-to-value mappings matched by equality.
    """

    def get(self, collection: str, key: Mapping[str, Any]) -> Row | None:
        """First row matching ``key``, or None."""
        ...

    def list(self, collection: str, filter: Mapping[str, Any] | None = None) -> list[Row]:
        """All rows matching ``filter`` (all rows when None), oldest first."""
        ...

    def insert(self, collection: str, row: Mapping[str, Any]) -> Row:
        """Insert ``row`` and return it as stored (with ``id``)."""
        ...

    def update(self, collection: str, key: Mapping[str, Any], patch: Mapping[str, Any]) -> list[Row]:
        """Apply ``patch`` to every row matching ``key``; return the updated rows."""
        ...

    def delete(self, collection: str, filter: Mapping[str, Any]) -> int:
        """Delete every row matching ``filter``; return how many went."""
        ...
