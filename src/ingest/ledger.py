"""Ingestion ledger over committed storage state.

The ledger keeps no journal of its own: a (source key, date) pair
counts as ingested exactly when the store holds a committed partition
for it. The store's commit is therefore the ledger write.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol


class RecordExistence(Protocol):
    """Storage query the ledger delegates to."""

    def record_exists(self, source_key: str, snapshot_date: date) -> bool: ...


class IngestionLedger:
    """Duplicate-avoidance gate for acquisition targets."""

    def __init__(self, store: RecordExistence, enabled: bool = True) -> None:
        """Create a ledger.

        Args:
            store: Storage answering existence queries.
            enabled: When false, the store is never consulted and every
                target is treated as new (forced re-fetch).
        """
        self._store = store
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def exists(self, source_key: str, snapshot_date: date) -> bool:
        """Return whether the pair was already ingested and must be skipped."""
        if not self._enabled:
            return False
        return self._store.record_exists(source_key, snapshot_date)
