"""Per-row partition writes with atomic commit.

Rows for one (source key, date) partition are appended to a pending
directory. ``commit`` writes the manifest and renames the pending
directory into place, so a partition is either fully committed or
invisible to existence checks.
"""

from __future__ import annotations

import json
import shutil
from datetime import date, datetime, timezone
from pathlib import Path
from types import TracebackType
from typing import TextIO

from core.constants import MANIFEST_FILE_NAME, RECORDS_FILE_NAME
from core.errors import ChartVaultStoreError, StorageWriteFailed
from core.types import PartitionManifest, SnapshotItem
from store.lance_dataset import try_write_lance_partition
from store.record_payload import manifest_to_payload, row_to_payload


class PartitionWriter:
    """Append-only writer for one pending partition."""

    def __init__(
        self,
        source_key: str,
        snapshot_date: date,
        pending_dir: Path,
        final_dir: Path,
    ) -> None:
        self._source_key = source_key
        self._snapshot_date = snapshot_date
        self._pending_dir = pending_dir
        self._final_dir = final_dir
        self._items: list[SnapshotItem] = []
        self._seen_ranks: set[int] = set()
        self._committed = False
        if pending_dir.exists():
            shutil.rmtree(pending_dir)
        pending_dir.mkdir(parents=True)
        self._handle: TextIO | None = (pending_dir / RECORDS_FILE_NAME).open(
            "a", encoding="utf-8"
        )

    def __enter__(self) -> "PartitionWriter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self._close()
        if not self._committed:
            shutil.rmtree(self._pending_dir, ignore_errors=True)

    @property
    def inserted_count(self) -> int:
        return len(self._items)

    def insert_row(self, snapshot_date: date, declared_total: int, item: SnapshotItem) -> None:
        """Persist one row.

        Args:
            snapshot_date: Row date; must match the partition date.
            declared_total: Declared snapshot size column.
            item: Row columns.

        Raises:
            StorageWriteFailed: If the row violates the partition schema
                or cannot be written.
        """
        if self._handle is None:
            raise StorageWriteFailed(
                f"Partition {self._source_key}:{self._snapshot_date} is closed for writes."
            )
        _validate_row(self._source_key, self._snapshot_date, snapshot_date, item)
        if item.rank in self._seen_ranks:
            raise StorageWriteFailed(
                f"Duplicate rank {item.rank} in partition {self._source_key}:{snapshot_date}."
            )
        line = json.dumps(row_to_payload(snapshot_date, declared_total, item), sort_keys=True)
        try:
            self._handle.write(line + "\n")
            self._handle.flush()
        except OSError as error:
            raise StorageWriteFailed(
                f"Failed to append rank {item.rank} to {self._pending_dir}: {error}."
            ) from error
        self._seen_ranks.add(item.rank)
        self._items.append(item)

    def commit(
        self,
        declared_total: int,
        failed_count: int,
        artifact_label: str,
    ) -> PartitionManifest:
        """Publish the partition and record the ingestion fact.

        Args:
            declared_total: Declared snapshot size.
            failed_count: Rows rejected during the load.
            artifact_label: Originating artifact name.

        Returns:
            Committed partition manifest.

        Raises:
            ChartVaultStoreError: If no rows were written or publishing fails.
        """
        self._close()
        if not self._items:
            raise ChartVaultStoreError(
                f"Refusing to commit empty partition {self._source_key}:{self._snapshot_date}: "
                "every row failed to persist. Inspect row_insert_failed events and retry."
            )
        lance_written = try_write_lance_partition(
            self._pending_dir, self._snapshot_date, declared_total, self._items
        )
        manifest = PartitionManifest(
            source_key=self._source_key,
            date=self._snapshot_date,
            declared_total=declared_total,
            inserted_count=len(self._items),
            failed_count=failed_count,
            created_at=datetime.now(timezone.utc),
            artifact_label=artifact_label,
        )
        manifest_path = self._pending_dir / MANIFEST_FILE_NAME
        try:
            manifest_path.write_text(
                json.dumps(manifest_to_payload(manifest, lance_written), indent=2) + "\n",
                encoding="utf-8",
            )
            if self._final_dir.exists():
                shutil.rmtree(self._final_dir)
            self._pending_dir.rename(self._final_dir)
        except OSError as error:
            raise ChartVaultStoreError(
                f"Failed to commit partition at {self._final_dir}: {error}. "
                "Check write permissions and available disk space."
            ) from error
        self._committed = True
        return manifest

    def _close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


def _validate_row(
    source_key: str,
    partition_date: date,
    row_date: date,
    item: SnapshotItem,
) -> None:
    """Enforce the partition column contract for one row."""
    if row_date != partition_date:
        raise StorageWriteFailed(
            f"Row date {row_date} does not belong to partition {source_key}:{partition_date}."
        )
    if not item.item_id:
        raise StorageWriteFailed(f"Row rank {item.rank} is missing required column 'item_id'.")
    if item.rank < 1 or item.peak_rank < 1:
        raise StorageWriteFailed(f"Row rank {item.rank} has a non-positive rank column.")
    if item.days_tracked < 0 or item.metric_value < 0:
        raise StorageWriteFailed(f"Row rank {item.rank} has a negative counter column.")
