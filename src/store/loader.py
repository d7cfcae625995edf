"""Snapshot loading with row-level failure isolation.

This module inserts every snapshot item independently, counts the rows
that fail, commits the partition, and always removes the transient
artifact the snapshot came from. Partial loads are a normal outcome;
the counts returned to the caller are how they are surfaced.
"""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path

from core.artifacts import remove_transient_artifact
from core.constants import INSERT_PROGRESS_INTERVAL
from core.errors import StorageWriteFailed
from core.logging_config import get_logger
from core.types import LoadResult, RowFailure, Snapshot
from store.chart_store import ChartStore

_LOGGER = get_logger(__name__)


class SnapshotLoader:
    """Load normalized snapshots into the chart store."""

    def __init__(self, store: ChartStore) -> None:
        self._store = store

    def load(self, snapshot: Snapshot, artifact_path: Path | None = None) -> LoadResult:
        """Insert all snapshot items and commit the partition.

        Args:
            snapshot: Normalized snapshot.
            artifact_path: Transient artifact to delete afterwards.

        Returns:
            Inserted and failed row counts.

        Raises:
            ChartVaultStoreError: If the partition cannot be committed.
        """
        try:
            return self._load_partition(snapshot)
        finally:
            if artifact_path is not None:
                remove_transient_artifact(artifact_path)

    def _load_partition(self, snapshot: Snapshot) -> LoadResult:
        if snapshot.declared_total != len(snapshot.items):
            _LOGGER.warning(
                "declared_total_mismatch",
                source_key=snapshot.source_key,
                date=snapshot.date.isoformat(),
                declared_total=snapshot.declared_total,
                item_count=len(snapshot.items),
            )
        failures: list[RowFailure] = []
        with self._store.open_partition(snapshot.source_key, snapshot.date) as writer:
            for item in snapshot.items:
                try:
                    writer.insert_row(snapshot.date, snapshot.declared_total, item)
                except StorageWriteFailed as error:
                    _LOGGER.error(
                        "row_insert_failed",
                        source_key=snapshot.source_key,
                        date=snapshot.date.isoformat(),
                        rank=item.rank,
                        reason=str(error),
                        row=asdict(item),
                    )
                    failures.append(RowFailure(rank=item.rank, error=str(error)))
                    continue
                if writer.inserted_count % INSERT_PROGRESS_INTERVAL == 0:
                    _LOGGER.info(
                        "rows_inserted_progress",
                        source_key=snapshot.source_key,
                        inserted=writer.inserted_count,
                        total=len(snapshot.items),
                    )
            writer.commit(
                declared_total=snapshot.declared_total,
                failed_count=len(failures),
                artifact_label=snapshot.artifact_label,
            )
            inserted_count = writer.inserted_count
        _LOGGER.info(
            "snapshot_loaded",
            source_key=snapshot.source_key,
            date=snapshot.date.isoformat(),
            inserted_count=inserted_count,
            failed_count=len(failures),
        )
        return LoadResult(
            inserted_count=inserted_count,
            failed_count=len(failures),
            failures=tuple(failures),
        )
