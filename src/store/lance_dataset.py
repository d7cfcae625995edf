"""Lance columnar mirror for committed partitions.

This module writes partition rows to Apache Lance when available.
JSONL rows remain the source of truth; the Lance copy serves analytics.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from core.constants import LANCE_DIR_NAME
from core.errors import ChartVaultStoreError
from core.types import SnapshotItem


def try_write_lance_partition(
    partition_dir: Path,
    snapshot_date: date,
    declared_total: int,
    items: list[SnapshotItem],
) -> bool:
    """Attempt to write partition rows to Apache Lance.

    Args:
        partition_dir: Partition directory being committed.
        snapshot_date: Partition date column.
        declared_total: Declared snapshot size column.
        items: Rows persisted into the partition.

    Returns:
        Whether the Lance dataset was written.

    Raises:
        ChartVaultStoreError: If lance is installed but the write fails.
    """
    try:
        import lance
        import pyarrow as pa
    except ImportError:
        return False

    table = pa.table(
        {
            "date": pa.array([snapshot_date] * len(items), type=pa.date32()),
            "declared_total": pa.array([declared_total] * len(items), type=pa.int64()),
            "rank": pa.array([item.rank for item in items], type=pa.int64()),
            "item_id": [item.item_id for item in items],
            "display_name": [item.display_name for item in items],
            "contributor_names": [item.contributor_names for item in items],
            "source_label": [item.source_label for item in items],
            "peak_rank": pa.array([item.peak_rank for item in items], type=pa.int64()),
            "previous_rank": pa.array([item.previous_rank for item in items], type=pa.int64()),
            "days_tracked": pa.array([item.days_tracked for item in items], type=pa.int64()),
            "metric_value": pa.array([item.metric_value for item in items], type=pa.int64()),
        }
    )
    lance_uri = str(partition_dir / LANCE_DIR_NAME)
    try:
        lance.write_dataset(table, lance_uri, mode="overwrite")
    except Exception as error:
        raise ChartVaultStoreError(
            f"Failed to write Lance dataset at {lance_uri}: {error}. "
            "Validate lance/pyarrow compatibility and retry the load."
        ) from error
    return True
