"""Archive export for committed chart partitions.

This module writes a stored partition back out in the archived JSON
chart format so it can be shared or re-imported elsewhere.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

from core.constants import CHART_TITLE
from core.errors import ChartVaultStoreError
from core.logging_config import get_logger
from core.types import SnapshotItem
from store.chart_store import ChartStore

_LOGGER = get_logger(__name__)


def archive_file_path(output_dir: Path, source_key: str, snapshot_date: date) -> Path:
    """Return ``<output>/<date>/spotify_<key>_daily_<date>.json``."""
    date_label = snapshot_date.isoformat()
    return output_dir / date_label / f"spotify_{source_key}_daily_{date_label}.json"


def track_to_archive_payload(item: SnapshotItem) -> dict[str, object]:
    """Map a stored item onto the archived track field names."""
    return {
        "rank": item.rank,
        "uri": item.item_id,
        "artist_names": item.contributor_names,
        "track_name": item.display_name,
        "source": item.source_label,
        "peak_rank": item.peak_rank,
        "previous_rank": item.previous_rank,
        "days_on_chart": item.days_tracked,
        "streams": item.metric_value,
    }


def export_archive(
    store: ChartStore,
    source_key: str,
    snapshot_date: date,
    output_dir: Path,
) -> Path:
    """Write one committed partition as an archive JSON file.

    Args:
        store: Chart store.
        source_key: Partition key.
        snapshot_date: Partition date.
        output_dir: Archive root directory.

    Returns:
        Written archive file path.

    Raises:
        ChartVaultStoreError: If the partition is missing or the file
            cannot be written.
    """
    manifest, items = store.load_items(source_key, snapshot_date)
    payload = {
        "title": CHART_TITLE,
        "country": manifest.source_key.upper(),
        "date": manifest.date.isoformat(),
        "total_tracks": len(items),
        "tracks": [track_to_archive_payload(item) for item in items],
    }
    target_path = archive_file_path(output_dir, manifest.source_key, manifest.date)
    try:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        target_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as error:
        raise ChartVaultStoreError(
            f"Failed to write archive {target_path}: {error}. "
            "Check that the output directory is writable."
        ) from error
    _LOGGER.info(
        "archive_exported",
        source_key=manifest.source_key,
        date=manifest.date.isoformat(),
        path=str(target_path),
        track_count=len(items),
    )
    return target_path
