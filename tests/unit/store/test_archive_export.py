"""Unit tests for archive export."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import date

from core.config import ChartVaultConfig
from core.types import SnapshotItem
from store.archive_export import export_archive
from store.chart_store import ChartStore


def test_export_archive_writes_archived_chart_format(tmp_path) -> None:
    """Exported files should use the archive layout and field names."""
    config = replace(
        ChartVaultConfig.from_env(),
        data_root=tmp_path / "data",
        staging_dir=tmp_path / "staging",
    )
    store = ChartStore(config)
    snapshot_date = date(2026, 1, 2)
    item = SnapshotItem(
        rank=1,
        item_id="spotify:track:abc",
        display_name="Song A",
        contributor_names="Artist A",
        source_label="streaming",
        peak_rank=1,
        previous_rank=None,
        days_tracked=10,
        metric_value=50000,
    )
    with store.open_partition("gb", snapshot_date) as writer:
        writer.insert_row(snapshot_date, 1, item)
        writer.commit(declared_total=1, failed_count=0, artifact_label="chart.csv")

    archive_path = export_archive(store, "gb", snapshot_date, tmp_path / "out")

    payload = json.loads(archive_path.read_text(encoding="utf-8"))
    assert (
        archive_path == tmp_path / "out" / "2026-01-02" / "spotify_gb_daily_2026-01-02.json"
        and payload["country"] == "GB"
        and payload["total_tracks"] == 1
        and payload["tracks"][0]["uri"] == "spotify:track:abc"
        and payload["tracks"][0]["previous_rank"] is None
    )
