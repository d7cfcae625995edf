"""Unit tests for partitioned chart store persistence."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from core.config import ChartVaultConfig
from core.errors import ChartVaultStoreError, StorageWriteFailed
from core.types import SnapshotItem
from store.chart_store import ChartStore

_DATE = date(2026, 1, 2)


def _store(tmp_path) -> ChartStore:
    config = replace(
        ChartVaultConfig.from_env(),
        data_root=tmp_path / "data",
        staging_dir=tmp_path / "staging",
    )
    return ChartStore(config)


def _item(rank: int, previous_rank: int | None = None) -> SnapshotItem:
    return SnapshotItem(
        rank=rank,
        item_id=f"spotify:track:{rank}",
        display_name=f"Song {rank}",
        contributor_names="Artist A, Artist B",
        source_label="Label",
        peak_rank=1,
        previous_rank=previous_rank,
        days_tracked=3,
        metric_value=42000,
    )


def _write_partition(store: ChartStore, items: list[SnapshotItem], snapshot_date: date = _DATE) -> None:
    with store.open_partition("gb", snapshot_date) as writer:
        for item in items:
            writer.insert_row(snapshot_date, len(items), item)
        writer.commit(declared_total=len(items), failed_count=0, artifact_label="chart.csv")


def test_committed_partition_round_trips_items(tmp_path) -> None:
    """Stored rows should load back unchanged and in order."""
    store = _store(tmp_path)
    items = [_item(1, previous_rank=4), _item(2)]
    _write_partition(store, items)

    manifest, stored = store.load_items("gb", _DATE)

    assert stored == items and manifest.inserted_count == 2


def test_record_exists_only_after_commit(tmp_path) -> None:
    """Uncommitted rows should never count as ingested."""
    store = _store(tmp_path)

    with store.open_partition("gb", _DATE) as writer:
        writer.insert_row(_DATE, 1, _item(1))
        exists_before_commit = store.record_exists("gb", _DATE)
        writer.commit(declared_total=1, failed_count=0, artifact_label="chart.csv")

    assert exists_before_commit is False and store.record_exists("gb", _DATE)


def test_abandoned_partition_leaves_nothing_behind(tmp_path) -> None:
    """A writer closed without commit should remove its pending rows."""
    store = _store(tmp_path)

    with store.open_partition("gb", _DATE) as writer:
        writer.insert_row(_DATE, 1, _item(1))

    assert store.list_dates("gb") == [] and not any((tmp_path / "data" / "charts" / "gb").iterdir())


def test_insert_row_rejects_duplicate_rank(tmp_path) -> None:
    """Two rows with one rank cannot share a partition."""
    store = _store(tmp_path)

    with store.open_partition("gb", _DATE) as writer:
        writer.insert_row(_DATE, 2, _item(1))
        with pytest.raises(StorageWriteFailed):
            writer.insert_row(_DATE, 2, _item(1))

    assert True


def test_insert_row_rejects_foreign_date(tmp_path) -> None:
    """Rows must carry the partition date."""
    store = _store(tmp_path)

    with store.open_partition("gb", _DATE) as writer:
        with pytest.raises(StorageWriteFailed):
            writer.insert_row(date(2026, 1, 3), 1, _item(1))

    assert True


def test_recommit_replaces_previous_partition(tmp_path) -> None:
    """Forced re-ingest should replace the stored rows."""
    store = _store(tmp_path)
    _write_partition(store, [_item(1), _item(2)])
    _write_partition(store, [_item(1)])

    _, stored = store.load_items("gb", _DATE)

    assert len(stored) == 1


def test_list_dates_is_sorted(tmp_path) -> None:
    """Committed dates should list oldest first."""
    store = _store(tmp_path)
    _write_partition(store, [_item(1)], date(2026, 1, 3))
    _write_partition(store, [_item(1)], date(2026, 1, 1))

    assert store.list_dates("gb") == [date(2026, 1, 1), date(2026, 1, 3)]


def test_read_manifest_missing_partition_raises(tmp_path) -> None:
    """Reading an unknown partition should raise a store error."""
    with pytest.raises(ChartVaultStoreError):
        _store(tmp_path).read_manifest("gb", _DATE)
    assert True


def test_invalid_source_key_raises_store_error(tmp_path) -> None:
    """Source keys with path characters should be refused."""
    with pytest.raises(ChartVaultStoreError):
        _store(tmp_path).record_exists("../gb", _DATE)
    assert True


def test_commit_writes_lance_mirror(tmp_path) -> None:
    """Committed partitions should carry a columnar Lance copy."""
    lance = pytest.importorskip("lance")
    store = _store(tmp_path)
    _write_partition(store, [_item(1), _item(2, previous_rank=1)])

    dataset = lance.dataset(str(tmp_path / "data" / "charts" / "gb" / "2026-01-02" / "data.lance"))

    assert dataset.count_rows() == 2
