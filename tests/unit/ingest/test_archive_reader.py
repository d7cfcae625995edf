"""Unit tests for archived chart JSON import."""

from __future__ import annotations

import json
import shutil
from dataclasses import replace
from datetime import date

import pytest

from core.config import ChartVaultConfig
from core.errors import ChartVaultIngestError
from ingest.archive_reader import import_archive, read_archive_document
from ingest.ledger import IngestionLedger
from store.chart_store import ChartStore
from store.loader import SnapshotLoader
from tests.fixture_paths import fixture_path


def _store(tmp_path) -> ChartStore:
    config = replace(
        ChartVaultConfig.from_env(),
        data_root=tmp_path / "data",
        staging_dir=tmp_path / "staging",
    )
    return ChartStore(config)


def _copy_archive(tmp_path):
    archive_root = tmp_path / "archive"
    shutil.copytree(fixture_path("archive"), archive_root)
    return archive_root


def test_read_archive_document_uses_name_and_content(tmp_path) -> None:
    """Country comes from the file name and date from the JSON content."""
    archive_root = _copy_archive(tmp_path)

    document = read_archive_document(archive_root / "2026-01-01" / "spotify_ar_daily_2026-01-01.json")

    assert (document.source_key, document.snapshot_date, document.declared_total) == (
        "ar",
        date(2026, 1, 1),
        3,
    )


def test_read_archive_document_defaults_declared_total(tmp_path) -> None:
    """A missing total should fall back to the chart size default."""
    archive_file = tmp_path / "spotify_gb_daily_2026-01-05.json"
    archive_file.write_text(json.dumps({"tracks": []}), encoding="utf-8")

    document = read_archive_document(archive_file)

    assert document.declared_total == 200 and document.snapshot_date == date(2026, 1, 5)


def test_read_archive_document_rejects_name_without_country(tmp_path) -> None:
    """Files not following the archive naming cannot be attributed to a region."""
    archive_file = tmp_path / "chart_2026-01-05.json"
    archive_file.write_text(json.dumps({"tracks": []}), encoding="utf-8")

    with pytest.raises(ChartVaultIngestError):
        read_archive_document(archive_file)


def test_import_archive_loads_valid_and_keeps_failed_files(tmp_path) -> None:
    """Valid files load and are deleted; files without tracks fail and stay."""
    archive_root = _copy_archive(tmp_path)
    store = _store(tmp_path)

    report = import_archive(archive_root, SnapshotLoader(store), IngestionLedger(store))

    assert (
        (report.succeeded, report.failed, report.inserted_rows) == (1, 1, 3)
        and not (archive_root / "2026-01-01" / "spotify_ar_daily_2026-01-01.json").exists()
        and (archive_root / "2026-01-01" / "spotify_mx_daily_2026-01-01.json").exists()
        and store.read_manifest("ar", date(2026, 1, 1)).declared_total == 3
    )


def test_import_archive_skips_stored_dates(tmp_path) -> None:
    """Importing the same archive twice should skip the stored date."""
    store = _store(tmp_path)
    import_archive(_copy_archive(tmp_path), SnapshotLoader(store), IngestionLedger(store))
    second_root = tmp_path / "second"
    shutil.copytree(fixture_path("archive"), second_root)

    report = import_archive(second_root, SnapshotLoader(store), IngestionLedger(store))

    assert report.skipped == 1 and report.succeeded == 0


def test_import_archive_keeps_file_when_load_fails(tmp_path) -> None:
    """A file whose rows all fail to insert should stay for a later retry."""
    store = _store(tmp_path)
    archive_file = tmp_path / "spotify_gb_daily_2026-01-05.json"
    tracks = [
        {"rank": rank, "peak_rank": rank, "days_on_chart": 1, "streams": 100} for rank in (1, 2)
    ]
    archive_file.write_text(json.dumps({"date": "2026-01-05", "tracks": tracks}), encoding="utf-8")

    report = import_archive(archive_file, SnapshotLoader(store), IngestionLedger(store))

    assert (
        report.failed == 1
        and report.outcomes[0].error_kind == "ChartVaultStoreError"
        and archive_file.exists()
        and not store.record_exists("gb", date(2026, 1, 5))
    )
