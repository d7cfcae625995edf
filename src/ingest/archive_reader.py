"""Archived chart JSON import.

Charts saved earlier as ``spotify_<country>_daily_<date>.json`` files
are loaded through the same normalizer, ledger, and loader as freshly
acquired payloads. A loaded or skipped file is deleted; a file that
fails stays in place so it can be fixed and imported again.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from core.artifacts import remove_transient_artifact
from core.constants import (
    ARCHIVE_FILE_SUFFIX,
    DEFAULT_ARCHIVE_DECLARED_TOTAL,
    DEFAULT_MAX_MALFORMED_FRACTION,
)
from core.errors import ChartVaultConfigError, ChartVaultError, ChartVaultIngestError
from core.logging_config import get_logger
from core.targets import normalize_source_key
from core.types import LoadResult, Snapshot, TargetStatus
from ingest.ledger import IngestionLedger
from ingest.record_normalizer import normalize_rows
from store.loader import SnapshotLoader

_LOGGER = get_logger(__name__)
_ARCHIVE_NAME_PATTERN = re.compile(r"^spotify_(?P<key>[A-Za-z0-9_-]+?)_daily(?:_(?P<date>[^.]+))?$")


@dataclass(frozen=True)
class ArchiveFileOutcome:
    """Terminal state of one imported archive file.

    Attributes:
        file_path: Archive file.
        status: ``succeeded``, ``skipped``, or ``failed``.
        source_key: Key parsed from the file name, when present.
        snapshot_date: Snapshot date, when resolved.
        error_kind: Exception class name for failed files.
        error_message: Failure detail.
        load_result: Row counts for loaded files.
    """

    file_path: Path
    status: TargetStatus
    source_key: str | None = None
    snapshot_date: date | None = None
    error_kind: str | None = None
    error_message: str | None = None
    load_result: LoadResult | None = None


@dataclass(frozen=True)
class ArchiveImportReport:
    """Aggregate result of one archive import run."""

    outcomes: tuple[ArchiveFileOutcome, ...]

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == "succeeded")

    @property
    def skipped(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == "skipped")

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == "failed")

    @property
    def inserted_rows(self) -> int:
        return sum(
            outcome.load_result.inserted_count for outcome in self.outcomes if outcome.load_result
        )

    @property
    def failed_rows(self) -> int:
        return sum(
            outcome.load_result.failed_count for outcome in self.outcomes if outcome.load_result
        )


@dataclass(frozen=True)
class ArchiveDocument:
    """Parsed archive file content."""

    source_key: str
    snapshot_date: date
    declared_total: int
    tracks: tuple[dict[str, Any], ...]


def find_archive_files(archive_root: Path) -> list[Path]:
    """List archive JSON files under a file or directory, sorted by path.

    Raises:
        ChartVaultIngestError: If the path does not exist.
    """
    if not archive_root.exists():
        raise ChartVaultIngestError(
            f"Archive path {archive_root} does not exist. "
            "Provide a directory of spotify_<country>_daily_<date>.json files."
        )
    if archive_root.is_file():
        return [archive_root]
    return sorted(
        path
        for path in archive_root.rglob(f"*{ARCHIVE_FILE_SUFFIX}")
        if path.is_file() and path.name.startswith("spotify_")
    )


def read_archive_document(file_path: Path) -> ArchiveDocument:
    """Read and validate one archive file.

    Args:
        file_path: ``spotify_<country>_daily_<date>.json`` path.

    Returns:
        Parsed archive document.

    Raises:
        ChartVaultIngestError: If the name, JSON, date, or track list is invalid.
    """
    name_match = _ARCHIVE_NAME_PATTERN.match(file_path.stem)
    if name_match is None:
        raise ChartVaultIngestError(
            f"Cannot read a country code from archive file name {file_path.name}. "
            "Rename it to spotify_<country>_daily_<YYYY-MM-DD>.json."
        )
    try:
        source_key = normalize_source_key(name_match.group("key"))
    except ChartVaultConfigError as error:
        raise ChartVaultIngestError(f"Archive {file_path.name}: {error}") from error
    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as error:
        raise ChartVaultIngestError(
            f"Failed to read archive {file_path}: {error}. Fix or remove the file."
        ) from error
    if not isinstance(payload, dict):
        raise ChartVaultIngestError(f"Archive {file_path} must contain a JSON object.")
    tracks = payload.get("tracks")
    if not isinstance(tracks, list):
        raise ChartVaultIngestError(
            f"Archive {file_path} has no 'tracks' array. Re-export the chart."
        )
    return ArchiveDocument(
        source_key=source_key,
        snapshot_date=_archive_date(file_path, payload.get("date"), name_match.group("date")),
        declared_total=_declared_total(payload.get("total_tracks")),
        tracks=tuple(track if isinstance(track, dict) else {} for track in tracks),
    )


def import_archive(
    archive_root: Path,
    loader: SnapshotLoader,
    ledger: IngestionLedger,
    max_malformed_fraction: float = DEFAULT_MAX_MALFORMED_FRACTION,
) -> ArchiveImportReport:
    """Load every archive file under ``archive_root``.

    Args:
        archive_root: Archive file or directory tree.
        loader: Storage loader.
        ledger: Duplicate-avoidance ledger.
        max_malformed_fraction: Largest tolerated share of malformed tracks.

    Returns:
        Per-file outcomes.

    Raises:
        ChartVaultIngestError: If the archive root does not exist.
    """
    files = find_archive_files(archive_root)
    _LOGGER.info("archive_import_started", archive_root=str(archive_root), file_count=len(files))
    outcomes = tuple(
        _import_file(file_path, loader, ledger, max_malformed_fraction) for file_path in files
    )
    report = ArchiveImportReport(outcomes=outcomes)
    _LOGGER.info(
        "archive_import_completed",
        succeeded=report.succeeded,
        skipped=report.skipped,
        failed=report.failed,
        rows_inserted=report.inserted_rows,
        rows_failed=report.failed_rows,
    )
    return report


def _import_file(
    file_path: Path,
    loader: SnapshotLoader,
    ledger: IngestionLedger,
    max_malformed_fraction: float,
) -> ArchiveFileOutcome:
    document: ArchiveDocument | None = None
    try:
        document = read_archive_document(file_path)
        if ledger.exists(document.source_key, document.snapshot_date):
            _LOGGER.info(
                "archive_skipped_duplicate",
                file=str(file_path),
                source_key=document.source_key,
                date=document.snapshot_date.isoformat(),
            )
            remove_transient_artifact(file_path)
            return ArchiveFileOutcome(
                file_path=file_path,
                status="skipped",
                source_key=document.source_key,
                snapshot_date=document.snapshot_date,
            )
        snapshot = _build_archive_snapshot(file_path, document, max_malformed_fraction)
        load_result = loader.load(snapshot)
    except ChartVaultError as error:
        _LOGGER.error(
            "archive_file_failed",
            file=str(file_path),
            error_kind=type(error).__name__,
            reason=str(error),
        )
        return ArchiveFileOutcome(
            file_path=file_path,
            status="failed",
            source_key=document.source_key if document else None,
            snapshot_date=document.snapshot_date if document else None,
            error_kind=type(error).__name__,
            error_message=str(error),
        )
    remove_transient_artifact(file_path)
    return ArchiveFileOutcome(
        file_path=file_path,
        status="succeeded",
        source_key=document.source_key,
        snapshot_date=document.snapshot_date,
        load_result=load_result,
    )


def _build_archive_snapshot(
    file_path: Path,
    document: ArchiveDocument,
    max_malformed_fraction: float,
) -> Snapshot:
    normalization = normalize_rows(document.tracks)
    if not normalization.items:
        raise ChartVaultIngestError(f"Archive {file_path} contains no valid tracks.")
    if normalization.malformed_fraction > max_malformed_fraction:
        raise ChartVaultIngestError(
            f"Archive {file_path} has {len(normalization.malformed)} of "
            f"{normalization.row_count} tracks malformed."
        )
    return Snapshot(
        source_key=document.source_key,
        date=document.snapshot_date,
        items=normalization.items,
        declared_total=document.declared_total,
        artifact_label=file_path.name,
    )


def _archive_date(file_path: Path, json_date: object, name_date: str | None) -> date:
    raw_date = json_date or name_date
    if not isinstance(raw_date, str):
        raise ChartVaultIngestError(
            f"Archive {file_path.name} has no date in its content or file name."
        )
    try:
        return date.fromisoformat(raw_date.strip())
    except ValueError as error:
        raise ChartVaultIngestError(
            f"Archive {file_path.name} has invalid date '{raw_date}': expected YYYY-MM-DD."
        ) from error


def _declared_total(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return DEFAULT_ARCHIVE_DECLARED_TOTAL
