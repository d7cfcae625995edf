"""Python SDK for chart snapshot operations.

This module exposes high-level APIs for acquisition, archive import
and export, and stored snapshot inspection backed by the chart store.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date
from pathlib import Path

from acquisition.fetcher import SnapshotFetcher, StagingDirectoryFetcher
from core.batch_spec import load_batch_spec
from core.config import ChartVaultConfig
from core.constants import (
    DEFAULT_ARTIFACT_WAIT_SECONDS,
    DEFAULT_MAX_MALFORMED_FRACTION,
)
from core.types import AcquisitionOptions, BatchReport, PartitionManifest, SnapshotItem
from ingest.archive_reader import ArchiveImportReport, import_archive
from ingest.ledger import IngestionLedger
from ingest.pipeline import acquire_snapshots
from store.archive_export import export_archive
from store.chart_store import ChartStore
from store.loader import SnapshotLoader


class ChartVaultClient:
    """Primary SDK entry point for chart snapshot workflows."""

    def __init__(self, config: ChartVaultConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or ChartVaultConfig.from_env()
        self._store = ChartStore(self._config)

    @property
    def config(self) -> ChartVaultConfig:
        return self._config

    def acquire(
        self,
        options: AcquisitionOptions,
        fetcher: SnapshotFetcher | None = None,
        stop_event: threading.Event | None = None,
        artifact_wait_seconds: float = DEFAULT_ARTIFACT_WAIT_SECONDS,
    ) -> BatchReport:
        """Acquire and ingest every target in ``options``.

        Args:
            options: Acquisition options including targets.
            fetcher: Fetch collaborator; defaults to the staging directory.
            stop_event: Set to stop after the in-flight target.
            artifact_wait_seconds: Artifact wait of the default fetcher.

        Returns:
            Batch report.
        """
        active_fetcher = fetcher or StagingDirectoryFetcher(
            self._config.staging_dir,
            wait_seconds=artifact_wait_seconds,
        )
        return acquire_snapshots(options, self._config, active_fetcher, stop_event)

    def acquire_from_batch_file(
        self,
        batch_file: str,
        fetcher: SnapshotFetcher | None = None,
        stop_event: threading.Event | None = None,
        artifact_wait_seconds: float = DEFAULT_ARTIFACT_WAIT_SECONDS,
    ) -> BatchReport:
        """Acquire targets declared in a YAML batch file.

        Batch file defaults for data root and staging directory override
        this client's configuration for the run, including the staging
        directory watched by the default fetcher.

        Raises:
            ChartVaultBatchSpecError: If the batch file is invalid.
        """
        batch_spec = load_batch_spec(batch_file)
        run_config = self._config
        if batch_spec.defaults.data_root:
            run_config = run_config.with_data_root(batch_spec.defaults.data_root)
        if batch_spec.defaults.staging_dir:
            run_config = replace(run_config, staging_dir=_resolved(batch_spec.defaults.staging_dir))
        client = self if run_config == self._config else ChartVaultClient(run_config)
        return client.acquire(
            batch_spec.options,
            fetcher=fetcher,
            stop_event=stop_event,
            artifact_wait_seconds=artifact_wait_seconds,
        )

    def import_archive(
        self,
        archive_root: str | Path,
        duplicate_avoidance: bool = True,
        max_malformed_fraction: float = DEFAULT_MAX_MALFORMED_FRACTION,
    ) -> ArchiveImportReport:
        """Load archived chart JSON files into the store.

        Args:
            archive_root: Archive file or directory tree.
            duplicate_avoidance: Skip dates already stored.
            max_malformed_fraction: Largest tolerated share of malformed tracks.

        Returns:
            Per-file import report.
        """
        return import_archive(
            Path(archive_root).expanduser(),
            loader=SnapshotLoader(self._store),
            ledger=IngestionLedger(self._store, enabled=duplicate_avoidance),
            max_malformed_fraction=max_malformed_fraction,
        )

    def export_archive(self, source_key: str, snapshot_date: date, output_dir: str | Path) -> Path:
        """Write one stored snapshot as an archive JSON file."""
        return export_archive(self._store, source_key, snapshot_date, Path(output_dir).expanduser())

    def list_source_keys(self) -> list[str]:
        """List stored source keys."""
        return self._store.list_source_keys()

    def list_dates(self, source_key: str) -> list[date]:
        """List committed snapshot dates for a source key, oldest first."""
        return self._store.list_dates(source_key)

    def load_snapshot_manifest(self, source_key: str, snapshot_date: date) -> PartitionManifest:
        """Read the manifest of one committed snapshot."""
        return self._store.read_manifest(source_key, snapshot_date)

    def load_snapshot(
        self,
        source_key: str,
        snapshot_date: date,
    ) -> tuple[PartitionManifest, list[SnapshotItem]]:
        """Load one committed snapshot.

        Returns:
            Pair of manifest and stored items.
        """
        return self._store.load_items(source_key, snapshot_date)

    def with_data_root(self, data_root: str) -> "ChartVaultClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance.
        """
        return ChartVaultClient(self._config.with_data_root(data_root))


def _resolved(path_value: str | None) -> Path | None:
    if not path_value:
        return None
    return Path(path_value).expanduser().resolve()
