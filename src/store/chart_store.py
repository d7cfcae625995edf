"""Partitioned chart snapshot store.

This module owns one directory per source key and one committed
sub-directory per snapshot date. A committed partition manifest is the
durable "already ingested" fact read by the ingestion ledger.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

from core.config import ChartVaultConfig
from core.constants import (
    CHARTS_DIR_NAME,
    MANIFEST_FILE_NAME,
    PARTITION_STAGING_PREFIX,
    RECORDS_FILE_NAME,
)
from core.errors import ChartVaultConfigError, ChartVaultStoreError
from core.targets import normalize_source_key
from core.types import PartitionManifest, SnapshotItem
from store.partition_writer import PartitionWriter
from store.record_payload import manifest_from_payload, read_rows_jsonl


class ChartStore:
    """Filesystem chart store partitioned by source key and date."""

    def __init__(self, config: ChartVaultConfig) -> None:
        """Initialize chart store from config.

        Args:
            config: Runtime configuration.
        """
        self._charts_root = config.data_root / CHARTS_DIR_NAME
        self._charts_root.mkdir(parents=True, exist_ok=True)

    def record_exists(self, source_key: str, snapshot_date: date) -> bool:
        """Return whether a committed partition exists for the pair."""
        return (self._partition_dir(source_key, snapshot_date) / MANIFEST_FILE_NAME).exists()

    def open_partition(self, source_key: str, snapshot_date: date) -> PartitionWriter:
        """Open a pending writer for one partition.

        Args:
            source_key: Partition key.
            snapshot_date: Partition date.

        Returns:
            Writer to use as a context manager.
        """
        source_root = self._source_root(source_key)
        source_root.mkdir(parents=True, exist_ok=True)
        pending_dir = source_root / f"{PARTITION_STAGING_PREFIX}{snapshot_date.isoformat()}"
        return PartitionWriter(
            source_key=self._validated_key(source_key),
            snapshot_date=snapshot_date,
            pending_dir=pending_dir,
            final_dir=self._partition_dir(source_key, snapshot_date),
        )

    def list_source_keys(self) -> list[str]:
        """List source keys that have at least one partition directory."""
        return sorted(path.name for path in self._charts_root.iterdir() if path.is_dir())

    def list_dates(self, source_key: str) -> list[date]:
        """List committed snapshot dates for a source key, oldest first."""
        source_root = self._source_root(source_key)
        if not source_root.exists():
            return []
        dates: list[date] = []
        for partition_dir in source_root.iterdir():
            if not (partition_dir / MANIFEST_FILE_NAME).exists():
                continue
            try:
                dates.append(date.fromisoformat(partition_dir.name))
            except ValueError:
                continue
        return sorted(dates)

    def read_manifest(self, source_key: str, snapshot_date: date) -> PartitionManifest:
        """Read the manifest of a committed partition.

        Raises:
            ChartVaultStoreError: If the partition is missing or invalid.
        """
        manifest_path = self._partition_dir(source_key, snapshot_date) / MANIFEST_FILE_NAME
        if not manifest_path.exists():
            raise ChartVaultStoreError(
                f"No committed partition for {source_key}:{snapshot_date} at {manifest_path.parent}. "
                "Acquire or import the snapshot first."
            )
        try:
            payload = json.loads(manifest_path.read_text(encoding="utf-8"))
            return manifest_from_payload(payload)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as error:
            raise ChartVaultStoreError(
                f"Failed to parse partition manifest at {manifest_path}: {error}. "
                "Re-ingest the snapshot with duplicate avoidance disabled."
            ) from error

    def load_items(
        self,
        source_key: str,
        snapshot_date: date,
    ) -> tuple[PartitionManifest, list[SnapshotItem]]:
        """Load a committed partition.

        Returns:
            Pair of manifest and stored items in insert order.

        Raises:
            ChartVaultStoreError: If the partition is missing or invalid.
        """
        manifest = self.read_manifest(source_key, snapshot_date)
        records_path = self._partition_dir(source_key, snapshot_date) / RECORDS_FILE_NAME
        try:
            items = read_rows_jsonl(records_path)
        except (OSError, ValueError) as error:
            raise ChartVaultStoreError(
                f"Failed to load partition rows at {records_path}: {error}. "
                "Re-ingest the snapshot with duplicate avoidance disabled."
            ) from error
        return manifest, items

    def _source_root(self, source_key: str) -> Path:
        return self._charts_root / self._validated_key(source_key)

    def _partition_dir(self, source_key: str, snapshot_date: date) -> Path:
        return self._source_root(source_key) / snapshot_date.isoformat()

    @staticmethod
    def _validated_key(source_key: str) -> str:
        try:
            return normalize_source_key(source_key)
        except ChartVaultConfigError as error:
            raise ChartVaultStoreError(str(error)) from error
