"""Public SDK surface for chartvault.

This module provides a stable import path for library users.
It re-exports the primary client and typed option models.
"""

from __future__ import annotations

from acquisition.fetcher import DownloadTrigger, SnapshotFetcher, StagingDirectoryFetcher
from core.config import ChartVaultConfig
from core.targets import expand_targets
from core.types import (
    AcquisitionOptions,
    BatchReport,
    PacingPolicy,
    PartitionManifest,
    SnapshotItem,
    SnapshotRequest,
    TargetOutcome,
)
from ingest.archive_reader import ArchiveImportReport
from store.chart_sdk import ChartVaultClient

__all__ = [
    "AcquisitionOptions",
    "ArchiveImportReport",
    "BatchReport",
    "ChartVaultClient",
    "ChartVaultConfig",
    "DownloadTrigger",
    "PacingPolicy",
    "PartitionManifest",
    "SnapshotFetcher",
    "SnapshotItem",
    "SnapshotRequest",
    "StagingDirectoryFetcher",
    "TargetOutcome",
    "expand_targets",
]
