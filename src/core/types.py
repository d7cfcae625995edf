"""Shared typed models.

This module defines immutable data models used by the acquisition,
ingest, and store layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Literal, Union

from core.constants import (
    DEFAULT_MAX_MALFORMED_FRACTION,
    DEFAULT_PACING_MAX_SECONDS,
    DEFAULT_PACING_MIN_SECONDS,
    LATEST_DATE_SENTINEL,
)

RequestedDate = Union[date, Literal["latest"]]
TargetStatus = Literal["succeeded", "skipped", "failed"]
DateOrigin = Literal["claimed", "requested"]


@dataclass(frozen=True)
class SnapshotRequest:
    """One (source key, date) unit of acquisition work.

    Attributes:
        source_key: Lower-case region code, e.g. ``global`` or ``ar``.
        requested_date: Calendar date or the ``latest`` sentinel.
    """

    source_key: str
    requested_date: RequestedDate

    @property
    def is_latest(self) -> bool:
        """Return whether this request targets the newest chart."""
        return self.requested_date == LATEST_DATE_SENTINEL

    def date_label(self) -> str:
        """Return the requested date as an ISO string or ``latest``."""
        if isinstance(self.requested_date, date):
            return self.requested_date.isoformat()
        return LATEST_DATE_SENTINEL


@dataclass(frozen=True)
class RawPayload:
    """Raw tabular payload returned by a fetch collaborator.

    Attributes:
        content: Delimited text blob including the header line.
        artifact_label: Artifact name used for diagnostics and date claims.
        claimed_date: Date the source reports for this payload, if known.
        artifact_path: Backing transient file, deleted after use.
    """

    content: str
    artifact_label: str
    claimed_date: date | None = None
    artifact_path: Path | None = None


@dataclass(frozen=True)
class ResolvedDate:
    """Date a payload is persisted under after reconciliation.

    Attributes:
        value: Final snapshot date.
        mismatched: Whether requested and claimed dates disagreed.
        origin: Which signal supplied the final date.
    """

    value: date
    mismatched: bool
    origin: DateOrigin


@dataclass(frozen=True)
class SnapshotItem:
    """Canonical ranked chart entry.

    Attributes:
        rank: Position in the chart, starting at 1.
        item_id: Stable track identifier, e.g. a ``spotify:track`` URI.
        display_name: Track title.
        contributor_names: Comma-separated artist names.
        source_label: Label or distributor reported by the source.
        peak_rank: Best rank ever reached.
        previous_rank: Rank on the previous chart; ``None`` for new entries.
        days_tracked: Days the track has appeared on the chart.
        metric_value: Stream count for the chart date.
    """

    rank: int
    item_id: str
    display_name: str
    contributor_names: str
    source_label: str
    peak_rank: int
    previous_rank: int | None
    days_tracked: int
    metric_value: int


@dataclass(frozen=True)
class Snapshot:
    """Full ranked list for one source key and date.

    Attributes:
        source_key: Partition key.
        date: Resolved snapshot date.
        items: Items in payload order.
        declared_total: Item count the payload claims; advisory only.
        artifact_label: Originating artifact name.
    """

    source_key: str
    date: date
    items: tuple[SnapshotItem, ...]
    declared_total: int
    artifact_label: str = ""


@dataclass(frozen=True)
class RowFailure:
    """One row that could not be persisted."""

    rank: int
    error: str


@dataclass(frozen=True)
class LoadResult:
    """Outcome counts of loading one snapshot."""

    inserted_count: int
    failed_count: int
    failures: tuple[RowFailure, ...] = ()


@dataclass(frozen=True)
class PartitionManifest:
    """Committed partition metadata and the durable ingestion fact.

    Attributes:
        source_key: Partition key.
        date: Snapshot date.
        declared_total: Declared item count.
        inserted_count: Rows persisted.
        failed_count: Rows rejected during load.
        created_at: UTC commit timestamp.
        artifact_label: Originating artifact name.
    """

    source_key: str
    date: date
    declared_total: int
    inserted_count: int
    failed_count: int
    created_at: datetime
    artifact_label: str


@dataclass(frozen=True)
class TargetOutcome:
    """Terminal state of one processed target.

    Attributes:
        request: Originating request.
        status: ``succeeded``, ``skipped``, or ``failed``.
        resolved_date: Date the target was keyed under, when known.
        error_kind: Exception class name for failed targets.
        error_message: Human-readable failure detail.
        load_result: Row counts for loaded targets.
        malformed_count: Rows dropped during normalization.
        artifact_label: Artifact that fed this target, when known.
    """

    request: SnapshotRequest
    status: TargetStatus
    resolved_date: date | None = None
    error_kind: str | None = None
    error_message: str | None = None
    load_result: LoadResult | None = None
    malformed_count: int = 0
    artifact_label: str | None = None


@dataclass(frozen=True)
class BatchReport:
    """Aggregate result of one acquisition or import run."""

    outcomes: tuple[TargetOutcome, ...]
    stopped: bool = False

    @property
    def succeeded(self) -> int:
        return self._count("succeeded")

    @property
    def skipped(self) -> int:
        return self._count("skipped")

    @property
    def failed(self) -> int:
        return self._count("failed")

    def failed_requests(self) -> tuple[SnapshotRequest, ...]:
        """Return requests to resubmit in a later run."""
        return tuple(item.request for item in self.outcomes if item.status == "failed")

    def _count(self, status: TargetStatus) -> int:
        return sum(1 for item in self.outcomes if item.status == status)


@dataclass(frozen=True)
class PacingPolicy:
    """Randomized wait bounds between successful targets, in seconds."""

    min_seconds: float = DEFAULT_PACING_MIN_SECONDS
    max_seconds: float = DEFAULT_PACING_MAX_SECONDS


@dataclass(frozen=True)
class AcquisitionOptions:
    """Acquisition run options.

    Attributes:
        targets: Ordered requests to process.
        duplicate_avoidance: Skip targets whose partition already exists.
        pacing: Wait bounds between successful targets.
        skip_remaining_after_first_duplicate: Treat a duplicate first
            target as proof that every remaining target is current too.
        max_malformed_fraction: Largest tolerated share of malformed rows.
    """

    targets: tuple[SnapshotRequest, ...]
    duplicate_avoidance: bool = True
    pacing: PacingPolicy = field(default_factory=PacingPolicy)
    skip_remaining_after_first_duplicate: bool = False
    max_malformed_fraction: float = DEFAULT_MAX_MALFORMED_FRACTION
