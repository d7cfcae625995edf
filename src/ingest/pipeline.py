"""Acquisition orchestration for chart snapshot pipelines.

This module sequences fetch, date reconciliation, duplicate checks,
parsing, normalization, and loading for an ordered list of targets.
Targets run strictly one at a time because the fetch collaborator is a
single rate-sensitive session; one target's failure never aborts the
batch, and a stop request takes effect only between targets.
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, Protocol, Sequence

from acquisition.fetcher import SnapshotFetcher
from core.artifacts import remove_transient_artifact
from core.config import ChartVaultConfig
from core.constants import REQUIRED_CHART_COLUMNS
from core.errors import ChartVaultError, ChartVaultParseError
from core.logging_config import get_logger
from core.types import (
    AcquisitionOptions,
    BatchReport,
    LoadResult,
    RawPayload,
    ResolvedDate,
    Snapshot,
    SnapshotRequest,
    TargetOutcome,
)
from ingest.date_reconciler import extract_claimed_date, reconcile_payload_date
from ingest.ledger import IngestionLedger
from ingest.record_normalizer import NormalizationResult, normalize_rows
from ingest.tabular_parser import parse_table
from store.chart_store import ChartStore
from store.loader import SnapshotLoader

_LOGGER = get_logger(__name__)


class SnapshotSink(Protocol):
    """Storage loader contract used by the orchestrator."""

    def load(self, snapshot: Snapshot, artifact_path: Path | None = None) -> LoadResult: ...


@dataclass(frozen=True)
class ParsedSnapshot:
    """Normalized snapshot plus normalization diagnostics."""

    snapshot: Snapshot
    normalization: NormalizationResult


class AcquisitionOrchestrator:
    """Sequential runner for acquisition targets."""

    def __init__(
        self,
        fetcher: SnapshotFetcher,
        loader: SnapshotSink,
        ledger: IngestionLedger,
        options: AcquisitionOptions,
        stop_event: threading.Event | None = None,
        rng: random.Random | None = None,
        wait: Callable[[float], bool] | None = None,
    ) -> None:
        """Create an orchestrator.

        Args:
            fetcher: Fetch collaborator.
            loader: Storage loader.
            ledger: Duplicate-avoidance ledger.
            options: Run options; ``options.targets`` is the default batch.
            stop_event: Set to stop after the in-flight target.
            rng: Random source for pacing jitter.
            wait: Cancellable delay returning True when interrupted;
                defaults to ``stop_event.wait``.
        """
        self._fetcher = fetcher
        self._loader = loader
        self._ledger = ledger
        self._options = options
        self._stop_event = stop_event or threading.Event()
        self._rng = rng or random.Random()
        self._wait = wait or self._stop_event.wait

    def run(self, requests: Sequence[SnapshotRequest] | None = None) -> BatchReport:
        """Process every target in order and return the batch report."""
        targets = tuple(requests) if requests is not None else self._options.targets
        _LOGGER.info(
            "batch_started",
            target_count=len(targets),
            duplicate_avoidance=self._ledger.enabled,
        )
        outcomes: list[TargetOutcome] = []
        stopped = False
        for index, request in enumerate(targets):
            if self._stop_event.is_set():
                stopped = True
                break
            if self._skip_all_remaining(outcomes):
                outcomes.append(_remaining_skip_outcome(request))
                continue
            outcome = self.process_target(request)
            outcomes.append(outcome)
            if outcome.status == "succeeded" and index < len(targets) - 1:
                self._pace()
        report = BatchReport(outcomes=tuple(outcomes), stopped=stopped)
        _log_batch_completion(report)
        return report

    def process_target(self, request: SnapshotRequest) -> TargetOutcome:
        """Run one target through its full state machine."""
        _LOGGER.info(
            "target_started",
            source_key=request.source_key,
            requested_date=request.date_label(),
        )
        try:
            payload = self._fetcher.fetch(request.source_key, request.requested_date)
        except ChartVaultError as error:
            return _failed_outcome(request, error)
        return self._process_payload(request, payload)

    def _process_payload(self, request: SnapshotRequest, payload: RawPayload) -> TargetOutcome:
        resolved: ResolvedDate | None = None
        handed_to_loader = False
        try:
            claimed = payload.claimed_date or extract_claimed_date(payload.artifact_label)
            resolved = reconcile_payload_date(
                request.source_key,
                request.requested_date,
                claimed,
                payload.artifact_label,
            )
            if self._ledger.exists(request.source_key, resolved.value):
                _LOGGER.info(
                    "target_skipped_duplicate",
                    source_key=request.source_key,
                    date=resolved.value.isoformat(),
                )
                return TargetOutcome(
                    request=request,
                    status="skipped",
                    resolved_date=resolved.value,
                    artifact_label=payload.artifact_label,
                )
            parsed = build_snapshot(
                request.source_key,
                resolved,
                payload,
                self._options.max_malformed_fraction,
            )
            handed_to_loader = True
            load_result = self._loader.load(parsed.snapshot, artifact_path=payload.artifact_path)
        except ChartVaultError as error:
            return _failed_outcome(
                request,
                error,
                resolved_date=resolved.value if resolved else None,
                artifact_label=payload.artifact_label,
            )
        finally:
            if not handed_to_loader and payload.artifact_path is not None:
                remove_transient_artifact(payload.artifact_path)
        _LOGGER.info(
            "target_succeeded",
            source_key=request.source_key,
            date=resolved.value.isoformat(),
            inserted_count=load_result.inserted_count,
            failed_count=load_result.failed_count,
            malformed_count=len(parsed.normalization.malformed),
        )
        return TargetOutcome(
            request=request,
            status="succeeded",
            resolved_date=resolved.value,
            load_result=load_result,
            malformed_count=len(parsed.normalization.malformed),
            artifact_label=payload.artifact_label,
        )

    def _skip_all_remaining(self, outcomes: list[TargetOutcome]) -> bool:
        if not self._options.skip_remaining_after_first_duplicate or not outcomes:
            return False
        return outcomes[0].status == "skipped"

    def _pace(self) -> None:
        pacing = self._options.pacing
        delay_seconds = self._rng.uniform(pacing.min_seconds, pacing.max_seconds)
        _LOGGER.info("pacing_wait", delay_seconds=round(delay_seconds, 3))
        self._wait(delay_seconds)


def build_snapshot(
    source_key: str,
    resolved: ResolvedDate,
    payload: RawPayload,
    max_malformed_fraction: float,
) -> ParsedSnapshot:
    """Parse and normalize a payload into a snapshot.

    Args:
        source_key: Partition key.
        resolved: Resolved snapshot date.
        payload: Raw payload.
        max_malformed_fraction: Largest tolerated share of malformed rows.

    Returns:
        Snapshot whose declared total is the normalized row count.

    Raises:
        ChartVaultParseError: If the payload is empty, lacks required
            columns, yields no items, or has too many malformed rows.
    """
    table = parse_table(payload.content)
    if not table.headers:
        raise ChartVaultParseError(
            f"Payload {payload.artifact_label} is empty. Re-download the chart."
        )
    missing_columns = [column for column in REQUIRED_CHART_COLUMNS if column not in table.headers]
    if missing_columns:
        raise ChartVaultParseError(
            f"Payload {payload.artifact_label} is missing columns: {', '.join(missing_columns)}."
        )
    normalization = normalize_rows(table.rows)
    if not normalization.items:
        raise ChartVaultParseError(
            f"Payload {payload.artifact_label} produced no valid rows "
            f"({len(normalization.malformed)} malformed)."
        )
    if normalization.malformed_fraction > max_malformed_fraction:
        raise ChartVaultParseError(
            f"Payload {payload.artifact_label} has {len(normalization.malformed)} of "
            f"{normalization.row_count} rows malformed, above the "
            f"{max_malformed_fraction:.0%} threshold."
        )
    snapshot = Snapshot(
        source_key=source_key,
        date=resolved.value,
        items=normalization.items,
        declared_total=len(normalization.items),
        artifact_label=payload.artifact_label,
    )
    return ParsedSnapshot(snapshot=snapshot, normalization=normalization)


def acquire_snapshots(
    options: AcquisitionOptions,
    config: ChartVaultConfig,
    fetcher: SnapshotFetcher,
    stop_event: threading.Event | None = None,
) -> BatchReport:
    """Run one acquisition batch against the configured chart store.

    Args:
        options: Acquisition options including targets.
        config: Runtime configuration.
        fetcher: Fetch collaborator.
        stop_event: Optional cancellation signal.

    Returns:
        Batch report with succeeded, skipped, and failed targets.
    """
    store = ChartStore(config)
    orchestrator = AcquisitionOrchestrator(
        fetcher=fetcher,
        loader=SnapshotLoader(store),
        ledger=IngestionLedger(store, enabled=options.duplicate_avoidance),
        options=options,
        stop_event=stop_event,
        rng=random.Random(config.random_seed),
    )
    return orchestrator.run()


def _failed_outcome(
    request: SnapshotRequest,
    error: ChartVaultError,
    resolved_date: date | None = None,
    artifact_label: str | None = None,
) -> TargetOutcome:
    _LOGGER.error(
        "target_failed",
        source_key=request.source_key,
        requested_date=request.date_label(),
        error_kind=type(error).__name__,
        reason=str(error),
    )
    return TargetOutcome(
        request=request,
        status="failed",
        resolved_date=resolved_date,
        error_kind=type(error).__name__,
        error_message=str(error),
        artifact_label=artifact_label,
    )


def _remaining_skip_outcome(request: SnapshotRequest) -> TargetOutcome:
    _LOGGER.info(
        "target_skipped_after_first_duplicate",
        source_key=request.source_key,
        requested_date=request.date_label(),
    )
    return TargetOutcome(request=request, status="skipped")


def _log_batch_completion(report: BatchReport) -> None:
    """Log batch completion with aggregate counts."""
    inserted = sum(
        outcome.load_result.inserted_count for outcome in report.outcomes if outcome.load_result
    )
    failed_rows = sum(
        outcome.load_result.failed_count for outcome in report.outcomes if outcome.load_result
    )
    attempted_rows = inserted + failed_rows
    _LOGGER.info(
        "batch_completed",
        succeeded=report.succeeded,
        skipped=report.skipped,
        failed=report.failed,
        stopped=report.stopped,
        rows_inserted=inserted,
        rows_failed=failed_rows,
        row_success_rate=round(inserted / attempted_rows, 4) if attempted_rows else None,
    )
