"""Staging-directory fetch collaborator.

Driving the chart site (login, locating the download button, clicking
it) is delegated to an optional ``DownloadTrigger``. This module owns
what happens around it: building the chart URL, giving each triggered
download its own staging slot, waiting for the CSV to appear, and
reading it into a RawPayload. Without a trigger it consumes CSV files
placed in the staging directory by another process.
"""

from __future__ import annotations

import time
import uuid
from pathlib import Path
from typing import Callable, Protocol

from core.artifacts import remove_transient_artifact
from core.constants import (
    ARTIFACT_FILE_SUFFIX,
    ARTIFACT_POLL_INTERVAL_SECONDS,
    CHART_BASE_URL,
    DEFAULT_ARTIFACT_WAIT_SECONDS,
)
from core.errors import ArtifactNotProduced, FetchError, NavigationTimeout
from core.logging_config import get_logger
from core.types import RawPayload, RequestedDate, SnapshotRequest
from ingest.date_reconciler import extract_claimed_date

_LOGGER = get_logger(__name__)


class SnapshotFetcher(Protocol):
    """Fetch collaborator contract consumed by the orchestrator."""

    def fetch(self, source_key: str, requested_date: RequestedDate) -> RawPayload: ...


class DownloadTrigger(Protocol):
    """Session that makes the chart site download one CSV.

    Implementations raise ``NavigationTimeout`` or ``ElementNotFound``
    and may return captured page content for date extraction. Any other
    exception is reported as ``NavigationTimeout``.
    """

    def __call__(self, chart_url: str, download_dir: Path) -> str | None: ...


def build_chart_url(source_key: str, requested_date: RequestedDate) -> str:
    """Return the daily regional chart URL for a request."""
    request = SnapshotRequest(source_key=source_key, requested_date=requested_date)
    return f"{CHART_BASE_URL}/regional-{source_key}-daily/{request.date_label()}"


class StagingDirectoryFetcher:
    """Fetch chart payloads through a staging directory."""

    def __init__(
        self,
        staging_dir: Path,
        trigger: DownloadTrigger | None = None,
        wait_seconds: float = DEFAULT_ARTIFACT_WAIT_SECONDS,
        poll_interval_seconds: float = ARTIFACT_POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._staging_dir = staging_dir
        self._trigger = trigger
        self._wait_seconds = wait_seconds
        self._poll_interval_seconds = poll_interval_seconds
        self._sleep = sleep
        self._monotonic = monotonic
        self._staging_dir.mkdir(parents=True, exist_ok=True)

    def fetch(self, source_key: str, requested_date: RequestedDate) -> RawPayload:
        """Produce the raw payload for one request.

        Args:
            source_key: Region code.
            requested_date: Calendar date or ``latest``.

        Returns:
            Raw payload whose ``artifact_path`` must be removed after use.

        Raises:
            FetchError: If navigation, download, or reading fails.
        """
        request = SnapshotRequest(source_key=source_key, requested_date=requested_date)
        if self._trigger is None:
            artifact = self._await_artifact(self._staging_dir, request, exclusive_slot=False)
            return _build_payload(request, artifact, artifact, None)
        slot_dir = self._staging_dir / f"{source_key}-{request.date_label()}-{uuid.uuid4().hex[:8]}"
        slot_dir.mkdir(parents=True)
        try:
            page_content = _run_trigger(self._trigger, request, slot_dir)
            artifact = self._await_artifact(slot_dir, request, exclusive_slot=True)
            return _build_payload(request, artifact, slot_dir, page_content)
        except BaseException:
            remove_transient_artifact(slot_dir)
            raise

    def _await_artifact(
        self,
        slot_dir: Path,
        request: SnapshotRequest,
        exclusive_slot: bool,
    ) -> Path:
        deadline = self._monotonic() + self._wait_seconds
        while True:
            artifact = _find_artifact(slot_dir, request, exclusive_slot)
            if artifact is not None:
                return artifact
            if self._monotonic() >= deadline:
                raise ArtifactNotProduced(
                    f"No CSV artifact for {request.source_key}:{request.date_label()} "
                    f"appeared in {slot_dir} within {self._wait_seconds}s."
                )
            self._sleep(self._poll_interval_seconds)


def _find_artifact(
    slot_dir: Path,
    request: SnapshotRequest,
    exclusive_slot: bool,
) -> Path | None:
    """Pick the CSV for a request, preferring one named for its date."""
    candidates = sorted(
        path
        for path in slot_dir.iterdir()
        if path.is_file() and path.suffix.lower() == ARTIFACT_FILE_SUFFIX
    )
    key_marker = f"regional-{request.source_key}-daily"
    keyed = [path for path in candidates if key_marker in path.name.lower()]
    if not keyed and exclusive_slot:
        keyed = candidates
    if not keyed:
        return None
    if not request.is_latest:
        dated = [path for path in keyed if request.date_label() in path.name]
        if dated:
            return dated[0]
    return keyed[-1]


def _read_artifact(artifact: Path) -> str:
    try:
        return artifact.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as error:
        raise ArtifactNotProduced(
            f"Downloaded artifact {artifact} could not be read: {error}."
        ) from error


def _run_trigger(trigger: DownloadTrigger, request: SnapshotRequest, slot_dir: Path) -> str | None:
    """Ask the session to download one chart into ``slot_dir``."""
    chart_url = build_chart_url(request.source_key, request.requested_date)
    _LOGGER.info("download_triggered", source_key=request.source_key, chart_url=chart_url)
    try:
        return trigger(chart_url, slot_dir)
    except FetchError:
        raise
    except TimeoutError as error:
        raise NavigationTimeout(
            f"Timed out loading {chart_url}: {error}. Check the session and retry later."
        ) from error
    except Exception as error:
        raise NavigationTimeout(
            f"Download session failed on {chart_url}: {type(error).__name__}: {error}."
        ) from error


def _build_payload(
    request: SnapshotRequest,
    artifact: Path,
    artifact_path: Path,
    page_content: str | None,
) -> RawPayload:
    content = _read_artifact(artifact)
    claimed_date = extract_claimed_date(artifact.name, page_content)
    _LOGGER.info(
        "artifact_fetched",
        source_key=request.source_key,
        requested_date=request.date_label(),
        artifact_label=artifact.name,
        claimed_date=claimed_date.isoformat() if claimed_date else None,
    )
    return RawPayload(
        content=content,
        artifact_label=artifact.name,
        claimed_date=claimed_date,
        artifact_path=artifact_path,
    )
