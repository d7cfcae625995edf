"""Snapshot date reconciliation.

This module decides which date a fetched payload is stored under.
The source is authoritative about the date its data represents, so a
claimed date always wins over the requested one; disagreement (for
example around a timezone rollover) is flagged but never blocks ingest.
"""

from __future__ import annotations

import re
from datetime import date

from core.errors import DateResolutionFailed
from core.logging_config import get_logger
from core.types import RequestedDate, ResolvedDate

_LOGGER = get_logger(__name__)

_ISO_DATE_PATTERN = re.compile(r"(?<!\d)(\d{4}-\d{2}-\d{2})(?!\d)")
_PAGE_DATE_FIELD_PATTERN = re.compile(r'"date"\s*:\s*"(\d{4}-\d{2}-\d{2})"')


def extract_claimed_date(artifact_label: str, page_content: str | None = None) -> date | None:
    """Extract the date a source claims for its payload.

    Signals are checked in order: an ISO date in the artifact label, a
    ``"date":"YYYY-MM-DD"`` field in page content, then any ISO date in
    page content. Impossible calendar dates are skipped.

    Args:
        artifact_label: Downloaded artifact name.
        page_content: Optional page markup captured with the download.

    Returns:
        First valid claimed date, or None.
    """
    claimed = _first_valid_date(_ISO_DATE_PATTERN.findall(artifact_label))
    if claimed is not None or not page_content:
        return claimed
    claimed = _first_valid_date(_PAGE_DATE_FIELD_PATTERN.findall(page_content))
    if claimed is not None:
        return claimed
    return _first_valid_date(_ISO_DATE_PATTERN.findall(page_content))


def resolve_date(requested: RequestedDate, claimed: date | None) -> ResolvedDate:
    """Reconcile requested and claimed dates.

    Args:
        requested: Requested calendar date or ``latest``.
        claimed: Date extracted from the payload, if any.

    Returns:
        Resolved date with mismatch flag.

    Raises:
        DateResolutionFailed: If ``latest`` was requested and the payload
            carries no claimed date.
    """
    if claimed is not None:
        mismatched = isinstance(requested, date) and requested != claimed
        return ResolvedDate(value=claimed, mismatched=mismatched, origin="claimed")
    if isinstance(requested, date):
        return ResolvedDate(value=requested, mismatched=False, origin="requested")
    raise DateResolutionFailed(
        "Cannot resolve snapshot date: 'latest' was requested and the payload "
        "carries no extractable date. Request an explicit date instead."
    )


def reconcile_payload_date(
    source_key: str,
    requested: RequestedDate,
    claimed: date | None,
    artifact_label: str,
) -> ResolvedDate:
    """Resolve a payload date and log any requested/claimed mismatch."""
    resolved = resolve_date(requested, claimed)
    if resolved.mismatched:
        _LOGGER.warning(
            "date_mismatch",
            source_key=source_key,
            requested_date=str(requested),
            claimed_date=resolved.value.isoformat(),
            artifact_label=artifact_label,
        )
    return resolved


def _first_valid_date(candidates: list[str]) -> date | None:
    for candidate in candidates:
        try:
            return date.fromisoformat(candidate)
        except ValueError:
            continue
    return None
