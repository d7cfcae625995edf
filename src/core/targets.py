"""Target list validation helpers.

This module turns raw source keys, date strings, and pacing bounds
from CLI arguments or batch files into validated request models.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Iterable

from core.constants import ISO_DATE_FORMAT, LATEST_DATE_SENTINEL
from core.errors import ChartVaultConfigError
from core.types import PacingPolicy, RequestedDate, SnapshotRequest

_SOURCE_KEY_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def parse_requested_date(value: object) -> RequestedDate:
    """Parse a requested date value.

    Args:
        value: ``date`` instance, ISO ``YYYY-MM-DD`` string, or ``latest``.

    Returns:
        Calendar date or the ``latest`` sentinel.

    Raises:
        ChartVaultConfigError: If the value is not a valid date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ChartVaultConfigError(
            f"Invalid date {value!r}: expected YYYY-MM-DD or '{LATEST_DATE_SENTINEL}'."
        )
    normalized_value = value.strip()
    if normalized_value.lower() == LATEST_DATE_SENTINEL:
        return LATEST_DATE_SENTINEL
    try:
        return datetime.strptime(normalized_value, ISO_DATE_FORMAT).date()
    except ValueError as error:
        raise ChartVaultConfigError(
            f"Invalid date '{value}': expected YYYY-MM-DD or '{LATEST_DATE_SENTINEL}'. "
            "Fix the target date and retry."
        ) from error


def normalize_source_key(value: object) -> str:
    """Validate and lower-case a source key.

    Raises:
        ChartVaultConfigError: If the key is empty or contains path characters.
    """
    if not isinstance(value, str):
        raise ChartVaultConfigError(f"Invalid source key {value!r}: expected a string.")
    normalized_key = value.strip().lower()
    if not _SOURCE_KEY_PATTERN.match(normalized_key):
        raise ChartVaultConfigError(
            f"Invalid source key '{value}': use letters, digits, '-' or '_' only, "
            "e.g. 'global' or 'ar'."
        )
    return normalized_key


def expand_targets(
    source_keys: Iterable[object],
    dates: Iterable[object],
) -> tuple[SnapshotRequest, ...]:
    """Build the date-major cross product of keys and dates.

    Args:
        source_keys: Raw source keys.
        dates: Raw requested dates.

    Returns:
        Ordered requests, every key for the first date before the next date.
    """
    parsed_keys = [normalize_source_key(key) for key in source_keys]
    parsed_dates = [parse_requested_date(value) for value in dates]
    return tuple(
        SnapshotRequest(source_key=key, requested_date=requested_date)
        for requested_date in parsed_dates
        for key in parsed_keys
    )


def build_pacing_policy(min_seconds: float, max_seconds: float) -> PacingPolicy:
    """Validate pacing bounds.

    Raises:
        ChartVaultConfigError: If bounds are negative or inverted.
    """
    if min_seconds < 0 or max_seconds < 0:
        raise ChartVaultConfigError(
            f"Invalid pacing bounds [{min_seconds}, {max_seconds}]: values must be >= 0."
        )
    if min_seconds > max_seconds:
        raise ChartVaultConfigError(
            f"Invalid pacing bounds [{min_seconds}, {max_seconds}]: "
            "min_seconds must not exceed max_seconds."
        )
    return PacingPolicy(min_seconds=float(min_seconds), max_seconds=float(max_seconds))
