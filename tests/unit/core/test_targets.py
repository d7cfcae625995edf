"""Unit tests for target validation helpers."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from core.errors import ChartVaultConfigError
from core.targets import (
    build_pacing_policy,
    expand_targets,
    normalize_source_key,
    parse_requested_date,
)


def test_parse_requested_date_accepts_iso_string() -> None:
    """ISO strings should parse into calendar dates."""
    assert parse_requested_date("2026-01-02") == date(2026, 1, 2)


def test_parse_requested_date_accepts_latest_case_insensitive() -> None:
    """The latest sentinel should be recognized regardless of case."""
    assert parse_requested_date(" Latest ") == "latest"


def test_parse_requested_date_truncates_datetime() -> None:
    """Datetime values should keep only their date part."""
    assert parse_requested_date(datetime(2026, 1, 2, 23, 59)) == date(2026, 1, 2)


@pytest.mark.parametrize("value", ["2026-02-30", "02/01/2026", "", 20260102])
def test_parse_requested_date_rejects_invalid_values(value) -> None:
    """Impossible or badly formatted dates should be rejected."""
    with pytest.raises(ChartVaultConfigError):
        parse_requested_date(value)


def test_normalize_source_key_lowercases() -> None:
    """Source keys should be stored lower-case."""
    assert normalize_source_key(" GB ") == "gb"


def test_normalize_source_key_rejects_path_characters() -> None:
    """Keys that could escape the store root should be rejected."""
    with pytest.raises(ChartVaultConfigError):
        normalize_source_key("../gb")


def test_expand_targets_is_date_major() -> None:
    """Every key for the first date should precede the next date."""
    requests = expand_targets(["global", "ar"], ["2026-01-02", "2026-01-01"])

    assert [(request.source_key, request.date_label()) for request in requests] == [
        ("global", "2026-01-02"),
        ("ar", "2026-01-02"),
        ("global", "2026-01-01"),
        ("ar", "2026-01-01"),
    ]


def test_build_pacing_policy_rejects_inverted_bounds() -> None:
    """Minimum pacing above the maximum should be rejected."""
    with pytest.raises(ChartVaultConfigError):
        build_pacing_policy(3.0, 1.0)
