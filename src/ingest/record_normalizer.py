"""Raw chart row normalization.

This module maps raw field maps (CSV strings or archived JSON scalars)
onto the typed SnapshotItem schema. One malformed row is reported and
skipped; it never aborts the rest of its payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from core.errors import MalformedRecord
from core.logging_config import get_logger
from core.types import SnapshotItem

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class NormalizationResult:
    """Typed items plus the rows rejected while normalizing."""

    items: tuple[SnapshotItem, ...]
    malformed: tuple[MalformedRecord, ...]

    @property
    def row_count(self) -> int:
        """Return the number of data rows seen."""
        return len(self.items) + len(self.malformed)

    @property
    def malformed_fraction(self) -> float:
        """Return the share of rows rejected, 0.0 for an empty input."""
        if self.row_count == 0:
            return 0.0
        return len(self.malformed) / self.row_count


def normalize_row(raw_row: Mapping[str, object]) -> SnapshotItem:
    """Convert one raw row into a SnapshotItem.

    Args:
        raw_row: Column name to raw value mapping.

    Returns:
        Typed snapshot item.

    Raises:
        MalformedRecord: If a required integer field is missing,
            non-numeric, or out of range.
    """
    return SnapshotItem(
        rank=_coerce_int(raw_row, "rank", minimum=1),
        item_id=_text(raw_row, "uri"),
        display_name=_text(raw_row, "track_name"),
        contributor_names=_text(raw_row, "artist_names"),
        source_label=_text(raw_row, "source"),
        peak_rank=_coerce_int(raw_row, "peak_rank", minimum=1),
        previous_rank=_coerce_previous_rank(raw_row),
        days_tracked=_coerce_int(raw_row, "days_on_chart", minimum=0),
        metric_value=_coerce_int(raw_row, "streams", minimum=0),
    )


def normalize_rows(rows: Iterable[Mapping[str, object]]) -> NormalizationResult:
    """Normalize every row, collecting malformed ones instead of raising.

    Args:
        rows: Raw row mappings in payload order.

    Returns:
        Normalized items and rejected rows.
    """
    items: list[SnapshotItem] = []
    malformed: list[MalformedRecord] = []
    for line_number, raw_row in enumerate(rows, 1):
        try:
            items.append(normalize_row(raw_row))
        except MalformedRecord as error:
            _LOGGER.warning(
                "row_malformed",
                line_number=line_number,
                field_name=error.field_name,
                reason=str(error),
                raw_row=error.raw_row,
            )
            malformed.append(error)
    return NormalizationResult(items=tuple(items), malformed=tuple(malformed))


def _coerce_int(raw_row: Mapping[str, object], field_name: str, minimum: int) -> int:
    value = raw_row.get(field_name)
    number = _to_int(value)
    if number is None:
        raise MalformedRecord(
            f"Field '{field_name}' is not an integer: {value!r}.",
            field_name=field_name,
            raw_row=dict(raw_row),
        )
    if number < minimum:
        raise MalformedRecord(
            f"Field '{field_name}' must be >= {minimum}, got {number}.",
            field_name=field_name,
            raw_row=dict(raw_row),
        )
    return number


def _coerce_previous_rank(raw_row: Mapping[str, object]) -> int | None:
    value = raw_row.get("previous_rank")
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    number = _to_int(value)
    if number is None:
        raise MalformedRecord(
            f"Field 'previous_rank' is not an integer: {value!r}.",
            field_name="previous_rank",
            raw_row=dict(raw_row),
        )
    # the source marks new entries with 0 or -1
    return number if number >= 1 else None


def _to_int(value: object) -> int | None:
    """Return ``value`` as an int, or None when it is not integral."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _text(raw_row: Mapping[str, object], field_name: str) -> str:
    value = raw_row.get(field_name)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
