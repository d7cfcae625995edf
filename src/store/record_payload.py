"""Shared JSON serialization for stored chart rows.

This module centralizes SnapshotItem and manifest JSON conversion.
It is reused by partition writes, partition reads, and archive export.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any

from core.types import PartitionManifest, SnapshotItem


def row_to_payload(snapshot_date: date, declared_total: int, item: SnapshotItem) -> dict[str, object]:
    """Serialize one stored row into a JSON-safe payload.

    Args:
        snapshot_date: Partition date column.
        declared_total: Declared snapshot size column.
        item: Item columns.

    Returns:
        Dictionary payload for JSON encoding.
    """
    payload: dict[str, object] = {
        "date": snapshot_date.isoformat(),
        "declared_total": declared_total,
    }
    payload.update(asdict(item))
    return payload


def item_from_payload(payload: dict[str, Any]) -> SnapshotItem:
    """Deserialize a stored row payload into a SnapshotItem.

    Args:
        payload: Serialized row payload.

    Returns:
        Parsed item.
    """
    previous_rank = payload.get("previous_rank")
    return SnapshotItem(
        rank=int(payload["rank"]),
        item_id=str(payload.get("item_id", "")),
        display_name=str(payload.get("display_name", "")),
        contributor_names=str(payload.get("contributor_names", "")),
        source_label=str(payload.get("source_label", "")),
        peak_rank=int(payload["peak_rank"]),
        previous_rank=int(previous_rank) if previous_rank is not None else None,
        days_tracked=int(payload["days_tracked"]),
        metric_value=int(payload["metric_value"]),
    )


def manifest_to_payload(manifest: PartitionManifest, lance_written: bool) -> dict[str, object]:
    """Serialize a partition manifest."""
    payload = asdict(manifest)
    payload["date"] = manifest.date.isoformat()
    payload["created_at"] = manifest.created_at.isoformat()
    payload["lance_written"] = lance_written
    return payload


def manifest_from_payload(payload: dict[str, Any]) -> PartitionManifest:
    """Deserialize a partition manifest payload."""
    return PartitionManifest(
        source_key=str(payload["source_key"]),
        date=date.fromisoformat(str(payload["date"])),
        declared_total=int(payload["declared_total"]),
        inserted_count=int(payload["inserted_count"]),
        failed_count=int(payload["failed_count"]),
        created_at=datetime.fromisoformat(str(payload["created_at"])),
        artifact_label=str(payload.get("artifact_label", "")),
    )


def read_rows_jsonl(records_path: Path) -> list[SnapshotItem]:
    """Read stored rows from a JSONL file.

    Args:
        records_path: Input JSONL file path.

    Returns:
        Parsed items in stored order.

    Raises:
        ValueError: If JSONL rows are invalid.
    """
    parsed_items: list[SnapshotItem] = []
    for line_number, line in enumerate(records_path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip():
            continue
        payload = _parse_payload_line(line, line_number)
        try:
            parsed_items.append(item_from_payload(payload))
        except (KeyError, TypeError, ValueError) as error:
            raise ValueError(f"Invalid row at line {line_number}: {error}") from error
    return parsed_items


def _parse_payload_line(line: str, line_number: int) -> dict[str, Any]:
    """Parse and validate one JSONL payload row.

    Args:
        line: Raw JSONL line.
        line_number: One-based line number.

    Returns:
        Parsed payload dictionary.

    Raises:
        ValueError: If JSON row is invalid.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise ValueError(
            f"Invalid JSON at line {line_number}: {error.msg}"
        ) from error
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid payload at line {line_number}: expected JSON object")
    return payload
