"""Type-safe field parsing helpers for batch files.

This module centralizes primitive parsing so batch-file loading stays
concise and produces consistent validation errors.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from core.errors import ChartVaultBatchSpecError


def expect_mapping(value: object, context: str) -> Mapping[str, object]:
    """Return ``value`` as a string-keyed mapping or raise."""
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise ChartVaultBatchSpecError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise ChartVaultBatchSpecError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def expect_sequence(value: object, context: str) -> Sequence[object]:
    """Return ``value`` as a non-string sequence or raise."""
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise ChartVaultBatchSpecError(
        f"Invalid {context}: expected list, got {type(value).__name__}."
    )


def optional_string(args: Mapping[str, object], field_name: str) -> str | None:
    """Read an optional string field."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    raise ChartVaultBatchSpecError(
        f"Batch field '{field_name}' must be a string when provided."
    )


def optional_bool(args: Mapping[str, object], field_name: str) -> bool | None:
    """Read an optional boolean field."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    raise ChartVaultBatchSpecError(f"Batch field '{field_name}' must be true or false.")


def bool_with_default(args: Mapping[str, object], field_name: str, default_value: bool) -> bool:
    """Read a boolean field while preserving explicit false values."""
    value = optional_bool(args, field_name)
    return default_value if value is None else value


def optional_float(args: Mapping[str, object], field_name: str) -> float | None:
    """Read an optional numeric field."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ChartVaultBatchSpecError(f"Batch field '{field_name}' must be numeric.")
    if isinstance(value, (int, float)):
        return float(value)
    raise ChartVaultBatchSpecError(f"Batch field '{field_name}' must be numeric.")


def float_with_default(args: Mapping[str, object], field_name: str, default_value: float) -> float:
    """Read a numeric field while preserving explicit zero values."""
    value = optional_float(args, field_name)
    return default_value if value is None else value


def reject_unknown_keys(
    mapping: Mapping[str, object],
    allowed_keys: set[str],
    context: str,
) -> None:
    """Raise when ``mapping`` carries keys outside ``allowed_keys``."""
    unknown_keys = sorted(set(mapping) - allowed_keys)
    if unknown_keys:
        raise ChartVaultBatchSpecError(
            f"{context} contains unknown fields: {', '.join(unknown_keys)}."
        )
