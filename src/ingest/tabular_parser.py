"""Quote-aware delimited text parsing.

This module splits chart CSV payloads into header-keyed field maps.
Quoted fields may contain the delimiter; an unterminated quote simply
stays open until the end of its line instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from core.constants import CSV_DELIMITER, CSV_QUOTE_CHAR


@dataclass(frozen=True)
class ParsedTable:
    """Parsed payload header plus a one-shot row iterator.

    Attributes:
        headers: Trimmed column names from the first line; empty when the
            payload was blank.
        rows: Lazily produced field maps, consumable once.
    """

    headers: tuple[str, ...]
    rows: Iterator[dict[str, str]]


def parse_table(raw: str, delimiter: str = CSV_DELIMITER) -> ParsedTable:
    """Parse a delimited payload with a header line.

    Args:
        raw: Raw payload text.
        delimiter: Single-character field separator.

    Returns:
        Parsed table; a blank payload yields no headers and no rows.
    """
    stripped = raw.strip()
    if not stripped:
        return ParsedTable(headers=(), rows=iter(()))
    lines = stripped.split("\n")
    headers = tuple(split_line(lines[0], delimiter))
    return ParsedTable(headers=headers, rows=_iter_rows(headers, lines[1:], delimiter))


def split_line(line: str, delimiter: str = CSV_DELIMITER) -> list[str]:
    """Split one line into trimmed fields honoring double quotes.

    Args:
        line: One payload line without its newline.
        delimiter: Single-character field separator.

    Returns:
        Field values with quote characters removed.
    """
    values: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in line:
        if char == CSV_QUOTE_CHAR:
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    values.append("".join(current).strip())
    return values


def _iter_rows(
    headers: tuple[str, ...],
    lines: list[str],
    delimiter: str,
) -> Iterator[dict[str, str]]:
    for line in lines:
        if not line.strip():
            continue
        values = split_line(line, delimiter)
        yield {
            header: values[index] if index < len(values) else ""
            for index, header in enumerate(headers)
        }
