"""chartvault exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability, and
the acquisition pipeline decides per type whether a failure is
row-level, target-level, or fatal for the whole process.
"""

from __future__ import annotations


class ChartVaultError(Exception):
    """Base exception for all chartvault failures."""


class ChartVaultConfigError(ChartVaultError):
    """Raised for invalid runtime configuration."""


class ChartVaultBatchSpecError(ChartVaultError):
    """Raised for invalid or unsupported batch-file content."""


class ChartVaultIngestError(ChartVaultError):
    """Raised for target-level acquisition and ingest failures."""


class ChartVaultParseError(ChartVaultIngestError):
    """Raised when a raw payload cannot yield a usable snapshot."""


class ChartVaultStoreError(ChartVaultError):
    """Raised for partition storage and commit failures."""


class FetchError(ChartVaultIngestError):
    """Raised when the fetch collaborator cannot produce a payload."""


class NavigationTimeout(FetchError):
    """Raised when the chart page did not load in time."""


class ArtifactNotProduced(FetchError):
    """Raised when no downloaded artifact appeared for a request."""


class ElementNotFound(FetchError):
    """Raised when the download control could not be located."""


class DateResolutionFailed(ChartVaultIngestError):
    """Raised when a snapshot date cannot be determined."""


class MalformedRecord(ChartVaultIngestError):
    """Raised when one raw row fails numeric coercion or validation.

    Attributes:
        field_name: Offending column name.
        raw_row: Original field mapping for diagnostics.
    """

    def __init__(self, message: str, field_name: str, raw_row: dict[str, object]) -> None:
        super().__init__(message)
        self.field_name = field_name
        self.raw_row = raw_row


class StorageWriteFailed(ChartVaultStoreError):
    """Raised when one row cannot be persisted into its partition."""


class CleanupFailed(ChartVaultError):
    """Raised when a transient artifact could not be removed."""
