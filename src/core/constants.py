"""Core constants used across chartvault modules.

This module centralizes storage layout names and pipeline defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".chartvault")
CHARTS_DIR_NAME = "charts"
STAGING_DIR_NAME = "staging"
PARTITION_STAGING_PREFIX = ".pending-"
MANIFEST_FILE_NAME = "manifest.json"
RECORDS_FILE_NAME = "records.jsonl"
LANCE_DIR_NAME = "data.lance"
LATEST_DATE_SENTINEL = "latest"
ISO_DATE_FORMAT = "%Y-%m-%d"
CSV_DELIMITER = ","
CSV_QUOTE_CHAR = '"'
CHART_BASE_URL = "https://charts.spotify.com/charts/view"
CHART_TITLE = "Spotify Daily Top Songs"
DEFAULT_PACING_MIN_SECONDS = 1.0
DEFAULT_PACING_MAX_SECONDS = 3.0
DEFAULT_MAX_MALFORMED_FRACTION = 0.5
DEFAULT_ARTIFACT_WAIT_SECONDS = 0.0
ARTIFACT_POLL_INTERVAL_SECONDS = 0.5
DEFAULT_ARCHIVE_DECLARED_TOTAL = 200
INSERT_PROGRESS_INTERVAL = 50
ARCHIVE_FILE_SUFFIX = ".json"
ARTIFACT_FILE_SUFFIX = ".csv"
REQUIRED_CHART_COLUMNS = (
    "rank",
    "uri",
    "artist_names",
    "track_name",
    "source",
    "peak_rank",
    "previous_rank",
    "days_on_chart",
    "streams",
)
