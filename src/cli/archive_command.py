"""Archive CLI command wiring.

This module registers the import-archive and export-archive
subcommands that move snapshots between the store and archived JSON.
"""

from __future__ import annotations

import argparse
from typing import Any

from core.constants import DEFAULT_MAX_MALFORMED_FRACTION
from core.errors import ChartVaultConfigError
from core.targets import parse_requested_date
from store.chart_sdk import ChartVaultClient


def add_import_archive_command(subparsers: Any) -> None:
    """Register import-archive subcommand."""
    parser = subparsers.add_parser(
        "import-archive",
        help="Load spotify_<country>_daily_<date>.json files into the store",
    )
    parser.add_argument("archive_path", help="Archive file or directory tree")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Disable duplicate avoidance and overwrite stored snapshots",
    )
    parser.add_argument(
        "--max-malformed-fraction",
        type=float,
        default=DEFAULT_MAX_MALFORMED_FRACTION,
        help="Fail a file when more than this share of tracks is malformed",
    )


def add_export_archive_command(subparsers: Any) -> None:
    """Register export-archive subcommand."""
    parser = subparsers.add_parser(
        "export-archive",
        help="Write a stored snapshot as an archive JSON file",
    )
    parser.add_argument("--source-key", required=True, help="Region code, e.g. global")
    parser.add_argument("--date", required=True, help="Snapshot date as YYYY-MM-DD")
    parser.add_argument("--output-dir", required=True, help="Archive root directory")


def run_import_archive_command(client: ChartVaultClient, args: argparse.Namespace) -> int:
    """Handle import-archive command invocation."""
    report = client.import_archive(
        args.archive_path,
        duplicate_avoidance=not args.force,
        max_malformed_fraction=args.max_malformed_fraction,
    )
    print(f"succeeded={report.succeeded}")
    print(f"skipped={report.skipped}")
    print(f"failed={report.failed}")
    print(f"rows_inserted={report.inserted_rows}")
    print(f"rows_failed={report.failed_rows}")
    for outcome in report.outcomes:
        if outcome.status == "failed":
            print(f"failed_file={outcome.file_path}\t{outcome.error_kind}\t{outcome.error_message}")
    return 0 if report.failed == 0 else 1


def run_export_archive_command(client: ChartVaultClient, args: argparse.Namespace) -> int:
    """Handle export-archive command invocation."""
    snapshot_date = parse_requested_date(args.date)
    if isinstance(snapshot_date, str):
        raise ChartVaultConfigError("export-archive needs a calendar date, not 'latest'.")
    archive_path = client.export_archive(args.source_key, snapshot_date, args.output_dir)
    print(archive_path)
    return 0
