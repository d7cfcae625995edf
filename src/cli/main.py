"""chartvault CLI entry points.
This module exposes commands for acquisition, archive transfer, and
stored snapshot inspection. It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Sequence

from cli.acquire_command import add_acquire_command, run_acquire_command
from cli.archive_command import (
    add_export_archive_command,
    add_import_archive_command,
    run_export_archive_command,
    run_import_archive_command,
)
from core.config import ChartVaultConfig
from core.errors import ChartVaultError
from store.chart_sdk import ChartVaultClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="chartvault", description="Chart snapshot vault CLI")
    parser.add_argument("--data-root", help="Override CHARTVAULT_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_acquire_command(subparsers)
    add_import_archive_command(subparsers)
    add_export_archive_command(subparsers)
    _add_dates_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the chartvault CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root)
        if args.command == "acquire":
            return run_acquire_command(client, args)
        if args.command == "import-archive":
            return run_import_archive_command(client, args)
        if args.command == "export-archive":
            return run_export_archive_command(client, args)
        if args.command == "dates":
            return _run_dates_command(client, args)
    except ChartVaultError as error:
        print(f"error={error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None) -> ChartVaultClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = ChartVaultConfig.from_env()
    if data_root:
        config = config.with_data_root(data_root)
    return ChartVaultClient(config)


def _run_dates_command(client: ChartVaultClient, args: argparse.Namespace) -> int:
    """Handle dates command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    source_keys = [args.source_key] if args.source_key else client.list_source_keys()
    for source_key in source_keys:
        for snapshot_date in client.list_dates(source_key):
            manifest = client.load_snapshot_manifest(source_key, snapshot_date)
            print(
                f"{manifest.source_key}\t"
                f"{manifest.date.isoformat()}\t"
                f"{manifest.inserted_count}\t"
                f"{manifest.failed_count}\t"
                f"{manifest.created_at.isoformat()}"
            )
    return 0


def _add_dates_command(subparsers: Any) -> None:
    """Register dates subcommand."""
    parser = subparsers.add_parser("dates", help="List stored snapshot dates")
    parser.add_argument("--source-key", help="Limit output to one region code")
