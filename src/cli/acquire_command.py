"""Acquire CLI command wiring.

This module registers the acquire subcommand, builds acquisition
options from flags or a YAML batch file, and turns SIGINT into a
graceful stop after the in-flight target.
"""

from __future__ import annotations

import argparse
import signal
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from core.constants import (
    DEFAULT_ARTIFACT_WAIT_SECONDS,
    DEFAULT_MAX_MALFORMED_FRACTION,
    DEFAULT_PACING_MAX_SECONDS,
    DEFAULT_PACING_MIN_SECONDS,
    LATEST_DATE_SENTINEL,
)
from core.errors import ChartVaultConfigError
from core.targets import build_pacing_policy, expand_targets
from core.types import AcquisitionOptions, BatchReport
from store.chart_sdk import ChartVaultClient


def add_acquire_command(subparsers: Any) -> None:
    """Register acquire subcommand."""
    parser = subparsers.add_parser(
        "acquire",
        help="Fetch and ingest chart snapshots for source keys and dates",
    )
    parser.add_argument(
        "--source-key",
        action="append",
        dest="source_keys",
        help="Region code, e.g. global or ar; repeat for several",
    )
    parser.add_argument(
        "--date",
        action="append",
        dest="dates",
        help=f"YYYY-MM-DD or '{LATEST_DATE_SENTINEL}'; repeat for several",
    )
    parser.add_argument("--batch-file", help="YAML batch file declaring targets and policy")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Disable duplicate avoidance and overwrite stored snapshots",
    )
    parser.add_argument(
        "--pacing-min",
        type=float,
        default=DEFAULT_PACING_MIN_SECONDS,
        help="Minimum seconds to wait between successful targets",
    )
    parser.add_argument(
        "--pacing-max",
        type=float,
        default=DEFAULT_PACING_MAX_SECONDS,
        help="Maximum seconds to wait between successful targets",
    )
    parser.add_argument(
        "--artifact-wait",
        type=float,
        default=DEFAULT_ARTIFACT_WAIT_SECONDS,
        help="Seconds to wait for a CSV to appear in the staging directory",
    )
    parser.add_argument(
        "--max-malformed-fraction",
        type=float,
        default=DEFAULT_MAX_MALFORMED_FRACTION,
        help="Fail a target when more than this share of rows is malformed",
    )
    parser.add_argument(
        "--skip-remaining-after-first-duplicate",
        action="store_true",
        help="Skip every later target once the first target is already stored",
    )


def run_acquire_command(client: ChartVaultClient, args: argparse.Namespace) -> int:
    """Handle acquire command invocation."""
    stop_event = threading.Event()
    with _stop_on_interrupt(stop_event):
        if args.batch_file:
            report = client.acquire_from_batch_file(
                args.batch_file,
                stop_event=stop_event,
                artifact_wait_seconds=args.artifact_wait,
            )
        else:
            report = client.acquire(
                _options_from_args(args),
                stop_event=stop_event,
                artifact_wait_seconds=args.artifact_wait,
            )
    for line in render_batch_report(report):
        print(line)
    return 0 if report.failed == 0 else 1


def render_batch_report(report: BatchReport) -> list[str]:
    """Render batch counts plus one line per failed target."""
    lines = [
        f"succeeded={report.succeeded}",
        f"skipped={report.skipped}",
        f"failed={report.failed}",
    ]
    if report.stopped:
        lines.append("stopped=true")
    for outcome in report.outcomes:
        if outcome.status != "failed":
            continue
        lines.append(
            f"failed_target={outcome.request.source_key}:{outcome.request.date_label()}\t"
            f"{outcome.error_kind}\t{outcome.error_message}"
        )
    return lines


def _options_from_args(args: argparse.Namespace) -> AcquisitionOptions:
    if not args.source_keys:
        raise ChartVaultConfigError(
            "acquire needs at least one --source-key, or a --batch-file declaring targets."
        )
    dates = args.dates or [LATEST_DATE_SENTINEL]
    return AcquisitionOptions(
        targets=expand_targets(args.source_keys, dates),
        duplicate_avoidance=not args.force,
        pacing=build_pacing_policy(args.pacing_min, args.pacing_max),
        skip_remaining_after_first_duplicate=args.skip_remaining_after_first_duplicate,
        max_malformed_fraction=args.max_malformed_fraction,
    )


@contextmanager
def _stop_on_interrupt(stop_event: threading.Event) -> Iterator[None]:
    """Set ``stop_event`` on SIGINT instead of raising KeyboardInterrupt."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handle_interrupt(signum, frame) -> None:
        stop_event.set()

    previous_handler = signal.signal(signal.SIGINT, _handle_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous_handler)
