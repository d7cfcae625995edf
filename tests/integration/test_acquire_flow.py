"""Integration tests for the staged acquisition workflow."""

from __future__ import annotations

import shutil
from dataclasses import replace
from datetime import date

from acquisition.fetcher import StagingDirectoryFetcher
from core.config import ChartVaultConfig
from core.targets import expand_targets
from core.types import AcquisitionOptions, PacingPolicy
from store.chart_sdk import ChartVaultClient
from tests.fixture_paths import fixture_path


def _client(tmp_path) -> ChartVaultClient:
    config = replace(
        ChartVaultConfig.from_env(),
        data_root=tmp_path / "data",
        staging_dir=tmp_path / "staging",
    )
    return ChartVaultClient(config)


def _stage(client: ChartVaultClient, name: str) -> None:
    client.config.staging_dir.mkdir(parents=True, exist_ok=True)
    shutil.copy(fixture_path(f"charts/{name}"), client.config.staging_dir)


def test_staged_batch_is_idempotent_across_runs(tmp_path) -> None:
    """A second run over the same targets should skip every stored pair."""
    client = _client(tmp_path)
    options = AcquisitionOptions(
        targets=expand_targets(["gb"], ["2026-01-02", "2026-01-03"]),
        pacing=PacingPolicy(0.0, 0.0),
    )
    _stage(client, "regional-gb-daily-2026-01-02.csv")
    _stage(client, "regional-gb-daily-2026-01-03-malformed.csv")
    first = client.acquire(options, fetcher=StagingDirectoryFetcher(client.config.staging_dir))
    _stage(client, "regional-gb-daily-2026-01-02.csv")
    _stage(client, "regional-gb-daily-2026-01-03-malformed.csv")

    second = client.acquire(options, fetcher=StagingDirectoryFetcher(client.config.staging_dir))

    assert (
        (first.succeeded, first.outcomes[1].malformed_count) == (2, 1)
        and second.skipped == 2
        and client.list_dates("gb") == [date(2026, 1, 2), date(2026, 1, 3)]
        and list(client.config.staging_dir.iterdir()) == []
    )


def test_batch_file_run_overrides_policy(tmp_path, monkeypatch) -> None:
    """Batch files should drive targets and policy through the client."""
    client = _client(tmp_path)
    batch_file = tmp_path / "batch.yaml"
    batch_file.write_text(
        "version: 1\n"
        "options:\n"
        "  pacing: {min_seconds: 0, max_seconds: 0}\n"
        "targets:\n"
        "  - source_key: gb\n"
        "    date: '2026-01-02'\n",
        encoding="utf-8",
    )
    _stage(client, "regional-gb-daily-2026-01-02.csv")

    report = client.acquire_from_batch_file(
        str(batch_file),
        fetcher=StagingDirectoryFetcher(client.config.staging_dir),
    )

    assert report.succeeded == 1 and report.outcomes[0].load_result.inserted_count == 5
