"""Unit tests for CLI command handling."""

from __future__ import annotations

import shutil
from dataclasses import replace

import pytest

from cli.main import main
from core.config import ChartVaultConfig
from tests.fixture_paths import fixture_path


@pytest.fixture(autouse=True)
def _no_staging_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CHARTVAULT_STAGING_DIR", raising=False)


def _stage_chart(data_root) -> None:
    staging_dir = data_root / "staging"
    staging_dir.mkdir(parents=True, exist_ok=True)
    shutil.copy(fixture_path("charts/regional-gb-daily-2026-01-02.csv"), staging_dir)


def test_cli_acquire_ingests_staged_chart(tmp_path, capsys) -> None:
    """CLI acquire should load a staged chart and print counts."""
    config = replace(ChartVaultConfig.from_env(), data_root=tmp_path)
    _stage_chart(config.data_root)
    args = [
        "--data-root",
        str(config.data_root),
        "acquire",
        "--source-key",
        "gb",
        "--date",
        "2026-01-02",
    ]

    exit_code = main(args)
    output = capsys.readouterr().out

    assert exit_code == 0 and "succeeded=1" in output


def test_cli_acquire_reports_failed_target(tmp_path, capsys) -> None:
    """Missing artifacts should fail the target and the exit code."""
    args = [
        "--data-root",
        str(tmp_path),
        "acquire",
        "--source-key",
        "gb",
        "--date",
        "2026-01-02",
    ]

    exit_code = main(args)
    output = capsys.readouterr().out

    assert exit_code == 1 and "failed_target=gb:2026-01-02\tArtifactNotProduced" in output


def test_cli_acquire_invalid_date_returns_error(tmp_path, capsys) -> None:
    """Invalid dates should be reported without a traceback."""
    exit_code = main(
        ["--data-root", str(tmp_path), "acquire", "--source-key", "gb", "--date", "2026-02-30"]
    )
    error_output = capsys.readouterr().err

    assert exit_code == 1 and "Invalid date" in error_output


def test_cli_dates_lists_stored_snapshots(tmp_path, capsys) -> None:
    """Dates command should list committed partitions."""
    _stage_chart(tmp_path)
    main(["--data-root", str(tmp_path), "acquire", "--source-key", "gb", "--date", "2026-01-02"])
    capsys.readouterr()

    exit_code = main(["--data-root", str(tmp_path), "dates"])
    output = capsys.readouterr().out.strip()

    assert exit_code == 0 and output.startswith("gb\t2026-01-02\t5\t0\t")


def test_cli_import_and_export_archive(tmp_path, capsys) -> None:
    """Archive commands should import JSON files and export them back."""
    archive_root = tmp_path / "archive"
    shutil.copytree(fixture_path("archive"), archive_root)
    import_exit = main(["--data-root", str(tmp_path / "data"), "import-archive", str(archive_root)])
    capsys.readouterr()

    export_exit = main(
        [
            "--data-root",
            str(tmp_path / "data"),
            "export-archive",
            "--source-key",
            "ar",
            "--date",
            "2026-01-01",
            "--output-dir",
            str(tmp_path / "out"),
        ]
    )
    output = capsys.readouterr().out.strip()

    assert import_exit == 1 and export_exit == 0 and output.endswith("spotify_ar_daily_2026-01-01.json")


def test_cli_acquire_batch_file_reads_its_staging_dir(tmp_path, capsys) -> None:
    """A batch file staging directory should be the one the fetcher watches."""
    downloads = tmp_path / "downloads"
    downloads.mkdir()
    shutil.copy(fixture_path("charts/regional-gb-daily-2026-01-02.csv"), downloads)
    batch_file = tmp_path / "batch.yaml"
    batch_file.write_text(
        "version: 1\n"
        f"defaults:\n  staging_dir: {downloads}\n"
        "targets:\n  - source_key: gb\n    date: '2026-01-02'\n",
        encoding="utf-8",
    )

    exit_code = main(
        [
            "--data-root",
            str(tmp_path / "data"),
            "acquire",
            "--batch-file",
            str(batch_file),
            "--artifact-wait",
            "0",
        ]
    )
    output = capsys.readouterr().out

    assert exit_code == 0 and "succeeded=1" in output and not any(downloads.iterdir())
