"""Unit tests for core config parsing."""

from __future__ import annotations

import os

import pytest

from core.config import ChartVaultConfig
from core.errors import ChartVaultConfigError


def test_from_env_reads_data_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve data root from environment."""
    monkeypatch.setenv("CHARTVAULT_DATA_ROOT", "./.tmp-chartvault")

    config = ChartVaultConfig.from_env()

    assert config.data_root.name == ".tmp-chartvault"


def test_from_env_defaults_staging_under_data_root(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Staging directory should default to a folder inside the data root."""
    monkeypatch.setenv("CHARTVAULT_DATA_ROOT", str(tmp_path))
    monkeypatch.delenv("CHARTVAULT_STAGING_DIR", raising=False)

    config = ChartVaultConfig.from_env()

    assert config.staging_dir == tmp_path.resolve() / "staging"


def test_from_env_reads_staging_override(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Explicit staging directory should override the default."""
    monkeypatch.setenv("CHARTVAULT_STAGING_DIR", str(tmp_path / "downloads"))

    config = ChartVaultConfig.from_env()

    assert config.staging_dir.name == "downloads"


def test_from_env_raises_for_invalid_seed(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric random seed."""
    monkeypatch.setenv("CHARTVAULT_RANDOM_SEED", "not-a-number")

    with pytest.raises(ChartVaultConfigError):
        ChartVaultConfig.from_env()

    assert os.getenv("CHARTVAULT_RANDOM_SEED") == "not-a-number"


def test_with_data_root_moves_default_staging(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """A staging folder under the old root should follow the new root."""
    monkeypatch.setenv("CHARTVAULT_DATA_ROOT", str(tmp_path / "old"))
    monkeypatch.delenv("CHARTVAULT_STAGING_DIR", raising=False)

    config = ChartVaultConfig.from_env().with_data_root(tmp_path / "new")

    assert config.staging_dir == (tmp_path / "new").resolve() / "staging"


def test_with_data_root_keeps_explicit_staging(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """An explicitly configured staging folder should survive a root change."""
    monkeypatch.setenv("CHARTVAULT_DATA_ROOT", str(tmp_path / "old"))
    monkeypatch.setenv("CHARTVAULT_STAGING_DIR", str(tmp_path / "downloads"))

    config = ChartVaultConfig.from_env().with_data_root(tmp_path / "new")

    assert config.staging_dir == (tmp_path / "downloads").resolve()
