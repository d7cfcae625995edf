"""Runtime configuration model for chartvault.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import os
from pathlib import Path

from core.constants import DEFAULT_DATA_ROOT, STAGING_DIR_NAME
from core.errors import ChartVaultConfigError


@dataclass(frozen=True)
class ChartVaultConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for chart partitions.
        staging_dir: Directory where downloaded chart artifacts land.
        random_seed: Seed used for pacing jitter.
    """

    data_root: Path
    staging_dir: Path
    random_seed: int

    @classmethod
    def from_env(cls) -> "ChartVaultConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ChartVaultConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("CHARTVAULT_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        data_root = Path(data_root_value).expanduser().resolve()
        staging_value = os.getenv("CHARTVAULT_STAGING_DIR")
        staging_dir = (
            Path(staging_value).expanduser().resolve()
            if staging_value
            else data_root / STAGING_DIR_NAME
        )
        random_seed_value = os.getenv("CHARTVAULT_RANDOM_SEED", "42")
        random_seed = _parse_random_seed(random_seed_value)
        return cls(data_root=data_root, staging_dir=staging_dir, random_seed=random_seed)

    def with_data_root(self, data_root: str | Path) -> "ChartVaultConfig":
        """Return a copy rooted at ``data_root``.

        A staging directory at its default place under the old root moves
        with the root; an explicitly configured one is kept.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        staging_dir = self.staging_dir
        if staging_dir == self.data_root / STAGING_DIR_NAME:
            staging_dir = resolved_root / STAGING_DIR_NAME
        return replace(self, data_root=resolved_root, staging_dir=staging_dir)


def _parse_random_seed(raw_value: str) -> int:
    """Parse the random seed environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed integer seed.

    Raises:
        ChartVaultConfigError: If value cannot be parsed into int.
    """
    try:
        return int(raw_value)
    except ValueError as error:
        raise ChartVaultConfigError(
            "Invalid CHARTVAULT_RANDOM_SEED value: "
            f"expected integer, got '{raw_value}'. "
            "Set CHARTVAULT_RANDOM_SEED to a numeric value."
        ) from error
