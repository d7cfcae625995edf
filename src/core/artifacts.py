"""Transient artifact cleanup.

Downloaded CSVs and archived JSON files are staged only until their
contents are loaded. Removal is best effort: a failure is logged and
never propagates, so it cannot turn a loaded target into a failed one.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from core.errors import CleanupFailed
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


def remove_transient_artifact(artifact_path: Path) -> None:
    """Delete a staged artifact file or directory, logging any failure."""
    try:
        _delete_artifact(artifact_path)
    except CleanupFailed as error:
        _LOGGER.error(
            "artifact_cleanup_failed",
            artifact_path=str(artifact_path),
            reason=str(error),
        )
        return
    _LOGGER.info("artifact_removed", artifact_path=str(artifact_path))


def _delete_artifact(artifact_path: Path) -> None:
    try:
        if artifact_path.is_dir():
            shutil.rmtree(artifact_path)
        else:
            artifact_path.unlink(missing_ok=True)
    except OSError as error:
        raise CleanupFailed(
            f"Failed to remove transient artifact {artifact_path}: {error}."
        ) from error
