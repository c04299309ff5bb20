"""Quarantine area holding soft-deleted profile artifacts pending permanent erasure."""

from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

QUARANTINE_DIR_NAME = "deleted"


def quarantine_dir(data_root: str | Path) -> Path:
    """Return ``<data_root>/deleted``, the layout shared by the cascade and the sweeper."""
    return Path(data_root) / QUARANTINE_DIR_NAME


def last_modified(path: Path) -> datetime:
    """Return the artifact's storage-level modification time as an aware UTC datetime."""
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


class QuarantineStore:
    """Filesystem-backed quarantine area under a single data root.

    Artifacts enter through :meth:`move_in`, which renames them within the
    same root so that observers never see a partially written file, and then
    stamps the modification time with the move time. Age is measured from
    that timestamp only.
    """

    def __init__(self, data_root: str | Path) -> None:
        self._root = quarantine_dir(data_root)

    @property
    def root(self) -> Path:
        return self._root

    def exists(self) -> bool:
        return self._root.is_dir()

    def path_for(self, file_name: str) -> Path:
        return self._root / file_name

    def move_in(self, source: Path, file_name: str, *, moved_at: datetime | None = None) -> Path:
        """Atomically rename ``source`` into the quarantine area and return the new path.

        Raises ``OSError`` when the rename fails; the source stays where it was.
        """
        self._root.mkdir(parents=True, exist_ok=True)
        target = self.path_for(file_name)
        os.replace(source, target)
        stamp = (moved_at or datetime.now(timezone.utc)).timestamp()
        os.utime(target, (stamp, stamp))
        logger.info("moved %s to quarantine as %s", source.name, target)
        return target

    def entries(self) -> list[Path]:
        """Return a snapshot of every entry currently in the quarantine area."""
        if not self.exists():
            return []
        return sorted(self._root.iterdir())

    def erase(self, entry: Path) -> None:
        """Permanently remove a quarantined entry."""
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
