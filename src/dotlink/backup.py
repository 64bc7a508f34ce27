"""Per-run backup directory management."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from .filesystem import copy_entry, inspect_path
from .manifest import MANIFEST_FILENAME, BackupManifest
from .models import BackupRecord

logger = logging.getLogger(__name__)

RELINK_LOG_FILENAME = "relinked.txt"
TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
_RESERVED_NAMES = frozenset({MANIFEST_FILENAME, RELINK_LOG_FILENAME})


class BackupManager:
    """Owns the single timestamped backup directory of a run.

    The directory is created on first use, so a run that mutates nothing
    leaves nothing behind. Backups are never deleted or overwritten.
    """

    def __init__(self, backup_root: Path, started_at: datetime | None = None) -> None:
        self.backup_root = backup_root
        self.started_at = started_at or datetime.now()
        self._run_dir: Path | None = None
        self._manifest: BackupManifest | None = None

    @property
    def run_dir(self) -> Path | None:
        """The run's backup directory, or ``None`` if nothing was backed up yet."""

        return self._run_dir

    def ensure_run_dir(self) -> Path:
        if self._run_dir is not None:
            return self._run_dir

        stamp = self.started_at.strftime(TIMESTAMP_FORMAT)
        candidate = self.backup_root / stamp
        counter = 1
        while candidate.exists():
            counter += 1
            candidate = self.backup_root / f"{stamp}-{counter}"

        candidate.mkdir(parents=True)
        self._run_dir = candidate
        logger.info("Created backup directory %s", candidate)
        return candidate

    @property
    def records(self) -> tuple[BackupRecord, ...]:
        if self._manifest is None:
            return ()
        return tuple(self._manifest.records())

    def backup(self, path: Path) -> BackupRecord:
        """Copy ``path`` (recursively for directories) into the run directory."""

        run_dir = self.ensure_run_dir()
        destination = self._unique_destination(run_dir, path.name)
        copy_entry(path, destination)

        facts = inspect_path(path)
        record = BackupRecord(original=path, backup=destination, old_target=facts.target)
        self._append(record)
        logger.info("Backed up %s to %s", path, destination)
        return record

    def record_relink(self, path: Path, old_target: str) -> BackupRecord:
        """Log a link's previous target; link metadata needs no content copy."""

        run_dir = self.ensure_run_dir()
        with (run_dir / RELINK_LOG_FILENAME).open("a", encoding="utf-8") as handle:
            handle.write(f"{path} -> {old_target}\n")

        record = BackupRecord(original=path, backup=None, old_target=old_target)
        self._append(record)
        logger.info("Recorded old target of %s: %s", path, old_target)
        return record

    def _append(self, record: BackupRecord) -> None:
        self._open_manifest().append(record)

    def _open_manifest(self) -> BackupManifest:
        if self._manifest is None:
            self._manifest = BackupManifest(self.ensure_run_dir() / MANIFEST_FILENAME)
        return self._manifest

    @staticmethod
    def _unique_destination(run_dir: Path, name: str) -> Path:
        candidate = run_dir / name
        counter = 1
        while candidate.exists() or candidate.is_symlink() or candidate.name in _RESERVED_NAMES:
            counter += 1
            candidate = run_dir / f"{name}.{counter}"
        return candidate
