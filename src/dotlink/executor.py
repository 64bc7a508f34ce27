"""Apply planned actions to the filesystem."""

from __future__ import annotations

import logging
import shutil
from typing import Iterable

from .backup import BackupManager
from .errors import ExecutionIOError
from .filesystem import LinkCapability, ensure_parent, remove_path
from .models import Action, ActionKind, ManagedPath

logger = logging.getLogger(__name__)


class Executor:
    """Applies actions one at a time, in order, taking backups first.

    Execution stops at the first failing action. Actions already applied stay
    in place; the backup directory is reported for manual recovery.
    """

    def __init__(self, backups: BackupManager, capability: LinkCapability) -> None:
        self.backups = backups
        self.capability = capability
        self.applied: list[Action] = []

    def execute(self, actions: Iterable[Action]) -> list[Action]:
        for action in actions:
            try:
                self.apply(action)
            except OSError as exc:
                logger.error("Applying %s to %s failed: %s", action.kind.value, action.path.system_path, exc)
                raise ExecutionIOError(action, exc, self.backups.run_dir) from exc
            self.applied.append(action)
        return list(self.applied)

    def apply(self, action: Action) -> None:
        path = action.path
        if action.kind is ActionKind.NOOP:
            return
        if action.needs_backup:
            self.backups.backup(path.system_path)
        if action.kind is ActionKind.MOVE_THEN_LINK:
            self._move_then_link(path)
        elif action.kind is ActionKind.CREATE_LINK:
            self._link(path)
        elif action.kind is ActionKind.RELINK_FIX:
            self._relink(path, action.old_target)
        elif action.kind is ActionKind.BACKUP_REMOVE_LINK:
            self._remove_then_link(path)
        else:  # pragma: no cover
            raise ValueError(f"Unknown action {action.kind!r}")

    def _move_then_link(self, path: ManagedPath) -> None:
        ensure_parent(path.repo_path)
        shutil.move(str(path.system_path), str(path.repo_path))
        logger.info("Moved %s to %s", path.system_path, path.repo_path)
        self._link(path)

    def _relink(self, path: ManagedPath, old_target: str | None) -> None:
        self.backups.record_relink(path.system_path, old_target or "")
        self.capability.remove_link(path.system_path)
        logger.info("Removed link %s -> %s", path.system_path, old_target)
        self._link(path)

    def _remove_then_link(self, path: ManagedPath) -> None:
        remove_path(path.system_path)
        logger.info("Removed %s", path.system_path)
        self._link(path)

    def _link(self, path: ManagedPath) -> None:
        ensure_parent(path.system_path, path.parent_mode)
        self.capability.create_link(path.system_path, path.repo_path, path.kind)
        logger.info("Linked %s -> %s", path.system_path, path.repo_path)
