from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import pytest

from dotlink.backup import RELINK_LOG_FILENAME, BackupManager
from dotlink.errors import ExecutionIOError
from dotlink.executor import Executor
from dotlink.filesystem import PosixLinks
from dotlink.models import Action, ActionKind, Category, ManagedPath, PathKind


@pytest.fixture
def backups(tmp_path: Path) -> BackupManager:
    return BackupManager(tmp_path / "backups", started_at=datetime(2026, 10, 18, 12, 0, 0))


def _entry(tmp_path: Path, name: str, **kwargs) -> ManagedPath:
    return ManagedPath(
        system_path=tmp_path / "home" / name,
        repo_path=tmp_path / "repo" / name,
        **kwargs,
    )


def test_move_then_link(tmp_path: Path, backups: BackupManager) -> None:
    entry = _entry(tmp_path, ".gitconfig")
    entry.system_path.parent.mkdir(parents=True)
    entry.system_path.write_text("X")

    Executor(backups, PosixLinks()).execute([Action(ActionKind.MOVE_THEN_LINK, entry)])

    assert entry.repo_path.read_text() == "X"
    assert os.readlink(entry.system_path) == str(entry.repo_path)
    assert backups.run_dir is not None
    assert (backups.run_dir / ".gitconfig").read_text() == "X"


def test_create_link_applies_parent_mode(tmp_path: Path, backups: BackupManager) -> None:
    entry = _entry(tmp_path, ".ssh/config", parent_mode=0o700)
    entry.repo_path.parent.mkdir(parents=True)
    entry.repo_path.write_text("Host *\n")

    Executor(backups, PosixLinks()).execute([Action(ActionKind.CREATE_LINK, entry)])

    assert os.readlink(entry.system_path) == str(entry.repo_path)
    assert entry.system_path.parent.stat().st_mode & 0o777 == 0o700
    assert entry.repo_path.read_text() == "Host *\n"
    assert backups.run_dir is None


def test_relink_fix_logs_old_target(tmp_path: Path, backups: BackupManager) -> None:
    entry = _entry(tmp_path, ".gitconfig")
    entry.repo_path.parent.mkdir(parents=True)
    entry.repo_path.write_text("repo")
    entry.system_path.parent.mkdir(parents=True)
    entry.system_path.symlink_to("/wrong/target")

    Executor(backups, PosixLinks()).execute([Action(ActionKind.RELINK_FIX, entry, old_target="/wrong/target")])

    assert os.readlink(entry.system_path) == str(entry.repo_path)
    assert backups.run_dir is not None
    log = (backups.run_dir / RELINK_LOG_FILENAME).read_text()
    assert f"{entry.system_path} -> /wrong/target" in log


def test_backup_remove_link_replaces_directory(tmp_path: Path, backups: BackupManager) -> None:
    entry = _entry(tmp_path, ".githooks", kind=PathKind.DIRECTORY, category=Category.SHARED_CONFIG)
    entry.repo_path.mkdir(parents=True)
    (entry.repo_path / "pre-commit").write_text("repo hook\n")
    entry.system_path.mkdir(parents=True)
    (entry.system_path / "pre-commit").write_text("local hook\n")

    Executor(backups, PosixLinks()).execute([Action(ActionKind.BACKUP_REMOVE_LINK, entry)])

    assert os.readlink(entry.system_path) == str(entry.repo_path)
    assert (entry.system_path / "pre-commit").read_text() == "repo hook\n"
    assert backups.run_dir is not None
    assert (backups.run_dir / ".githooks" / "pre-commit").read_text() == "local hook\n"


def test_failure_halts_and_keeps_applied(tmp_path: Path, backups: BackupManager) -> None:
    first = _entry(tmp_path, ".gitconfig")
    first.repo_path.parent.mkdir(parents=True)
    first.repo_path.write_text("one")
    second = _entry(tmp_path, ".gitconfig-work")
    second.repo_path.write_text("two")
    third = _entry(tmp_path, ".gitconfig-personal")
    third.repo_path.write_text("three")

    class FailingLinks(PosixLinks):
        def create_link(self, link: Path, target: Path, kind: PathKind) -> None:
            if link.name == ".gitconfig-work":
                raise PermissionError("read-only")
            super().create_link(link, target, kind)

    backups.ensure_run_dir()
    executor = Executor(backups, FailingLinks())
    actions = [Action(ActionKind.CREATE_LINK, entry) for entry in (first, second, third)]

    with pytest.raises(ExecutionIOError) as excinfo:
        executor.execute(actions)

    assert excinfo.value.action == actions[1]
    assert excinfo.value.backup_dir == backups.run_dir
    assert executor.applied == [actions[0]]
    assert first.system_path.is_symlink()
    assert not third.system_path.exists() and not third.system_path.is_symlink()
