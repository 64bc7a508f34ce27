from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Callable

import pytest
from typer.testing import CliRunner

from dotlink.cli import app

runner = CliRunner()

WriteConfig = Callable[..., Path]


def test_cli_reconcile_then_noop(fake_home: Path, repo_root: Path, write_config: WriteConfig) -> None:
    (repo_root / ".gitconfig").write_text("[user]\n")
    config_path = write_config([{"system": "~/.gitconfig", "repo": ".gitconfig", "category": "identity-config"}])

    first = runner.invoke(app, ["reconcile", "--config", str(config_path)])
    assert first.exit_code == 0
    assert "ACTION" in first.stdout
    assert "Setup complete!" in first.stdout
    assert "Backup saved to" not in first.stdout
    assert (fake_home / ".gitconfig").is_symlink()

    second = runner.invoke(app, ["reconcile", "--config", str(config_path)])
    assert second.exit_code == 0
    assert "Nothing to do" in second.stdout
    assert "ACTION" not in second.stdout


def test_cli_reconcile_conflict_exits_nonzero(fake_home: Path, repo_root: Path, write_config: WriteConfig) -> None:
    (repo_root / ".gitconfig").write_text("repo")
    (fake_home / ".gitconfig").write_text("system")
    config_path = write_config([{"system": "~/.gitconfig", "repo": ".gitconfig", "category": "identity-config"}])

    result = runner.invoke(app, ["reconcile", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "ERROR" in result.stdout
    assert "nothing was changed" in result.stdout
    assert (fake_home / ".gitconfig").read_text() == "system"


def test_cli_missing_repo_root(tmp_path: Path, fake_home: Path, repo_root: Path, write_config: WriteConfig) -> None:
    config_path = write_config([{"system": "~/.gitconfig", "repo": ".gitconfig", "category": "identity-config"}])
    repo_root.rmdir()

    result = runner.invoke(app, ["reconcile", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Repository directory not found" in result.stdout


def test_cli_status_reports_pending_actions(fake_home: Path, repo_root: Path, write_config: WriteConfig) -> None:
    (repo_root / ".gitconfig").write_text("repo")
    config_path = write_config([{"system": "~/.gitconfig", "repo": ".gitconfig", "category": "identity-config"}])

    pending = runner.invoke(app, ["status", "--config", str(config_path)])
    assert pending.exit_code == 1
    assert "repo_only_real" in pending.stdout
    assert not (fake_home / ".gitconfig").exists()

    runner.invoke(app, ["reconcile", "--config", str(config_path)])
    converged = runner.invoke(app, ["status", "--config", str(config_path)])
    assert converged.exit_code == 0
    assert "linked_correct" in converged.stdout


def test_cli_verify(fake_home: Path, repo_root: Path, write_config: WriteConfig) -> None:
    (repo_root / ".gitconfig").write_text("repo")
    config_path = write_config([{"system": "~/.gitconfig", "repo": ".gitconfig", "category": "identity-config"}])

    before = runner.invoke(app, ["verify", "--config", str(config_path)])
    assert before.exit_code == 1

    runner.invoke(app, ["reconcile", "--config", str(config_path)])
    after = runner.invoke(app, ["verify", "--config", str(config_path)])
    assert after.exit_code == 0
    assert "OK" in after.stdout


def test_cli_handles_permission_error(monkeypatch: pytest.MonkeyPatch) -> None:
    class DummyReconciler:
        def analyze(self):
            raise PermissionError("mocked")

    monkeypatch.setattr("dotlink.cli._load_reconciler", lambda _config: DummyReconciler())

    result = runner.invoke(app, ["reconcile"])
    assert result.exit_code == 1
    assert "Permission denied" in result.stdout


def test_cli_missing_config(tmp_path: Path) -> None:
    result = runner.invoke(app, ["reconcile", "--config", str(tmp_path / "nope.toml")])

    assert result.exit_code == 1
    assert "dotlink init" in result.stdout


def test_cli_init_writes_starter_registry(tmp_path: Path, fake_home: Path) -> None:
    config_path = tmp_path / "dotlink.toml"

    result = runner.invoke(app, ["init", "--config", str(config_path), "--repo-root", "./dotfiles"])
    assert result.exit_code == 0

    data = tomllib.loads(config_path.read_text())
    assert data["settings"]["repo_root"] == "./dotfiles"
    systems = [link["system"] for link in data["links"]]
    assert systems[0] == "~/.gitconfig"
    assert "~/.ssh/config" in systems
    hooks = next(link for link in data["links"] if link["system"] == "~/.githooks")
    assert hooks["kind"] == "directory"
    assert hooks["category"] == "shared-config"

    again = runner.invoke(app, ["init", "--config", str(config_path)])
    assert again.exit_code == 1
    assert "already exists" in again.stdout


def test_cli_unwritable_backup_root_reports_and_verifies(
    tmp_path: Path, fake_home: Path, repo_root: Path, write_config: WriteConfig
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    (repo_root / ".gitconfig").write_text("repo")
    (fake_home / ".gitconfig").symlink_to("/wrong/target")
    config_path = write_config(
        [{"system": "~/.gitconfig", "repo": ".gitconfig", "category": "identity-config"}],
        backup_root=blocker / "backups",
    )

    result = runner.invoke(app, ["reconcile", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "ERROR: Failed to apply relink_fix" in result.stdout
    assert "[Phase 3] Verification..." in result.stdout
    assert "Setup completed with errors" in result.stdout
    assert (fake_home / ".gitconfig").is_symlink()
