from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
import tomli_w


@pytest.fixture
def fake_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


@pytest.fixture
def repo_root(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    return root


@pytest.fixture
def write_config(tmp_path: Path, repo_root: Path) -> Callable[..., Path]:
    """Return a helper writing ``dotlink.toml`` for the given ``[[links]]`` tables."""

    def _write(links: list[dict[str, object]], *, backup_root: Path | None = None) -> Path:
        config_path = tmp_path / "dotlink.toml"
        data = {
            "settings": {
                "repo_root": str(repo_root),
                "backup_root": str(backup_root or tmp_path / "backups"),
            },
            "links": links,
        }
        config_path.write_text(tomli_w.dumps(data))
        return config_path

    return _write
