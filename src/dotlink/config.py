"""TOML configuration loading for dotlink."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import Category, ManagedPath, PathKind

DEFAULT_CONFIG_FILENAME = "dotlink.toml"
DEFAULT_BACKUP_ROOT = "~/.dotlink-backups"


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be parsed or validated."""


def _expand_path(raw: str | os.PathLike[str] | Path, *, base_dir: Path) -> Path:
    """Return an absolute ``Path`` by expanding env vars and user segments.

    Only the parent is resolved; the final component is kept as written so a
    path that is itself a link is not replaced by its target.
    """

    text = str(raw)
    expanded = Path(os.path.expandvars(text)).expanduser()
    if not expanded.is_absolute():
        expanded = base_dir / expanded
    if not expanded.name:
        return expanded.resolve(strict=False)
    return expanded.parent.resolve(strict=False) / expanded.name


class Settings(BaseModel):
    """Global configuration options."""

    model_config = ConfigDict(frozen=True)

    repo_root: Path
    backup_root: Path

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], *, base_dir: Path) -> "Settings":
        repo_raw = raw.get("repo_root")
        if repo_raw is None:
            raise ConfigError("[settings] must define 'repo_root'")
        repo_root = _expand_path(repo_raw, base_dir=base_dir)
        backup_root = _expand_path(raw.get("backup_root", DEFAULT_BACKUP_ROOT), base_dir=base_dir)
        return cls(repo_root=repo_root, backup_root=backup_root)


class RegistryEntry(BaseModel):
    """One row of the declarative path registry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    system: Path
    repo: Path
    kind: PathKind = PathKind.FILE
    category: Category
    parent_mode: int | None = Field(default=None, ge=0, le=0o7777)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any], *, base_dir: Path, repo_root: Path) -> "RegistryEntry":
        for key in ("system", "repo", "category"):
            if key not in raw:
                raise ConfigError(f"Registry entry {dict(raw)!r} is missing '{key}'")
        data = dict(raw)
        data["system"] = _expand_path(raw["system"], base_dir=base_dir)
        data["repo"] = _expand_path(raw["repo"], base_dir=repo_root)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid registry entry for '{raw['system']}': {exc}") from exc

    def managed_path(self) -> ManagedPath:
        return ManagedPath(
            system_path=self.system,
            repo_path=self.repo,
            kind=self.kind,
            category=self.category,
            parent_mode=self.parent_mode,
        )


class Config(BaseModel):
    """Fully parsed configuration file."""

    model_config = ConfigDict(frozen=True)

    config_path: Path
    settings: Settings
    links: tuple[RegistryEntry, ...]

    def registry(self) -> tuple[ManagedPath, ...]:
        """Return the managed paths in registry order."""

        return tuple(entry.managed_path() for entry in self.links)


def load_config(path: Path | None = None) -> Config:
    """Load and validate a configuration file.

    Args:
        path: Optional path to the TOML file, or a directory holding ``dotlink.toml``.
            Defaults to ``dotlink.toml`` in the current working directory.
    """

    config_path = _resolve_config_path(path)
    base_dir = config_path.parent

    try:
        with config_path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Configuration file '{config_path}' is not valid TOML: {exc}") from exc

    settings = Settings.from_raw(data.get("settings") or {}, base_dir=base_dir)

    links_section = data.get("links")
    if not links_section:
        raise ConfigError("Configuration must define at least one [[links]] table")

    links: list[RegistryEntry] = []
    seen: set[Path] = set()
    for raw in links_section:
        entry = RegistryEntry.from_raw(raw, base_dir=base_dir, repo_root=settings.repo_root)
        if entry.system in seen:
            raise ConfigError(f"System path '{entry.system}' is registered more than once")
        seen.add(entry.system)
        links.append(entry)

    return Config(config_path=config_path, settings=settings, links=tuple(links))


def _resolve_config_path(path: Path | None) -> Path:
    if path is None:
        path = Path.cwd() / DEFAULT_CONFIG_FILENAME
    else:
        path = Path(path)

    if not path.exists():
        raise ConfigError(f"Configuration file '{path}' does not exist")
    if path.is_dir():
        candidate = path / DEFAULT_CONFIG_FILENAME
        if not candidate.exists():
            raise ConfigError(f"Expected to find '{DEFAULT_CONFIG_FILENAME}' inside '{path}', but none was located")
        path = candidate

    return path.resolve(strict=False)
