"""Shared models and enums for dotlink."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class PathKind(str, Enum):
    """Kinds of filesystem objects a registry entry can manage."""

    FILE = "file"
    DIRECTORY = "directory"


class Category(str, Enum):
    """Registry categories; they decide how a missing repo copy is planned."""

    IDENTITY_CONFIG = "identity-config"
    SHARED_CONFIG = "shared-config"
    EXECUTABLE_SCRIPT = "executable-script"

    @property
    def requires_repo_copy(self) -> bool:
        """Whether the repo copy must exist before a run starts."""

        return self is not Category.IDENTITY_CONFIG


@dataclass(frozen=True, slots=True)
class ManagedPath:
    """One (system location, repository location) pair kept linked."""

    system_path: Path
    repo_path: Path
    kind: PathKind = PathKind.FILE
    category: Category = Category.IDENTITY_CONFIG
    parent_mode: int | None = None

    @property
    def name(self) -> str:
        return self.system_path.name


class PathState(str, Enum):
    """Discrete classification of one managed path at one instant."""

    LINKED_CORRECT = "linked_correct"
    LINKED_WRONG = "linked_wrong"
    CONFLICT_BOTH_REAL = "conflict_both_real"
    SYSTEM_ONLY_REAL = "system_only_real"
    REPO_ONLY_REAL = "repo_only_real"
    MISSING_BOTH = "missing_both"


@dataclass(frozen=True, slots=True)
class LinkFacts:
    """What the link inspector observed at a single path."""

    path: Path
    exists: bool
    is_link: bool
    target: str | None = None
    dangling: bool = False


@dataclass(frozen=True, slots=True)
class Classification:
    """A managed path together with its classified state."""

    path: ManagedPath
    state: PathState
    system: LinkFacts
    repo: LinkFacts

    @property
    def current_target(self) -> str | None:
        return self.system.target


class ActionKind(str, Enum):
    """Corrective actions the planner can choose."""

    NOOP = "noop"
    MOVE_THEN_LINK = "move_then_link"
    CREATE_LINK = "create_link"
    RELINK_FIX = "relink_fix"
    BACKUP_REMOVE_LINK = "backup_remove_link"


@dataclass(frozen=True, slots=True)
class Action:
    """A planned change, carrying everything needed to execute it."""

    kind: ActionKind
    path: ManagedPath
    old_target: str | None = None

    @property
    def mutates(self) -> bool:
        return self.kind is not ActionKind.NOOP

    @property
    def needs_backup(self) -> bool:
        return self.kind in (ActionKind.MOVE_THEN_LINK, ActionKind.BACKUP_REMOVE_LINK)


@dataclass(frozen=True, slots=True)
class BackupRecord:
    """One entry of a run's append-only backup log."""

    original: Path
    backup: Path | None
    old_target: str | None = None


class LineStatus(str, Enum):
    """Status tags shown on per-path report lines."""

    OK = "OK"
    ACTION = "ACTION"
    ERROR = "ERROR"
    INFO = "INFO"


@dataclass(frozen=True, slots=True)
class PlanLine:
    """Analysis result for one registry entry."""

    classification: Classification
    action: Action | None
    status: LineStatus
    message: str
    error: Exception | None = None

    @property
    def path(self) -> ManagedPath:
        return self.classification.path


@dataclass(frozen=True, slots=True)
class VerifyEntry:
    """Verification outcome for one managed path."""

    path: ManagedPath
    status: LineStatus
    details: str
    actual_target: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is not LineStatus.ERROR


@dataclass(frozen=True, slots=True)
class VerificationReport:
    """Aggregated verifier output."""

    entries: tuple[VerifyEntry, ...]

    @property
    def passed(self) -> bool:
        return all(entry.ok for entry in self.entries)

    @property
    def mismatches(self) -> tuple[VerifyEntry, ...]:
        return tuple(entry for entry in self.entries if not entry.ok)
