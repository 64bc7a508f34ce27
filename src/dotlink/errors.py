"""Exception hierarchy for dotlink."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models import Action, ManagedPath


class DotlinkError(RuntimeError):
    """Raised when dotlink encounters an unrecoverable state."""


class ConflictError(DotlinkError):
    """Real objects exist at both the system and repo locations."""

    def __init__(self, path: ManagedPath) -> None:
        self.path = path
        super().__init__(
            f"'{path.name}' exists in both locations as real objects "
            f"(system: {path.system_path}, repo: {path.repo_path}). "
            "Delete one copy manually, then run again."
        )


class MissingAuthorityError(DotlinkError):
    """The repo copy is missing for a category that cannot create it."""

    def __init__(self, path: ManagedPath) -> None:
        self.path = path
        super().__init__(
            f"'{path.name}' is missing from the repository ({path.category.value}); expected {path.repo_path}"
        )


class RegistryRootMissing(DotlinkError):
    """The repository directory backing the registry does not exist."""

    def __init__(self, root: Path) -> None:
        self.root = root
        super().__init__(f"Repository directory not found: {root}")


class PlanningError(DotlinkError):
    """A plan containing fatal entries was asked to execute."""

    def __init__(self, errors: Sequence[DotlinkError]) -> None:
        self.errors = tuple(errors)
        noun = "error" if len(self.errors) == 1 else "errors"
        details = "; ".join(str(error) for error in self.errors)
        super().__init__(f"Planning failed with {len(self.errors)} {noun}: {details}")


class ExecutionIOError(DotlinkError):
    """A filesystem call failed while applying an action."""

    def __init__(self, action: Action, cause: OSError, backup_dir: Path | None) -> None:
        self.action = action
        self.cause = cause
        self.backup_dir = backup_dir
        location = f" Backups are in {backup_dir}." if backup_dir is not None else ""
        super().__init__(
            f"Failed to apply {action.kind.value} for '{action.path.system_path}': {cause}.{location}"
        )
