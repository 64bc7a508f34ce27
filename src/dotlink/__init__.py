"""Core package for the dotlink project."""

from .cli import app, run
from .config import Config, ConfigError, RegistryEntry, Settings, load_config
from .engine import Reconciler, RunReport
from .errors import (
    ConflictError,
    DotlinkError,
    ExecutionIOError,
    MissingAuthorityError,
    PlanningError,
    RegistryRootMissing,
)
from .models import (
    Action,
    ActionKind,
    BackupRecord,
    Category,
    Classification,
    LineStatus,
    ManagedPath,
    PathKind,
    PathState,
    VerificationReport,
    VerifyEntry,
)
from .planner import Plan

__all__ = [
    "Config",
    "ConfigError",
    "RegistryEntry",
    "Settings",
    "load_config",
    "Reconciler",
    "RunReport",
    "DotlinkError",
    "ConflictError",
    "MissingAuthorityError",
    "RegistryRootMissing",
    "PlanningError",
    "ExecutionIOError",
    "Action",
    "ActionKind",
    "BackupRecord",
    "Category",
    "Classification",
    "LineStatus",
    "ManagedPath",
    "PathKind",
    "PathState",
    "Plan",
    "VerificationReport",
    "VerifyEntry",
    "app",
    "run",
]
