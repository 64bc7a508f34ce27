"""High level orchestration of a reconciliation run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .backup import BackupManager
from .classifier import classify_path
from .config import Config
from .errors import ExecutionIOError, PlanningError, RegistryRootMissing
from .executor import Executor
from .filesystem import LinkCapability, detect_capability
from .models import Action, BackupRecord, ManagedPath, VerificationReport
from .planner import Plan, build_plan
from .verifier import verify

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunReport:
    """Everything a reconciliation run did and observed."""

    plan: Plan
    applied: tuple[Action, ...]
    backup_dir: Path | None
    records: tuple[BackupRecord, ...]
    verification: VerificationReport
    failure: ExecutionIOError | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None and self.verification.passed

    @property
    def mutated(self) -> bool:
        return bool(self.applied) or self.backup_dir is not None


class Reconciler:
    """Coordinates classify, plan, backup, execute and verify for a registry."""

    def __init__(
        self,
        config: Config,
        *,
        capability: LinkCapability | None = None,
        now: datetime | None = None,
    ) -> None:
        self.config = config
        self.capability = capability or detect_capability()
        self.started_at = now or datetime.now()

    @property
    def registry(self) -> tuple[ManagedPath, ...]:
        return self.config.registry()

    def check_root(self) -> None:
        repo_root = self.config.settings.repo_root
        if not repo_root.is_dir():
            raise RegistryRootMissing(repo_root)

    def analyze(self) -> Plan:
        """Classify and plan every registry entry without touching the filesystem."""

        self.check_root()
        return build_plan(classify_path(path) for path in self.registry)

    def reconcile(self, plan: Plan | None = None) -> RunReport:
        """Run one full pass and return its report.

        Raises:
            RegistryRootMissing: the repository directory does not exist.
            PlanningError: any entry has a fatal planning error; nothing is mutated.
        """

        if plan is None:
            plan = self.analyze()
        if not plan.ok:
            raise PlanningError(plan.errors)

        if not plan.needs_action:
            logger.info("All %d managed path(s) already converged", len(plan.lines))
            return RunReport(
                plan=plan,
                applied=(),
                backup_dir=None,
                records=(),
                verification=verify(self.registry),
            )

        backups = BackupManager(self.config.settings.backup_root, started_at=self.started_at)
        executor = Executor(backups, self.capability)
        failure: ExecutionIOError | None = None
        try:
            executor.execute(plan.actions)
        except ExecutionIOError as exc:
            failure = exc

        return RunReport(
            plan=plan,
            applied=tuple(executor.applied),
            backup_dir=backups.run_dir,
            records=backups.records,
            verification=verify(self.registry),
            failure=failure,
        )

    def verify(self) -> VerificationReport:
        self.check_root()
        return verify(self.registry)
