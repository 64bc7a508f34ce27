"""Post-run verification of every managed path."""

from __future__ import annotations

import logging
from typing import Iterable

from .filesystem import inspect_path
from .models import LineStatus, ManagedPath, VerificationReport, VerifyEntry

logger = logging.getLogger(__name__)


def verify_path(path: ManagedPath) -> VerifyEntry:
    system = inspect_path(path.system_path)
    expected = str(path.repo_path)

    if system.is_link:
        if system.target == expected:
            return VerifyEntry(path, LineStatus.OK, "-> repo", actual_target=system.target)
        return VerifyEntry(
            path,
            LineStatus.ERROR,
            f"-> WRONG TARGET (expected {expected}, found {system.target})",
            actual_target=system.target,
        )

    if not path.category.requires_repo_copy and not system.exists and not inspect_path(path.repo_path).exists:
        return VerifyEntry(path, LineStatus.INFO, "not configured (missing)")

    if system.exists:
        return VerifyEntry(path, LineStatus.ERROR, "exists but is NOT a link")
    return VerifyEntry(path, LineStatus.ERROR, "link is missing")


def verify(paths: Iterable[ManagedPath]) -> VerificationReport:
    """Re-inspect every managed path; never mutates anything."""

    report = VerificationReport(entries=tuple(verify_path(path) for path in paths))
    for mismatch in report.mismatches:
        logger.warning("Verification failed for %s: %s", mismatch.path.system_path, mismatch.details)
    return report
