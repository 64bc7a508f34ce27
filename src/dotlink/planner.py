"""Turn classified path states into corrective actions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from .errors import ConflictError, DotlinkError, MissingAuthorityError
from .models import Action, ActionKind, Category, Classification, LineStatus, PathState, PlanLine

logger = logging.getLogger(__name__)

_ACTION_MESSAGES = {
    ActionKind.MOVE_THEN_LINK: "needs MOVE to repo + link",
    ActionKind.CREATE_LINK: "needs LINK (repo copy exists)",
    ActionKind.RELINK_FIX: "link points to WRONG target, will RELINK",
    ActionKind.BACKUP_REMOVE_LINK: "needs REPLACE with link",
}


def plan_action(classification: Classification) -> Action:
    """Return the action for one classification.

    Raises:
        ConflictError: both sides hold real objects and the category gives no precedence.
        MissingAuthorityError: the category needs a repo copy and there is none.
    """

    path = classification.path
    state = classification.state

    repo = classification.repo
    if path.category.requires_repo_copy and (not repo.exists or repo.dangling):
        raise MissingAuthorityError(path)

    if state is PathState.LINKED_CORRECT or state is PathState.MISSING_BOTH:
        return Action(ActionKind.NOOP, path)
    if state is PathState.LINKED_WRONG:
        return Action(ActionKind.RELINK_FIX, path, old_target=classification.current_target)
    if state is PathState.CONFLICT_BOTH_REAL:
        if path.category is Category.IDENTITY_CONFIG:
            raise ConflictError(path)
        return Action(ActionKind.BACKUP_REMOVE_LINK, path)
    if state is PathState.SYSTEM_ONLY_REAL:
        return Action(ActionKind.MOVE_THEN_LINK, path)
    return Action(ActionKind.CREATE_LINK, path)


@dataclass(frozen=True, slots=True)
class Plan:
    """Planning outcome for every registry entry, in registry order."""

    lines: tuple[PlanLine, ...]

    @property
    def actions(self) -> tuple[Action, ...]:
        """Mutating actions, in execution order."""

        return tuple(line.action for line in self.lines if line.action is not None and line.action.mutates)

    @property
    def errors(self) -> tuple[DotlinkError, ...]:
        return tuple(line.error for line in self.lines if isinstance(line.error, DotlinkError))

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def needs_action(self) -> bool:
        return bool(self.actions)


def plan_line(classification: Classification) -> PlanLine:
    """Plan one classification and describe the outcome as a status line."""

    try:
        action = plan_action(classification)
    except (ConflictError, MissingAuthorityError) as exc:
        logger.debug("%s cannot be planned: %s", classification.path.system_path, exc)
        return PlanLine(classification, None, LineStatus.ERROR, _error_message(exc), error=exc)

    if action.kind is ActionKind.NOOP:
        if classification.state is PathState.MISSING_BOTH:
            return PlanLine(classification, action, LineStatus.INFO, "MISSING from both locations")
        return PlanLine(classification, action, LineStatus.OK, "link points to repo")

    message = _ACTION_MESSAGES[action.kind]
    if action.kind is ActionKind.RELINK_FIX:
        message = f"{message} (current: {action.old_target}, expected: {classification.path.repo_path})"
    return PlanLine(classification, action, LineStatus.ACTION, message)


def build_plan(classifications: Iterable[Classification]) -> Plan:
    """Plan every classification before anything is allowed to run."""

    plan = Plan(lines=tuple(plan_line(classification) for classification in classifications))
    logger.debug("Planned %d action(s) with %d error(s)", len(plan.actions), len(plan.errors))
    return plan


def _error_message(exc: ConflictError | MissingAuthorityError) -> str:
    if isinstance(exc, ConflictError):
        return "EXISTS in BOTH locations (real objects)"
    return f"MISSING from repo ({exc.path.category.value})"
