"""Classify the current on-disk state of a managed path."""

from __future__ import annotations

import logging

from .filesystem import inspect_path
from .models import Classification, LinkFacts, ManagedPath, PathState

logger = logging.getLogger(__name__)


def classify(path: ManagedPath, system: LinkFacts, repo: LinkFacts) -> Classification:
    """Map raw inspector facts for both sides of ``path`` to one ``PathState``.

    The first matching rule wins:

    1. system is a link to exactly ``repo_path`` -> ``LINKED_CORRECT``
    2. system is a link to anything else -> ``LINKED_WRONG``
    3. system is real and repo exists -> ``CONFLICT_BOTH_REAL``
    4. system is real, repo missing -> ``SYSTEM_ONLY_REAL``
    5. system missing, repo exists -> ``REPO_ONLY_REAL``
    6. otherwise -> ``MISSING_BOTH``

    Target comparison is plain string equality; a trailing slash, a relative
    target or a differently cased path is a wrong target.
    """

    if system.is_link:
        if system.target == str(path.repo_path):
            state = PathState.LINKED_CORRECT
        else:
            state = PathState.LINKED_WRONG
    elif system.exists:
        state = PathState.CONFLICT_BOTH_REAL if repo.exists else PathState.SYSTEM_ONLY_REAL
    elif repo.exists:
        state = PathState.REPO_ONLY_REAL
    else:
        state = PathState.MISSING_BOTH

    return Classification(path=path, state=state, system=system, repo=repo)


def classify_path(path: ManagedPath) -> Classification:
    """Inspect both sides of ``path`` and classify them."""

    classification = classify(path, inspect_path(path.system_path), inspect_path(path.repo_path))
    logger.debug("%s classified as %s", path.system_path, classification.state.value)
    return classification
