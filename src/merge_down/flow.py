"""Branch flow resolution for the release lineage.

Branches are classified by name:

- development branches look like ``<prefix><N>.x`` and flow into
  ``<prefix><N+1>.x``
- release branches look like ``<prefix><N>.<M>`` and flow into
  ``<prefix><N>.x``

Anything else is not part of the flow.
"""

import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

# Suffix left on branches created by a previous merge-down run,
# e.g. "feature-merge-1.x" or "feature-1700000000000-merge-2.3".
STALE_CANDIDATE_PATTERN = re.compile(r"-merge-[0-9]+\.([0-9]+|x)$")


class BranchKind(str, Enum):
    """Kinds of branches that take part in the merge-down flow."""

    DEVELOPMENT = "development"
    RELEASE = "release"


@dataclass(frozen=True)
class BranchVersion:
    """Version captured from a flow branch name."""

    kind: BranchKind
    prefix: str
    major: int
    minor: int | None = None
    major_text: str = ""

    def next_branch(self) -> str:
        """Name of the branch this one merges down into."""
        if self.kind is BranchKind.DEVELOPMENT:
            return f"{self.prefix}{self.major + 1}.x"
        # Release targets keep the major digits exactly as written.
        return f"{self.prefix}{self.major_text or self.major}.x"


def _development_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(prefix)}(\d+)\.x$")


def _release_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(prefix)}(\d+)\.(\d+)$")


def branch_patterns(prefix: str = "") -> tuple[str, str]:
    """Development and release patterns for ``prefix``, as regex source."""
    return _development_pattern(prefix).pattern, _release_pattern(prefix).pattern


def match_development_branch(name: str, prefix: str = "") -> BranchVersion | None:
    """Match a development branch such as ``1.x`` or ``rhino-8.x``."""
    match = _development_pattern(prefix).match(name)
    if match is None:
        return None
    return BranchVersion(BranchKind.DEVELOPMENT, prefix, int(match.group(1)))


def match_release_branch(name: str, prefix: str = "") -> BranchVersion | None:
    """Match a release branch such as ``1.0`` or ``rhino-8.12``."""
    match = _release_pattern(prefix).match(name)
    if match is None:
        return None
    return BranchVersion(
        BranchKind.RELEASE,
        prefix,
        int(match.group(1)),
        int(match.group(2)),
        major_text=match.group(1),
    )


def classify_branch(name: str, prefix: str = "") -> BranchVersion | None:
    """Classify a branch, trying the development pattern first."""
    return match_development_branch(name, prefix) or match_release_branch(
        name, prefix
    )


def resolve_target_branch(name: str, prefix: str = "") -> str | None:
    """Return the branch that ``name`` merges down into.

    Args:
        name: Branch a pull request was merged into
        prefix: Configured branch prefix, matched literally

    Returns:
        Target branch name, or None when ``name`` is not part of the flow

    Examples:
        >>> resolve_target_branch("1.x")
        '2.x'
        >>> resolve_target_branch("rhino-2.3", "rhino-")
        'rhino-2.x'
        >>> resolve_target_branch("main") is None
        True
    """
    version = classify_branch(name, prefix)
    if version is None:
        return None
    return version.next_branch()


def is_stale_candidate(name: str) -> bool:
    """Check whether ``name`` is a candidate branch from an earlier run."""
    return STALE_CANDIDATE_PATTERN.search(name) is not None


def timestamp_token(clock: Callable[[], float] = time.time) -> str:
    """Epoch milliseconds, used to disambiguate candidate branch names."""
    return str(int(clock() * 1000))


def candidate_branch_name(head: str, target: str, token: str | None = None) -> str:
    """Name of the branch that stages ``head`` for merging into ``target``.

    ``<head>-merge-<target>``, or ``<head>-<token>-merge-<target>`` when a
    disambiguating token is given.
    """
    if token:
        return f"{head}-{token}-merge-{target}"
    return f"{head}-merge-{target}"
