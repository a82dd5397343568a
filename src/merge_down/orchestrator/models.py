"""Data models for a merge-down run.

Each step of the orchestrator returns a ``StepResult``; the status on that
result alone decides whether the run continues.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..events import MergeEvent


class IncompleteRunError(RuntimeError):
    """A step needs a value that no earlier step has produced."""


class MergeDownStep(str, Enum):
    """Steps of a merge-down run, in execution order."""

    RESOLVE_TARGET = "resolve_target"
    CLEANUP_STALE_CANDIDATE = "cleanup_stale_candidate"
    VERIFY_TARGET = "verify_target"
    CREATE_CANDIDATE = "create_candidate"
    MERGE_TARGET = "merge_target"
    CREATE_PULL_REQUEST = "create_pull_request"
    ENABLE_AUTO_MERGE = "enable_auto_merge"
    ASSIGN_PULL_REQUEST = "assign_pull_request"


class StepStatus(str, Enum):
    """Outcome of a single step."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    DEGRADED = "degraded"  # failed, run continues
    STOPPED = "stopped"  # run ends without failing
    FATAL = "fatal"  # run ends and fails

    @property
    def halts(self) -> bool:
        """Whether this status ends the run."""
        return self in (StepStatus.STOPPED, StepStatus.FATAL)


class MergeOutcome(str, Enum):
    """Result of merging the target branch into the candidate."""

    CLEAN = "clean"
    CONFLICTED = "conflicted"


class RunStatus(str, Enum):
    """Overall status of a run."""

    SUCCEEDED = "succeeded"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """Result of one orchestrator step."""

    step: MergeDownStep
    status: StepStatus
    message: str = ""
    error: Exception | None = None
    value: Any = None

    @classmethod
    def succeeded(
        cls, step: MergeDownStep, message: str = "", value: Any = None
    ) -> "StepResult":
        return cls(step, StepStatus.SUCCEEDED, message, value=value)

    @classmethod
    def skipped(cls, step: MergeDownStep, message: str = "") -> "StepResult":
        return cls(step, StepStatus.SKIPPED, message)

    @classmethod
    def degraded(
        cls, step: MergeDownStep, message: str, error: Exception | None = None
    ) -> "StepResult":
        return cls(step, StepStatus.DEGRADED, message, error)

    @classmethod
    def stopped(
        cls, step: MergeDownStep, message: str, error: Exception | None = None
    ) -> "StepResult":
        return cls(step, StepStatus.STOPPED, message, error)

    @classmethod
    def fatal(cls, step: MergeDownStep, error: Exception) -> "StepResult":
        return cls(step, StepStatus.FATAL, str(error), error)


@dataclass(frozen=True)
class CandidateBranch:
    """Branch that stages a merge-down until its pull request lands."""

    name: str
    source_sha: str

    @property
    def ref(self) -> str:
        """Fully qualified ref name."""
        return f"refs/heads/{self.name}"


@dataclass
class GeneratedPullRequest:
    """Pull request opened by a merge-down run."""

    number: int
    base: str
    head: str
    assignee: str | None = None
    auto_merge_enabled: bool = False


@dataclass
class MergeDownResult:
    """Record of a merge-down run."""

    event: MergeEvent
    target: str | None = None
    candidate: CandidateBranch | None = None
    merge_outcome: MergeOutcome | None = None
    pull_request: GeneratedPullRequest | None = None
    steps: list[StepResult] = field(default_factory=list)

    @property
    def status(self) -> RunStatus:
        """Overall run status derived from the step results."""
        statuses = {result.status for result in self.steps}
        if StepStatus.FATAL in statuses:
            return RunStatus.FAILED
        if StepStatus.STOPPED in statuses:
            return RunStatus.STOPPED
        return RunStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        """Whether the run should be reported as failed."""
        return self.status is RunStatus.FAILED

    @property
    def failure_reason(self) -> str | None:
        """Message of the fatal step, if any."""
        for result in self.steps:
            if result.status is StepStatus.FATAL:
                return result.message
        return None

    @property
    def warnings(self) -> list[str]:
        """Messages of every step that degraded, stopped or skipped with a notice."""
        return [
            result.message
            for result in self.steps
            if result.message
            and result.status
            in (StepStatus.DEGRADED, StepStatus.STOPPED, StepStatus.SKIPPED)
        ]

    def require_target(self) -> str:
        """Resolved target branch.

        Raises:
            IncompleteRunError: If the target has not been resolved
        """
        if self.target is None:
            raise IncompleteRunError("Target branch has not been resolved")
        return self.target

    def require_candidate(self) -> CandidateBranch:
        if self.candidate is None:
            raise IncompleteRunError("Candidate branch has not been created")
        return self.candidate

    def require_pull_request(self) -> GeneratedPullRequest:
        if self.pull_request is None:
            raise IncompleteRunError("Pull request has not been created")
        return self.pull_request

    def result_for(self, step: MergeDownStep) -> StepResult | None:
        """Result of ``step``, or None if it did not run."""
        for result in self.steps:
            if result.step is step:
                return result
        return None
