"""Merge-down orchestration: step machine, results and retry policy."""

from .interfaces import RepositoryGateway
from .models import (
    CandidateBranch,
    GeneratedPullRequest,
    IncompleteRunError,
    MergeDownResult,
    MergeDownStep,
    MergeOutcome,
    RunStatus,
    StepResult,
    StepStatus,
)
from .orchestrator import AUTO_MERGE_METHOD, MergeDownOrchestrator
from .retry import RetryPolicy
from .templates import pull_request_body, pull_request_title

__all__ = [
    "AUTO_MERGE_METHOD",
    "CandidateBranch",
    "GeneratedPullRequest",
    "IncompleteRunError",
    "MergeDownOrchestrator",
    "MergeDownResult",
    "MergeDownStep",
    "MergeOutcome",
    "RepositoryGateway",
    "RetryPolicy",
    "RunStatus",
    "StepResult",
    "StepStatus",
    "pull_request_body",
    "pull_request_title",
]
