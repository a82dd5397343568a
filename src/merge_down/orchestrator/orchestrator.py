"""Merge-down orchestration.

The orchestrator runs a fixed sequence of steps for one merged pull request:

1. resolve the target branch from the base branch
2. delete a stale candidate branch the pull request came from
3. verify the target branch exists
4. create the candidate branch (retrying once under a new name on failure)
5. merge the target branch into the candidate
6. open a pull request from the candidate into the target
7. enable auto-merge when the merge in step 5 was clean
8. assign the pull request to the author of the original one

Every step returns a ``StepResult``. ``_record`` is the only place that
decides, from the result's status, whether the run goes on.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..config.models import FlowConfig
from ..events import MergeEvent
from ..flow import (
    branch_patterns,
    candidate_branch_name,
    is_stale_candidate,
    resolve_target_branch,
    timestamp_token,
)
from ..github.exceptions import GitHubError, GitHubTimeoutError
from ..notifications import StatusSink
from .interfaces import RepositoryGateway
from .models import (
    CandidateBranch,
    GeneratedPullRequest,
    MergeDownResult,
    MergeDownStep,
    MergeOutcome,
    StepResult,
    StepStatus,
)
from .retry import RetryPolicy
from .templates import pull_request_body, pull_request_title

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Auto-merge always lands with a merge commit, never squash or rebase.
AUTO_MERGE_METHOD = "MERGE"


class MergeDownOrchestrator:
    """Propagates a merged pull request to the next branch in the lineage."""

    def __init__(
        self,
        gateway: RepositoryGateway,
        sink: StatusSink,
        flow_config: FlowConfig | None = None,
        retry_policy: RetryPolicy | None = None,
        call_timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize orchestrator.

        Args:
            gateway: Repository service to operate on
            sink: Receives user-visible progress, warnings and errors
            flow_config: Branch naming configuration
            retry_policy: Policy for creating the candidate branch
            call_timeout: Seconds before a single gateway call is abandoned
            clock: Source of the timestamp used to disambiguate branch names
        """
        self.gateway = gateway
        self.sink = sink
        self.flow_config = flow_config or FlowConfig()
        self.retry_policy = retry_policy or RetryPolicy()
        self.call_timeout = call_timeout
        self.clock = clock

    async def run(self, event: MergeEvent) -> MergeDownResult:
        """Run every step for ``event`` until the sequence ends or halts.

        Gateway failures are turned into step results; any other exception
        propagates to the caller.

        Args:
            event: The merged pull request

        Returns:
            Record of the run
        """
        run = MergeDownResult(event=event)
        steps: list[Callable[[MergeDownResult], Awaitable[StepResult]]] = [
            self._resolve_target,
            self._cleanup_stale_candidate,
            self._verify_target,
            self._create_candidate,
            self._merge_target,
            self._create_pull_request,
            self._enable_auto_merge,
            self._assign_pull_request,
        ]

        for step in steps:
            result = await step(run)
            if self._record(run, result):
                break

        logger.info(
            f"Merge-down of PR #{event.pull_request_number} finished: "
            f"{run.status.value}"
        )
        return run

    def _record(self, run: MergeDownResult, result: StepResult) -> bool:
        """Store ``result``, report it, and return True if the run must stop."""
        run.steps.append(result)
        logger.debug(f"Step {result.step.value}: {result.status.value}")

        if result.status is StepStatus.FATAL:
            # Reported once, by whoever marks the run failed.
            logger.error(f"Step {result.step.value} failed: {result.message}")
            return True

        if result.error is not None:
            self.sink.error(str(result.error))

        if result.status is StepStatus.SUCCEEDED:
            if result.message:
                self.sink.info(result.message)
        elif result.message:
            self.sink.warning(result.message)

        return result.status.halts

    async def _call(self, awaitable: Awaitable[T]) -> T:
        """Await a gateway call, bounded by ``call_timeout``."""
        if self.call_timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=self.call_timeout)
        except TimeoutError as e:
            raise GitHubTimeoutError(
                f"Repository call timed out after {self.call_timeout}s"
            ) from e

    async def _resolve_target(self, run: MergeDownResult) -> StepResult:
        step = MergeDownStep.RESOLVE_TARGET
        event = run.event
        prefix = self.flow_config.branch_prefix

        development_pattern, release_pattern = branch_patterns(prefix)
        self.sink.debug(
            f"develop_branch_pattern: {development_pattern}, "
            f"release_branch_pattern: {release_pattern}"
        )
        target = resolve_target_branch(event.base_branch, prefix)
        self.sink.info(f"{event.head_branch}: {event.base_branch} -> {target}")

        if target is None:
            return StepResult.stopped(
                step,
                f"Base branch is not a release or development branch: "
                f"{event.base_branch} (branch-prefix: {prefix})",
            )

        run.target = target
        return StepResult.succeeded(step, value=target)

    async def _cleanup_stale_candidate(self, run: MergeDownResult) -> StepResult:
        step = MergeDownStep.CLEANUP_STALE_CANDIDATE
        event = run.event

        if not is_stale_candidate(event.head_branch):
            return StepResult.skipped(step)

        self.sink.info(f"Cleaning up old merge-down branch: {event.head_branch}")
        try:
            await self._call(
                self.gateway.delete_ref(
                    event.owner, event.repo, f"heads/{event.head_branch}"
                )
            )
        except GitHubError as e:
            return StepResult.degraded(
                step, "Failed to delete old merge-down branch", e
            )

        return StepResult.succeeded(step, value=event.head_branch)

    async def _verify_target(self, run: MergeDownResult) -> StepResult:
        step = MergeDownStep.VERIFY_TARGET
        event = run.event
        target = run.require_target()

        try:
            await self._call(self.gateway.get_branch(event.owner, event.repo, target))
        except GitHubError as e:
            return StepResult.stopped(
                step, f"Skipping merge-down for non-existent branch: '{target}'", e
            )

        return StepResult.succeeded(step, value=target)

    async def _create_candidate(self, run: MergeDownResult) -> StepResult:
        step = MergeDownStep.CREATE_CANDIDATE
        event = run.event
        target = run.require_target()

        async def attempt(number: int) -> CandidateBranch:
            token = timestamp_token(self.clock) if number > 1 else None
            candidate = CandidateBranch(
                name=candidate_branch_name(event.head_branch, target, token),
                source_sha=event.head_sha,
            )
            if number > 1:
                self.sink.warning(
                    f"Branch exists, creating '{candidate.name}' instead"
                )
            else:
                self.sink.info(f"Creating new remote branch: {candidate.name}")

            await self._call(
                self.gateway.create_ref(
                    event.owner, event.repo, candidate.ref, candidate.source_sha
                )
            )
            return candidate

        def on_retry(number: int, error: Exception) -> None:
            self.sink.error(str(error))

        try:
            candidate = await self.retry_policy.run(attempt, on_retry=on_retry)
        except GitHubError as e:
            return StepResult.fatal(step, e)

        run.candidate = candidate
        return StepResult.succeeded(step, value=candidate)

    async def _merge_target(self, run: MergeDownResult) -> StepResult:
        step = MergeDownStep.MERGE_TARGET
        event = run.event
        target = run.require_target()
        candidate = run.require_candidate()

        self.sink.info(f"Updating branch (merging '{target}' into '{candidate.name}')")
        try:
            await self._call(
                self.gateway.merge(
                    event.owner, event.repo, base=candidate.name, head=target
                )
            )
        except GitHubError as e:
            run.merge_outcome = MergeOutcome.CONFLICTED
            return StepResult.degraded(
                step, f"GitHub failed to merge {target} into {candidate.name}", e
            )

        run.merge_outcome = MergeOutcome.CLEAN
        return StepResult.succeeded(step, value=MergeOutcome.CLEAN)

    async def _create_pull_request(self, run: MergeDownResult) -> StepResult:
        step = MergeDownStep.CREATE_PULL_REQUEST
        event = run.event
        target = run.require_target()
        candidate = run.require_candidate()

        self.sink.info(
            f"Creating pull request to merge '{candidate.name}' into {target}"
        )
        try:
            number = await self._call(
                self.gateway.create_pull_request(
                    event.owner,
                    event.repo,
                    title=pull_request_title(event.head_branch, target),
                    base=target,
                    head=candidate.name,
                    body=pull_request_body(
                        event.pull_request_number,
                        event.base_branch,
                        target,
                        candidate.name,
                    ),
                )
            )
        except GitHubError as e:
            return StepResult.fatal(step, e)

        run.pull_request = GeneratedPullRequest(
            number=number, base=target, head=candidate.name
        )
        return StepResult.succeeded(
            step, f"Created pull request: #{number}", value=number
        )

    async def _enable_auto_merge(self, run: MergeDownResult) -> StepResult:
        step = MergeDownStep.ENABLE_AUTO_MERGE
        event = run.event
        pull_request = run.require_pull_request()

        if run.merge_outcome is not MergeOutcome.CLEAN:
            return StepResult.skipped(
                step, "Skipping auto-merge because there are merge conflicts"
            )

        try:
            pull_request_id = await self._call(
                self.gateway.resolve_pull_request_id(
                    event.owner, event.repo, pull_request.number
                )
            )
            await self._call(
                self.gateway.enable_auto_merge(pull_request_id, AUTO_MERGE_METHOD)
            )
        except GitHubError as e:
            return StepResult.degraded(step, "Failed to enable auto-merge", e)

        pull_request.auto_merge_enabled = True
        return StepResult.succeeded(step, "Auto-merge enabled")

    def _assignee(self, event: MergeEvent) -> str:
        """Login the generated pull request is assigned to.

        Always the author of the original pull request, bots included.
        """
        return event.author_login

    async def _assign_pull_request(self, run: MergeDownResult) -> StepResult:
        step = MergeDownStep.ASSIGN_PULL_REQUEST
        event = run.event
        pull_request = run.require_pull_request()

        assignee = self._assignee(event)
        self.sink.info(f"Assigning pull request to '{assignee}'")
        try:
            await self._call(
                self.gateway.update_issue_assignees(
                    event.owner, event.repo, pull_request.number, [assignee]
                )
            )
        except GitHubError as e:
            return StepResult.degraded(
                step, f"Failed to assign #{pull_request.number} to {assignee}", e
            )

        pull_request.assignee = assignee
        return StepResult.succeeded(step, value=assignee)
