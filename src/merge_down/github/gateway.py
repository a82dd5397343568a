"""GitHub implementation of the repository gateway."""

import logging
from typing import Any
from urllib.parse import quote

from ..orchestrator.interfaces import RepositoryGateway
from .client import GitHubClient
from .exceptions import GitHubError

logger = logging.getLogger(__name__)

PULL_REQUEST_ID_QUERY = """
query GetPullRequestId($owner: String!, $repo: String!, $pullRequestNumber: Int!) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $pullRequestNumber) {
      id
    }
  }
}
"""

ENABLE_AUTO_MERGE_MUTATION = """
mutation EnableAutoMerge($pullRequestId: ID!, $mergeMethod: PullRequestMergeMethod!) {
  enablePullRequestAutoMerge(input: {
    pullRequestId: $pullRequestId,
    mergeMethod: $mergeMethod
  }) {
    pullRequest {
      autoMergeRequest {
        enabledAt
        enabledBy {
          login
        }
      }
    }
  }
}
"""


class GitHubRepositoryGateway(RepositoryGateway):
    """Repository gateway backed by the GitHub REST and GraphQL APIs."""

    def __init__(self, client: GitHubClient) -> None:
        """Initialize gateway.

        Args:
            client: Configured GitHub client
        """
        self.client = client

    async def delete_ref(self, owner: str, repo: str, ref: str) -> None:
        """Delete a ref, e.g. ``heads/feature-merge-1.x``."""
        await self.client.delete(f"/repos/{owner}/{repo}/git/refs/{quote(ref)}")

    async def get_branch(self, owner: str, repo: str, branch: str) -> dict[str, Any]:
        """Fetch a branch, raising GitHubNotFoundError when it is missing."""
        data: dict[str, Any] = await self.client.get(
            f"/repos/{owner}/{repo}/branches/{quote(branch)}"
        )
        return data

    async def create_ref(
        self, owner: str, repo: str, ref: str, sha: str
    ) -> dict[str, Any]:
        """Create ``ref`` pointing at ``sha``."""
        data: dict[str, Any] = await self.client.post(
            f"/repos/{owner}/{repo}/git/refs", data={"ref": ref, "sha": sha}
        )
        return data

    async def merge(
        self, owner: str, repo: str, base: str, head: str
    ) -> dict[str, Any] | None:
        """Merge ``head`` into ``base`` on the server.

        GitHub answers 201 with the merge commit, 204 when there is nothing to
        merge and 409 when the branches conflict.
        """
        data: dict[str, Any] | None = await self.client.post(
            f"/repos/{owner}/{repo}/merges", data={"base": base, "head": head}
        )
        return data

    async def create_pull_request(
        self, owner: str, repo: str, title: str, base: str, head: str, body: str
    ) -> int:
        """Open a pull request and return its number."""
        data = await self.client.post(
            f"/repos/{owner}/{repo}/pulls",
            data={"title": title, "base": base, "head": head, "body": body},
        )
        number = data.get("number") if isinstance(data, dict) else None
        if not isinstance(number, int):
            raise GitHubError("Invalid pull request response: missing number")
        return number

    async def resolve_pull_request_id(self, owner: str, repo: str, number: int) -> str:
        """Look up the GraphQL node id of pull request ``number``."""
        data = await self.client.graphql(
            PULL_REQUEST_ID_QUERY,
            {"owner": owner, "repo": repo, "pullRequestNumber": number},
        )
        pull_request = (data.get("repository") or {}).get("pullRequest") or {}
        pull_request_id = pull_request.get("id")
        if not isinstance(pull_request_id, str) or not pull_request_id:
            raise GitHubError(f"Pull request #{number} not found in {owner}/{repo}")
        return pull_request_id

    async def enable_auto_merge(
        self, pull_request_id: str, merge_method: str
    ) -> dict[str, Any] | None:
        """Enable auto-merge and return the resulting auto-merge request."""
        data = await self.client.graphql(
            ENABLE_AUTO_MERGE_MUTATION,
            {"pullRequestId": pull_request_id, "mergeMethod": merge_method},
        )
        pull_request = (data.get("enablePullRequestAutoMerge") or {}).get(
            "pullRequest"
        ) or {}
        auto_merge: dict[str, Any] | None = pull_request.get("autoMergeRequest")
        logger.debug(f"Auto-merge request for {pull_request_id}: {auto_merge}")
        return auto_merge

    async def update_issue_assignees(
        self, owner: str, repo: str, number: int, assignees: list[str]
    ) -> None:
        """Replace the assignees of issue (or pull request) ``number``."""
        await self.client.patch(
            f"/repos/{owner}/{repo}/issues/{number}", data={"assignees": assignees}
        )
