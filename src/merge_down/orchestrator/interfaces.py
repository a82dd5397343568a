"""Abstract contract for the hosted repository service.

The orchestrator only talks to the repository through this interface, which
keeps it testable with an in-memory implementation. Every failure is raised as
a ``GitHubError`` subclass.
"""

from abc import ABC, abstractmethod
from typing import Any


class RepositoryGateway(ABC):
    """Branch, merge and pull request operations against a hosted repository."""

    @abstractmethod
    async def delete_ref(self, owner: str, repo: str, ref: str) -> None:
        """Delete a git ref such as ``heads/feature-merge-1.x``.

        Raises:
            GitHubNotFoundError: If the ref does not exist
        """

    @abstractmethod
    async def get_branch(self, owner: str, repo: str, branch: str) -> dict[str, Any]:
        """Fetch a branch.

        Raises:
            GitHubNotFoundError: If the branch does not exist
        """

    @abstractmethod
    async def create_ref(
        self, owner: str, repo: str, ref: str, sha: str
    ) -> dict[str, Any]:
        """Create a fully qualified ref (``refs/heads/<name>``) at ``sha``.

        Raises:
            GitHubValidationError: If the ref already exists
        """

    @abstractmethod
    async def merge(
        self, owner: str, repo: str, base: str, head: str
    ) -> dict[str, Any] | None:
        """Merge ``head`` into the ``base`` branch.

        Returns:
            The merge commit, or None when ``base`` already contains ``head``

        Raises:
            GitHubConflictError: If the merge has conflicts
        """

    @abstractmethod
    async def create_pull_request(
        self, owner: str, repo: str, title: str, base: str, head: str, body: str
    ) -> int:
        """Open a pull request and return its number."""

    @abstractmethod
    async def resolve_pull_request_id(self, owner: str, repo: str, number: int) -> str:
        """Look up the opaque node id of a pull request."""

    @abstractmethod
    async def enable_auto_merge(
        self, pull_request_id: str, merge_method: str
    ) -> dict[str, Any] | None:
        """Enable auto-merge for a pull request node id."""

    @abstractmethod
    async def update_issue_assignees(
        self, owner: str, repo: str, number: int, assignees: list[str]
    ) -> None:
        """Replace the assignees of an issue or pull request."""
