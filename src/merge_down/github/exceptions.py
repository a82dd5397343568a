"""Errors raised while talking to GitHub on behalf of a merge-down run.

Every class derives from :class:`GitHubError`, so the orchestrator can treat
any repository failure as one outcome and only look at the subclass where a
step reacts differently (a 409 during the merge, for example).
"""

from typing import Any


class GitHubError(Exception):
    """A repository call failed.

    ``status_code`` is the HTTP status when GitHub answered, ``None`` for
    transport failures. ``response_data`` keeps the decoded error body so the
    ``message`` GitHub sent ("Reference already exists", "Merge conflict")
    can be shown in the run summary.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}


class GitHubAuthenticationError(GitHubError):
    """The token is missing, expired, or lacks write access (401/403).

    Creating refs and merges needs ``contents: write``; opening and assigning
    the pull request needs ``pull-requests: write``.
    """


class GitHubRateLimitError(GitHubError):
    """The token has used up its quota, or would dip into the reserved buffer."""

    def __init__(
        self,
        message: str,
        reset_time: int | None = None,
        remaining: int = 0,
        limit: int = 0,
    ):
        """
        Args:
            message: Error message
            reset_time: Unix timestamp when the quota refills
            remaining: Calls left in the current window
            limit: Size of the window
        """
        super().__init__(message, status_code=403)
        self.reset_time = reset_time
        self.remaining = remaining
        self.limit = limit


class GitHubNotFoundError(GitHubError):
    """A branch, ref, user or pull request does not exist (404).

    GitHub also answers 404 for private repositories the token cannot see,
    so a wrong ``GITHUB_REPOSITORY`` looks the same as a deleted branch.
    """


class GitHubConflictError(GitHubError):
    """The target branch cannot be merged into the candidate cleanly (409)."""


class GitHubValidationError(GitHubError):
    """GitHub rejected the request body (422).

    Seen when the candidate ref already exists, when a ref to update does not
    exist, and when a pull request between the two branches is already open.
    """


class GitHubGraphQLError(GitHubError):
    """A GraphQL response carried an ``errors`` list.

    Enabling auto-merge fails this way when the repository does not allow it
    or the pull request has no pending required checks.
    """

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message, status_code=200, response_data={"errors": errors})
        self.errors = errors or []


class GitHubServerError(GitHubError):
    """GitHub answered with a 5xx status."""


class GitHubConnectionError(GitHubError):
    """The API host could not be reached."""


class GitHubTimeoutError(GitHubError):
    """A call did not finish within its time limit."""
