"""
Unit tests for the GitHub repository gateway.

Why: The orchestrator only sees the RepositoryGateway interface, so the
     gateway must send exactly the REST and GraphQL requests GitHub expects
     and reject malformed responses.

What: Tests each gateway operation's path, payload and response handling.

How: Mocks the GitHubClient verbs with AsyncMock and inspects the calls.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from merge_down.github.client import GitHubClient
from merge_down.github.exceptions import GitHubError, GitHubNotFoundError
from merge_down.github.gateway import (
    ENABLE_AUTO_MERGE_MUTATION,
    PULL_REQUEST_ID_QUERY,
    GitHubRepositoryGateway,
)


@pytest.fixture
def mock_client() -> Mock:
    """GitHubClient with mocked request methods."""
    client = Mock(spec=GitHubClient)
    client.get = AsyncMock(return_value={"name": "1.x"})
    client.post = AsyncMock(return_value={})
    client.patch = AsyncMock(return_value={})
    client.delete = AsyncMock(return_value=None)
    client.graphql = AsyncMock(return_value={})
    return client


@pytest.fixture
def gateway(mock_client: Mock) -> GitHubRepositoryGateway:
    """Gateway over the mocked client."""
    return GitHubRepositoryGateway(mock_client)


class TestRefs:
    """Test branch and ref operations."""

    @pytest.mark.asyncio
    async def test_delete_ref(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock
    ) -> None:
        """Test refs are deleted through the git refs API."""
        await gateway.delete_ref("acme", "widgets", "heads/feature-merge-1.x")

        mock_client.delete.assert_awaited_once_with(
            "/repos/acme/widgets/git/refs/heads/feature-merge-1.x"
        )

    @pytest.mark.asyncio
    async def test_get_branch(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock
    ) -> None:
        """Test branch lookup returns the branch payload."""
        branch = await gateway.get_branch("acme", "widgets", "rhino-1.x")

        assert branch == {"name": "1.x"}
        mock_client.get.assert_awaited_once_with(
            "/repos/acme/widgets/branches/rhino-1.x"
        )

    @pytest.mark.asyncio
    async def test_get_branch_quotes_name(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock
    ) -> None:
        """Test branch names are URL-quoted, keeping slashes."""
        await gateway.get_branch("acme", "widgets", "team/1.x#2")

        mock_client.get.assert_awaited_once_with(
            "/repos/acme/widgets/branches/team/1.x%232"
        )

    @pytest.mark.asyncio
    async def test_get_missing_branch(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock
    ) -> None:
        """Test a missing branch propagates GitHubNotFoundError."""
        mock_client.get.side_effect = GitHubNotFoundError("Branch not found", 404)

        with pytest.raises(GitHubNotFoundError):
            await gateway.get_branch("acme", "widgets", "9.x")

    @pytest.mark.asyncio
    async def test_create_ref(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock
    ) -> None:
        """Test ref creation payload."""
        mock_client.post.return_value = {"ref": "refs/heads/f-merge-2.x"}

        result = await gateway.create_ref(
            "acme", "widgets", "refs/heads/f-merge-2.x", "abc123"
        )

        assert result == {"ref": "refs/heads/f-merge-2.x"}
        mock_client.post.assert_awaited_once_with(
            "/repos/acme/widgets/git/refs",
            data={"ref": "refs/heads/f-merge-2.x", "sha": "abc123"},
        )

    @pytest.mark.asyncio
    async def test_merge(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock
    ) -> None:
        """Test server-side merge payload and empty 204 result."""
        mock_client.post.return_value = None

        result = await gateway.merge("acme", "widgets", base="f-merge-2.x", head="2.x")

        assert result is None
        mock_client.post.assert_awaited_once_with(
            "/repos/acme/widgets/merges", data={"base": "f-merge-2.x", "head": "2.x"}
        )


class TestPullRequests:
    """Test pull request operations."""

    @pytest.mark.asyncio
    async def test_create_pull_request(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock
    ) -> None:
        """Test the pull request number is returned."""
        mock_client.post.return_value = {"number": 101, "id": 9}

        number = await gateway.create_pull_request(
            "acme", "widgets", title="T", base="2.x", head="f-merge-2.x", body="B"
        )

        assert number == 101
        mock_client.post.assert_awaited_once_with(
            "/repos/acme/widgets/pulls",
            data={"title": "T", "base": "2.x", "head": "f-merge-2.x", "body": "B"},
        )

    @pytest.mark.asyncio
    async def test_create_pull_request_without_number(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock
    ) -> None:
        """Test a response without a number is an error."""
        mock_client.post.return_value = {"id": 9}

        with pytest.raises(GitHubError, match="missing number"):
            await gateway.create_pull_request(
                "acme", "widgets", title="T", base="2.x", head="h", body="B"
            )

    @pytest.mark.asyncio
    async def test_resolve_pull_request_id(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock
    ) -> None:
        """Test node id lookup through GraphQL."""
        mock_client.graphql.return_value = {
            "repository": {"pullRequest": {"id": "PR_kwDO"}}
        }

        pull_request_id = await gateway.resolve_pull_request_id("acme", "widgets", 7)

        assert pull_request_id == "PR_kwDO"
        mock_client.graphql.assert_awaited_once_with(
            PULL_REQUEST_ID_QUERY,
            {"owner": "acme", "repo": "widgets", "pullRequestNumber": 7},
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"repository": None},
            {"repository": {"pullRequest": None}},
            {"repository": {"pullRequest": {"id": ""}}},
        ],
    )
    async def test_resolve_missing_pull_request(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock, data: dict
    ) -> None:
        """Test unresolvable pull requests raise GitHubError."""
        mock_client.graphql.return_value = data

        with pytest.raises(GitHubError, match="#7 not found in acme/widgets"):
            await gateway.resolve_pull_request_id("acme", "widgets", 7)

    @pytest.mark.asyncio
    async def test_enable_auto_merge(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock
    ) -> None:
        """Test the auto-merge mutation and its result."""
        auto_merge = {"enabledAt": "2024-01-01T00:00:00Z", "enabledBy": {"login": "b"}}
        mock_client.graphql.return_value = {
            "enablePullRequestAutoMerge": {
                "pullRequest": {"autoMergeRequest": auto_merge}
            }
        }

        result = await gateway.enable_auto_merge("PR_kwDO", "MERGE")

        assert result == auto_merge
        mock_client.graphql.assert_awaited_once_with(
            ENABLE_AUTO_MERGE_MUTATION,
            {"pullRequestId": "PR_kwDO", "mergeMethod": "MERGE"},
        )

    @pytest.mark.asyncio
    async def test_update_issue_assignees(
        self, gateway: GitHubRepositoryGateway, mock_client: Mock
    ) -> None:
        """Test assignees are replaced through the issues API."""
        await gateway.update_issue_assignees("acme", "widgets", 101, ["octocat"])

        mock_client.patch.assert_awaited_once_with(
            "/repos/acme/widgets/issues/101", data={"assignees": ["octocat"]}
        )
