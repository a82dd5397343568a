"""
Shared fixtures for merge-down tests.

Provides a merge event for a pull request merged into release branch 1.0,
an in-memory gateway seeded with the branches that event needs, and a
recording status sink.
"""

import pytest

from merge_down.events import MergeEvent
from tests.fixtures import FakeRepositoryGateway, RecordingSink

HEAD_SHA = "a1b2c3d4e5f60718293a4b5c6d7e8f9012345678"


@pytest.fixture
def merge_event() -> MergeEvent:
    """Pull request #42 from feature-branch merged into 1.0."""
    return MergeEvent(
        base_branch="1.0",
        head_branch="feature-branch",
        head_sha=HEAD_SHA,
        pull_request_number=42,
        author_login="octocat",
        owner="acme",
        repo="widgets",
    )


@pytest.fixture
def gateway() -> FakeRepositoryGateway:
    """Repository with 1.0, 1.x and the merged feature branch."""
    return FakeRepositoryGateway(
        branches={
            "1.0": "sha-1.0",
            "1.x": "sha-1.x",
            "feature-branch": HEAD_SHA,
        }
    )


@pytest.fixture
def sink() -> RecordingSink:
    """Status sink that records messages."""
    return RecordingSink()


@pytest.fixture
def pull_request_payload() -> dict:
    """Minimal pull_request webhook payload for a merged pull request."""
    return {
        "action": "closed",
        "number": 42,
        "pull_request": {
            "number": 42,
            "merged": True,
            "user": {"login": "octocat", "type": "User"},
            "base": {
                "ref": "1.0",
                "sha": "sha-1.0",
                "repo": {"name": "widgets", "owner": {"login": "acme"}},
            },
            "head": {"ref": "feature-branch", "sha": HEAD_SHA},
            "assignees": [],
        },
    }
