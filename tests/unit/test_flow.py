"""
Unit tests for branch flow resolution.

Why: The target branch decides where every merge-down lands; a wrong match
     opens pull requests against the wrong release line.
What: Tests development/release classification, target resolution with and
      without a prefix, stale candidate detection and candidate naming.
How: Pure function calls with parametrized branch names.
"""

import pytest

from merge_down.flow import (
    BranchKind,
    branch_patterns,
    candidate_branch_name,
    classify_branch,
    is_stale_candidate,
    match_development_branch,
    match_release_branch,
    resolve_target_branch,
    timestamp_token,
)


class TestResolveTargetBranch:
    """Test resolve_target_branch."""

    @pytest.mark.parametrize(
        ("branch", "expected"),
        [
            ("0.x", "1.x"),
            ("1.x", "2.x"),
            ("9.x", "10.x"),
            ("41.x", "42.x"),
        ],
    )
    def test_development_branch_flows_to_next_major(
        self, branch: str, expected: str
    ) -> None:
        """Test N.x resolves to (N+1).x."""
        assert resolve_target_branch(branch, "") == expected

    @pytest.mark.parametrize(
        ("branch", "expected"),
        [
            ("1.0", "1.x"),
            ("1.12", "1.x"),
            ("7.3", "7.x"),
            ("10.0", "10.x"),
        ],
    )
    def test_release_branch_flows_to_development_branch(
        self, branch: str, expected: str
    ) -> None:
        """Test N.M resolves to N.x."""
        assert resolve_target_branch(branch, "") == expected

    def test_prefixed_branches(self) -> None:
        """Test branches carrying the configured prefix."""
        assert resolve_target_branch("rhino-2.3", "rhino-") == "rhino-2.x"
        assert resolve_target_branch("rhino-7.x", "rhino-") == "rhino-8.x"

    def test_prefix_is_required_when_configured(self) -> None:
        """Test matching is prefix-sensitive in both directions."""
        assert resolve_target_branch("1.x", "rhino-") is None
        assert resolve_target_branch("rhino-1.x", "") is None

    def test_prefix_is_matched_literally(self) -> None:
        """Test regex metacharacters in the prefix are not interpreted."""
        assert resolve_target_branch("v.1.x", "v.") == "v.2.x"
        assert resolve_target_branch("vX1.x", "v.") is None

    @pytest.mark.parametrize(
        "branch",
        ["main", "master", "develop", "1.x.y", "1", "x.1", "1.0.1", "1.x-hotfix", ""],
    )
    def test_branches_outside_the_flow(self, branch: str) -> None:
        """Test names that match neither pattern resolve to None."""
        assert resolve_target_branch(branch, "") is None

    def test_default_prefix_is_empty(self) -> None:
        """Test the prefix argument defaults to no prefix."""
        assert resolve_target_branch("3.x") == "4.x"

    def test_release_branch_keeps_major_digits(self) -> None:
        """Test the release target reuses the major exactly as written."""
        assert resolve_target_branch("01.2", "") == "01.x"


class TestBranchMatching:
    """Test the development and release match predicates."""

    def test_match_development_branch(self) -> None:
        """Test development matches capture the major version."""
        version = match_development_branch("rhino-8.x", "rhino-")

        assert version is not None
        assert version.kind is BranchKind.DEVELOPMENT
        assert version.major == 8
        assert version.minor is None
        assert version.next_branch() == "rhino-9.x"

    def test_match_release_branch(self) -> None:
        """Test release matches capture major and minor versions."""
        version = match_release_branch("8.12", "")

        assert version is not None
        assert version.kind is BranchKind.RELEASE
        assert version.major == 8
        assert version.minor == 12
        assert version.next_branch() == "8.x"

    def test_predicates_are_mutually_exclusive(self) -> None:
        """Test a development branch is not a release branch and vice versa."""
        assert match_release_branch("1.x", "") is None
        assert match_development_branch("1.0", "") is None

    def test_classify_branch(self) -> None:
        """Test classification tries development first, then release."""
        assert classify_branch("2.x").kind is BranchKind.DEVELOPMENT  # type: ignore[union-attr]
        assert classify_branch("2.1").kind is BranchKind.RELEASE  # type: ignore[union-attr]
        assert classify_branch("feature") is None

    def test_branch_patterns(self) -> None:
        """Test the reported patterns escape the prefix."""
        assert branch_patterns() == (r"^(\d+)\.x$", r"^(\d+)\.(\d+)$")
        assert branch_patterns("v.")[0] == r"^v\.(\d+)\.x$"


class TestCandidateNaming:
    """Test stale candidate detection and candidate branch names."""

    @pytest.mark.parametrize(
        "branch",
        [
            "foo-merge-1.x",
            "foo-merge-1.0",
            "feature-branch-merge-12.34",
            "foo-1700000000000-merge-2.x",
        ],
    )
    def test_stale_candidates(self, branch: str) -> None:
        """Test names left by earlier merge-down runs."""
        assert is_stale_candidate(branch)

    @pytest.mark.parametrize(
        "branch",
        ["feature-branch", "merge-1.x", "foo-merge-main", "foo-merge-1.x-fix"],
    )
    def test_not_stale_candidates(self, branch: str) -> None:
        """Test ordinary branch names."""
        assert not is_stale_candidate(branch)

    def test_candidate_branch_name(self) -> None:
        """Test the plain candidate name."""
        assert candidate_branch_name("feature-branch", "1.x") == (
            "feature-branch-merge-1.x"
        )

    def test_disambiguated_candidate_branch_name(self) -> None:
        """Test the token goes before the merge suffix."""
        assert candidate_branch_name("feature-branch", "1.x", "1700000000000") == (
            "feature-branch-1700000000000-merge-1.x"
        )

    def test_candidate_names_are_stale_candidates(self) -> None:
        """Test every generated name is recognised by a later run."""
        assert is_stale_candidate(candidate_branch_name("f", "2.x"))
        assert is_stale_candidate(candidate_branch_name("f", "2.x", "123"))

    def test_timestamp_token_is_epoch_milliseconds(self) -> None:
        """Test the token uses the injected clock."""
        assert timestamp_token(lambda: 1700000000.123) == "1700000000123"
