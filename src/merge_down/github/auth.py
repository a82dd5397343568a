"""Token authentication for the GitHub API."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from .exceptions import GitHubAuthenticationError


@dataclass(frozen=True)
class AuthToken:
    """Credential sent with every request."""

    token: str
    scheme: str = "Bearer"

    def to_header(self) -> dict[str, str]:
        """Authorization header for this credential."""
        return {"Authorization": f"{self.scheme} {self.token}"}

    def __repr__(self) -> str:
        return f"AuthToken(scheme={self.scheme!r}, token='***')"


class AuthProvider(ABC):
    """Supplies the credential for each request."""

    @abstractmethod
    async def get_token(self) -> AuthToken:
        """Get authentication token."""


class TokenAuth(AuthProvider):
    """A fixed token: the workflow ``GITHUB_TOKEN`` or a personal access token.

    Workflow tokens and fine-grained PATs accept the ``Bearer`` scheme;
    classic PATs also accept ``token``.
    """

    def __init__(self, token: str, scheme: str = "Bearer") -> None:
        """Initialize token authentication.

        Raises:
            GitHubAuthenticationError: If the token is empty
        """
        token = token.strip()
        if not token:
            raise GitHubAuthenticationError("GitHub token is required")
        self._token = AuthToken(token=token, scheme=scheme)

    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        return self._token
