"""GitHub API client with authentication, rate limiting, and retries."""

import asyncio
import json
import logging
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse, urlunparse

import aiohttp

from .auth import AuthProvider
from .exceptions import (
    GitHubAuthenticationError,
    GitHubConflictError,
    GitHubConnectionError,
    GitHubError,
    GitHubGraphQLError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubServerError,
    GitHubTimeoutError,
    GitHubValidationError,
)
from .rate_limiting import CircuitBreaker, RateLimitManager

logger = logging.getLogger(__name__)

# Failures worth repeating the same request for. Client errors (4xx) are not.
TRANSIENT_ERRORS = (GitHubServerError, GitHubTimeoutError, GitHubConnectionError)


@dataclass
class GitHubClientConfig:
    """Configuration for GitHub client."""

    base_url: str = "https://api.github.com"
    graphql_url: str | None = None
    timeout: int = 30
    max_retries: int = 3
    retry_backoff_factor: float = 2.0
    rate_limit_buffer: int = 10
    user_agent: str = "merge-down/1.0"


@dataclass
class GitHubResponse:
    """Status, headers and decoded body of a completed request."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    data: Any = None


def derive_graphql_url(base_url: str) -> str:
    """Derive the GraphQL endpoint from a REST base URL.

    ``https://api.github.com`` maps to ``https://api.github.com/graphql`` and
    GitHub Enterprise ``https://host/api/v3`` maps to ``https://host/api/graphql``.
    """
    parsed = urlparse(base_url)
    path = parsed.path.rstrip("/")

    if path.endswith("/api/v3"):
        path = path[: -len("/api/v3")] + "/api/graphql"
    elif path.endswith("/api"):
        path = path + "/graphql"
    else:
        path = path + "/graphql"

    return urlunparse(parsed._replace(path=path))


def _decode_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return {"message": text}


class GitHubClient:
    """Async GitHub API client."""

    def __init__(
        self,
        auth: AuthProvider,
        config: GitHubClientConfig | None = None,
    ) -> None:
        """Initialize GitHub client.

        Args:
            auth: Authentication provider
            config: Client configuration
        """
        self.auth = auth
        self.config = config or GitHubClientConfig()
        self.rate_limiter = RateLimitManager(buffer=self.config.rate_limit_buffer)
        self.circuit_breaker = CircuitBreaker()

        # HTTP session will be initialized on first use
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "GitHubClient":
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure HTTP session is initialized."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={
                    "User-Agent": self.config.user_agent,
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                },
            )

    async def close(self) -> None:
        """Close HTTP session and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _generate_correlation_id(self) -> str:
        """Generate correlation ID for request tracking."""
        return str(uuid.uuid4())[:8]

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    @property
    def graphql_url(self) -> str:
        """GraphQL endpoint for this client."""
        return self.config.graphql_url or derive_graphql_url(self.config.base_url)

    async def _make_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        correlation_id: str | None = None,
        resource: str = "core",
    ) -> GitHubResponse:
        """Make HTTP request with retry logic and error handling.

        Only transient failures (timeouts, connection errors, 5xx) are
        retried; client errors are raised on the first response.

        Args:
            method: HTTP method
            url: Request URL
            params: Query parameters
            data: Request body data
            headers: Additional headers
            correlation_id: Request correlation ID
            resource: Rate limit resource the request counts against

        Returns:
            Response with decoded body

        Raises:
            GitHubError: Various GitHub API errors
        """
        if not correlation_id:
            correlation_id = self._generate_correlation_id()

        if not self.circuit_breaker.can_attempt_request():
            wait_time = self.circuit_breaker.get_wait_time()
            raise GitHubConnectionError(
                f"Circuit breaker open. Wait {wait_time:.1f}s before retry."
            )

        self.rate_limiter.check_rate_limit(resource)

        request_headers = dict(headers or {})
        auth_token = await self.auth.get_token()
        request_headers.update(auth_token.to_header())

        await self._ensure_session()

        if not self._session:
            raise GitHubConnectionError("Failed to initialize HTTP session")

        request_kwargs: dict[str, Any] = {
            "params": params,
            "headers": request_headers,
        }

        if data is not None:
            request_kwargs["json"] = data

        last_exception: GitHubError | None = None
        for attempt in range(self.config.max_retries + 1):
            try:
                start_time = time.time()

                logger.debug(
                    f"GitHub API request [{correlation_id}] {method} {url} "
                    f"(attempt {attempt + 1})"
                )

                async with self._session.request(
                    method, url, **request_kwargs
                ) as response:
                    request_time = time.time() - start_time
                    response_headers = dict(response.headers)
                    body = _decode_body(await response.text())

                    self.rate_limiter.update_rate_limit(response.headers)

                    logger.debug(
                        f"GitHub API response [{correlation_id}] "
                        f"{response.status} in {request_time:.2f}s"
                    )

                    if 200 <= response.status < 300:
                        self.circuit_breaker.record_success()
                        return GitHubResponse(response.status, response_headers, body)

                    self._raise_for_status(
                        response.status, response.headers, body, correlation_id
                    )

            except TRANSIENT_ERRORS as e:
                last_exception = e
                self.circuit_breaker.record_failure()

            except TimeoutError:
                last_exception = GitHubTimeoutError(
                    f"Request timeout for {method} {url}"
                )
                self.circuit_breaker.record_failure()

            except aiohttp.ClientError as e:
                last_exception = GitHubConnectionError(
                    f"Connection error for {method} {url}: {e}"
                )
                self.circuit_breaker.record_failure()

            if attempt < self.config.max_retries:
                backoff_time = self.config.retry_backoff_factor**attempt
                logger.warning(
                    f"Request [{correlation_id}] failed (attempt {attempt + 1}), "
                    f"retrying in {backoff_time:.1f}s: {last_exception}"
                )
                await asyncio.sleep(backoff_time)

        if last_exception:
            raise last_exception
        raise GitHubError(f"Request failed after {self.config.max_retries} retries")

    def _raise_for_status(
        self,
        status: int,
        headers: Mapping[str, str],
        body: Any,
        correlation_id: str,
    ) -> None:
        """Raise the exception matching an error response.

        Args:
            status: HTTP status code
            headers: Response headers, looked up case-insensitively
            body: Decoded response body
            correlation_id: Request correlation ID

        Raises:
            GitHubError: Appropriate error based on status code
        """
        error_data: dict[str, Any] = body if isinstance(body, dict) else {}
        error_message = error_data.get("message", f"HTTP {status}")

        logger.warning(f"GitHub API error [{correlation_id}] {status}: {error_message}")

        if status == 401:
            raise GitHubAuthenticationError(error_message, status, error_data)
        elif status in (403, 429):
            if status == 429 or "rate limit" in error_message.lower():
                reset_time = headers.get("X-RateLimit-Reset")
                remaining = headers.get("X-RateLimit-Remaining", "0")
                limit = headers.get("X-RateLimit-Limit", "0")

                raise GitHubRateLimitError(
                    error_message,
                    reset_time=int(reset_time) if reset_time else None,
                    remaining=int(remaining),
                    limit=int(limit),
                )
            raise GitHubAuthenticationError(error_message, status, error_data)
        elif status == 404:
            raise GitHubNotFoundError(error_message, status, error_data)
        elif status == 409:
            raise GitHubConflictError(error_message, status, error_data)
        elif status == 422:
            raise GitHubValidationError(error_message, status, error_data)
        elif 500 <= status < 600:
            raise GitHubServerError(error_message, status, error_data)
        else:
            raise GitHubError(error_message, status, error_data)

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make GET request to GitHub API.

        Args:
            path: API path (e.g., '/repos/owner/repo/branches/main')
            params: Query parameters
            headers: Additional headers

        Returns:
            JSON response data
        """
        response = await self._make_request(
            "GET", self._url(path), params, headers=headers
        )
        return response.data

    async def post(
        self,
        path: str,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make POST request to GitHub API.

        Args:
            path: API path
            data: Request body data
            params: Query parameters
            headers: Additional headers

        Returns:
            JSON response data, or None for an empty body
        """
        response = await self._make_request(
            "POST", self._url(path), params, data, headers
        )
        return response.data

    async def patch(
        self,
        path: str,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make PATCH request to GitHub API.

        Args:
            path: API path
            data: Request body data
            params: Query parameters
            headers: Additional headers

        Returns:
            JSON response data
        """
        response = await self._make_request(
            "PATCH", self._url(path), params, data, headers
        )
        return response.data

    async def delete(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make DELETE request to GitHub API.

        Returns:
            JSON response data if any
        """
        response = await self._make_request(
            "DELETE", self._url(path), params, headers=headers
        )
        return response.data

    async def graphql(
        self, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run a GraphQL query or mutation.

        Args:
            query: GraphQL document
            variables: Query variables

        Returns:
            The ``data`` object of the response

        Raises:
            GitHubGraphQLError: If the response carries errors
        """
        response = await self._make_request(
            "POST",
            self.graphql_url,
            data={"query": query, "variables": variables or {}},
            resource="graphql",
        )
        payload = response.data if isinstance(response.data, dict) else {}

        errors = payload.get("errors")
        if errors:
            messages = [
                item["message"]
                for item in errors
                if isinstance(item, dict) and isinstance(item.get("message"), str)
            ]
            message = "; ".join(messages) if messages else "Unknown GraphQL error"
            raise GitHubGraphQLError(f"GitHub GraphQL error: {message}", errors)

        data: dict[str, Any] = payload.get("data") or {}
        return data
