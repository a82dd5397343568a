"""Pydantic configuration models for merge-down.

The configuration hierarchy is:
- Config: root configuration
- GitHubSettings: API credentials and HTTP behaviour
- FlowConfig: branch naming
- OrchestratorSettings: candidate branch retries and per-call timeout

String values may reference environment variables as ${VAR_NAME} or
${VAR_NAME:default_value}.
"""

import os
import re
from enum import Enum
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BaseConfigModel(BaseModel):
    """Base configuration model with environment variable substitution."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def substitute_env_vars(cls, values: Any) -> Any:
        """Substitute environment variables in string values.

        Supports formats:
        - ${VAR_NAME} - Required environment variable
        - ${VAR_NAME:default} - Optional with default value

        Raises:
            ValueError: If required environment variable is missing
        """

        def replacer(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)

            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(
                    f"Required environment variable '{var_name}' not found"
                )

        def substitute_value(value: Any) -> Any:
            if isinstance(value, str):
                return ENV_VAR_PATTERN.sub(replacer, value)
            elif isinstance(value, dict):
                return {k: substitute_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [substitute_value(item) for item in value]
            else:
                return value

        if not isinstance(values, dict):
            return values
        return {key: substitute_value(value) for key, value in values.items()}


class GitHubSettings(BaseConfigModel):
    """GitHub API access."""

    token: str = Field(repr=False, description="Token used for all API calls")

    api_url: str = Field(
        default="https://api.github.com", description="REST API base URL"
    )

    graphql_url: str | None = Field(
        default=None, description="GraphQL endpoint, derived from api_url if unset"
    )

    timeout: int = Field(
        default=30, ge=1, le=600, description="Timeout in seconds per HTTP request"
    )

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries for transient failures (timeouts, 5xx)",
    )

    retry_backoff_factor: float = Field(
        default=2.0, ge=1.0, le=10.0, description="Exponential backoff base"
    )

    rate_limit_buffer: int = Field(
        default=10, ge=0, description="Requests kept in reserve before the limit"
    )

    user_agent: str = Field(default="merge-down/1.0")

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Reject empty tokens."""
        if not v or not v.strip():
            raise ValueError("GitHub token cannot be empty")
        return v.strip()

    @field_validator("api_url", "graphql_url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        """Validate API URL format."""
        if v is None:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid API URL: {v}")
        return v.rstrip("/")


class FlowConfig(BaseConfigModel):
    """Branch naming for the release lineage."""

    branch_prefix: str = Field(
        default="", description="Prefix of flow branch names, e.g. 'rhino-'"
    )

    @field_validator("branch_prefix")
    @classmethod
    def validate_branch_prefix(cls, v: str) -> str:
        """Branch names cannot contain whitespace."""
        if any(ch.isspace() for ch in v):
            raise ValueError("branch_prefix cannot contain whitespace")
        return v


class OrchestratorSettings(BaseConfigModel):
    """Behaviour of the merge-down step sequence."""

    create_attempts: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Attempts to create the candidate branch under distinct names",
    )

    create_backoff_seconds: float = Field(
        default=0.0, ge=0.0, le=60.0, description="Wait between creation attempts"
    )

    call_timeout: float | None = Field(
        default=300.0,
        gt=0,
        description="Seconds before a repository call, retries included, is abandoned",
    )


class Config(BaseConfigModel):
    """Root configuration."""

    github: GitHubSettings
    flow: FlowConfig = Field(default_factory=FlowConfig)
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)
    log_level: LogLevel = Field(default=LogLevel.INFO)
