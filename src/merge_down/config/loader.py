"""Configuration loading.

Configuration is assembled from, in increasing precedence:
1. Default values from the Pydantic models
2. An optional YAML configuration file
3. GitHub Actions inputs and runner environment variables

The loader never stores configuration globally; the entry point builds a
``Config`` once and passes it to the components that need it.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import (
    ConfigurationFileError,
    ConfigurationMissingError,
    ConfigurationValidationError,
)
from .models import Config
from .utils import mask_sensitive_values, merge_configs

logger = logging.getLogger(__name__)

# Action inputs reach the process as INPUT_<NAME> with the name upper-cased
# and hyphens kept. Underscore spellings are accepted too.
ACTION_INPUTS: dict[str, tuple[str, ...]] = {
    "INPUT_TOKEN": ("github", "token"),
    "INPUT_BRANCH-PREFIX": ("flow", "branch_prefix"),
    "INPUT_BRANCH_PREFIX": ("flow", "branch_prefix"),
    "INPUT_LOG-LEVEL": ("log_level",),
    "INPUT_LOG_LEVEL": ("log_level",),
}

RUNNER_VARIABLES: dict[str, tuple[str, ...]] = {
    "GITHUB_API_URL": ("github", "api_url"),
    "GITHUB_GRAPHQL_URL": ("github", "graphql_url"),
}


def _set_path(data: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    target = data
    for key in path[:-1]:
        target = target.setdefault(key, {})
    target[path[-1]] = value


class ConfigurationLoader:
    """Builds a validated Config from files, dictionaries and the environment."""

    def __init__(self) -> None:
        """Initialize configuration loader."""
        self._config: Config | None = None
        self._config_file_path: Path | None = None
        self._loaded_from_sources: dict[str, bool] = {
            "file": False,
            "env": False,
            "defaults": True,
        }

    @property
    def config(self) -> Config | None:
        """Most recently loaded configuration."""
        return self._config

    @property
    def config_file_path(self) -> Path | None:
        """Resolved path of the configuration file, if one was read."""
        return self._config_file_path

    @property
    def loaded_from_sources(self) -> dict[str, bool]:
        """Which sources contributed to the last load."""
        return dict(self._loaded_from_sources)

    def read_file(self, config_path: str | Path) -> dict[str, Any]:
        """Read raw configuration data from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Parsed configuration data

        Raises:
            ConfigurationFileError: If file cannot be read or parsed
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationFileError(
                f"Configuration file not found: {config_path}", str(config_path)
            )

        if not config_path.is_file():
            raise ConfigurationFileError(
                f"Configuration path is not a file: {config_path}", str(config_path)
            )

        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationFileError(
                f"Failed to parse YAML configuration: {e}", str(config_path)
            ) from e
        except OSError as e:
            raise ConfigurationFileError(
                f"Failed to read configuration file: {e}", str(config_path)
            ) from e

        if config_data is None:
            config_data = {}

        if not isinstance(config_data, dict):
            raise ConfigurationFileError(
                "Configuration file must contain a mapping", str(config_path)
            )

        self._config_file_path = config_path.resolve()
        self._loaded_from_sources["file"] = True
        return config_data

    def environment_overrides(
        self, environ: Mapping[str, str] | None = None
    ) -> dict[str, Any]:
        """Collect configuration values from action inputs and runner variables.

        Empty inputs are ignored, except that an empty branch prefix is a
        valid (and the default) value. The branch prefix is taken verbatim so
        stray whitespace fails validation instead of changing the prefix.

        Args:
            environ: Environment to read, ``os.environ`` by default

        Returns:
            Nested configuration data
        """
        environ = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}

        for variables in (RUNNER_VARIABLES, ACTION_INPUTS):
            for name, path in variables.items():
                value = environ.get(name)
                if value is None:
                    continue
                if path == ("flow", "branch_prefix"):
                    _set_path(overrides, path, value)
                    continue
                value = value.strip()
                if value:
                    _set_path(overrides, path, value)

        if environ.get("RUNNER_DEBUG") == "1":
            overrides["log_level"] = "DEBUG"
        elif "log_level" in overrides:
            overrides["log_level"] = str(overrides["log_level"]).upper()

        if overrides:
            self._loaded_from_sources["env"] = True
        return overrides

    def load_from_dict(self, config_data: dict[str, Any]) -> Config:
        """Load configuration from a dictionary.

        Args:
            config_data: Configuration data dictionary

        Returns:
            Validated configuration

        Raises:
            ConfigurationMissingError: If no GitHub token is configured
            ConfigurationValidationError: If configuration validation fails
        """
        github = config_data.get("github")
        if not isinstance(github, dict) or not github.get("token"):
            raise ConfigurationMissingError(
                "A GitHub token is required (action input 'token')",
                missing_fields=["github.token"],
            )

        try:
            self._config = Config(**config_data)
        except (ValidationError, ValueError) as e:
            errors = e.errors() if isinstance(e, ValidationError) else [str(e)]
            raise ConfigurationValidationError(
                f"Configuration validation failed: {e}", validation_errors=errors
            ) from e

        logger.debug(
            f"Loaded configuration: "
            f"{mask_sensitive_values(self._config.model_dump(mode='json'))}"
        )
        return self._config

    def load_from_file(self, config_path: str | Path) -> Config:
        """Load configuration from a YAML file."""
        return self.load_from_dict(self.read_file(config_path))

    def load_from_env(self, environ: Mapping[str, str] | None = None) -> Config:
        """Load configuration from action inputs only."""
        return self.load_from_dict(self.environment_overrides(environ))

    def load(
        self,
        config_path: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> Config:
        """Load configuration from an optional file overlaid with the environment.

        Args:
            config_path: Optional YAML configuration file
            environ: Environment to read, ``os.environ`` by default

        Returns:
            Validated configuration
        """
        file_data = self.read_file(config_path) if config_path else {}
        overrides = self.environment_overrides(environ)

        # An empty prefix input is the action default and must not mask a
        # prefix set in the file.
        file_flow = file_data.get("flow")
        env_flow = overrides.get("flow", {})
        if (
            isinstance(file_flow, dict)
            and "branch_prefix" in file_flow
            and env_flow.get("branch_prefix") == ""
        ):
            del env_flow["branch_prefix"]
            if not env_flow:
                del overrides["flow"]

        return self.load_from_dict(merge_configs(file_data, overrides))
