"""Configuration for merge-down.

Example usage:
    from merge_down.config import ConfigurationLoader

    config = ConfigurationLoader().load(config_path="merge-down.yaml")
    prefix = config.flow.branch_prefix
"""

from .exceptions import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationMissingError,
    ConfigurationValidationError,
)
from .loader import ConfigurationLoader
from .models import (
    Config,
    FlowConfig,
    GitHubSettings,
    LogLevel,
    OrchestratorSettings,
)
from .utils import config_summary, mask_sensitive_values, merge_configs

__all__ = [
    "Config",
    "ConfigurationError",
    "ConfigurationFileError",
    "ConfigurationLoader",
    "ConfigurationMissingError",
    "ConfigurationValidationError",
    "FlowConfig",
    "GitHubSettings",
    "LogLevel",
    "OrchestratorSettings",
    "config_summary",
    "mask_sensitive_values",
    "merge_configs",
]
