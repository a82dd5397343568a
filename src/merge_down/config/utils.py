"""Helpers for merging and displaying configuration."""

import copy
from typing import Any

from .models import Config

# Keys whose values never reach the log.
SENSITIVE_KEYS = ("token", "secret", "password", "key")


def mask_token(value: str) -> str:
    """Hide a credential, keeping its type prefix (``ghs_``, ``ghp_``)."""
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}{'*' * 8}"


def mask_sensitive_values(data: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``data`` with credential values masked, for logging.

    Args:
        data: Configuration dictionary, e.g. ``Config.model_dump()``

    Returns:
        New dictionary; ``data`` is left untouched
    """
    masked: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            masked[key] = mask_sensitive_values(value)
        elif (
            isinstance(value, str)
            and value
            and any(part in key.lower() for part in SENSITIVE_KEYS)
        ):
            masked[key] = mask_token(value)
        else:
            masked[key] = copy.deepcopy(value)
    return masked


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge configuration dictionaries, later ones winning.

    Nested dictionaries are merged key by key; any other value replaces the
    earlier one. The inputs are not modified.
    """
    merged: dict[str, Any] = {}
    for config in configs:
        for key, value in config.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = merge_configs(current, value)
            else:
                merged[key] = copy.deepcopy(value)
    return merged


def config_summary(config: Config) -> dict[str, Any]:
    """Non-sensitive overview of ``config``, logged when a run starts."""
    return {
        "api_url": config.github.api_url,
        "graphql_url": config.github.graphql_url or "derived",
        "branch_prefix": config.flow.branch_prefix or "(none)",
        "create_attempts": config.orchestrator.create_attempts,
        "call_timeout": config.orchestrator.call_timeout,
        "log_level": config.log_level.value,
    }
