"""Pull request events that trigger a merge-down."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class EventPayloadError(Exception):
    """Raised when an event payload cannot be turned into a MergeEvent."""


def _require(data: dict[str, Any], path: str) -> Any:
    value: Any = data
    for key in path.split("."):
        if not isinstance(value, dict) or value.get(key) is None:
            raise EventPayloadError(f"Event payload is missing '{path}'")
        value = value[key]
    return value


@dataclass(frozen=True)
class MergeEvent:
    """A pull request that was closed into ``base_branch``."""

    base_branch: str
    head_branch: str
    head_sha: str
    pull_request_number: int
    author_login: str
    owner: str
    repo: str
    merged: bool = True

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "MergeEvent":
        """Build an event from a ``pull_request`` webhook payload.

        Args:
            payload: Webhook payload containing a ``pull_request`` object

        Returns:
            Parsed merge event

        Raises:
            EventPayloadError: If the payload is not a pull request event
        """
        pull = payload.get("pull_request") if isinstance(payload, dict) else None
        if not isinstance(pull, dict):
            raise EventPayloadError("Event payload has no pull_request")

        number = _require(pull, "number")
        if not isinstance(number, int):
            raise EventPayloadError(f"Invalid pull request number: {number!r}")

        return cls(
            base_branch=_require(pull, "base.ref"),
            head_branch=_require(pull, "head.ref"),
            head_sha=_require(pull, "head.sha"),
            pull_request_number=number,
            author_login=_require(pull, "user.login"),
            owner=_require(pull, "base.repo.owner.login"),
            repo=_require(pull, "base.repo.name"),
            merged=bool(pull.get("merged", False)),
        )


def load_event(path: str | Path) -> MergeEvent:
    """Load a merge event from a JSON file such as ``$GITHUB_EVENT_PATH``.

    Raises:
        EventPayloadError: If the file cannot be read or parsed
    """
    event_path = Path(path)
    try:
        with open(event_path, encoding="utf-8") as f:
            payload = json.load(f)
    except OSError as e:
        raise EventPayloadError(f"Failed to read event file {event_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise EventPayloadError(f"Invalid JSON in event file {event_path}: {e}") from e

    return MergeEvent.from_payload(payload)
