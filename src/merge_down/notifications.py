"""Status reporting to the environment that invoked a merge-down.

On GitHub Actions, messages are written to the runner as workflow commands
so warnings and errors show up as annotations on the run. Everywhere else
they go to the log.
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import TextIO

logger = logging.getLogger(__name__)


def escape_data(message: str) -> str:
    """Escape a workflow command message."""
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class StatusSink(ABC):
    """Receives informational, warning and fatal messages from a run."""

    def __init__(self) -> None:
        """Initialize sink."""
        self.failure_reason: str | None = None

    @property
    def failed(self) -> bool:
        """Whether the run has been marked as failed."""
        return self.failure_reason is not None

    @abstractmethod
    def debug(self, message: str) -> None:
        """Report a debug message."""

    @abstractmethod
    def info(self, message: str) -> None:
        """Report progress."""

    @abstractmethod
    def warning(self, message: str) -> None:
        """Report a non-fatal problem."""

    @abstractmethod
    def error(self, message: str) -> None:
        """Report an error without failing the run."""

    def set_failed(self, message: str) -> None:
        """Mark the run as failed with ``message`` as the reason."""
        self.failure_reason = message
        self.error(message)


class LoggingStatusSink(StatusSink):
    """Sink that only writes to the log, for local runs."""

    def debug(self, message: str) -> None:
        """Report a debug message."""
        logger.debug(message)

    def info(self, message: str) -> None:
        """Report progress."""
        logger.info(message)

    def warning(self, message: str) -> None:
        """Report a non-fatal problem."""
        logger.warning(message)

    def error(self, message: str) -> None:
        """Report an error without failing the run."""
        logger.error(message)


class GitHubActionsSink(StatusSink):
    """Sink that emits GitHub Actions workflow commands.

    Messages are written to the runner stream only, never to the log.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        """Initialize sink.

        Args:
            stream: Output stream read by the runner, stdout by default
        """
        super().__init__()
        self.stream = stream or sys.stdout

    def _command(self, command: str, message: str) -> None:
        self.stream.write(f"::{command}::{escape_data(message)}\n")
        self.stream.flush()

    def debug(self, message: str) -> None:
        """Report a debug message."""
        self._command("debug", message)

    def info(self, message: str) -> None:
        """Report progress."""
        self.stream.write(f"{message}\n")
        self.stream.flush()

    def warning(self, message: str) -> None:
        """Report a non-fatal problem."""
        self._command("warning", message)

    def error(self, message: str) -> None:
        """Report an error without failing the run."""
        self._command("error", message)
