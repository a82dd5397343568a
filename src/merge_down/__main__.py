"""Command line entry point, run by the GitHub Action on a closed pull request."""

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Mapping

from .config import Config, ConfigurationError, ConfigurationLoader, config_summary
from .events import EventPayloadError, MergeEvent, load_event
from .github.auth import TokenAuth
from .github.client import GitHubClient, GitHubClientConfig
from .github.gateway import GitHubRepositoryGateway
from .notifications import GitHubActionsSink, LoggingStatusSink, StatusSink
from .orchestrator import MergeDownOrchestrator, MergeDownResult, RetryPolicy

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="merge-down",
        description="Merge a merged pull request down into the next branch",
    )
    parser.add_argument("--config", help="Configuration file path")
    parser.add_argument(
        "--event-path", help="Event payload JSON (default: $GITHUB_EVENT_PATH)"
    )
    parser.add_argument("--log-level", help="Log level (overrides configuration)")
    return parser


def build_sink(environ: Mapping[str, str]) -> StatusSink:
    """Use workflow commands when running inside GitHub Actions."""
    if environ.get("GITHUB_ACTIONS") == "true":
        return GitHubActionsSink()
    return LoggingStatusSink()


def build_client(config: Config) -> GitHubClient:
    settings = config.github
    return GitHubClient(
        auth=TokenAuth(settings.token),
        config=GitHubClientConfig(
            base_url=settings.api_url,
            graphql_url=settings.graphql_url,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            retry_backoff_factor=settings.retry_backoff_factor,
            rate_limit_buffer=settings.rate_limit_buffer,
            user_agent=settings.user_agent,
        ),
    )


async def merge_down(
    config: Config, event: MergeEvent, sink: StatusSink
) -> MergeDownResult:
    """Run the orchestrator for ``event`` against GitHub."""
    settings = config.orchestrator
    async with build_client(config) as client:
        orchestrator = MergeDownOrchestrator(
            gateway=GitHubRepositoryGateway(client),
            sink=sink,
            flow_config=config.flow,
            retry_policy=RetryPolicy(
                max_attempts=settings.create_attempts,
                backoff_seconds=settings.create_backoff_seconds,
            ),
            call_timeout=settings.call_timeout,
        )
        return await orchestrator.run(event)


async def run(
    argv: list[str] | None = None,
    environ: Mapping[str, str] | None = None,
    sink: StatusSink | None = None,
) -> int:
    """Run a merge-down and return the process exit code."""
    environ = os.environ if environ is None else environ
    args = build_parser().parse_args(argv)
    sink = sink or build_sink(environ)

    try:
        config = ConfigurationLoader().load(config_path=args.config, environ=environ)
    except ConfigurationError as e:
        sink.set_failed(str(e))
        return 1

    log_level = (args.log_level or config.log_level.value).upper()
    logging.getLogger().setLevel(getattr(logging, log_level, logging.INFO))
    logger.info(f"Configuration: {config_summary(config)}")

    event_path = args.event_path or environ.get("GITHUB_EVENT_PATH")
    if not event_path:
        sink.set_failed("No event payload: pass --event-path or set GITHUB_EVENT_PATH")
        return 1

    try:
        event = load_event(event_path)
    except EventPayloadError as e:
        sink.set_failed(str(e))
        return 1

    if not event.merged:
        sink.info(
            f"Pull request #{event.pull_request_number} was closed without "
            f"merging; nothing to do"
        )
        return 0

    try:
        result = await merge_down(config, event, sink)
    except Exception as e:
        logger.exception("Merge-down failed unexpectedly")
        sink.set_failed(str(e))
        return 1

    if result.failed:
        sink.set_failed(result.failure_reason or "Merge-down failed")
        return 1
    return 0


def main() -> None:
    """Console script entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
