"""CLI entry point for nostrpipe.

Each subcommand builds one pipeline, runs it once against a relay, writes
the result to stdout and exits. Diagnostics go to stderr through the
structured logger.

Examples:
    ```bash
    python -m nostrpipe events --author npub1... --limit 5
    python -m nostrpipe tags --author npub1... --sort name
    python -m nostrpipe titles --config config/pipeline.yaml
    python -m nostrpipe identifiers --author npub1...
    PRIVATE_KEY=... python -m nostrpipe republish --author npub1... --to wss://nos.lol
    ```
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from nostrpipe.core.base_stage import PipelineContext
from nostrpipe.core.logger import Logger, StructuredFormatter
from nostrpipe.core.metrics import write_metrics
from nostrpipe.exceptions import ConfigurationError, NostrPipeError
from nostrpipe.models.constants import EventKind
from nostrpipe.stages.config import PipelineConfig
from nostrpipe.stages.pipeline import Pipeline
from nostrpipe.stages.publish import Publisher
from nostrpipe.utils.keys import KeysConfig
from nostrpipe.utils.protocol import connect_relay


logger = Logger("cli")


def build_pipeline(
    command: str,
    config: PipelineConfig,
    publisher: Publisher | None = None,
) -> Pipeline:
    """Build the stage chain for *command* from *config*.

    Raises:
        ConfigurationError: If *command* is unknown, or ``republish`` is
            requested without a publisher.
        EncodingError: If a configured author is not a valid public key.
    """
    pipeline = Pipeline().filter(config.query.to_filter()).query()

    if command == "events":
        return pipeline
    if command == "tags":
        pipeline = pipeline.tags(config.tag_key)
        return pipeline.sort_by_count() if config.sort == "count" else pipeline.sort_by_name()
    if command == "titles":
        return pipeline.titles()
    if command == "identifiers":
        return pipeline.identifiers()
    if command == "republish":
        if publisher is None:
            raise ConfigurationError("republish requires a publisher")
        return pipeline.publish(publisher, config.publish.relay)
    raise ConfigurationError(f"unknown command: {command}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        help="Pipeline config path (YAML); flags override its values",
    )
    common.add_argument("--relay", help="Relay to query (default: wss://relay.damus.io)")
    common.add_argument(
        "--author",
        action="append",
        dest="authors",
        metavar="KEY",
        help="Author public key, npub1... or hex (repeatable)",
    )
    common.add_argument(
        "--kind",
        action="append",
        dest="kinds",
        type=int,
        metavar="KIND",
        help=f"Event kind (repeatable, default: {int(EventKind.LONG_FORM_ARTICLE)})",
    )
    common.add_argument("--limit", type=int, help="Maximum events to fetch (default: 10)")
    common.add_argument("--timeout", type=float, help="Seconds per relay operation")
    common.add_argument("--deadline", type=float, help="Seconds allowed for the whole run")
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level (default: WARNING)",
    )

    parser = argparse.ArgumentParser(
        prog="nostrpipe",
        description="Query a Nostr relay and transform the events through a pipeline",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="command")

    subparsers.add_parser("events", parents=[common], help="Print the fetched event buffer")

    tags = subparsers.add_parser("tags", parents=[common], help="Count and sort tag values")
    tags.add_argument("--key", dest="tag_key", help="Tag key to aggregate (default: t)")
    tags.add_argument("--sort", choices=["count", "name"], help="Sort order (default: count)")

    subparsers.add_parser("titles", parents=[common], help="List article titles")
    subparsers.add_parser(
        "identifiers", parents=[common], help="List naddr identifiers of the fetched events"
    )

    republish = subparsers.add_parser(
        "republish", parents=[common], help="Sign and republish the fetched events"
    )
    republish.add_argument(
        "--to",
        dest="target",
        metavar="RELAY",
        help="Relay to publish to (default: the relay queried)",
    )

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Configure the root logger with structured formatting on stderr."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Collect the config values set explicitly on the command line."""
    overrides: dict[str, Any] = {}
    for name in ("relay", "timeout", "deadline"):
        if getattr(args, name) is not None:
            overrides[name] = getattr(args, name)

    query = {
        name: getattr(args, name)
        for name in ("authors", "kinds", "limit")
        if getattr(args, name) is not None
    }
    if query:
        overrides["query"] = query

    for name in ("tag_key", "sort"):
        if getattr(args, name, None) is not None:
            overrides[name] = getattr(args, name)
    if getattr(args, "target", None) is not None:
        overrides["publish"] = {"relay": args.target}
    return overrides


def load_config(args: argparse.Namespace) -> PipelineConfig:
    """Build the run configuration from ``--config`` and flag overrides.

    Raises:
        ConfigurationError: If the merged configuration is invalid.
        OSError: If the config file cannot be read.
        yaml.YAMLError: If the config file is not valid YAML.
    """
    overrides = _overrides(args)
    if args.config is not None:
        return PipelineConfig.from_yaml(str(args.config), **overrides)
    return PipelineConfig.from_dict({}, **overrides)


async def run_pipeline(command: str, config: PipelineConfig) -> int:
    """Build and run the pipeline for *command*.

    For ``republish`` the private key is loaded before any connection is
    opened, so a missing key fails without touching the network.

    Returns:
        Exit code: 0 for success.
    """
    publisher = None
    if command == "republish":
        keys_config = KeysConfig(keys_env=config.publish.keys_env)
        publisher = Publisher(keys_config.keys)

    pipeline = build_pipeline(command, config, publisher)

    async with await connect_relay(config.relay, config.timeout) as connection:
        context = PipelineContext(connection=connection, timeout=config.timeout)
        await pipeline.with_context(context).write(deadline=config.deadline)

    logger.info("pipeline_succeeded", command=command, relay=config.relay)
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, load config, and run one pipeline."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_config(args)
    except (NostrPipeError, OSError, TypeError, yaml.YAMLError) as e:
        logger.error("config_failed", error=str(e))
        return 1

    try:
        return await run_pipeline(args.command, config)
    except NostrPipeError as e:
        logger.error(f"{args.command}_failed", error_type=type(e).__name__, error=str(e))
        return 1
    finally:
        try:
            if write_metrics(config.metrics):
                logger.debug("metrics_written", path=str(config.metrics.textfile))
        except OSError as e:
            logger.warning("metrics_write_failed", error=str(e))


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("interrupted")
        sys.exit(130)


if __name__ == "__main__":
    cli()
