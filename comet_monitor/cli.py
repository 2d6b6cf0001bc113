"""Command-line interface for the Comet borrower monitor."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from .config import load_config
from .errors import ConfigError, QueryError
from .logging_setup import configure_logging
from .services import Monitor

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="comet-monitor",
        description="Borrower risk snapshots for Compound III (Comet) deployments",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("sync", help="Single sync pass over every instance")

    show_parser = sub.add_parser("show", help="Sync once and print an instance snapshot")
    show_parser.add_argument("instance_id", help="Instance identifier from config")

    serve_parser = sub.add_parser("serve", help="Serve snapshots over HTTP and keep syncing")
    serve_parser.add_argument("--host", default=None, help="Bind address (overrides config)")
    serve_parser.add_argument(
        "--port", type=int, default=None, help="Listen port (overrides config)"
    )
    serve_parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Sync interval in minutes (overrides config)",
    )

    return parser


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    config = load_config(args.config)
    monitor = Monitor(config)

    if args.command == "sync":
        await monitor.sync_all()
        for instance_id in monitor.store.instance_ids():
            state = monitor.store.snapshot(instance_id)
            logger.info(
                "%s: block %d, %d borrowers",
                instance_id,
                state.block,
                len(state.borrowers),
            )
    elif args.command == "show":
        if config.get_instance(args.instance_id) is None:
            raise ConfigError(f"Unknown instance '{args.instance_id}'")
        await monitor.sync_all()
        try:
            snapshot = monitor.store.export(args.instance_id)
        except QueryError as e:
            logger.error("%s", e)
            sys.exit(1)
        print(json.dumps(snapshot, indent=2))
    elif args.command == "serve":
        await monitor.serve(args.host, args.port, args.interval)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)
    try:
        asyncio.run(_run(args))
    except (ConfigError, FileNotFoundError) as e:
        print(f"{e} Exiting.", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
