#!/usr/bin/env python3
"""Dashboard snapshot tool for pysolardash.

Fetches the dashboard model once (or keeps polling with ``--watch``) and
prints it as camelCase JSON, the same shape a rendering front end consumes.

Configuration comes from the ``SOLAR_DASHBOARD_CONFIG`` environment variable
(a JSON object, optionally set in a ``.env`` file) with command line flags
applied on top.

Usage:
    pysolardash                          # Use configured source (mock by default)
    pysolardash --live --base-url https://monitor.example.com
    pysolardash --mock --watch --interval 60
    pysolardash --help
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from dotenv import load_dotenv

from pysolardash import __version__
from pysolardash.client import SolarDashClient
from pysolardash.config import RuntimeConfig, load_runtime_config, resolve_runtime_config
from pysolardash.equivalents import Equivalents
from pysolardash.exceptions import SolarDashCancelledError, SolarDashError
from pysolardash.models import DashboardModel
from pysolardash.poller import DashboardPoller
from pysolardash.sources import fetch_dashboard_data

_LOGGER = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="pysolardash",
        description="Print the solar production dashboard model as JSON.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pysolardash
      One snapshot from the configured source

  pysolardash --live --base-url https://monitor.example.com
      One snapshot from the monitoring API

  pysolardash --watch --interval 60
      Print a new snapshot every minute
""",
    )

    source_group = parser.add_argument_group("Source Options")
    mode = source_group.add_mutually_exclusive_group()
    mode.add_argument(
        "--mock",
        dest="use_mock_data",
        action="store_const",
        const=True,
        help="Use generated data",
    )
    mode.add_argument(
        "--live",
        dest="use_mock_data",
        action="store_const",
        const=False,
        help="Query the monitoring API",
    )
    source_group.add_argument(
        "--base-url",
        help="Monitoring API origin (e.g. https://monitor.example.com)",
    )
    source_group.add_argument(
        "--history-days",
        type=int,
        help="Days of daily energy history to request",
    )
    source_group.add_argument(
        "--timeout",
        type=float,
        help="Per-request timeout in seconds",
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--watch",
        "-w",
        action="store_true",
        help="Keep polling and print every new snapshot",
    )
    output_group.add_argument(
        "--interval",
        type=float,
        help="Poll interval in seconds for --watch",
    )
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def build_config(args: argparse.Namespace) -> RuntimeConfig:
    """Apply command line overrides on top of the environment configuration."""
    overrides: dict[str, Any] = load_runtime_config().to_dict()

    if args.use_mock_data is not None:
        overrides["useMockData"] = args.use_mock_data
    if args.base_url is not None:
        overrides["baseUrl"] = args.base_url
    if args.history_days is not None:
        overrides["historyDays"] = args.history_days
    if args.timeout is not None:
        overrides["requestTimeoutMs"] = int(args.timeout * 1000)
    if args.interval is not None:
        overrides["pollIntervalMs"] = int(args.interval * 1000)

    return resolve_runtime_config(overrides)


def render(model: DashboardModel) -> str:
    """Render a model and its equivalents as indented JSON."""
    payload = model.to_payload()
    payload["equivalents"] = Equivalents.from_overview(model.overview).to_dict()
    return json.dumps(payload, indent=2)


async def run_snapshot(config: RuntimeConfig) -> int:
    """Fetch and print one snapshot."""
    try:
        model = await fetch_dashboard_data(config)
    except SolarDashCancelledError as err:
        print(f"Request aborted: {err}", file=sys.stderr)
        return 1
    except SolarDashError as err:
        print(f"Could not load data: {err}", file=sys.stderr)
        return 1

    print(render(model))
    return 0


async def run_watch(config: RuntimeConfig) -> int:
    """Poll until interrupted, printing every new snapshot."""
    async with SolarDashClient() as client:
        poller = DashboardPoller(
            client=client,
            config_loader=lambda: config,
            on_update=lambda model: print(render(model), flush=True),
        )
        poller.start()
        try:
            await asyncio.Event().wait()
        finally:
            await poller.stop()
    return 0


def main() -> int:
    """Main entry point."""
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = build_config(args)
    _LOGGER.debug("Resolved configuration: %s", config)

    if args.watch:
        try:
            return asyncio.run(run_watch(config))
        except KeyboardInterrupt:
            return 0

    return asyncio.run(run_snapshot(config))


if __name__ == "__main__":
    sys.exit(main())
