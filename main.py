"""SmartFox Bot Swarm: entry point.

Spawns simulated clients against a SmartFox game server to generate load.

Usage:
    python main.py bots.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from pydantic import ValidationError

from sfsbots.config import load_config
from sfsbots.errors import StartupError
from sfsbots.logging_utils import configure_logging
from sfsbots.proxy import build_proxy_selector, resolve_proxy_list
from sfsbots.sdk import load_sdk
from sfsbots.swarm import Swarm
from sfsbots.transport import build_connector

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="SmartFox load-generating bot swarm"
    )
    parser.add_argument(
        "config_file",
        nargs="?",
        default="bots.yaml",
        help="Path to the YAML (or JSON) configuration file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also append log output to this file",
    )
    return parser.parse_args(argv)


async def run_until_stopped(swarm: Swarm, stop_event: asyncio.Event) -> None:
    """Spawn and report in the background until ``stop_event`` is set."""
    report_task = asyncio.create_task(swarm.report_loop())
    spawn_task = asyncio.create_task(swarm.spawn())

    await stop_event.wait()

    # Stopping mid-spawn leaves the remaining bots unspawned
    for task in (spawn_task, report_task):
        task.cancel()
    for task in (spawn_task, report_task):
        try:
            await task
        except asyncio.CancelledError:
            pass


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    try:
        config = load_config(args.config_file)
        proxies = resolve_proxy_list(config)
        selector = build_proxy_selector(proxies, config.proxy_rotate_every)
        api = load_sdk(config.api_file, config.base_dir, build_connector(selector))
    except (FileNotFoundError, ValueError, ValidationError, StartupError) as e:
        logger.error("Startup failed: %s", e)
        return 1

    swarm = Swarm(config, api, selector)

    # Signal handling; bots live until the process is told to stop
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received...")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    await run_until_stopped(swarm, stop_event)
    logger.info("Swarm stopped with status: %s", swarm.phase_counts())
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
