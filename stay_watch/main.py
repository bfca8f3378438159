"""
Main entry point for the Stay Watch system.

``stay-watch --once`` runs a single poll cycle, which is what an external
scheduler (cron, Cloud Scheduler) should invoke. ``stay-watch --loop`` is a
built-in scheduler that runs a cycle every poll interval; being a single
loop it never overlaps two cycles.
"""

import argparse
import asyncio
import json
import sys
import time
from typing import List, Optional

from .components.telegram_client import TelegramClient
from .models.config import Configuration
from .models.subscription import Subscription
from .orchestrator import RunOrchestrator
from .services.config_manager import ConfigurationManager
from .services.subscription_store import JsonSubscriptionStore
from .utils.error_handling import SubscriptionStoreError
from .utils.logging import get_logger, setup_logging


async def run_cycle(orchestrator: RunOrchestrator, run_timeout: float) -> bool:
    """
    Run one poll cycle bounded by ``run_timeout`` seconds.

    Subscriptions not reached before the timeout are picked up next cycle.
    A blocking call still running when the timeout fires completes on the
    orchestrator's worker thread before the next cycle's first call.

    Returns:
        True if the cycle completed, False if it failed or timed out
    """
    logger = get_logger("main")

    try:
        report = await asyncio.wait_for(orchestrator.run_once(), timeout=run_timeout)
    except asyncio.TimeoutError:
        logger.error("Poll cycle exceeded run timeout", extra={"run_timeout": run_timeout})
        return False
    except Exception as e:
        logger.error("Poll cycle failed", extra={"error": str(e)}, exc_info=True)
        return False

    logger.info(
        "Poll cycle complete",
        extra={
            "notified": report.total_notified,
            "failed_subscriptions": len(report.failed_subscriptions),
        },
    )
    return True


async def run_forever(
    orchestrator: RunOrchestrator,
    poll_interval: float,
    run_timeout: float,
    max_cycles: Optional[int] = None,
) -> None:
    """Run poll cycles on a fixed cadence until interrupted."""
    logger = get_logger("main")
    cycles = 0

    while max_cycles is None or cycles < max_cycles:
        started = time.monotonic()
        await run_cycle(orchestrator, run_timeout)
        cycles += 1

        if max_cycles is not None and cycles >= max_cycles:
            break

        remaining = poll_interval - (time.monotonic() - started)
        if remaining > 0:
            logger.debug("Waiting for next poll cycle", extra={"seconds": remaining})
            await asyncio.sleep(remaining)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stay-watch",
        description="Poll listing searches and post new listings to Telegram",
    )
    parser.add_argument("-c", "--config", help="Path to configuration file")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once", action="store_true", help="Run a single poll cycle (default)"
    )
    mode.add_argument(
        "--loop", action="store_true", help="Run a poll cycle every poll interval"
    )
    mode.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate the configuration file and exit",
    )
    mode.add_argument(
        "--check-telegram",
        action="store_true",
        help="Check that the configured bot token is accepted and exit",
    )
    mode.add_argument(
        "--add-subscription",
        metavar="FILE",
        help="Add the subscription described in a JSON file and exit",
    )
    return parser


def check_telegram(config: Configuration) -> int:
    client = TelegramClient(
        bot_token=config.telegram.bot_token,
        api_base=config.telegram.api_base,
        timeout=config.telegram.timeout,
    )
    if client.test_connection():
        print("Telegram bot token OK")
        return 0
    print("Telegram bot token rejected or API unreachable", file=sys.stderr)
    return 1


def add_subscription(config: Configuration, path: str) -> int:
    """Add one subscription document, in stored shape, to the subscription store."""
    store = JsonSubscriptionStore(config.storage.subscriptions_file)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("Subscription file must contain a JSON object")
        subscription = store.add(Subscription.from_dict(data))
    except (OSError, ValueError, SubscriptionStoreError) as e:
        print(f"Could not add subscription: {e}", file=sys.stderr)
        return 1

    print(f"Added subscription {subscription.id} for chat {subscription.chat_id}")
    return 0


async def async_main(config: Configuration, loop_mode: bool) -> int:
    """Async main application entry point."""
    orchestrator = RunOrchestrator.from_config(config)

    try:
        if loop_mode:
            await run_forever(
                orchestrator, config.system.poll_interval, config.system.run_timeout
            )
            return 0

        ok = await run_cycle(orchestrator, config.system.run_timeout)
        return 0 if ok else 1
    finally:
        orchestrator.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    try:
        config_manager = ConfigurationManager(args.config)
        if args.validate_config:
            config_manager.validate_config_file(config_manager.config_path)
            print(f"Configuration OK: {config_manager.config_path}")
            return 0
        config = config_manager.get_config()
    except (ValueError, FileNotFoundError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(log_dir=config.system.log_dir, log_level=config.system.log_level)
    if args.check_telegram:
        return check_telegram(config)
    if args.add_subscription:
        return add_subscription(config, args.add_subscription)

    logger = get_logger("main")
    logger.info(
        "Starting Stay Watch",
        extra={"config_path": config_manager.config_path, "loop": args.loop},
    )

    try:
        return asyncio.run(async_main(config, args.loop))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())
