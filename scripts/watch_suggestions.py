#!/usr/bin/env python3
"""
Suggestion Watcher Script
=========================

Terminal client for a running Clippy Agent service.

This script:
    1. Connects to the service's /ws/suggestions endpoint
    2. Prints state changes and suggestions as they arrive
    3. Reports a summary when the duration elapses or on Ctrl+C

Prerequisites:
    - The service must be running (python -m clippy_agent.main)
    - Install the package: pip install -e .

Usage:
    python scripts/watch_suggestions.py --duration 300
    python scripts/watch_suggestions.py --url ws://127.0.0.1:8765/ws/suggestions
"""

import argparse
import asyncio
import logging
import os
import sys
import time

from clippy_agent.delivery.watcher import SuggestionEvent, SuggestionWatcher


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


async def print_event(event: SuggestionEvent) -> None:
    if event.type == "state":
        logger.info(f"[state] {event.state}")
    elif event.type == "suggestion":
        suggestion = event.suggestion or {}
        logger.info("-" * 40)
        logger.info(f"[{suggestion.get('type')}] {suggestion.get('title')}")
        for line in str(suggestion.get("content", "")).splitlines():
            logger.info(f"  {line}")
        logger.info("-" * 40)
    else:
        logger.info("[withdrawn]")


async def watch(url: str, duration: int) -> dict:
    watcher = SuggestionWatcher(url=url, on_event=print_event)
    task = asyncio.create_task(watcher.run())
    start_time = time.time()

    try:
        while duration <= 0 or time.time() - start_time < duration:
            await asyncio.sleep(0.5)
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Interrupted by user")
    finally:
        await watcher.stop()
        try:
            await asyncio.wait_for(task, timeout=5.0)
        except asyncio.TimeoutError:
            task.cancel()

    metrics = watcher.get_metrics()
    logger.info("=" * 60)
    logger.info(f"Runtime: {time.time() - start_time:.1f}s")
    logger.info(f"Events received: {metrics['events_received']}")
    logger.info(f"Parse errors: {metrics['parse_errors']}")
    logger.info(f"Reconnections: {metrics['reconnect_count']}")
    logger.info("=" * 60)
    return metrics


def main():
    parser = argparse.ArgumentParser(description="Watch Clippy Agent suggestions")
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("CLIPPY_AGENT_WS_URL", "ws://127.0.0.1:8765/ws/suggestions"),
        help="WebSocket URL of the service",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Seconds to watch (default: 0 = until Ctrl+C)",
    )
    args = parser.parse_args()

    metrics = asyncio.run(watch(url=args.url, duration=args.duration))
    sys.exit(0 if metrics["parse_errors"] == 0 else 1)


if __name__ == "__main__":
    main()
