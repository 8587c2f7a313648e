"""
Scheduler module for Basis Tracker.

Uses APScheduler to run every handler once a day (cash bids are posted
each morning). Each handler's own dedupe check makes an extra run on the
same day harmless.

Can also be run manually via command line.
"""

import json
import logging
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from .handlers import HANDLERS, invoke

logger = logging.getLogger(__name__)


def run_all_handlers() -> dict[str, int]:
    """
    Run every handler once.

    Returns:
        HTTP-style status per handler name
    """
    statuses = {}
    for name in sorted(HANDLERS):
        status, body = invoke(name)
        statuses[name] = status
        if status == 200:
            logger.info(f"{name}: {body['message']} ({len(body['errors'])} errors)")
        else:
            logger.error(f"{name} failed: {body['error']}")
    return statuses


def create_scheduler(hour: int = 9, minute: int = 30) -> BlockingScheduler:
    """
    Create and configure the APScheduler.

    Jobs:
    1. import_basis: Daily at hour:minute - run every handler

    Returns:
        Configured BlockingScheduler
    """
    scheduler = BlockingScheduler()

    scheduler.add_job(
        run_all_handlers,
        trigger=CronTrigger(hour=hour, minute=minute),
        id="import_basis",
        name="Import cash bids from all sources",
        replace_existing=True,
        max_instances=1,
    )

    logger.info(f"Scheduler configured to run daily at {hour:02d}:{minute:02d}")
    return scheduler


def start_scheduler(hour: int = 9, minute: int = 30) -> None:
    """Start the scheduler (blocking)."""
    scheduler = create_scheduler(hour, minute)

    logger.info("Starting Basis Tracker scheduler...")
    logger.info("Press Ctrl+C to stop")

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")


# =============================================================================
# CLI ENTRY POINT
# =============================================================================

def main():
    """CLI entry point for the scheduler."""
    import argparse

    parser = argparse.ArgumentParser(description="Basis Tracker Scheduler")
    parser.add_argument(
        "--mode",
        choices=["schedule", "once"],
        default="schedule",
        help="Mode to run: schedule (daily, continuous), once (single run of every handler)"
    )
    parser.add_argument("--hour", type=int, default=9, help="Hour of the daily run")
    parser.add_argument("--minute", type=int, default=30, help="Minute of the daily run")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level"
    )

    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if args.mode == "schedule":
        start_scheduler(args.hour, args.minute)
    else:
        logger.info("Running every handler once...")
        print(json.dumps(run_all_handlers(), indent=2))


if __name__ == "__main__":
    main()
