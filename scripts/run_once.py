#!/usr/bin/env python3
"""
Run schedules once without starting the scheduler.

Usage:
    python scripts/run_once.py                     # every configured schedule
    python scripts/run_once.py news-hourly         # selected schedules
    python scripts/run_once.py --config integrations.json funding-daily

Exits non-zero if the configuration is invalid or any run failed.
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, ingestion, etc.
sys.path.append(os.getcwd())

from core.context import build_context, load_integration_config
from core.exceptions import ConfigurationError
from core.logging import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run integration schedules once")
    parser.add_argument("schedules", nargs="*", help="Schedule ids (default: all)")
    parser.add_argument("--config", help="Integration config JSON (default: built-in)")
    return parser.parse_args(argv)


async def run_once(schedule_ids, config_path=None) -> int:
    """Run the given schedules in order; returns the number of failed runs"""
    context = build_context(load_integration_config(config_path))
    scheduler = context.scheduler
    
    ids = schedule_ids or [s.id for s in scheduler.get_schedules()]
    failed = 0
    
    try:
        for schedule_id in ids:
            summary = await scheduler.run_now(schedule_id)
            
            status = summary["status"]
            print(f"{schedule_id:<28} {status:<16} records={summary['records']}")
            for error in summary["errors"]:
                print(f"    ! {error}")
            
            if status == "failed":
                failed += 1
        
        print()
        for source_id, connector in {**context.api_connectors, **context.scrapers}.items():
            state = connector.last_status
            if state is None:
                label = "not checked"
            elif state.connected:
                label = "connected"
            else:
                label = f"disconnected ({state.error})"
            print(f"{source_id:<28} {label}")
        
        unread = context.notifications.get_unread_notifications()
        print(f"\n{len(unread)} new notification(s)")
        for notification in unread:
            print(f"  - {notification.title}: {notification.message}")
    finally:
        context.shutdown()
    
    return failed


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()
    
    try:
        failed = asyncio.run(run_once(args.schedules, args.config))
    except ConfigurationError as e:
        logger.error(str(e))
        return 2
    
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
