#!/usr/bin/env python3
"""
Command-line entry point: one process per collector run.

    abc-pool-stats run core    [DATE] [--force] [--data-dir DIR]
    abc-pool-stats run espace  [DATE]
    abc-pool-stats run roster  [DATE]

DATE is ``YYYYMMDD``, an ISO date or any common date string; it defaults
to today in ``SNAPSHOT_TIMEZONE``.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from config import get_settings
from snapshot.factory import (
    JOB_NAMES,
    ROSTER_JOBS,
    ConfigurationError,
    job_chain,
    open_reader,
    pool_collectors,
    pool_schedule,
    retry_policy,
    roster_collector,
    roster_schedule,
)
from snapshot.jobs import run_pool_stats, run_roster
from snapshot.schedule import should_run
from storage.dataset import DatasetStore
from utils.dates import format_date, parse_date_arg
from utils.log_setup import setup_logging

log = logging.getLogger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="abc-pool-stats",
        description="Snapshot ABC staking pool statistics into JSON datasets.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="run one collector for a date")
    run.add_argument("job", choices=JOB_NAMES, help="collector to run")
    run.add_argument("date", nargs="?", default=None, help="YYYYMMDD, ISO or other date string (default: today)")
    run.add_argument("--force", action="store_true", help="ignore the schedule gate")
    run.add_argument("--data-dir", default=None, help="override DATA_DIR")
    return parser


async def run_job(
    job: str,
    target: date,
    settings,
    *,
    force: bool = False,
    data_dir: Optional[str] = None,
) -> int:
    """
    Returns the process exit code.
    """
    date_str = format_date(target)
    is_roster = job in ROSTER_JOBS

    # 1️⃣  Schedule gate -----------------------------------------------------
    rule = roster_schedule(settings) if is_roster else pool_schedule(settings)
    if not force and not should_run(target, rule):
        log.info("Skipping %s – not a scheduled %s snapshot date (%s)", date_str, job, rule.describe())
        return 0

    base = Path(data_dir or settings.DATA_DIR)
    store = DatasetStore(base / (settings.ROSTER_FILE if is_roster else settings.POOL_STATS_FILE))
    log.info("Fetching %s data for %s into %s", job, date_str, store.path)

    # 2️⃣  Collect + persist --------------------------------------------------
    try:
        async with open_reader(job_chain(job), settings) as reader:
            if is_roster:
                collector = roster_collector(reader, settings)
                try:
                    await run_roster(collector, store, target, retry=retry_policy(settings))
                except Exception as err:
                    log.error("Error fetching roster snapshot for %s: %s", date_str, err)
                    return 1
            else:
                await run_pool_stats(
                    pool_collectors(job, reader, settings),
                    store,
                    target,
                    retry=retry_policy(settings),
                )
    except ConfigurationError as err:
        log.error("Configuration error: %s", err)
        return 1

    log.info("%s data collection complete", job)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    try:
        target = parse_date_arg(args.date, tz=settings.SNAPSHOT_TIMEZONE)
    except ValueError as e:
        parser.error(f"invalid date {args.date!r}: {e}")

    return asyncio.run(
        run_job(args.job, target, settings, force=args.force, data_dir=args.data_dir)
    )


# ──────────────────────────────────────────────────────────────────────────
# Entrypoint
# ──────────────────────────────────────────────────────────────────────────
if __name__ == "__main__":
    sys.exit(main())
