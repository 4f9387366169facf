"""
One run of a snapshot job: load dataset → collect → upsert → save.

Pool-stat jobs isolate failures per source: one failing collector is logged
and the others still run and persist. The roster job is all-or-nothing for
its date and propagates failures to the caller.
"""
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from datetime import date
from typing import Sequence

from storage.dataset import DatasetStore, replace_partition, upsert
from storage.models import PoolStatSnapshot, RosterEntry
from utils.dates import format_date

from .collectors import PoolStatCollector, RosterCollector
from .retry import with_retry

log = logging.getLogger(__name__)


class CollectionError(RuntimeError):
    """A collector produced records that must not be persisted."""


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    delay: float = 2.0


async def run_pool_stats(
    collectors: Sequence[PoolStatCollector],
    store: DatasetStore,
    target: date,
    *,
    retry: RetryPolicy = RetryPolicy(),
) -> int:
    """
    Returns
    -------
    int
        Number of records written.
    """
    date_str = format_date(target)
    records = store.load()
    written = 0

    for collector in collectors:
        # 1️⃣  Collect (retried as a whole) -----------------------------------
        log.info("[PoolStats] Fetching %s data for %s…", collector.label, date_str)
        try:
            snapshot: PoolStatSnapshot = await with_retry(
                functools.partial(collector.collect, target),
                max_attempts=retry.max_attempts,
                delay=retry.delay,
            )
        except Exception as err:
            log.error("[PoolStats] Error fetching %s data for %s: %s", collector.label, date_str, err)
            continue

        # 2️⃣  Never persist a poisoned record ----------------------------------
        if not snapshot.is_valid():
            log.warning("[PoolStats] Skipping write for %s – invalid record %s", collector.label, snapshot)
            continue

        # 3️⃣  Upsert + save after every source --------------------------------
        upsert(records, snapshot.to_record(), PoolStatSnapshot.KEY_FIELDS)
        store.save(records)
        written += 1

    log.info("[PoolStats] Collection for %s complete (%d/%d sources written)", date_str, written, len(collectors))
    return written


async def run_roster(
    collector: RosterCollector,
    store: DatasetStore,
    target: date,
    *,
    retry: RetryPolicy = RetryPolicy(),
) -> int:
    """
    Replace the roster of ``target``'s date. Raises on any failure, leaving
    the dataset file untouched.
    """
    date_str = format_date(target)
    records = store.load()

    existing = sum(1 for rec in records if rec.get("snapshotDate") == date_str)
    if existing:
        log.info("[Roster] Found %d existing records for %s. They will be replaced.", existing, date_str)

    entries = await with_retry(
        functools.partial(collector.collect, target),
        max_attempts=retry.max_attempts,
        delay=retry.delay,
    )

    invalid = [e for e in entries if not e.is_valid()]
    if invalid:
        raise CollectionError(f"{len(invalid)} invalid roster entries for {date_str}, e.g. {invalid[0]}")

    if entries:
        replace_partition(
            records,
            [e.to_record() for e in entries],
            partition_field="snapshotDate",
            key_fields=RosterEntry.KEY_FIELDS,
        )
    else:
        log.warning("[Roster] Empty roster for %s; keeping existing records", date_str)
    store.save(records)

    log.info("[Roster] Snapshot for %s complete (%d entries)", date_str, len(entries))
    return len(entries)
