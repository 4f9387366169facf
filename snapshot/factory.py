"""
Builds readers, collectors and schedule rules from settings.

This is the only place that reads :mod:`config`; everything it builds gets
its configuration through constructor arguments.
"""
from __future__ import annotations

from typing import List

from rpc.client import JsonRpcClient
from rpc.readers import ChainReader, CoreChainReader, ESpaceChainReader, JsonRpcChainReader
from storage.models import ChainId, PoolVersion

from .collectors import PoolContract, PoolStatCollector, RosterCollector, RosterScaling
from .jobs import RetryPolicy
from .resolver import BlockTimestampResolver
from .schedule import DatesOrIntervalRule, FixedDaysRule

POOL_JOBS = ("core", "espace")
ROSTER_JOBS = ("roster", "tesla")
JOB_NAMES = POOL_JOBS + ROSTER_JOBS


class ConfigurationError(RuntimeError):
    """A setting required by the requested job is missing or invalid."""


def _require(settings, name: str) -> str:
    value = str(getattr(settings, name, "") or "").strip()
    if not value:
        raise ConfigurationError(f"{name} is not configured (set it in the environment or .env)")
    return value


def job_chain(job: str) -> ChainId:
    if job == "core":
        return ChainId.CORE
    if job in ("espace",) + ROSTER_JOBS:
        return ChainId.ESPACE
    raise ConfigurationError(f"unknown job {job!r}; expected one of {JOB_NAMES}")


def open_reader(chain: ChainId, settings) -> JsonRpcChainReader:
    """Caller owns the reader: use ``async with``."""
    if chain is ChainId.CORE:
        return CoreChainReader(JsonRpcClient(settings.CORE_RPC_URL, timeout=settings.RPC_TIMEOUT))
    return ESpaceChainReader(JsonRpcClient(settings.ESPACE_RPC_URL, timeout=settings.RPC_TIMEOUT))


def retry_policy(settings) -> RetryPolicy:
    return RetryPolicy(max_attempts=settings.RETRY_ATTEMPTS, delay=settings.RETRY_DELAY_MS / 1000)


def pool_contracts(job: str, settings) -> List[PoolContract]:
    if job == "core":
        return [PoolContract(ChainId.CORE, PoolVersion.V1, _require(settings, "CORE_V1_POOL_ADDRESS"))]
    if job == "espace":
        return [
            PoolContract(ChainId.ESPACE, PoolVersion.V1, _require(settings, "ESPACE_V1_POOL_ADDRESS")),
            PoolContract(ChainId.ESPACE, PoolVersion.V2, _require(settings, "ESPACE_V2_POOL_ADDRESS")),
        ]
    raise ConfigurationError(f"{job!r} is not a pool-stat job")


def pool_collectors(job: str, reader: ChainReader, settings) -> List[PoolStatCollector]:
    resolver = BlockTimestampResolver(reader, probe_delay=settings.PROBE_DELAY_MS / 1000)
    return [
        PoolStatCollector(reader, contract, resolver=resolver, timezone=settings.SNAPSHOT_TIMEZONE)
        for contract in pool_contracts(job, settings)
    ]


def roster_collector(reader: ChainReader, settings) -> RosterCollector:
    return RosterCollector(
        reader,
        _require(settings, "ESPACE_V2_POOL_ADDRESS"),
        _require(settings, "ESPACE_ABC_TOKEN_ADDRESS"),
        scaling=RosterScaling(
            pos_unit=settings.ROSTER_POS_UNIT,
            pos_vote_divisor=settings.ROSTER_POS_VOTE_DIVISOR,
            token_decimals=settings.ROSTER_TOKEN_DECIMALS,
            token_vote_divisor=settings.ROSTER_TOKEN_VOTE_DIVISOR,
        ),
        resolver=BlockTimestampResolver(reader, probe_delay=settings.ROSTER_PROBE_DELAY_MS / 1000),
        call_delay=settings.ROSTER_CALL_DELAY_MS / 1000,
        timezone=settings.SNAPSHOT_TIMEZONE,
    )


def pool_schedule(settings) -> FixedDaysRule:
    return FixedDaysRule(days=tuple(settings.POOL_SNAPSHOT_DAYS))


def roster_schedule(settings) -> DatesOrIntervalRule:
    return DatesOrIntervalRule.from_strings(
        settings.ROSTER_ANCHOR_DATE,
        settings.ROSTER_SNAPSHOT_DATES,
        interval_days=settings.ROSTER_INTERVAL_DAYS,
    )
