"""
Per-source snapshot collectors.

A collector owns one contract (or contract pair) on one chain and turns a
target date into typed records:

    date → local-midnight timestamp → resolved height → contract reads at
    exactly that height → decoded words → record(s)

Nothing is ever read at "latest".
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from rpc.abi import WordDecoder
from rpc.readers import ChainReader
from storage.models import ChainId, PoolStatSnapshot, PoolVersion, RosterEntry
from utils.dates import format_date, midnight_timestamp

from .resolver import BlockTimestampResolver

log = logging.getLogger(__name__)

STAKER_NUMBER = "stakerNumber()"
POOL_SUMMARY = "poolSummary()"
STAKER_ADDRESS = "stakerAddress(uint256)"
USER_SUMMARY = "userSummary(address)"
BALANCE_OF = "balanceOf(address)"


@dataclass(frozen=True)
class PoolContract:
    chain: ChainId
    version: PoolVersion
    address: str

    @property
    def label(self) -> str:
        return f"{self.chain.value}-{self.version.value}"


@dataclass(frozen=True)
class RosterScaling:
    """
    Fixed-point conventions of the pool and token contracts.

    pos_unit
        ``userSummary`` word 0 counts votes of this many native units.
    pos_vote_divisor
        votes per voting-weight point on the stake side.
    token_decimals
        decimals of the ABC token.
    token_vote_divisor
        whole tokens per voting-weight point on the token side.
    """

    pos_unit: int = 1000
    pos_vote_divisor: int = 5
    token_decimals: int = 18
    token_vote_divisor: int = 188

    def pos_amount(self, stake_votes: int) -> int:
        return stake_votes * self.pos_unit

    def token_amount(self, raw_balance: int) -> int:
        return raw_balance // 10**self.token_decimals

    def voting_weight(self, stake_votes: int, raw_balance: int) -> int:
        pos_weight = stake_votes // self.pos_vote_divisor
        token_weight = self.token_amount(raw_balance) // self.token_vote_divisor
        return min(pos_weight, token_weight)


class PoolStatCollector:
    """
    Staker count + total staked of one pool contract.
    """

    def __init__(
        self,
        reader: ChainReader,
        contract: PoolContract,
        *,
        resolver: Optional[BlockTimestampResolver] = None,
        timezone: Optional[str] = None,
    ) -> None:
        self._reader = reader
        self.contract = contract
        self._resolver = resolver or BlockTimestampResolver(reader)
        self._tz = timezone

    @property
    def label(self) -> str:
        return self.contract.label

    async def collect(self, target: date) -> PoolStatSnapshot:
        ts = midnight_timestamp(target, self._tz)
        height = await self._resolver.resolve(ts)
        log.info("[PoolStats] %s: %s → height %d", self.label, format_date(target), height)

        addr = self.contract.address
        count_raw = await self._reader.call_contract_method(addr, STAKER_NUMBER, (), height)
        summary_raw = await self._reader.call_contract_method(addr, POOL_SUMMARY, (), height)

        snapshot = PoolStatSnapshot(
            snapshot_date=format_date(target),
            chain=self.contract.chain,
            version=self.contract.version,
            resolved_height=height,
            staker_count=WordDecoder(count_raw).uint(0),
            total_staked=WordDecoder(summary_raw).uint(0),
        )
        log.info("[PoolStats] Done %s for %s: %s", self.label, snapshot.snapshot_date, snapshot)
        return snapshot


class RosterCollector:
    """
    Enumerates the stakers of the v2 eSpace pool and derives each one's
    voting weight from stake and ABC token balance.

    Staker indices run ``1 .. count-1``; index 0 is a contract placeholder.
    """

    label = "tesla-roster"

    def __init__(
        self,
        reader: ChainReader,
        pool_address: str,
        token_address: str,
        *,
        scaling: Optional[RosterScaling] = None,
        resolver: Optional[BlockTimestampResolver] = None,
        call_delay: float = 2.0,
        timezone: Optional[str] = None,
    ) -> None:
        self._reader = reader
        self.pool_address = pool_address
        self.token_address = token_address
        self.scaling = scaling or RosterScaling()
        self._resolver = resolver or BlockTimestampResolver(reader, probe_delay=2.0)
        self.call_delay = call_delay
        self._tz = timezone

    async def collect(self, target: date) -> List[RosterEntry]:
        date_str = format_date(target)
        height = await self._resolver.resolve(midnight_timestamp(target, self._tz))

        count_raw = await self._reader.call_contract_method(self.pool_address, STAKER_NUMBER, (), height)
        n_stakers = WordDecoder(count_raw).uint(0)
        log.info("[Roster] %s: height %d, %d staker slots", date_str, height, n_stakers)

        entries: List[RosterEntry] = []
        for idx in range(1, n_stakers):
            await asyncio.sleep(self.call_delay)
            log.debug("[Roster] Processing staker %d of %d", idx, n_stakers - 1)
            entries.append(await self._collect_one(date_str, idx, height))

        log.info("[Roster] Fetched %d staker records for %s", len(entries), date_str)
        return entries

    async def _collect_one(self, date_str: str, idx: int, height: int) -> RosterEntry:
        read = self._reader.call_contract_method

        addr_raw = await read(self.pool_address, STAKER_ADDRESS, (idx,), height)
        holder = WordDecoder(addr_raw).address(0)
        summary_raw = await read(self.pool_address, USER_SUMMARY, (holder,), height)
        balance_raw = await read(self.token_address, BALANCE_OF, (holder,), height)

        stake_votes = WordDecoder(summary_raw).uint(0)
        balance = WordDecoder(balance_raw).uint(0)
        return RosterEntry(
            snapshot_date=date_str,
            holder_address=holder,
            pos_amount=self.scaling.pos_amount(stake_votes),
            token_amount=self.scaling.token_amount(balance),
            voting_weight=self.scaling.voting_weight(stake_votes, balance),
        )
