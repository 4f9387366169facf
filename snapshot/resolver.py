"""
Timestamp → block height resolution by binary search over a chain.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from rpc.readers import ChainReader
from rpc.schemas import Block

log = logging.getLogger(__name__)


class BlockTimestampResolver:
    """
    Finds the height whose block timestamp best matches a target time.

    Assumes block timestamps are non-decreasing in height (not verified).
    Every probe is preceded by ``probe_delay`` seconds of sleep to stay under
    RPC rate limits. The answer is the closest block among the probes
    actually made, not necessarily the global optimum.
    """

    DEFAULT_PROBE_DELAY = 0.2

    def __init__(self, reader: ChainReader, *, probe_delay: float | None = None) -> None:
        self._reader = reader
        self.probe_delay = self.DEFAULT_PROBE_DELAY if probe_delay is None else probe_delay
        # heights probed by the last resolve() call, for diagnostics
        self.probed: List[int] = []

    async def resolve(self, target_ts: int) -> int:
        self.probed = []
        latest_height = await self._reader.get_latest_height()
        closest: Optional[Block] = await self._reader.get_block(latest_height)
        if closest is None:
            log.warning("[Resolver] Latest block %d unavailable; falling back to it by height", latest_height)

        low, high = 0, latest_height
        while low <= high:
            await asyncio.sleep(self.probe_delay)

            mid = (low + high) // 2
            block = await self._reader.get_block(mid)
            self.probed.append(mid)
            if block is None:
                log.warning("[Resolver] Block %d missing; stopping search early", mid)
                break

            log.debug("[Resolver] probe height=%d ts=%d target=%d", mid, block.timestamp, target_ts)

            if closest is None or abs(block.timestamp - target_ts) < abs(closest.timestamp - target_ts):
                closest = block

            if block.timestamp < target_ts:
                low = mid + 1
            elif block.timestamp > target_ts:
                high = mid - 1
            else:
                log.info("[Resolver] Exact match at height %d after %d probes", block.height, len(self.probed))
                return block.height

        height = latest_height if closest is None else closest.height
        log.info(
            "[Resolver] Closest height %d (Δ=%ss) after %d probes",
            height,
            "?" if closest is None else abs(closest.timestamp - target_ts),
            len(self.probed),
        )
        return height
