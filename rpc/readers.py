"""
Chain readers: the read-only view of one chain the collectors work against.

Both Conflux spaces speak JSON-RPC but with different method names and a
different name for the height field (``epochNumber`` on core, ``number`` on
eSpace). Hex quantities, ``null`` for unknown blocks and hex-encoded call
results are shared.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol, Sequence

from .abi import Arg, encode_call, hex_to_bytes
from .client import JsonRpcClient, RpcError
from .schemas import Block, parse_quantity

log = logging.getLogger(__name__)


class ChainReader(Protocol):
    """What the resolver and collectors need from a chain."""

    async def get_latest_height(self) -> int: ...

    async def get_block(self, height: int) -> Optional[Block]: ...

    async def call_contract_method(
        self,
        address: str,
        method: str,
        args: Sequence[Arg],
        at_height: int,
    ) -> bytes: ...


class JsonRpcChainReader:
    """
    Base reader over a :class:`rpc.client.JsonRpcClient`.

    Subclasses only set the method names and the block height field.
    """

    NAME: str = "chain"
    LATEST_HEIGHT_METHOD: str = ""
    GET_BLOCK_METHOD: str = ""
    CALL_METHOD: str = ""
    HEIGHT_FIELD: str = ""

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #
    def __init__(self, client: JsonRpcClient) -> None:
        self._client = client

    def _latest_height_params(self) -> List[Any]:
        return []

    # ------------------------------------------------------------------ #
    # ChainReader protocol
    # ------------------------------------------------------------------ #
    async def get_latest_height(self) -> int:
        result = await self._client.request(
            self.LATEST_HEIGHT_METHOD, self._latest_height_params()
        )
        if result is None:
            raise RpcError(f"{self.LATEST_HEIGHT_METHOD}: empty result")
        return parse_quantity(result)

    async def get_block(self, height: int) -> Optional[Block]:
        result = await self._client.request(self.GET_BLOCK_METHOD, [hex(height), False])
        if not result:
            log.debug("[%s] no block at height %d", self.NAME, height)
            return None
        return Block(height=result[self.HEIGHT_FIELD], timestamp=result["timestamp"])

    async def call_contract_method(
        self,
        address: str,
        method: str,
        args: Sequence[Arg] = (),
        at_height: int = 0,
    ) -> bytes:
        call = {"to": address, "data": encode_call(method, args)}
        result = await self._client.request(self.CALL_METHOD, [call, hex(at_height)])
        return hex_to_bytes(result)

    # ------------------------------------------------------------------ #
    # Context manager helpers (the reader owns its client)
    # ------------------------------------------------------------------ #
    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.aclose()


class CoreChainReader(JsonRpcChainReader):
    """Conflux core space: heights are epoch numbers."""

    NAME = "core"
    LATEST_HEIGHT_METHOD = "cfx_epochNumber"
    GET_BLOCK_METHOD = "cfx_getBlockByEpochNumber"
    CALL_METHOD = "cfx_call"
    HEIGHT_FIELD = "epochNumber"

    def _latest_height_params(self) -> List[Any]:
        return ["latest_mined"]


class ESpaceChainReader(JsonRpcChainReader):
    """Conflux eSpace (EVM compatible): heights are block numbers."""

    NAME = "espace"
    LATEST_HEIGHT_METHOD = "eth_blockNumber"
    GET_BLOCK_METHOD = "eth_getBlockByNumber"
    CALL_METHOD = "eth_call"
    HEIGHT_FIELD = "number"
