from __future__ import annotations

from typing import Callable, Dict, Iterable, Optional, Tuple, Union

import pytest

from config import _Settings
from rpc.schemas import Block

# EIP-55 reference addresses
ADDR_A = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
ADDR_B = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"

POOL_V1 = "0x1111111111111111111111111111111111111111"
POOL_V2 = "0x2222222222222222222222222222222222222222"
TOKEN = "0x3333333333333333333333333333333333333333"
CORE_POOL = "cfx:acctesttesttesttesttesttesttesttestte"


def word(n: int) -> bytes:
    return n.to_bytes(32, "big")


def addr_word(addr: str) -> bytes:
    return bytes.fromhex(addr[2:]).rjust(32, b"\x00")


Response = Union[bytes, Exception, Callable[[int], bytes]]


class FakeChainReader:
    """
    In-memory ChainReader.

    ``blocks`` maps height → timestamp (or is a callable doing so; returning
    None means "no such block"). ``responses`` maps (address, method, args)
    → bytes, an exception to raise, or a callable of the height.
    """

    def __init__(
        self,
        blocks: Union[Dict[int, int], Callable[[int], Optional[int]]],
        latest: int,
        responses: Optional[Dict[Tuple, Response]] = None,
        missing: Iterable[int] = (),
    ) -> None:
        self.blocks = blocks
        self.latest = latest
        self.responses: Dict[Tuple, Response] = dict(responses or {})
        self.missing = set(missing)
        self.block_requests = []
        self.calls = []
        self.closed = False

    async def get_latest_height(self) -> int:
        return self.latest

    async def get_block(self, height: int) -> Optional[Block]:
        self.block_requests.append(height)
        if height in self.missing:
            return None
        ts = self.blocks(height) if callable(self.blocks) else self.blocks.get(height)
        return None if ts is None else Block(height=height, timestamp=ts)

    async def call_contract_method(self, address, method, args=(), at_height=0) -> bytes:
        key = (address, method, tuple(args))
        self.calls.append((address, method, tuple(args), at_height))
        resp = self.responses[key]
        if isinstance(resp, Exception):
            raise resp
        if callable(resp):
            return resp(at_height)
        return resp

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc) -> None:
        self.closed = True


def linear_chain(base_ts: int, step: int = 10) -> Callable[[int], int]:
    return lambda h: base_ts + step * h


@pytest.fixture
def settings(tmp_path):
    return _Settings(
        DATA_DIR=str(tmp_path / "data"),
        CORE_V1_POOL_ADDRESS=CORE_POOL,
        ESPACE_V1_POOL_ADDRESS=POOL_V1,
        ESPACE_V2_POOL_ADDRESS=POOL_V2,
        ESPACE_ABC_TOKEN_ADDRESS=TOKEN,
        PROBE_DELAY_MS=0,
        ROSTER_PROBE_DELAY_MS=0,
        ROSTER_CALL_DELAY_MS=0,
        RETRY_ATTEMPTS=2,
        RETRY_DELAY_MS=0,
        SNAPSHOT_TIMEZONE="UTC",
    )
