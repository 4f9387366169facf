"""
Record types persisted in the JSON datasets.

These are plain dataclasses. Attribute names are Pythonic; ``to_record`` /
``from_record`` translate to the camelCase field names the on-disk files and
the dashboard use.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Tuple


__all__ = ["ChainId", "PoolVersion", "PoolStatSnapshot", "RosterEntry"]


class ChainId(str, Enum):
    CORE = "core"
    ESPACE = "espace"


class PoolVersion(str, Enum):
    V1 = "v1"
    V2 = "v2"


def _is_count(value: Any) -> bool:
    # bool is an int subclass; NaN/float never qualify
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


# ──────────────────────────────────────────────────────────────
# Dataclasses
# ──────────────────────────────────────────────────────────────
@dataclass
class PoolStatSnapshot:
    """
    Staker count and total stake of one pool contract at the block that
    best matches local midnight of ``snapshot_date``.
    """

    KEY_FIELDS: ClassVar[Tuple[str, ...]] = ("snapshotDate", "version", "chain")

    snapshot_date: str  # YYYYMMDD
    chain: ChainId
    version: PoolVersion
    resolved_height: int
    staker_count: int
    total_staked: int

    def is_valid(self) -> bool:
        return all(
            _is_count(v)
            for v in (self.resolved_height, self.staker_count, self.total_staked)
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "snapshotDate": self.snapshot_date,
            "epochNumber": self.resolved_height,
            "chain": ChainId(self.chain).value,
            "version": PoolVersion(self.version).value,
            "stakerNumber": self.staker_count,
            "totalPOS": self.total_staked,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "PoolStatSnapshot":
        return cls(
            snapshot_date=str(record["snapshotDate"]),
            chain=ChainId(record["chain"]),
            version=PoolVersion(record["version"]),
            resolved_height=record["epochNumber"],
            staker_count=record["stakerNumber"],
            total_staked=record["totalPOS"],
        )


@dataclass
class RosterEntry:
    """
    One staker of the v2 eSpace pool with its derived voting weight.
    """

    KEY_FIELDS: ClassVar[Tuple[str, ...]] = ("snapshotDate", "espaceAddr")

    snapshot_date: str
    holder_address: str
    pos_amount: int
    token_amount: int
    voting_weight: int

    def is_valid(self) -> bool:
        return bool(self.holder_address) and all(
            _is_count(v) for v in (self.pos_amount, self.token_amount, self.voting_weight)
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "snapshotDate": self.snapshot_date,
            "espaceAddr": self.holder_address,
            "posAmount": self.pos_amount,
            "abcAmount": self.token_amount,
            "vote": self.voting_weight,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "RosterEntry":
        return cls(
            snapshot_date=str(record["snapshotDate"]),
            holder_address=str(record["espaceAddr"]),
            pos_amount=record["posAmount"],
            token_amount=record["abcAmount"],
            voting_weight=record["vote"],
        )
