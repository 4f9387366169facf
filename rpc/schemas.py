"""
Typed shapes returned by the chain readers.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


def parse_quantity(value: Any) -> int:
    """JSON-RPC quantities arrive as ``"0x…"`` strings; ints pass through."""
    if isinstance(value, bool):
        raise ValueError("boolean is not a quantity")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        s = value.strip()
        if s[:2].lower() == "0x":
            return int(s, 16)
        return int(s)
    raise ValueError(f"cannot parse quantity from {value!r}")


class Block(BaseModel):
    """The only two block fields the resolver cares about."""

    model_config = ConfigDict(frozen=True)

    height: int
    timestamp: int

    @field_validator("height", "timestamp", mode="before")
    @classmethod
    def _quantity(cls, v: Any) -> int:
        return parse_quantity(v)
