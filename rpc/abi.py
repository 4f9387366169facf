"""
Fixed-width word codec for contract calls.

Return data of the pool contracts is treated as a plain concatenation of
32-byte words, each parsed independently as an unsigned big-endian integer.
Only the handful of argument types the collectors need (uint256, address)
are encoded.
"""
from __future__ import annotations

from typing import Sequence, Union

from web3 import Web3

WORD_SIZE = 32
ADDRESS_SIZE = 20

Arg = Union[int, str]


class DecodeError(ValueError):
    """Return data is empty, truncated or not valid hex."""


def _strip_0x(value: str) -> str:
    return value[2:] if value[:2].lower() == "0x" else value


def hex_to_bytes(value: Union[str, bytes, None]) -> bytes:
    if value is None:
        raise DecodeError("empty return data")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    body = _strip_0x(str(value))
    if len(body) % 2:
        raise DecodeError(f"odd-length hex string ({len(body)} chars)")
    try:
        return bytes.fromhex(body)
    except ValueError as e:
        raise DecodeError(f"invalid hex data: {e}") from e


def function_selector(signature: str) -> bytes:
    """First four bytes of keccak256 of e.g. ``"stakerAddress(uint256)"``."""
    return bytes(Web3.keccak(text=signature)[:4])


def encode_word(arg: Arg, word_size: int = WORD_SIZE) -> bytes:
    if isinstance(arg, bool):
        raise TypeError("bool arguments are not supported")
    if isinstance(arg, int):
        if arg < 0:
            raise ValueError("only unsigned integers can be encoded")
        return arg.to_bytes(word_size, "big")
    raw = hex_to_bytes(arg)
    if len(raw) != ADDRESS_SIZE:
        raise ValueError(f"expected a {ADDRESS_SIZE}-byte address, got {len(raw)} bytes")
    return raw.rjust(word_size, b"\x00")


def encode_call(signature: str, args: Sequence[Arg] = ()) -> str:
    """Calldata hex string for ``signature`` applied to ``args``."""
    data = function_selector(signature) + b"".join(encode_word(a) for a in args)
    return "0x" + data.hex()


class WordDecoder:
    """
    Random access to the fixed-width words of a contract return value.

    >>> WordDecoder("0x" + "00" * 31 + "2a").uint(0)
    42
    """

    def __init__(self, data: Union[str, bytes], word_size: int = WORD_SIZE) -> None:
        if word_size < 1:
            raise ValueError("word_size must be positive")
        self.word_size = word_size
        self._data = hex_to_bytes(data)

    def __len__(self) -> int:
        return len(self._data) // self.word_size

    def word(self, index: int) -> bytes:
        if index < 0 or index >= len(self):
            raise DecodeError(
                f"word {index} out of range ({len(self._data)} bytes, "
                f"{len(self)} words of {self.word_size})"
            )
        start = index * self.word_size
        return self._data[start : start + self.word_size]

    def uint(self, index: int) -> int:
        return int.from_bytes(self.word(index), "big")

    def address(self, index: int) -> str:
        """Checksummed address held in the low 20 bytes of a word."""
        raw = self.word(index)[-ADDRESS_SIZE:]
        return Web3.to_checksum_address("0x" + raw.hex())
