"""Transaction outputs and positions of single satoshis within them."""

from __future__ import annotations

import re
from dataclasses import dataclass

_U32_MAX = 0xFFFFFFFF
_U64_MAX = (1 << 64) - 1
_TXID_HEX = re.compile(r"[0-9a-fA-F]{64}")
_VOUT_TEXT = re.compile(r"0|[1-9][0-9]*")

OUTPOINT_SIZE = 36
SATPOINT_SIZE = 44


@dataclass(frozen=True)
class OutPoint:
    """A transaction output, named by transaction id and output index.

    ``txid`` holds the id in wire order; text forms show it byte-reversed.
    """

    txid: bytes
    vout: int

    def __post_init__(self) -> None:
        if not isinstance(self.txid, (bytes, bytearray)) or len(self.txid) != 32:
            raise ValueError("txid must be 32 bytes")
        if not 0 <= self.vout <= _U32_MAX:
            raise ValueError(f"vout out of range: {self.vout}")
        object.__setattr__(self, "txid", bytes(self.txid))

    @classmethod
    def parse(cls, text: str) -> OutPoint:
        """Parse ``<txid>:<vout>``."""
        txid_text, colon, vout_text = text.partition(":")
        if not colon:
            raise ValueError("outpoint is missing a colon")
        if not _TXID_HEX.fullmatch(txid_text):
            raise ValueError(f"invalid txid: {txid_text!r}")
        if not _VOUT_TEXT.fullmatch(vout_text):
            raise ValueError(f"invalid vout: {vout_text!r}")
        vout = int(vout_text)
        if vout > _U32_MAX:
            raise ValueError(f"vout out of range: {vout_text}")
        return cls(bytes.fromhex(txid_text)[::-1], vout)

    def encode(self) -> bytes:
        """Consensus encoding: txid followed by the little-endian vout."""
        return self.txid + self.vout.to_bytes(4, "little")

    @classmethod
    def decode(cls, data: bytes) -> OutPoint:
        if len(data) != OUTPOINT_SIZE:
            raise ValueError(f"outpoint must be {OUTPOINT_SIZE} bytes, got {len(data)}")
        return cls(bytes(data[:32]), int.from_bytes(data[32:], "little"))

    def __str__(self) -> str:
        return f"{self.txid[::-1].hex()}:{self.vout}"


@dataclass(frozen=True)
class SatPoint:
    """A satoshi's location: an output and an offset into its value."""

    outpoint: OutPoint
    offset: int

    def __post_init__(self) -> None:
        if not 0 <= self.offset <= _U64_MAX:
            raise ValueError(f"offset out of range: {self.offset}")

    def encode(self) -> bytes:
        return self.outpoint.encode() + self.offset.to_bytes(8, "little")

    @classmethod
    def decode(cls, data: bytes) -> SatPoint:
        if len(data) != SATPOINT_SIZE:
            raise ValueError(f"satpoint must be {SATPOINT_SIZE} bytes, got {len(data)}")
        return cls(
            OutPoint.decode(data[:OUTPOINT_SIZE]),
            int.from_bytes(data[OUTPOINT_SIZE:], "little"),
        )

    def __str__(self) -> str:
        return f"{self.outpoint}:{self.offset}"