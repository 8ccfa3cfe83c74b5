"""The on-disk LMDB index of block hashes and outputs' ordinal ranges."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import lmdb

from .sat_point import OutPoint, SatPoint

HEIGHT_TO_HASH = b"HEIGHT_TO_HASH"
OUTPOINT_TO_ORDINAL_RANGES = b"OUTPOINT_TO_ORDINAL_RANGES"
DEFAULT_PATH = "index.lmdb"

RANGE_SIZE = 11
_BASE_BITS = 51
_DELTA_BITS = RANGE_SIZE * 8 - _BASE_BITS


def encode_ordinal_range(start: int, end: int) -> bytes:
    """Pack a half-open range into 11 bytes: 51-bit base, then the length."""
    start, end = int(start), int(end)
    if not 0 <= start <= end:
        raise ValueError(f"invalid ordinal range: [{start},{end})")
    delta = end - start
    if start >> _BASE_BITS or delta >> _DELTA_BITS:
        raise ValueError(f"ordinal range too large to encode: [{start},{end})")
    return (start | delta << _BASE_BITS).to_bytes(RANGE_SIZE, "little")


def decode_ordinal_range(data: bytes) -> tuple[int, int]:
    if len(data) != RANGE_SIZE:
        raise ValueError(f"ordinal range must be {RANGE_SIZE} bytes, got {len(data)}")
    n = int.from_bytes(data, "little")
    base = n & ((1 << _BASE_BITS) - 1)
    return base, base + (n >> _BASE_BITS)


def _ranges(data: bytes) -> Iterator[tuple[int, int]]:
    for position in range(0, len(data) - RANGE_SIZE + 1, RANGE_SIZE):
        yield decode_ordinal_range(data[position:position + RANGE_SIZE])


def _height_key(height: int) -> bytes:
    return int(height).to_bytes(8, "big")


def _next_height(txn: lmdb.Transaction, db) -> int:
    cursor = txn.cursor(db=db)
    try:
        if not cursor.last():
            return 0
        return int.from_bytes(cursor.key(), "big") + 1
    finally:
        cursor.close()


class Database:
    """The index environment with its two tables."""

    def __init__(self, environment: lmdb.Environment, height_to_hash, outpoint_to_ordinal_ranges):
        self._environment = environment
        self._height_to_hash = height_to_hash
        self._outpoint_to_ordinal_ranges = outpoint_to_ordinal_ranges

    @classmethod
    def open(cls, path: Path | str = DEFAULT_PATH, map_size: int = 1 << 20) -> Database:
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        environment = lmdb.open(str(path), map_size=int(map_size), max_dbs=3, mode=0o600)
        return cls(
            environment,
            environment.open_db(HEIGHT_TO_HASH),
            environment.open_db(OUTPOINT_TO_ORDINAL_RANGES),
        )

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._environment.close()

    def begin_write(self) -> WriteTransaction:
        return WriteTransaction(self)

    def height(self) -> int:
        """The number of blocks indexed."""
        with self._environment.begin() as txn:
            return _next_height(txn, self._height_to_hash)

    def list(self, outpoint: bytes) -> bytes | None:
        """The packed ordinal ranges of an encoded outpoint, if indexed."""
        with self._environment.begin() as txn:
            return txn.get(bytes(outpoint), db=self._outpoint_to_ordinal_ranges)

    def find(self, ordinal: int) -> SatPoint | None:
        """The location of an ordinal among the indexed outputs."""
        target = int(ordinal)
        with self._environment.begin() as txn:
            for key, value in txn.cursor(db=self._outpoint_to_ordinal_ranges):
                offset = 0
                for start, end in _ranges(value):
                    if start <= target < end:
                        return SatPoint(OutPoint.decode(key), offset + target - start)
                    offset += end - start
        return None

    def info(self) -> dict[str, int]:
        """Blocks indexed and bytes used by data and metadata."""
        stat = self._environment.stat()
        pages = stat["branch_pages"] + stat["leaf_pages"] + stat["overflow_pages"]
        return {
            "blocks indexed": self.height(),
            "data and metadata": pages * stat["psize"],
        }


class WriteTransaction:
    """A write transaction on the index; a context manager that commits on success."""

    def __init__(self, database: Database) -> None:
        self._txn = database._environment.begin(write=True)
        self._height_to_hash = database._height_to_hash
        self._outpoints = database._outpoint_to_ordinal_ranges
        self._finished = False

    def __enter__(self) -> WriteTransaction:
        return self

    def __exit__(self, exc_type, exc, traceback) -> None:
        if self._finished:
            return
        if exc_type is None:
            self.commit()
        else:
            self.abort()

    def commit(self) -> None:
        self._txn.commit()
        self._finished = True

    def abort(self) -> None:
        self._txn.abort()
        self._finished = True

    def height(self) -> int:
        return _next_height(self._txn, self._height_to_hash)

    def blockhash_at_height(self, height: int) -> bytes | None:
        return self._txn.get(_height_key(height), db=self._height_to_hash)

    def set_blockhash_at_height(self, height: int, blockhash: bytes) -> None:
        self._txn.put(_height_key(height), bytes(blockhash), db=self._height_to_hash)

    def insert_outpoint(self, outpoint: bytes, ordinal_ranges: bytes) -> None:
        self._txn.put(bytes(outpoint), bytes(ordinal_ranges), db=self._outpoints)

    def remove_outpoint(self, outpoint: bytes) -> None:
        if not self._txn.delete(bytes(outpoint), db=self._outpoints):
            raise KeyError(f"outpoint not in index: {bytes(outpoint).hex()}")

    def get_ordinal_ranges(self, outpoint: bytes) -> bytes | None:
        return self._txn.get(bytes(outpoint), db=self._outpoints)