"""Tracking which ordinal ranges each unspent output holds, block by block."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Iterator
from datetime import datetime, timezone

import lmdb

from .chain import Block, RpcClient, RpcError, Transaction
from .database import (
    DEFAULT_PATH,
    RANGE_SIZE,
    Database,
    WriteTransaction,
    decode_ordinal_range,
    encode_ordinal_range,
)
from .ordinal import SUPPLY, Height, Ordinal
from .sat_point import OutPoint, SatPoint

logger = logging.getLogger(__name__)

_BLOCK_HEIGHT_OUT_OF_RANGE = -8
_COMMIT_INTERVAL = 1000


class IndexError_(RuntimeError):
    """The index cannot be opened or a block cannot be indexed."""


def _unpack(packed: bytes) -> Iterator[tuple[int, int]]:
    for position in range(0, len(packed) - RANGE_SIZE + 1, RANGE_SIZE):
        yield decode_ordinal_range(packed[position:position + RANGE_SIZE])


class Index:
    """Follows a node's chain and records the ordinal ranges of every unspent output."""

    def __init__(self, client: RpcClient, database: Database) -> None:
        self.client = client
        self.database = database
        self._interrupted = threading.Event()

    def __enter__(self) -> Index:
        return self

    def __exit__(self, *exc_info) -> None:
        self.database.close()

    @classmethod
    def open(cls, options) -> Index:
        """Connect to the node and open the index in the working directory."""
        if options.rpc_url is None:
            raise IndexError_("This command requires `--rpc-url`")
        try:
            client = RpcClient(options.rpc_url, options.cookie_file)
        except (OSError, ValueError) as error:
            raise IndexError_("Failed to connect to RPC URL") from error
        try:
            database = Database.open(DEFAULT_PATH, options.index_size.value)
        except (OSError, lmdb.Error) as error:
            raise IndexError_("Failed to open database") from error
        return cls(client, database)

    @classmethod
    def index(cls, options) -> Index:
        """Open the index and bring it up to the node's current tip."""
        index = cls.open(options)
        try:
            index.index_ranges()
        except BaseException:
            index.database.close()
            raise
        return index

    def interrupt(self) -> None:
        """Ask indexing to stop after the block in progress."""
        self._interrupted.set()

    def info_lines(self) -> list[str]:
        return [f"{key}: {value}" for key, value in self.database.info().items()]

    def block(self, height: int) -> Block | None:
        """The block at a height, or None if the node has no such block yet."""
        try:
            block_hash = self.client.get_block_hash(height)
        except RpcError as error:
            if error.code == _BLOCK_HEIGHT_OUT_OF_RANGE:
                return None
            raise
        return self.client.get_block(block_hash)

    def index_ranges(self) -> None:
        """Index blocks until the node has no more or indexing is interrupted."""
        wtx = self.database.begin_write()
        try:
            while True:
                started = time.monotonic()
                height = wtx.height()

                block = self.block(height)
                if block is None:
                    wtx.commit()
                    return

                logger.info(
                    "Block %d at %s with %d transactions…",
                    height,
                    datetime.fromtimestamp(block.header.time, timezone.utc),
                    len(block.txdata),
                )

                if height > 0:
                    previous = height - 1
                    if wtx.blockhash_at_height(previous) != block.header.prev_blockhash:
                        raise IndexError_(f"Reorg detected at or before {previous}")

                written = self._index_block(wtx, height, block)

                wtx.set_blockhash_at_height(height, block.block_hash())
                if height % _COMMIT_INTERVAL == 0:
                    wtx.commit()
                    wtx = self.database.begin_write()

                logger.info(
                    "Wrote %d ordinal ranges in %dms",
                    written,
                    (time.monotonic() - started) * 1000,
                )

                if self._interrupted.is_set():
                    wtx.commit()
                    return
        except BaseException:
            wtx.abort()
            raise

    def _index_block(self, wtx: WriteTransaction, height: int, block: Block) -> int:
        coinbase_inputs: deque[tuple[int, int]] = deque()
        block_height = Height(height)
        subsidy = block_height.subsidy()
        if subsidy > 0:
            start = int(block_height.starting_ordinal())
            coinbase_inputs.append((start, start + subsidy))

        txids = [transaction.txid() for transaction in block.txdata]
        written = 0

        for txid, transaction in zip(txids[1:], block.txdata[1:]):
            input_ranges: deque[tuple[int, int]] = deque()
            for txin in transaction.inputs:
                key = txin.previous_output.encode()
                packed = wtx.get_ordinal_ranges(key)
                if packed is None:
                    raise IndexError_("Could not find outpoint in index")
                input_ranges.extend(_unpack(packed))
                wtx.remove_outpoint(key)

            written += self._index_transaction(wtx, txid, transaction, input_ranges)
            coinbase_inputs.extend(input_ranges)

        if block.txdata:
            written += self._index_transaction(
                wtx, txids[0], block.txdata[0], coinbase_inputs
            )

        return written

    @staticmethod
    def _index_transaction(
        wtx: WriteTransaction,
        txid: bytes,
        transaction: Transaction,
        input_ranges: deque[tuple[int, int]],
    ) -> int:
        """Assign input ranges to outputs in order; return how many ranges were written."""
        written = 0
        for vout, output in enumerate(transaction.outputs):
            packed = bytearray()
            remaining = output.value
            while remaining > 0:
                try:
                    start, end = input_ranges.popleft()
                except IndexError:
                    raise IndexError_("Insufficient inputs for transaction outputs") from None

                if end - start > remaining:
                    middle = start + remaining
                    input_ranges.appendleft((middle, end))
                    end = middle

                packed += encode_ordinal_range(start, end)
                remaining -= end - start
                written += 1

            wtx.insert_outpoint(OutPoint(txid, vout).encode(), bytes(packed))
        return written

    def find(self, ordinal: int) -> SatPoint | None:
        """Where an ordinal is now, or None if it is not mined as of the index height."""
        ordinal = Ordinal(ordinal)
        if ordinal >= SUPPLY or self.database.height() <= ordinal.height():
            return None
        return self.database.find(ordinal)

    def list(self, outpoint: OutPoint) -> list[tuple[int, int]] | None:
        """The ordinal ranges an output holds, or None if it is not in the index."""
        packed = self.database.list(outpoint.encode())
        if packed is None:
            return None
        return list(_unpack(packed))