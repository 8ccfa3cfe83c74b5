"""Bitcoin blocks and transactions in consensus encoding, and a JSON-RPC client."""

from __future__ import annotations

import base64
import hashlib
import itertools
import json
import urllib.error
import urllib.request
from dataclasses import dataclass, replace
from pathlib import Path

from .sat_point import OUTPOINT_SIZE, OutPoint

_HASH_SIZE = 32
_HEADER_SIZE = 80
_VARINT_SIZES = {0xFD: 2, 0xFE: 4, 0xFF: 8}
_VARINT_MINIMUM = {0xFD: 0xFD, 0xFE: 0x10000, 0xFF: 0x100000000}


def double_sha256(data: bytes) -> bytes:
    """SHA-256 applied twice."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def _varint(n: int) -> bytes:
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + n.to_bytes(2, "little")
    if n <= 0xFFFFFFFF:
        return b"\xfe" + n.to_bytes(4, "little")
    return b"\xff" + n.to_bytes(8, "little")


def _varbytes(data: bytes) -> bytes:
    return _varint(len(data)) + data


def _require_hash(name: str, value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray)) or len(value) != _HASH_SIZE:
        raise ValueError(f"{name} must be {_HASH_SIZE} bytes")
    return bytes(value)


class _Reader:
    """Sequential reader over consensus-encoded bytes."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._position = 0

    def take(self, size: int) -> bytes:
        end = self._position + size
        if end > len(self._data):
            raise ValueError("unexpected end of data")
        chunk = self._data[self._position:end]
        self._position = end
        return chunk

    def uint(self, size: int) -> int:
        return int.from_bytes(self.take(size), "little")

    def int32(self) -> int:
        return int.from_bytes(self.take(4), "little", signed=True)

    def varint(self) -> int:
        prefix = self.uint(1)
        if prefix < 0xFD:
            return prefix
        value = self.uint(_VARINT_SIZES[prefix])
        if value < _VARINT_MINIMUM[prefix]:
            raise ValueError("non-minimal varint")
        return value

    def varbytes(self) -> bytes:
        return self.take(self.varint())

    def finish(self) -> None:
        if self._position != len(self._data):
            raise ValueError("trailing data after encoded value")


@dataclass(frozen=True)
class TxIn:
    """A transaction input spending a previous output."""

    previous_output: OutPoint
    script_sig: bytes = b""
    sequence: int = 0xFFFFFFFF
    witness: tuple[bytes, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "script_sig", bytes(self.script_sig))
        object.__setattr__(self, "witness", tuple(bytes(item) for item in self.witness))

    def _encode(self) -> bytes:
        return (
            self.previous_output.encode()
            + _varbytes(self.script_sig)
            + self.sequence.to_bytes(4, "little")
        )

    @classmethod
    def _read(cls, reader: _Reader) -> TxIn:
        previous_output = OutPoint.decode(reader.take(OUTPOINT_SIZE))
        script_sig = reader.varbytes()
        return cls(previous_output, script_sig, reader.uint(4))


@dataclass(frozen=True)
class TxOut:
    """A transaction output: an amount in satoshis and a locking script."""

    value: int
    script_pubkey: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "script_pubkey", bytes(self.script_pubkey))

    def _encode(self) -> bytes:
        return self.value.to_bytes(8, "little") + _varbytes(self.script_pubkey)

    @classmethod
    def _read(cls, reader: _Reader) -> TxOut:
        value = reader.uint(8)
        return cls(value, reader.varbytes())


@dataclass(frozen=True)
class Transaction:
    """A Bitcoin transaction."""

    version: int
    inputs: tuple[TxIn, ...]
    outputs: tuple[TxOut, ...]
    lock_time: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))

    def _uses_witness_encoding(self) -> bool:
        return not self.inputs or any(txin.witness for txin in self.inputs)

    def _serialize(self, with_witness: bool) -> bytes:
        parts = [self.version.to_bytes(4, "little", signed=True)]
        if with_witness:
            parts.append(b"\x00\x01")
        parts.append(_varint(len(self.inputs)))
        parts.extend(txin._encode() for txin in self.inputs)
        parts.append(_varint(len(self.outputs)))
        parts.extend(txout._encode() for txout in self.outputs)
        if with_witness:
            for txin in self.inputs:
                parts.append(_varint(len(txin.witness)))
                parts.extend(_varbytes(item) for item in txin.witness)
        parts.append(self.lock_time.to_bytes(4, "little"))
        return b"".join(parts)

    def encode(self) -> bytes:
        """Full consensus encoding, with witness data where present."""
        return self._serialize(self._uses_witness_encoding())

    def txid(self) -> bytes:
        """The transaction id in wire byte order."""
        return double_sha256(self._serialize(False))

    @classmethod
    def _read(cls, reader: _Reader) -> Transaction:
        version = reader.int32()
        count = reader.varint()
        segwit = False
        if count == 0:
            flag = reader.uint(1)
            if flag != 1:
                raise ValueError(f"unsupported segwit flag: {flag}")
            segwit = True
            count = reader.varint()
        inputs = [TxIn._read(reader) for _ in range(count)]
        outputs = [TxOut._read(reader) for _ in range(reader.varint())]
        if segwit:
            inputs = [
                replace(
                    txin,
                    witness=tuple(reader.varbytes() for _ in range(reader.varint())),
                )
                for txin in inputs
            ]
            if inputs and not any(txin.witness for txin in inputs):
                raise ValueError("witness flag set but no witnesses present")
        return cls(version, inputs, outputs, reader.uint(4))

    @classmethod
    def decode(cls, data: bytes) -> Transaction:
        reader = _Reader(data)
        transaction = cls._read(reader)
        reader.finish()
        return transaction


@dataclass(frozen=True)
class BlockHeader:
    """The 80-byte header of a block."""

    version: int = 0
    prev_blockhash: bytes = bytes(_HASH_SIZE)
    merkle_root: bytes = bytes(_HASH_SIZE)
    time: int = 0
    bits: int = 0
    nonce: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "prev_blockhash", _require_hash("prev_blockhash", self.prev_blockhash)
        )
        object.__setattr__(
            self, "merkle_root", _require_hash("merkle_root", self.merkle_root)
        )

    def encode(self) -> bytes:
        return b"".join(
            (
                self.version.to_bytes(4, "little", signed=True),
                self.prev_blockhash,
                self.merkle_root,
                self.time.to_bytes(4, "little"),
                self.bits.to_bytes(4, "little"),
                self.nonce.to_bytes(4, "little"),
            )
        )

    def block_hash(self) -> bytes:
        """The block hash in wire byte order."""
        return double_sha256(self.encode())

    @classmethod
    def _read(cls, reader: _Reader) -> BlockHeader:
        version = reader.int32()
        prev_blockhash = reader.take(_HASH_SIZE)
        merkle_root = reader.take(_HASH_SIZE)
        time = reader.uint(4)
        bits = reader.uint(4)
        return cls(version, prev_blockhash, merkle_root, time, bits, reader.uint(4))


@dataclass(frozen=True)
class Block:
    """A block header with its transactions, coinbase first."""

    header: BlockHeader
    txdata: tuple[Transaction, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "txdata", tuple(self.txdata))

    def encode(self) -> bytes:
        return b"".join(
            (
                self.header.encode(),
                _varint(len(self.txdata)),
                *(transaction.encode() for transaction in self.txdata),
            )
        )

    @classmethod
    def decode(cls, data: bytes) -> Block:
        reader = _Reader(data)
        header = BlockHeader._read(reader)
        txdata = [Transaction._read(reader) for _ in range(reader.varint())]
        reader.finish()
        return cls(header, txdata)

    def block_hash(self) -> bytes:
        return self.header.block_hash()


class RpcError(Exception):
    """The node answered a call with a JSON-RPC error."""

    def __init__(self, code: int | None, message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


def _read_cookie(cookie_file: Path | str) -> str:
    lines = Path(cookie_file).read_text().splitlines()
    if not lines or ":" not in lines[0]:
        raise ValueError(f"invalid cookie file: {cookie_file}")
    return lines[0]


class RpcClient:
    """A minimal client for a Bitcoin node's JSON-RPC interface."""

    def __init__(self, url: str, cookie_file: Path | str | None = None) -> None:
        self.url = url if "://" in url else f"http://{url}"
        self._headers = {"Content-Type": "application/json"}
        if cookie_file is not None:
            credentials = base64.b64encode(_read_cookie(cookie_file).encode()).decode()
            self._headers["Authorization"] = f"Basic {credentials}"
        self._ids = itertools.count()

    def _call(self, method: str, *params):
        body = json.dumps(
            {"jsonrpc": "1.0", "id": next(self._ids), "method": method, "params": list(params)}
        ).encode()
        request = urllib.request.Request(
            self.url, data=body, headers=self._headers, method="POST"
        )
        try:
            with urllib.request.urlopen(request) as response:
                payload = response.read()
        except urllib.error.HTTPError as error:
            payload = error.read()
            if not payload:
                raise ConnectionError(
                    f"RPC request failed with HTTP status {error.code}"
                ) from error
        try:
            reply = json.loads(payload)
        except ValueError as error:
            raise ConnectionError("invalid JSON-RPC response") from error
        if not isinstance(reply, dict):
            raise ConnectionError("invalid JSON-RPC response")
        failure = reply.get("error")
        if failure:
            raise RpcError(failure.get("code"), failure.get("message", ""))
        return reply.get("result")

    def get_block_hash(self, height: int) -> bytes:
        """The hash, in wire byte order, of the block at a height."""
        result = self._call("getblockhash", int(height))
        try:
            block_hash = bytes.fromhex(result)[::-1]
        except (TypeError, ValueError) as error:
            raise ConnectionError("invalid block hash in response") from error
        return _require_hash("block hash", block_hash)

    def get_block(self, block_hash: bytes) -> Block:
        result = self._call("getblock", _require_hash("block hash", block_hash)[::-1].hex(), 0)
        try:
            raw = bytes.fromhex(result)
        except (TypeError, ValueError) as error:
            raise ConnectionError("invalid block data in response") from error
        return Block.decode(raw)