"""Signed NFT documents bound to an ordinal, stored as CBOR."""

from __future__ import annotations

import hashlib
import io

import cbor2

from .keys import KeyError_, PrivateKey, verify_schnorr
from .ordinal import Ordinal

ORDINAL_MESSAGE_PREFIX = b"Ordinal Signed Message:"


class NftError(ValueError):
    """An NFT document is malformed or fails verification."""


def _metadata(data_hash: bytes, ordinal: int, public_key: bytes) -> dict:
    return {"data_hash": data_hash, "ordinal": int(ordinal), "public_key": public_key}


def _message_hash(metadata: dict) -> bytes:
    return hashlib.sha256(ORDINAL_MESSAGE_PREFIX + cbor2.dumps(metadata)).digest()


def _field(document: dict, name: str):
    try:
        return document[name]
    except KeyError:
        raise NftError(f"missing field `{name}`") from None


def _fixed_bytes(document: dict, name: str, length: int) -> bytes:
    value = _field(document, name)
    if not isinstance(value, bytes) or len(value) != length:
        raise NftError(f"field `{name}` must be {length} bytes")
    return value


def _byte_list(document: dict, name: str) -> bytes:
    value = _field(document, name)
    if not isinstance(value, list) or not all(
        isinstance(item, int) and not isinstance(item, bool) and 0 <= item <= 255
        for item in value
    ):
        raise NftError(f"field `{name}` must be a sequence of bytes")
    return bytes(value)


def _decode(cbor: bytes):
    stream = io.BytesIO(cbor)
    try:
        document = cbor2.CBORDecoder(stream).decode()
    except (cbor2.CBORDecodeError, ValueError, TypeError, EOFError) as error:
        raise NftError(f"invalid CBOR: {error}") from error
    if stream.tell() != len(cbor):
        raise NftError("trailing data after NFT document")
    return document


class Nft:
    """Data together with a Schnorr-signed claim linking it to an ordinal."""

    __slots__ = ("_data", "_data_hash", "_ordinal", "_public_key", "_signature")

    def __init__(
        self,
        data: bytes,
        ordinal: Ordinal,
        data_hash: bytes,
        public_key: bytes,
        signature: bytes,
    ) -> None:
        self._data = bytes(data)
        self._ordinal = Ordinal(ordinal)
        self._data_hash = bytes(data_hash)
        self._public_key = bytes(public_key)
        self._signature = bytes(signature)

    @classmethod
    def mint(cls, ordinal: int, data: bytes, signing_key: PrivateKey) -> Nft:
        ordinal = Ordinal(ordinal)
        data_hash = hashlib.sha256(data).digest()
        public_key = signing_key.x_only_public_key()
        metadata = _metadata(data_hash, ordinal, public_key)
        signature = signing_key.sign_schnorr(_message_hash(metadata))
        return cls(data, ordinal, data_hash, public_key, signature)

    def encode(self) -> bytes:
        return cbor2.dumps(
            {
                "data": list(self._data),
                "metadata": _metadata(self._data_hash, self._ordinal, self._public_key),
                "signature": self._signature,
            }
        )

    @classmethod
    def verify(cls, cbor: bytes) -> Nft:
        """Decode an NFT and check its data hash and signature."""
        document = _decode(cbor)
        if not isinstance(document, dict):
            raise NftError("NFT document must be a map")
        data = _byte_list(document, "data")
        signature = _fixed_bytes(document, "signature", 64)
        metadata = _field(document, "metadata")
        if not isinstance(metadata, dict):
            raise NftError("field `metadata` must be a map")
        data_hash = _fixed_bytes(metadata, "data_hash", 32)
        public_key = _fixed_bytes(metadata, "public_key", 32)
        raw_ordinal = _field(metadata, "ordinal")
        if isinstance(raw_ordinal, bool) or not isinstance(raw_ordinal, int):
            raise NftError("field `ordinal` must be an integer")
        try:
            ordinal = Ordinal(raw_ordinal)
        except ValueError as error:
            raise NftError(str(error)) from error

        if hashlib.sha256(data).digest() != data_hash:
            raise NftError("NFT data hash does not match actual data_hash")

        message = _message_hash(_metadata(data_hash, ordinal, public_key))
        try:
            valid = verify_schnorr(public_key, message, signature)
        except KeyError_ as error:
            raise NftError("Failed to verify NFT signature") from error
        if not valid:
            raise NftError("Failed to verify NFT signature")

        return cls(data, ordinal, data_hash, public_key, signature)

    def data(self) -> bytes:
        return self._data

    def issuer(self) -> bytes:
        """The signer's 32-byte x-only public key."""
        return self._public_key

    def data_hash(self) -> bytes:
        return self._data_hash

    def ordinal(self) -> Ordinal:
        return self._ordinal