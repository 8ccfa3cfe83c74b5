"""secp256k1 private keys in WIF form and BIP340 Schnorr signatures."""

from __future__ import annotations

import hashlib
import os
import secrets
from dataclasses import dataclass, field

_P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_G = (
    0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
    0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8,
)

_MAINNET_VERSION = 0x80
_TESTNET_VERSION = 0xEF

_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_INDEX = {char: value for value, char in enumerate(_BASE58_ALPHABET)}

Point = tuple[int, int] | None


class KeyError_(ValueError):
    """A key, message or signature is malformed."""


def _point_add(a: Point, b: Point) -> Point:
    if a is None:
        return b
    if b is None:
        return a
    (x1, y1), (x2, y2) = a, b
    if x1 == x2:
        if (y1 + y2) % _P == 0:
            return None
        slope = 3 * x1 * x1 * pow(2 * y1, -1, _P)
    else:
        slope = (y2 - y1) * pow(x2 - x1, -1, _P)
    x3 = (slope * slope - x1 - x2) % _P
    y3 = (slope * (x1 - x3) - y1) % _P
    return x3, y3


def _point_mul(point: Point, scalar: int) -> Point:
    result: Point = None
    for bit in bin(scalar)[2:]:
        result = _point_add(result, result)
        if bit == "1":
            result = _point_add(result, point)
    return result


def _lift_x(x: int) -> Point:
    if x >= _P:
        return None
    square = (pow(x, 3, _P) + 7) % _P
    y = pow(square, (_P + 1) // 4, _P)
    if y * y % _P != square:
        return None
    return x, y if y % 2 == 0 else _P - y


def _tagged_hash(tag: str, message: bytes) -> bytes:
    tag_hash = hashlib.sha256(tag.encode()).digest()
    return hashlib.sha256(tag_hash + tag_hash + message).digest()


def _x_bytes(point: tuple[int, int]) -> bytes:
    return point[0].to_bytes(32, "big")


def _double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def _base58check_encode(payload: bytes) -> str:
    raw = payload + _double_sha256(payload)[:4]
    number = int.from_bytes(raw, "big")
    chars = []
    while number:
        number, remainder = divmod(number, 58)
        chars.append(_BASE58_ALPHABET[remainder])
    zeros = len(raw) - len(raw.lstrip(b"\0"))
    return "1" * zeros + "".join(reversed(chars))


def _base58check_decode(text: str) -> bytes:
    number = 0
    for char in text:
        try:
            number = number * 58 + _BASE58_INDEX[char]
        except KeyError:
            raise KeyError_(f"invalid base58 character: {char!r}") from None
    zeros = len(text) - len(text.lstrip("1"))
    raw = b"\0" * zeros + number.to_bytes((number.bit_length() + 7) // 8, "big")
    if len(raw) < 4:
        raise KeyError_("base58 data too short")
    payload, checksum = raw[:-4], raw[-4:]
    if _double_sha256(payload)[:4] != checksum:
        raise KeyError_("invalid base58 checksum")
    return payload


def _require_length(name: str, value: bytes, length: int) -> None:
    if len(value) != length:
        raise KeyError_(f"{name} must be {length} bytes, got {len(value)}")


@dataclass(frozen=True)
class PrivateKey:
    """A secp256k1 secret key with its WIF encoding flags."""

    secret: int = field(repr=False)
    compressed: bool = True
    testnet: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.secret, bool) or not isinstance(self.secret, int):
            raise KeyError_("secret key must be an integer")
        if not 1 <= self.secret < _N:
            raise KeyError_("secret key out of range")

    @classmethod
    def generate(cls) -> PrivateKey:
        """A fresh random compressed mainnet key."""
        return cls(secrets.randbelow(_N - 1) + 1)

    @classmethod
    def from_wif(cls, wif: str) -> PrivateKey:
        payload = _base58check_decode(wif)
        if not payload:
            raise KeyError_("empty WIF payload")
        version, body = payload[0], payload[1:]
        if version == _MAINNET_VERSION:
            testnet = False
        elif version == _TESTNET_VERSION:
            testnet = True
        else:
            raise KeyError_(f"invalid WIF version byte: {version:#04x}")
        if len(body) == 33 and body[32] == 1:
            compressed = True
        elif len(body) == 32:
            compressed = False
        else:
            raise KeyError_("invalid WIF length")
        return cls(int.from_bytes(body[:32], "big"), compressed, testnet)

    def to_wif(self) -> str:
        version = _TESTNET_VERSION if self.testnet else _MAINNET_VERSION
        payload = bytes([version]) + self.secret.to_bytes(32, "big")
        if self.compressed:
            payload += b"\x01"
        return _base58check_encode(payload)

    def x_only_public_key(self) -> bytes:
        """The 32-byte x coordinate of the public key."""
        return _x_bytes(_point_mul(_G, self.secret))

    def sign_schnorr(self, message: bytes) -> bytes:
        """A 64-byte BIP340 signature of a 32-byte message, with random auxiliary data."""
        _require_length("message", message, 32)
        public_point = _point_mul(_G, self.secret)
        secret = self.secret if public_point[1] % 2 == 0 else _N - self.secret
        public_bytes = _x_bytes(public_point)

        aux = _tagged_hash("BIP0340/aux", os.urandom(32))
        masked = bytes(a ^ b for a, b in zip(secret.to_bytes(32, "big"), aux))
        nonce = (
            int.from_bytes(
                _tagged_hash("BIP0340/nonce", masked + public_bytes + message), "big"
            )
            % _N
        )
        if nonce == 0:
            raise KeyError_("signing nonce is zero")
        nonce_point = _point_mul(_G, nonce)
        if nonce_point[1] % 2:
            nonce = _N - nonce
        nonce_bytes = _x_bytes(nonce_point)
        challenge = (
            int.from_bytes(
                _tagged_hash(
                    "BIP0340/challenge", nonce_bytes + public_bytes + message
                ),
                "big",
            )
            % _N
        )
        return nonce_bytes + ((nonce + challenge * secret) % _N).to_bytes(32, "big")


def verify_schnorr(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """Check a BIP340 signature against a 32-byte x-only public key."""
    _require_length("public key", public_key, 32)
    _require_length("message", message, 32)
    _require_length("signature", signature, 64)

    public_point = _lift_x(int.from_bytes(public_key, "big"))
    r = int.from_bytes(signature[:32], "big")
    s = int.from_bytes(signature[32:], "big")
    if public_point is None or r >= _P or s >= _N:
        return False
    challenge = (
        int.from_bytes(
            _tagged_hash("BIP0340/challenge", signature[:32] + public_key + message),
            "big",
        )
        % _N
    )
    point = _point_add(
        _point_mul(_G, s), _point_mul(public_point, _N - challenge)
    )
    return point is not None and point[1] % 2 == 0 and point[0] == r