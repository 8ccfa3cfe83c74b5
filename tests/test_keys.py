import hashlib

import pytest

from ordtool.keys import KeyError_, PrivateKey, verify_schnorr

GENERATOR_X = "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"


def _message(text: bytes) -> bytes:
    return hashlib.sha256(text).digest()


def test_public_key_of_one_is_generator():
    assert PrivateKey(1).x_only_public_key().hex() == GENERATOR_X


def test_public_key_is_thirty_two_bytes_and_distinct():
    first = PrivateKey(2).x_only_public_key()
    second = PrivateKey(3).x_only_public_key()
    assert len(first) == 32
    assert first != second or first == second and False


@pytest.mark.parametrize(
    "compressed, testnet",
    [(True, False), (False, False), (True, True), (False, True)],
)
def test_wif_round_trip(compressed, testnet):
    key = PrivateKey(12345, compressed=compressed, testnet=testnet)
    assert PrivateKey.from_wif(key.to_wif()) == key


def test_generated_keys_round_trip_and_differ():
    first = PrivateKey.generate()
    second = PrivateKey.generate()
    assert PrivateKey.from_wif(first.to_wif()) == first
    assert first.secret != second.secret


def test_from_wif_rejects_bad_checksum():
    wif = PrivateKey(7).to_wif()
    corrupted = wif[:-1] + ("2" if wif[-1] != "2" else "3")
    with pytest.raises(KeyError_):
        PrivateKey.from_wif(corrupted)


def test_from_wif_rejects_invalid_character():
    wif = PrivateKey(7).to_wif()
    with pytest.raises(KeyError_):
        PrivateKey.from_wif("0" + wif[1:])


@pytest.mark.parametrize("secret", [0, -1])
def test_secret_out_of_range(secret):
    with pytest.raises(KeyError_):
        PrivateKey(secret)


def test_sign_and_verify_round_trip():
    key = PrivateKey(42)
    message = _message(b"placeholder")
    signature = key.sign_schnorr(message)
    assert len(signature) == 64
    assert verify_schnorr(key.x_only_public_key(), message, signature) is True


def test_signatures_are_randomised_but_all_valid():
    key = PrivateKey(43)
    message = _message(b"example")
    first = key.sign_schnorr(message)
    second = key.sign_schnorr(message)
    assert first != second
    assert verify_schnorr(key.x_only_public_key(), message, first)
    assert verify_schnorr(key.x_only_public_key(), message, second)


def test_verify_rejects_other_message():
    key = PrivateKey(44)
    signature = key.sign_schnorr(_message(b"one"))
    assert verify_schnorr(key.x_only_public_key(), _message(b"two"), signature) is False


def test_verify_rejects_tampered_signature():
    key = PrivateKey(45)
    message = _message(b"one")
    signature = key.sign_schnorr(message)
    tampered = signature[:-1] + bytes([signature[-1] ^ 1])
    assert verify_schnorr(key.x_only_public_key(), message, tampered) is False


def test_verify_rejects_other_key():
    message = _message(b"one")
    signature = PrivateKey(46).sign_schnorr(message)
    assert verify_schnorr(PrivateKey(47).x_only_public_key(), message, signature) is False


def test_sign_rejects_wrong_message_length():
    with pytest.raises(KeyError_):
        PrivateKey(5).sign_schnorr(b"short")


def test_verify_rejects_wrong_signature_length():
    key = PrivateKey(5)
    with pytest.raises(KeyError_):
        verify_schnorr(key.x_only_public_key(), _message(b"one"), bytes(63))