import cbor2
import pytest

from ordtool.keys import PrivateKey
from ordtool.nft import Nft, NftError
from ordtool.ordinal import Ordinal

SIGNING_WIF = "KysB4eR1DjAmbf1qkiznwgd4xPy8yj66gHF4dBJmhFraoL1gjqZd"
ISSUER = "1b7bb1348ae7a273e55644a920ecf4e5b7d8a5d0966c649e720601e73c737eb7"
FOO_HASH = "2c26b46b68ffc68ff99b453c1d30413413422d706483bfa0f98a5e886266e7ae"


def _minted(data=b"foo", ordinal=0):
    return Nft.mint(Ordinal(ordinal), data, PrivateKey.from_wif(SIGNING_WIF))


def test_mint_and_verify():
    nft = Nft.verify(_minted().encode())
    assert nft.ordinal() == 0
    assert nft.issuer().hex() == ISSUER
    assert nft.data_hash().hex() == FOO_HASH
    assert nft.data() == b"foo"


def test_minted_fields():
    nft = _minted()
    assert nft.data() == b"foo"
    assert nft.data_hash().hex() == FOO_HASH
    assert nft.issuer().hex() == ISSUER


def test_round_trip_preserves_large_ordinal_and_binary_data():
    data = bytes(range(256))
    nft = Nft.verify(_minted(data, 2099999997689999).encode())
    assert nft.ordinal() == 2099999997689999
    assert nft.data() == data


def _tampered(change):
    document = cbor2.loads(_minted().encode())
    change(document)
    return cbor2.dumps(document)


def test_verify_rejects_changed_data():
    cbor = _tampered(lambda document: document.__setitem__("data", list(b"bar")))
    with pytest.raises(NftError, match="NFT data hash does not match actual data_hash"):
        Nft.verify(cbor)


def test_verify_rejects_changed_ordinal():
    cbor = _tampered(lambda document: document["metadata"].__setitem__("ordinal", 1))
    with pytest.raises(NftError, match="Failed to verify NFT signature"):
        Nft.verify(cbor)


def test_verify_rejects_other_issuer():
    other = PrivateKey(2).x_only_public_key()
    cbor = _tampered(
        lambda document: document["metadata"].__setitem__("public_key", other)
    )
    with pytest.raises(NftError, match="Failed to verify NFT signature"):
        Nft.verify(cbor)


def test_verify_rejects_missing_field():
    cbor = _tampered(lambda document: document.pop("signature"))
    with pytest.raises(NftError, match="signature"):
        Nft.verify(cbor)


def test_verify_rejects_garbage():
    with pytest.raises(NftError):
        Nft.verify(b"\xff\x00not cbor")


def test_verify_rejects_trailing_data():
    with pytest.raises(NftError):
        Nft.verify(_minted().encode() + b"\x00")