import pytest

from ordtool.database import (
    Database,
    decode_ordinal_range,
    encode_ordinal_range,
)
from ordtool.sat_point import OutPoint, SatPoint

FIRST = OutPoint(bytes(range(32)), 0)
SECOND = OutPoint(bytes(range(32)), 1)
BLOCKHASH = bytes(range(32, 64))


def packed(*ranges):
    return b"".join(encode_ordinal_range(start, end) for start, end in ranges)


@pytest.fixture
def database(tmp_path):
    with Database.open(tmp_path / "index.lmdb", 1 << 20) as db:
        yield db


def test_encode_small_range():
    assert encode_ordinal_range(0, 0) == bytes(11)
    assert encode_ordinal_range(1, 2) == b"\x01" + bytes(5) + b"\x08" + bytes(4)


@pytest.mark.parametrize(
    "start, end",
    [
        (0, 5000000000),
        (5000000000, 10000000000),
        (2499999995, 4999999990),
        (2099999997689999, 2099999997690000),
    ],
)
def test_range_round_trip(start, end):
    encoded = encode_ordinal_range(start, end)
    assert len(encoded) == 11
    assert decode_ordinal_range(encoded) == (start, end)


def test_range_errors():
    with pytest.raises(ValueError):
        encode_ordinal_range(10, 5)
    with pytest.raises(ValueError):
        encode_ordinal_range(1 << 51, (1 << 51) + 1)
    with pytest.raises(ValueError):
        decode_ordinal_range(bytes(10))


def test_empty_database(database):
    assert database.height() == 0
    assert database.list(FIRST.encode()) is None
    assert database.find(0) is None


def test_committed_blockhash_sets_height(database):
    wtx = database.begin_write()
    assert wtx.height() == 0
    wtx.set_blockhash_at_height(0, BLOCKHASH)
    assert wtx.height() == 1
    assert wtx.blockhash_at_height(0) == BLOCKHASH
    assert wtx.blockhash_at_height(1) is None
    wtx.commit()
    assert database.height() == 1


def test_aborted_transaction_leaves_nothing(database):
    wtx = database.begin_write()
    wtx.set_blockhash_at_height(0, BLOCKHASH)
    wtx.insert_outpoint(FIRST.encode(), packed((0, 10)))
    wtx.abort()
    assert database.height() == 0
    assert database.list(FIRST.encode()) is None


def test_outpoint_insert_get_remove(database):
    ranges = packed((0, 10), (20, 30))
    with database.begin_write() as wtx:
        wtx.insert_outpoint(FIRST.encode(), ranges)
        assert wtx.get_ordinal_ranges(FIRST.encode()) == ranges
    assert database.list(FIRST.encode()) == ranges
    with database.begin_write() as wtx:
        wtx.remove_outpoint(FIRST.encode())
        assert wtx.get_ordinal_ranges(FIRST.encode()) is None
    assert database.list(FIRST.encode()) is None


def test_remove_missing_outpoint(database):
    wtx = database.begin_write()
    with pytest.raises(KeyError):
        wtx.remove_outpoint(SECOND.encode())
    wtx.abort()


def test_context_manager_aborts_on_error(database):
    with pytest.raises(RuntimeError):
        with database.begin_write() as wtx:
            wtx.set_blockhash_at_height(0, BLOCKHASH)
            raise RuntimeError("stop")
    assert database.height() == 0


def test_find_reports_offset_within_output(database):
    with database.begin_write() as wtx:
        wtx.insert_outpoint(FIRST.encode(), packed((0, 10), (20, 30)))
        wtx.insert_outpoint(SECOND.encode(), packed((40, 50)))
    assert database.find(0) == SatPoint(FIRST, 0)
    assert database.find(25) == SatPoint(FIRST, 15)
    assert database.find(45) == SatPoint(SECOND, 5)
    assert database.find(10) is None
    assert database.find(50) is None


def test_reopen_keeps_data(tmp_path):
    path = tmp_path / "index.lmdb"
    with Database.open(path, 1 << 20) as db:
        with db.begin_write() as wtx:
            wtx.set_blockhash_at_height(0, BLOCKHASH)
            wtx.set_blockhash_at_height(1, BLOCKHASH)
            wtx.insert_outpoint(FIRST.encode(), packed((0, 5000000000)))
    with Database.open(path, 1 << 20) as db:
        assert db.height() == 2
        assert decode_ordinal_range(db.list(FIRST.encode())) == (0, 5000000000)


def test_info(database):
    with database.begin_write() as wtx:
        wtx.set_blockhash_at_height(0, BLOCKHASH)
        wtx.insert_outpoint(FIRST.encode(), packed((0, 10)))
    info = database.info()
    assert list(info) == ["blocks indexed", "data and metadata"]
    assert info["blocks indexed"] == 1
    assert info["data and metadata"] > 0