from pathlib import Path

import pytest

from ordtool.byte_size import ByteSize
from ordtool.options import Options


def test_defaults():
    options = Options()
    assert options.index_size.value == 1 << 20
    assert str(options.index_size) == "1 MiB"
    assert options.cookie_file is None
    assert options.rpc_url is None


@pytest.mark.parametrize("text", ["2097152", "2mib"])
def test_index_size_from_text(text):
    assert Options(index_size=text).index_size.value == 2 << 20


def test_index_size_from_byte_size_and_int():
    assert Options(index_size=ByteSize(5)).index_size == ByteSize(5)
    assert Options(index_size=7).index_size == ByteSize(7)


def test_invalid_index_size():
    with pytest.raises(ValueError, match="invalid suffix"):
        Options(index_size="100foo")


def test_cookie_file_becomes_path():
    options = Options(cookie_file="node/.cookie", rpc_url="http://127.0.0.1:8332")
    assert options.cookie_file == Path("node/.cookie")
    assert options.rpc_url == "http://127.0.0.1:8332"