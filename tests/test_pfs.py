import struct

import pytest

from kagekero.pfs import (
    MAX_NAME_LENGTH,
    PackFile,
    PackFileError,
    default_pack_path,
    write_pack,
)


@pytest.fixture
def pack_path(tmp_path):
    path = tmp_path / "data.pfs"
    write_pack(
        path,
        {
            "001.tmj": b'{"width": 4}',
            "kero.png": bytes(range(256)) * 3,
            "empty.bin": b"",
        },
    )
    return path


def test_round_trip_contents(pack_path):
    pack = PackFile(pack_path)
    assert pack.read("001.tmj") == b'{"width": 4}'
    assert pack.read("kero.png") == bytes(range(256)) * 3
    assert pack.read("empty.bin") == b""


def test_names_keep_order(pack_path):
    pack = PackFile(pack_path)
    assert pack.names() == ["001.tmj", "kero.png", "empty.bin"]
    assert list(pack) == pack.names()
    assert len(pack) == 3
    assert "kero.png" in pack
    assert "frame.png" not in pack


def test_size_matches_read_length(pack_path):
    pack = PackFile(pack_path)
    for name in pack.names():
        assert pack.size_of(name) == len(pack.read(name))


def test_missing_entry_raises(pack_path):
    pack = PackFile(pack_path)
    with pytest.raises(PackFileError):
        pack.read("frame.png")
    with pytest.raises(PackFileError):
        pack.size_of("frame.png")


def test_single_entry_wire_layout(tmp_path):
    path = tmp_path / "one.pfs"
    write_pack(path, [("a", b"xy")])
    assert path.read_bytes() == (
        b"\x01\x00" + b"\x09\x00\x00\x00" + b"\x01" + b"a\x00" + b"\x02\x00\x00\x00" + b"xy"
    )


def test_zero_offset_is_an_error(tmp_path):
    path = tmp_path / "bad.pfs"
    path.write_bytes(struct.pack("<hiB", 1, 0, 3) + b"abc\0")
    pack = PackFile(path)
    assert pack.names() == ["abc"]
    with pytest.raises(PackFileError):
        pack.read("abc")


def test_truncated_index_raises(tmp_path):
    path = tmp_path / "short.pfs"
    path.write_bytes(struct.pack("<hi", 2, 10))
    with pytest.raises(PackFileError):
        PackFile(path)


def test_truncated_data_raises(tmp_path):
    path = tmp_path / "cut.pfs"
    write_pack(path, {"a": b"0123456789"})
    path.write_bytes(path.read_bytes()[:-4])
    pack = PackFile(path)
    with pytest.raises(PackFileError):
        pack.read("a")


def test_first_duplicate_wins(tmp_path):
    path = tmp_path / "dup.pfs"
    write_pack(path, [("a", b"first"), ("a", b"second")])
    assert PackFile(path).read("a") == b"first"


def test_name_too_long_rejected(tmp_path):
    with pytest.raises(PackFileError):
        write_pack(tmp_path / "x.pfs", {"n" * (MAX_NAME_LENGTH + 1): b""})


def test_name_with_nul_rejected(tmp_path):
    with pytest.raises(PackFileError):
        write_pack(tmp_path / "x.pfs", {"a\0b": b""})


def test_longest_name_round_trips(tmp_path):
    path = tmp_path / "long.pfs"
    name = "n" * MAX_NAME_LENGTH
    write_pack(path, {name: b"data"})
    assert PackFile(path).read(name) == b"data"


def test_default_pack_path_name():
    assert default_pack_path().name == "data.pfs"