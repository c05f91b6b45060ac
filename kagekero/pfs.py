"""Packed file system: a single archive holding all game assets.

Layout (little endian): an int16 entry count, then for every entry an
int32 data offset, a uint8 name length and the name followed by a NUL
byte. At each offset an int32 size precedes the file's bytes.
"""

from __future__ import annotations

import struct
import sys
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import BinaryIO, Union

PACK_NAME = "data.pfs"
MAX_NAME_LENGTH = 79
MAX_ENTRIES = 0x7FFF
_MAX_SIZE = 0x7FFFFFFF

_COUNT = struct.Struct("<h")
_OFFSET = struct.Struct("<i")
_NAME_LEN = struct.Struct("<B")
_SIZE = struct.Struct("<i")

PathLike = Union[str, Path]


class PackFileError(Exception):
    """Raised when a pack is malformed or an entry cannot be loaded."""


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = stream.read(count)
    if len(data) != count:
        raise PackFileError("unexpected end of pack file")
    return data


class PackFile:
    """Read-only view of a pack file; the index is read once on opening."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)
        self._offsets: dict[str, int] = {}
        with self.path.open("rb") as stream:
            (count,) = _COUNT.unpack(_read_exact(stream, _COUNT.size))
            for _ in range(max(count, 0)):
                (offset,) = _OFFSET.unpack(_read_exact(stream, _OFFSET.size))
                (name_len,) = _NAME_LEN.unpack(_read_exact(stream, _NAME_LEN.size))
                raw = _read_exact(stream, name_len + 1)
                name = raw.split(b"\0", 1)[0].decode("utf-8", "replace")
                # The first entry with a given name wins.
                self._offsets.setdefault(name, offset)

    def names(self) -> list[str]:
        """Names of the entries, in pack order."""
        return list(self._offsets)

    def __contains__(self, name: object) -> bool:
        return name in self._offsets

    def __iter__(self) -> Iterator[str]:
        return iter(self._offsets)

    def __len__(self) -> int:
        return len(self._offsets)

    def _offset_of(self, name: str) -> int:
        try:
            offset = self._offsets[name]
        except KeyError:
            raise PackFileError(f"failed to load {name}: no such entry") from None
        if offset == 0:
            raise PackFileError(f"failed to load {name}")
        return offset

    def _open_entry(self, name: str, stream: BinaryIO) -> int:
        stream.seek(self._offset_of(name))
        (size,) = _SIZE.unpack(_read_exact(stream, _SIZE.size))
        if size < 0:
            raise PackFileError(f"failed to load {name}: negative size")
        return size

    def size_of(self, name: str) -> int:
        """Size in bytes of the named entry."""
        with self.path.open("rb") as stream:
            return self._open_entry(name, stream)

    def read(self, name: str) -> bytes:
        """Contents of the named entry."""
        with self.path.open("rb") as stream:
            size = self._open_entry(name, stream)
            return _read_exact(stream, size)


def default_pack_path() -> Path:
    """Location of the pack next to the running program."""
    script = sys.argv[0] if sys.argv and sys.argv[0] else ""
    base = Path(script).resolve().parent if script else Path.cwd()
    return base / PACK_NAME


def write_pack(
    path: PathLike,
    entries: Mapping[str, bytes] | Iterable[tuple[str, bytes]],
) -> None:
    """Write a pack holding ``entries`` (name to bytes) to ``path``."""
    items = list(entries.items() if isinstance(entries, Mapping) else entries)
    if len(items) > MAX_ENTRIES:
        raise PackFileError(f"too many entries: {len(items)}")

    encoded: list[tuple[bytes, bytes]] = []
    for name, data in items:
        raw_name = name.encode("utf-8")
        if b"\0" in raw_name:
            raise PackFileError(f"entry name contains NUL: {name!r}")
        if len(raw_name) > MAX_NAME_LENGTH:
            raise PackFileError(f"entry name too long: {name!r}")
        if len(data) > _MAX_SIZE:
            raise PackFileError(f"entry too large: {name!r}")
        encoded.append((raw_name, bytes(data)))

    header_size = _COUNT.size + sum(
        _OFFSET.size + _NAME_LEN.size + len(raw_name) + 1 for raw_name, _ in encoded
    )

    index_parts = [_COUNT.pack(len(encoded))]
    data_parts = []
    offset = header_size
    for raw_name, data in encoded:
        index_parts.append(_OFFSET.pack(offset))
        index_parts.append(_NAME_LEN.pack(len(raw_name)))
        index_parts.append(raw_name + b"\0")
        block = _SIZE.pack(len(data)) + data
        data_parts.append(block)
        offset += len(block)
        if offset > _MAX_SIZE:
            raise PackFileError("pack too large")

    Path(path).write_bytes(b"".join(index_parts + data_parts))