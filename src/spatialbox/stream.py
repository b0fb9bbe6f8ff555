"""Big-endian integer primitives over binary streams.

All readers raise BoxIOError on short reads instead of padding with zeros,
and all writers raise BoxIOError when the underlying stream fails.
"""

from __future__ import annotations

import struct
from typing import BinaryIO

from spatialbox.config import get_config
from spatialbox.errors import BoxIOError

_UINT8 = struct.Struct(">B")
_UINT16 = struct.Struct(">H")
_UINT32 = struct.Struct(">I")
_UINT64 = struct.Struct(">Q")


def seek(fh: BinaryIO, position: int) -> None:
    """Move the stream cursor to an absolute position."""
    if position < 0:
        raise BoxIOError(f"Cannot seek to negative position {position}")
    try:
        fh.seek(position)
    except (OSError, ValueError) as e:
        raise BoxIOError(f"Seek to {position} failed: {e}") from e


def stream_size(fh: BinaryIO) -> int:
    """Return the total size of a seekable stream, leaving the cursor at 0."""
    try:
        fh.seek(0, 2)
        size = fh.tell()
        fh.seek(0)
    except (OSError, ValueError) as e:
        raise BoxIOError(f"Cannot determine stream size: {e}") from e
    return size


def read_exact(fh: BinaryIO, count: int) -> bytes:
    """Read exactly ``count`` bytes.

    Raises:
        BoxIOError: If the stream ends early or the read fails
    """
    try:
        data = fh.read(count)
    except (OSError, ValueError) as e:
        raise BoxIOError(f"Read of {count} bytes failed: {e}") from e
    if data is None or len(data) != count:
        got = 0 if data is None else len(data)
        raise BoxIOError(f"Short read: wanted {count} bytes, got {got}")
    return data


def write_bytes(fh: BinaryIO, data: bytes) -> None:
    """Write all of ``data`` or raise BoxIOError."""
    try:
        written = fh.write(data)
    except (OSError, ValueError) as e:
        raise BoxIOError(f"Write of {len(data)} bytes failed: {e}") from e
    if written is not None and written != len(data):
        raise BoxIOError(f"Short write: wanted {len(data)} bytes, wrote {written}")


def read_uint8(fh: BinaryIO) -> int:
    return _UINT8.unpack(read_exact(fh, 1))[0]


def read_uint16(fh: BinaryIO) -> int:
    return _UINT16.unpack(read_exact(fh, 2))[0]


def read_uint32(fh: BinaryIO) -> int:
    return _UINT32.unpack(read_exact(fh, 4))[0]


def read_uint64(fh: BinaryIO) -> int:
    return _UINT64.unpack(read_exact(fh, 8))[0]


def _pack(packer: struct.Struct, value: int) -> bytes:
    try:
        return packer.pack(value)
    except struct.error as e:
        raise ValueError(f"{value} does not fit in {packer.size * 8} bits") from e


def write_uint8(fh: BinaryIO, value: int) -> None:
    write_bytes(fh, _pack(_UINT8, value))


def write_uint16(fh: BinaryIO, value: int) -> None:
    write_bytes(fh, _pack(_UINT16, value))


def write_uint32(fh: BinaryIO, value: int) -> None:
    write_bytes(fh, _pack(_UINT32, value))


def write_uint64(fh: BinaryIO, value: int) -> None:
    write_bytes(fh, _pack(_UINT64, value))


def copy_range(
    fh_in: BinaryIO,
    fh_out: BinaryIO,
    start: int,
    length: int,
    chunk_size: int | None = None,
) -> None:
    """Copy ``length`` bytes starting at ``start`` from one stream to another.

    The range is streamed in chunks so large payloads are never held in
    memory at once.

    Args:
        fh_in: Source stream (only read)
        fh_out: Destination stream, written at its current position
        start: Absolute offset in the source
        length: Number of bytes to copy
        chunk_size: Copy buffer size (default: ``io.copy_chunk_size`` from config)

    Raises:
        BoxIOError: If the source is shorter than the range or a write fails
    """
    if chunk_size is None:
        chunk_size = get_config().io.copy_chunk_size
    seek(fh_in, start)
    remaining = length
    while remaining > 0:
        chunk = read_exact(fh_in, min(chunk_size, remaining))
        write_bytes(fh_out, chunk)
        remaining -= len(chunk)
