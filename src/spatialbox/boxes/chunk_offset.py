"""Chunk offset tables (stco, co64).

Chunk offsets are absolute file positions of media data, so they are the
boxes that need the payload delta when a save moves mdat.
"""

from __future__ import annotations

import logging
import struct
from typing import BinaryIO

from spatialbox.boxes.base import Box, BoxHeader, fourcc, header_size_for
from spatialbox.config import get_config
from spatialbox.errors import BoundsExceededError, MalformedHeaderError
from spatialbox.stream import copy_range, read_exact, read_uint32, seek, write_bytes, write_uint32

logger = logging.getLogger(__name__)

ENTRY_FORMATS = {b"stco": "I", b"co64": "Q"}


@fourcc(b"stco", b"co64")
class ChunkOffsetBox(Box):
    """Chunk offset box whose entries are streamed from the source on save.

    Attributes:
        version_flags: Raw 4-byte version and flags field
        entry_count: Number of offsets in the table
    """

    def __init__(
        self,
        tag: bytes,
        position: int = 0,
        header_size: int = 8,
        content_size: int = 8,
        version_flags: bytes = b"\x00\x00\x00\x00",
        entry_count: int = 0,
    ) -> None:
        super().__init__(tag, position, header_size, content_size)
        self.version_flags = version_flags
        self.entry_count = entry_count

    @property
    def entry_format(self) -> str:
        return ENTRY_FORMATS[self.tag]

    @property
    def entry_size(self) -> int:
        return struct.calcsize(">" + self.entry_format)

    @classmethod
    def from_header(cls, fh: BinaryIO, header: BoxHeader) -> ChunkOffsetBox:
        if header.content_size < 8:
            raise MalformedHeaderError(
                f"{header.tag!r} box at {header.position} is too short for its entry count"
            )
        version_flags = read_exact(fh, 4)
        entry_count = read_uint32(fh)
        box = cls(
            header.tag,
            header.position,
            header.header_size,
            header.content_size,
            version_flags=version_flags,
            entry_count=entry_count,
        )
        expected = 8 + entry_count * box.entry_size
        if expected != header.content_size:
            raise MalformedHeaderError(
                f"{header.tag!r} box at {header.position} holds {header.content_size} "
                f"bytes but {entry_count} entries need {expected}"
            )
        return box

    def resize(self) -> None:
        self.content_size = 8 + self.entry_count * self.entry_size
        self.header_size = header_size_for(self.content_size, self.header_size)

    def save(self, fh_in: BinaryIO, fh_out: BinaryIO, delta: int = 0) -> None:
        self.write_header(fh_out)
        write_bytes(fh_out, self.version_flags)
        write_uint32(fh_out, self.entry_count)

        table_start = self.content_start + 8
        table_size = self.entry_count * self.entry_size
        if delta == 0:
            copy_range(fh_in, fh_out, table_start, table_size)
            return

        logger.debug("Shifting %d %s entries by %d", self.entry_count, self.name, delta)
        limit = 1 << (8 * self.entry_size)
        batch = max(1, get_config().io.copy_chunk_size // self.entry_size)
        seek(fh_in, table_start)
        remaining = self.entry_count
        while remaining > 0:
            count = min(batch, remaining)
            fmt = f">{count}{self.entry_format}"
            offsets = struct.unpack(fmt, read_exact(fh_in, count * self.entry_size))
            shifted = [offset + delta for offset in offsets]
            for offset in shifted:
                if not 0 <= offset < limit:
                    raise BoundsExceededError(
                        f"Chunk offset {offset} does not fit in {self.name} after a "
                        f"shift of {delta}"
                    )
            write_bytes(fh_out, struct.pack(fmt, *shifted))
            remaining -= count
