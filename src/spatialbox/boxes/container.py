"""Container boxes: boxes whose content is a sequence of child boxes."""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterator
from typing import BinaryIO, TextIO

from spatialbox.boxes.base import (
    Box,
    BoxHeader,
    RawBox,
    fourcc,
    header_size_for,
    read_header,
    tag_name,
)
from spatialbox.errors import BoundsExceededError, MalformedHeaderError
from spatialbox.stream import read_exact, read_uint16, seek, write_bytes

logger = logging.getLogger(__name__)

# Boxes that hold nothing but child boxes
CONTAINER_TAGS = (
    b"moov",
    b"trak",
    b"mdia",
    b"minf",
    b"stbl",
    b"udta",
    b"edts",
    b"dinf",
    b"mvex",
    b"moof",
    b"traf",
    b"mfra",
    b"tref",
    b"sinf",
    b"schi",
)

# Sound sample descriptions that may carry an SA3D box
SOUND_SAMPLE_DESCRIPTIONS = (
    b"mp4a",
    b"lpcm",
    b"sowt",
    b"twos",
    b"Opus",
    b"fLaC",
    b"alac",
    b"ac-3",
    b"ec-3",
    b"in24",
    b"in32",
    b"fl32",
    b"fl64",
    b"raw ",
    b"NONE",
    b"ulaw",
    b"alaw",
)

SAMPLE_ENTRY_SIZE = 28
# Extra sound description bytes for QuickTime versions 1 and 2
SOUND_DESCRIPTION_EXTENSIONS = {0: 0, 1: 16, 2: 36}


def load_multiple(fh: BinaryIO, position: int, end: int) -> list[Box]:
    """Load consecutive boxes from ``position`` up to ``end``.

    Raises:
        MalformedHeaderError: If a header is truncated or undersized
        BoundsExceededError: If a box extends past ``end``
    """
    boxes: list[Box] = []
    while position < end:
        box = Box.load(fh, position, end)
        boxes.append(box)
        position += box.size()
    return boxes


@fourcc(*CONTAINER_TAGS)
class ContainerBox(Box):
    """A box holding an ordered list of child boxes.

    Some containers carry a fixed prefix of plain bytes before the first
    child (sample descriptions do); it is kept in memory and written back
    unchanged.
    """

    def __init__(
        self,
        tag: bytes,
        position: int = 0,
        header_size: int = 8,
        content_size: int = 0,
        contents: list[Box] | None = None,
        prefix: bytes = b"",
    ) -> None:
        super().__init__(tag, position, header_size, content_size)
        self.contents: list[Box] = list(contents) if contents else []
        self.prefix = prefix

    @classmethod
    def prefix_length(cls, fh: BinaryIO, header: BoxHeader) -> int:
        """Number of bytes between the header and the first child."""
        return 0

    @classmethod
    def from_header(cls, fh: BinaryIO, header: BoxHeader) -> ContainerBox:
        prefix_length = cls.prefix_length(fh, header)
        if prefix_length > header.content_size:
            raise BoundsExceededError(
                f"{header.tag!r} box at {header.position} needs {prefix_length} "
                f"prefix bytes but holds only {header.content_size}"
            )
        seek(fh, header.content_start)
        prefix = read_exact(fh, prefix_length)
        box = cls(
            header.tag,
            header.position,
            header.header_size,
            header.content_size,
            prefix=prefix,
        )
        box.contents = cls.load_children(
            fh, header.content_start + prefix_length, header.position + header.size
        )
        return box

    @classmethod
    def load_children(cls, fh: BinaryIO, position: int, end: int) -> list[Box]:
        return load_multiple(fh, position, end)

    def __iter__(self) -> Iterator[Box]:
        return iter(self.contents)

    def __len__(self) -> int:
        return len(self.contents)

    def find(self, tag: bytes) -> Box | None:
        """Return the first direct child with this tag."""
        for box in self.contents:
            if box.tag == tag:
                return box
        return None

    def find_all(self, tag: bytes) -> list[Box]:
        return [box for box in self.contents if box.tag == tag]

    def add(self, box: Box) -> None:
        """Append a child box, growing the content size to match."""
        self.contents.append(box)
        self.content_size += box.size()

    def remove(self, tag: bytes) -> int:
        """Remove every direct child with this tag; returns how many went."""
        kept = [box for box in self.contents if box.tag != tag]
        removed = len(self.contents) - len(kept)
        for box in self.contents:
            if box.tag == tag:
                self.content_size -= box.size()
        self.contents = kept
        if removed:
            logger.debug("Removed %d %r boxes from %s", removed, tag, self.name)
        return removed

    def merge(self, other: ContainerBox) -> None:
        """Move all of ``other``'s children to the end of this container."""
        for box in other.contents:
            self.add(box)
        other.contents = []
        other.resize()

    def resize(self) -> None:
        for box in self.contents:
            box.resize()
        self.content_size = len(self.prefix) + sum(box.size() for box in self.contents)
        self.header_size = header_size_for(self.content_size, self.header_size)

    def save(self, fh_in: BinaryIO, fh_out: BinaryIO, delta: int = 0) -> None:
        self.write_header(fh_out)
        if self.prefix:
            write_bytes(fh_out, self.prefix)
        for box in self.contents:
            box.save(fh_in, fh_out, delta)

    def print_structure(self, indent: str = "", file: TextIO | None = None) -> None:
        print(f"{indent}{self.name} [{self.header_size}, {self.content_size}]", file=file)
        self.print_children(indent, file)

    def print_children(self, indent: str, file: TextIO | None) -> None:
        child_indent = indent.replace("├", "│").replace("└", " ").replace("─", " ")
        last = len(self.contents) - 1
        for i, box in enumerate(self.contents):
            connector = " └──" if i == last else " ├──"
            box.print_structure(child_indent + connector, file)


@fourcc(b"stsd")
class SampleDescriptionBox(ContainerBox):
    """Sample description: version/flags and entry count, then sample entries."""

    @classmethod
    def prefix_length(cls, fh: BinaryIO, header: BoxHeader) -> int:
        return 8

    @classmethod
    def load_children(cls, fh: BinaryIO, position: int, end: int) -> list[Box]:
        """Load sample entries, keeping any that do not decode as opaque boxes.

        Some tags name both sound and video entries (QuickTime "raw " is
        either), and only the sound layout is decoded.
        """
        entries: list[Box] = []
        while position < end:
            header = read_header(fh, position, end)
            try:
                entry = Box.load(fh, position, end)
            except (MalformedHeaderError, BoundsExceededError) as e:
                logger.debug("Keeping %s entry at %d opaque: %s", tag_name(header.tag), position, e)
                seek(fh, header.content_start)
                entry = RawBox.from_header(fh, header)
            entries.append(entry)
            position += entry.size()
        return entries

    @property
    def entry_count(self) -> int:
        return struct.unpack_from(">I", self.prefix, 4)[0]


@fourcc(*SOUND_SAMPLE_DESCRIPTIONS)
class AudioSampleEntry(ContainerBox):
    """Sound sample description followed by optional child boxes.

    The prefix is the 28-byte audio sample entry, extended by 16 bytes for
    QuickTime sound description version 1 and by 36 bytes for version 2.
    """

    @classmethod
    def prefix_length(cls, fh: BinaryIO, header: BoxHeader) -> int:
        if header.content_size < SAMPLE_ENTRY_SIZE:
            raise BoundsExceededError(
                f"{header.tag!r} sample entry at {header.position} is shorter "
                f"than {SAMPLE_ENTRY_SIZE} bytes"
            )
        seek(fh, header.content_start + 8)
        version = read_uint16(fh)
        if version not in SOUND_DESCRIPTION_EXTENSIONS:
            raise MalformedHeaderError(
                f"Unsupported sound sample description version {version} "
                f"at {header.position}"
            )
        return SAMPLE_ENTRY_SIZE + SOUND_DESCRIPTION_EXTENSIONS[version]

    @property
    def version(self) -> int:
        return struct.unpack_from(">H", self.prefix, 8)[0]

    @property
    def channel_count(self) -> int:
        if self.version == 2:
            return struct.unpack_from(">I", self.prefix, 40)[0]
        return struct.unpack_from(">H", self.prefix, 16)[0]

    @property
    def sample_size(self) -> int:
        return struct.unpack_from(">H", self.prefix, 18)[0]

    @property
    def sample_rate(self) -> float:
        if self.version == 2:
            return struct.unpack_from(">d", self.prefix, 32)[0]
        return struct.unpack_from(">I", self.prefix, 24)[0] / 65536
