"""Box abstraction, header parsing and the tag registry."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Callable, ClassVar, TextIO, TypeVar

from spatialbox.errors import BoundsExceededError, MalformedHeaderError
from spatialbox.stream import (
    copy_range,
    read_exact,
    read_uint32,
    read_uint64,
    seek,
    write_bytes,
    write_uint32,
    write_uint64,
)

logger = logging.getLogger(__name__)

HEADER_SIZE = 8
EXTENDED_HEADER_SIZE = 16
MAX_UINT32 = 0xFFFFFFFF

# Map from 4-byte tag to the Box subclass that decodes it
BOX_TYPES: dict[bytes, type[Box]] = {}

BoxT = TypeVar("BoxT", bound="type[Box]")


def fourcc(*tags: bytes) -> Callable[[BoxT], BoxT]:
    """Class decorator registering a Box subclass for one or more tags."""

    def func(cls: BoxT) -> BoxT:
        for tag in tags:
            if len(tag) != 4:
                raise ValueError(f"Box tags are exactly 4 bytes, got {tag!r}")
            BOX_TYPES[tag] = cls
        cls.tags = tuple(tags)
        return cls

    return func


def box_class_for(tag: bytes) -> type[Box]:
    """Return the registered class for a tag, RawBox if the tag is unknown."""
    return BOX_TYPES.get(tag, RawBox)


def tag_name(tag: bytes) -> str:
    """Decode a tag for display."""
    try:
        return tag.decode("ascii")
    except UnicodeDecodeError:
        return tag.decode("latin-1", errors="replace")


def header_size_for(content_size: int, current: int = HEADER_SIZE) -> int:
    """Header size for a box with the given content size.

    A box keeps the header form it was loaded with; an 8-byte header grows
    to the extended form once the total size no longer fits in 32 bits.
    """
    if current == EXTENDED_HEADER_SIZE or content_size + HEADER_SIZE > MAX_UINT32:
        return EXTENDED_HEADER_SIZE
    return HEADER_SIZE


@dataclass(frozen=True)
class BoxHeader:
    """Decoded size/tag prefix of a box."""

    tag: bytes
    position: int
    header_size: int
    content_size: int

    @property
    def size(self) -> int:
        return self.header_size + self.content_size

    @property
    def content_start(self) -> int:
        return self.position + self.header_size


def read_header(fh: BinaryIO, position: int, end: int) -> BoxHeader:
    """Read the box header at ``position`` inside the range ending at ``end``.

    A 32-bit size of 1 means the real size follows the tag as a 64-bit
    value; a size of 0 means the box extends to ``end``.

    Raises:
        MalformedHeaderError: If the header is truncated or smaller than itself
        BoundsExceededError: If the box would end past ``end``
    """
    if end - position < HEADER_SIZE:
        raise MalformedHeaderError(
            f"Truncated box header at {position}: only {end - position} bytes left"
        )
    seek(fh, position)
    size = read_uint32(fh)
    tag = read_exact(fh, 4)
    header_size = HEADER_SIZE
    if size == 1:
        if end - position < EXTENDED_HEADER_SIZE:
            raise MalformedHeaderError(
                f"Truncated extended size for {tag_name(tag)} box at {position}"
            )
        size = read_uint64(fh)
        header_size = EXTENDED_HEADER_SIZE
    elif size == 0:
        size = end - position

    if size < header_size:
        raise MalformedHeaderError(
            f"{tag_name(tag)} box at {position} declares size {size}, "
            f"smaller than its {header_size}-byte header"
        )
    if position + size > end:
        raise BoundsExceededError(
            f"{tag_name(tag)} box at {position} with size {size} ends at "
            f"{position + size}, past the enclosing end {end}"
        )
    return BoxHeader(tag, position, header_size, size - header_size)


class Box(ABC):
    """A tagged, length-prefixed record.

    Subclasses registered with ``@fourcc`` decode their content at load time
    and re-emit it on save. Anything unregistered becomes a RawBox.

    Attributes:
        tag: 4-byte box type
        position: Absolute offset of the box in the source stream
        header_size: 8, or 16 when the 64-bit extended size is used
        content_size: Size of the box excluding its header
    """

    tags: ClassVar[tuple[bytes, ...]] = ()

    def __init__(
        self,
        tag: bytes,
        position: int = 0,
        header_size: int = HEADER_SIZE,
        content_size: int = 0,
    ) -> None:
        self.tag = tag
        self.position = position
        self.header_size = header_size
        self.content_size = content_size

    @property
    def name(self) -> str:
        return tag_name(self.tag)

    @property
    def content_start(self) -> int:
        return self.position + self.header_size

    def size(self) -> int:
        return self.header_size + self.content_size

    @classmethod
    def load(cls, fh: BinaryIO, position: int, end: int) -> Box:
        """Load one box at ``position``, dispatching on its tag.

        Called on a registered subclass, the tag must belong to that class.
        """
        header = read_header(fh, position, end)
        if cls.tags:
            if header.tag not in cls.tags:
                raise MalformedHeaderError(
                    f"Box at {position} is {tag_name(header.tag)!r}, "
                    f"not a {cls.__name__}"
                )
            box_cls: type[Box] = cls
        else:
            box_cls = box_class_for(header.tag)

        seek(fh, header.content_start)
        box = box_cls.from_header(fh, header)
        logger.debug("Loaded %r", box)
        return box

    @classmethod
    @abstractmethod
    def from_header(cls, fh: BinaryIO, header: BoxHeader) -> Box:
        """Build the box from its header; ``fh`` is at the content start."""
        pass

    def resize(self) -> None:
        """Recompute sizes from the current field values."""
        self.header_size = header_size_for(self.content_size, self.header_size)

    def write_header(self, fh_out: BinaryIO) -> None:
        if self.header_size == EXTENDED_HEADER_SIZE:
            write_uint32(fh_out, 1)
            write_bytes(fh_out, self.tag)
            write_uint64(fh_out, self.size())
        else:
            write_uint32(fh_out, self.size())
            write_bytes(fh_out, self.tag)

    @abstractmethod
    def save(self, fh_in: BinaryIO, fh_out: BinaryIO, delta: int = 0) -> None:
        """Write the box to ``fh_out``.

        Args:
            fh_in: Source stream the tree was loaded from
            fh_out: Destination stream
            delta: Shift of the payload start, for boxes holding file offsets
        """
        pass

    def print_structure(self, indent: str = "", file: TextIO | None = None) -> None:
        print(f"{indent}{self.name} [{self.header_size}, {self.content_size}]", file=file)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(tag={self.name!r}, position={self.position}, "
            f"size={self.size()})"
        )


class RawBox(Box):
    """Opaque box whose bytes are copied verbatim from the source on save."""

    @classmethod
    def from_header(cls, fh: BinaryIO, header: BoxHeader) -> RawBox:
        return cls(header.tag, header.position, header.header_size, header.content_size)

    def resize(self) -> None:
        # The source header is copied with the content, so it never changes.
        pass

    def save(self, fh_in: BinaryIO, fh_out: BinaryIO, delta: int = 0) -> None:
        copy_range(fh_in, fh_out, self.position, self.size())
