"""SA3D spatial audio box.

Layout of the box content, all big-endian:
    u8  version
    u8  ambisonic_type
    u32 ambisonic_order
    u8  ambisonic_channel_ordering
    u8  ambisonic_normalization
    u32 num_channels
    u32 channel_map[num_channels]

Reference: https://github.com/google/spatial-media/blob/master/docs/spatial-audio-rfc.md
"""

from __future__ import annotations

import math
from enum import IntEnum
from typing import BinaryIO, TextIO

from spatialbox.boxes.base import Box, BoxHeader, fourcc, header_size_for
from spatialbox.errors import MalformedHeaderError
from spatialbox.stream import read_uint8, read_uint32, write_uint8, write_uint32

TAG_SA3D = b"SA3D"

# version, type, order, ordering, normalization, channel count
FIXED_FIELDS_SIZE = 1 + 1 + 4 + 1 + 1 + 4


class AmbisonicType(IntEnum):
    """Ambisonic type codes."""

    PERIPHONIC = 0

    @property
    def label(self) -> str:
        return self.name.lower()


class AmbisonicChannelOrdering(IntEnum):
    """Ambisonic channel ordering codes."""

    ACN = 0

    @property
    def label(self) -> str:
        return self.name


class AmbisonicNormalization(IntEnum):
    """Ambisonic normalization codes."""

    SN3D = 0

    @property
    def label(self) -> str:
        return self.name


def _label(enum_cls: type[IntEnum], code: int) -> str | None:
    try:
        return enum_cls(code).label  # type: ignore[attr-defined]
    except ValueError:
        return None


def ambisonic_order_for(num_channels: int) -> int:
    """Ambisonic order of a full-sphere layout with ``num_channels`` channels.

    Raises:
        ValueError: If the count is not (order + 1) ** 2 for some order >= 0
    """
    if num_channels < 1:
        raise ValueError(f"Channel count must be positive, got {num_channels}")
    root = math.isqrt(num_channels)
    if root * root != num_channels:
        raise ValueError(
            f"{num_channels} channels is not an ambisonic layout (expected 1, 4, 9, 16, ...)"
        )
    return root - 1


@fourcc(TAG_SA3D)
class SA3DBox(Box):
    """Spatial audio descriptor for an ambisonic audio track."""

    def __init__(
        self,
        position: int = 0,
        header_size: int = 8,
        content_size: int = FIXED_FIELDS_SIZE,
        version: int = 0,
        ambisonic_type: int = AmbisonicType.PERIPHONIC,
        ambisonic_order: int = 0,
        ambisonic_channel_ordering: int = AmbisonicChannelOrdering.ACN,
        ambisonic_normalization: int = AmbisonicNormalization.SN3D,
        channel_map: list[int] | None = None,
    ) -> None:
        super().__init__(TAG_SA3D, position, header_size, content_size)
        self.version = version
        self.ambisonic_type = ambisonic_type
        self.ambisonic_order = ambisonic_order
        self.ambisonic_channel_ordering = ambisonic_channel_ordering
        self.ambisonic_normalization = ambisonic_normalization
        self.channel_map: list[int] = list(channel_map) if channel_map else []
        self.num_channels = len(self.channel_map)

    @classmethod
    def create(cls, num_channels: int) -> SA3DBox:
        """Build a box for ``num_channels`` ACN/SN3D channels in identity order."""
        order = ambisonic_order_for(num_channels)
        return cls(
            content_size=FIXED_FIELDS_SIZE + 4 * num_channels,
            ambisonic_order=order,
            channel_map=list(range(num_channels)),
        )

    @classmethod
    def from_header(cls, fh: BinaryIO, header: BoxHeader) -> SA3DBox:
        if header.content_size < FIXED_FIELDS_SIZE:
            raise MalformedHeaderError(
                f"SA3D box at {header.position} holds {header.content_size} bytes, "
                f"fewer than its {FIXED_FIELDS_SIZE} fixed fields"
            )
        box = cls(header.position, header.header_size, header.content_size)
        box.version = read_uint8(fh)
        box.ambisonic_type = read_uint8(fh)
        box.ambisonic_order = read_uint32(fh)
        box.ambisonic_channel_ordering = read_uint8(fh)
        box.ambisonic_normalization = read_uint8(fh)
        box.num_channels = read_uint32(fh)

        expected = FIXED_FIELDS_SIZE + 4 * box.num_channels
        if expected != header.content_size:
            raise MalformedHeaderError(
                f"SA3D box at {header.position} declares {box.num_channels} channels "
                f"({expected} bytes) but holds {header.content_size} bytes"
            )
        box.channel_map = [read_uint32(fh) for _ in range(box.num_channels)]
        return box

    def resize(self) -> None:
        self.content_size = FIXED_FIELDS_SIZE + 4 * self.num_channels
        self.header_size = header_size_for(self.content_size, self.header_size)

    def save(self, fh_in: BinaryIO, fh_out: BinaryIO, delta: int = 0) -> None:
        if len(self.channel_map) != self.num_channels:
            raise ValueError(
                f"SA3D channel map has {len(self.channel_map)} entries "
                f"for {self.num_channels} channels"
            )
        self.resize()
        self.write_header(fh_out)
        write_uint8(fh_out, self.version)
        write_uint8(fh_out, self.ambisonic_type)
        write_uint32(fh_out, self.ambisonic_order)
        write_uint8(fh_out, self.ambisonic_channel_ordering)
        write_uint8(fh_out, self.ambisonic_normalization)
        write_uint32(fh_out, self.num_channels)
        for channel in self.channel_map:
            write_uint32(fh_out, channel)

    def ambisonic_type_name(self) -> str | None:
        return _label(AmbisonicType, self.ambisonic_type)

    def ambisonic_channel_ordering_name(self) -> str | None:
        return _label(AmbisonicChannelOrdering, self.ambisonic_channel_ordering)

    def ambisonic_normalization_name(self) -> str | None:
        return _label(AmbisonicNormalization, self.ambisonic_normalization)

    def map_to_string(self) -> str:
        return ", ".join(str(channel) for channel in self.channel_map)

    def metadata_string(self) -> str:
        """One-line summary, e.g. ``SN3D, ACN, periphonic, Order 1, 4 Channel(s), ...``."""
        return (
            f"{self.ambisonic_normalization_name()}, "
            f"{self.ambisonic_channel_ordering_name()}, "
            f"{self.ambisonic_type_name()}, "
            f"Order {self.ambisonic_order}, "
            f"{self.num_channels} Channel(s), "
            f"Channel Map: {self.map_to_string()}"
        )

    def print_box(self, file: TextIO | None = None) -> None:
        print(f"\t\tAmbisonic Type: {self.ambisonic_type_name()}", file=file)
        print(f"\t\tAmbisonic Order: {self.ambisonic_order}", file=file)
        print(
            f"\t\tAmbisonic Channel Ordering: {self.ambisonic_channel_ordering_name()}",
            file=file,
        )
        print(f"\t\tAmbisonic Normalization: {self.ambisonic_normalization_name()}", file=file)
        print(f"\t\tNumber of Channels: {self.num_channels}", file=file)
        print(f"\t\tChannel Map: {self.map_to_string()}", file=file)
