"""Pytest configuration and fixtures.

The fixtures build small but structurally complete MP4 files in memory:
ftyp, a moov with one audio and one video track (each with a chunk offset
table pointing into mdat), a udta box with an unknown child, and mdat.
"""

import struct
from dataclasses import dataclass

import pytest

from spatialbox import config

PAYLOAD = bytes(range(256)) * 2


def box(tag: bytes, payload: bytes = b"") -> bytes:
    """Encode a box with a normal 8-byte header."""
    return struct.pack(">I", 8 + len(payload)) + tag + payload


def extended_box(tag: bytes, payload: bytes = b"") -> bytes:
    """Encode a box with a 16-byte extended size header."""
    return struct.pack(">I", 1) + tag + struct.pack(">Q", 16 + len(payload)) + payload


def sound_entry(tag: bytes = b"mp4a", channels: int = 4, children: bytes = b"", version: int = 0) -> bytes:
    """Encode an audio sample entry with the given QuickTime sound version."""
    prefix = b"\x00" * 6 + struct.pack(">H", 1)
    prefix += struct.pack(">HHI", version, 0, 0)
    prefix += struct.pack(">HHHHI", channels, 16, 0, 0, 48000 << 16)
    if version == 1:
        prefix += b"\x00" * 16
    return box(tag, prefix + children)


def stsd(*entries: bytes) -> bytes:
    return box(b"stsd", struct.pack(">II", 0, len(entries)) + b"".join(entries))


def hdlr(handler_type: bytes) -> bytes:
    return box(b"hdlr", b"\x00" * 8 + handler_type + b"\x00" * 12 + b"handler\x00")


def stco(offsets: list[int]) -> bytes:
    return box(b"stco", struct.pack(">II", 0, len(offsets)) + b"".join(struct.pack(">I", o) for o in offsets))


def co64(offsets: list[int]) -> bytes:
    return box(b"co64", struct.pack(">II", 0, len(offsets)) + b"".join(struct.pack(">Q", o) for o in offsets))


def sa3d_content(channels: int, order: int) -> bytes:
    content = struct.pack(">BBIBBI", 0, 0, order, 0, 0, channels)
    return content + b"".join(struct.pack(">I", i) for i in range(channels))


def audio_trak(channels: int, offsets: list[int], entry_children: bytes = b"") -> bytes:
    stbl = box(
        b"stbl",
        stsd(sound_entry(b"mp4a", channels, entry_children))
        + box(b"stts", struct.pack(">II", 0, 0))
        + stco(offsets),
    )
    minf = box(b"minf", box(b"smhd", b"\x00" * 8) + stbl)
    mdia = box(b"mdia", box(b"mdhd", b"\x00" * 24) + hdlr(b"soun") + minf)
    return box(b"trak", box(b"tkhd", b"\x00" * 84) + mdia)


def raw_video_entry(width: int = 320, height: int = 240) -> bytes:
    """Encode a 78-byte QuickTime uncompressed video sample entry."""
    content = b"\x00" * 6 + struct.pack(">H", 1) + b"\x00" * 16
    content += struct.pack(">HHII", width, height, 0x00480000, 0x00480000)
    content += struct.pack(">IH", 0, 1) + b"\x00" * 32 + struct.pack(">Hh", 24, -1)
    return box(b"raw ", content)


def video_trak(offsets: list[int], entry: bytes | None = None) -> bytes:
    # avc1 is not a registered tag, so the whole entry stays opaque
    if entry is None:
        entry = box(b"avc1", b"\x01" * 78)
    stbl = box(b"stbl", stsd(entry) + co64(offsets))
    minf = box(b"minf", box(b"vmhd", b"\x00" * 12) + stbl)
    mdia = box(b"mdia", box(b"mdhd", b"\x00" * 24) + hdlr(b"vide") + minf)
    return box(b"trak", box(b"tkhd", b"\x00" * 84) + mdia)


FTYP = box(b"ftyp", b"isom" + struct.pack(">I", 512) + b"isommp41")


@dataclass
class Mp4Sample:
    """Bytes of a synthetic file plus where its payload starts."""

    data: bytes
    mdat_content_pos: int
    audio_offsets: list[int]
    video_offsets: list[int]


def build_mp4(
    channels: int = 4,
    moov_first: bool = True,
    entry_children: bytes = b"",
    with_free: bool = False,
    video_entry: bytes | None = None,
) -> Mp4Sample:
    """Build a file whose chunk offsets point into its mdat."""

    def moov(audio_offsets: list[int], video_offsets: list[int]) -> bytes:
        return box(
            b"moov",
            box(b"mvhd", b"\x00" * 100)
            + audio_trak(channels, audio_offsets, entry_children)
            + video_trak(video_offsets, video_entry)
            + box(b"udta", box(b"\xa9nam", b"title")),
        )

    moov_size = len(moov([0, 0], [0, 0]))
    free = box(b"free", b"\x00" * 16) if with_free else b""
    mdat = box(b"mdat", PAYLOAD)

    if moov_first:
        mdat_content_pos = len(FTYP) + moov_size + len(free) + 8
    else:
        mdat_content_pos = len(FTYP) + len(free) + 8
    audio_offsets = [mdat_content_pos, mdat_content_pos + 128]
    video_offsets = [mdat_content_pos + 256, mdat_content_pos + 384]
    moov_box = moov(audio_offsets, video_offsets)

    if moov_first:
        data = FTYP + moov_box + free + mdat
    else:
        data = FTYP + free + mdat + moov_box
    return Mp4Sample(data, mdat_content_pos, audio_offsets, video_offsets)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep user config files and SPATIALBOX_* variables out of tests."""
    monkeypatch.setattr(config, "CONFIG_LOCATIONS", [])
    for key in ("COPY_CHUNK_SIZE", "TEMP_DIR", "LOG_LEVEL"):
        monkeypatch.delenv(f"SPATIALBOX_{key}", raising=False)
    config.reset_config()
    yield
    config.reset_config()


@pytest.fixture
def sample() -> Mp4Sample:
    """Default sample: 4-channel audio track, moov before mdat."""
    return build_mp4()


@pytest.fixture
def mp4_file(tmp_path, sample):
    """Write the default sample to disk and return its path as a string."""
    path = tmp_path / "input.mp4"
    path.write_bytes(sample.data)
    return str(path)
