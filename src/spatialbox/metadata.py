"""Operations on whole files: open, inject spatial audio, write, describe."""

from __future__ import annotations

import io
import logging
import os
from collections.abc import Iterator

from spatialbox.boxes import (
    AudioSampleEntry,
    Box,
    ContainerBox,
    HandlerBox,
    Mpeg4Container,
    SA3DBox,
    ambisonic_order_for,
)
from spatialbox.boxes.sa3d import TAG_SA3D
from spatialbox.models import BoxInfo, SpatialAudioInfo

logger = logging.getLogger(__name__)


def open_mp4(path: str) -> Mpeg4Container:
    """Parse an MP4/MOV file into a box tree.

    Args:
        path: Path to the media file

    Returns:
        The top-level container

    Raises:
        FileNotFoundError: If the file does not exist
        BoxError: If the file structure is invalid
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "rb") as fh:
        return Mpeg4Container.load(fh)


def _child(box: Box | None, tag: bytes) -> ContainerBox | None:
    if not isinstance(box, ContainerBox):
        return None
    child = box.find(tag)
    return child if isinstance(child, ContainerBox) else None


def iter_audio_sample_entries(tree: Mpeg4Container) -> Iterator[tuple[int, AudioSampleEntry]]:
    """Yield ``(track_index, sample_entry)`` for every sound sample entry.

    Only tracks whose hdlr box declares a ``soun`` handler are searched.
    """
    if not isinstance(tree.moov_box, ContainerBox):
        return
    for track_index, trak in enumerate(tree.moov_box.find_all(b"trak")):
        mdia = _child(trak, b"mdia")
        if mdia is None:
            continue
        hdlr = mdia.find(b"hdlr")
        if not isinstance(hdlr, HandlerBox) or not hdlr.is_audio:
            continue
        stsd = _child(_child(_child(mdia, b"minf"), b"stbl"), b"stsd")
        if stsd is None:
            continue
        for entry in stsd:
            if isinstance(entry, AudioSampleEntry):
                yield track_index, entry


def inject_spatial_audio(tree: Mpeg4Container, num_channels: int) -> int:
    """Insert or replace the SA3D box of every matching audio sample entry.

    Sample entries whose channel count differs from ``num_channels`` are
    left alone.

    Args:
        tree: Loaded file
        num_channels: Ambisonic channel count (1, 4, 9, 16, ...)

    Returns:
        Number of sample entries that now carry the new SA3D box

    Raises:
        ValueError: If ``num_channels`` is not an ambisonic channel count
    """
    ambisonic_order_for(num_channels)

    updated = 0
    for track_index, entry in iter_audio_sample_entries(tree):
        if entry.channel_count != num_channels:
            logger.warning(
                "Track %d: %s entry has %d channels, not %d; skipping",
                track_index,
                entry.name,
                entry.channel_count,
                num_channels,
            )
            continue
        if entry.remove(TAG_SA3D):
            logger.info("Track %d: replacing existing SA3D box", track_index)
        entry.add(SA3DBox.create(num_channels))
        updated += 1

    if updated:
        tree.resize()
    return updated


def write_mp4(tree: Mpeg4Container, source_path: str, dest_path: str) -> None:
    """Write a tree loaded from ``source_path`` to ``dest_path``.

    The destination is written in place; on failure its contents are
    undefined, so write to a temporary path and rename it when done.

    Raises:
        ValueError: If both paths name the same file
        BoxError: If reading the source or writing the destination fails
    """
    if os.path.exists(dest_path) and os.path.samefile(source_path, dest_path):
        raise ValueError(f"Refusing to overwrite the source file {source_path}")
    with open(source_path, "rb") as fh_in, open(dest_path, "wb") as fh_out:
        tree.save(fh_in, fh_out)


def dump_structure(tree: Mpeg4Container) -> str:
    """Return the box tree as indented text."""
    buf = io.StringIO()
    tree.print_structure(file=buf)
    return buf.getvalue()


def describe_structure(tree: Mpeg4Container) -> list[BoxInfo]:
    """Flatten the tree into BoxInfo records, depth first."""
    boxes: list[BoxInfo] = []

    def walk(box: Box, depth: int) -> None:
        boxes.append(
            BoxInfo(
                type=box.name,
                offset=box.position,
                size=box.size(),
                header_size=box.header_size,
                content_size=box.content_size,
                depth=depth,
                kind=type(box).__name__,
            )
        )
        if isinstance(box, ContainerBox):
            for child in box:
                walk(child, depth + 1)

    for box in tree:
        walk(box, 0)
    return boxes


def get_spatial_audio(tree: Mpeg4Container) -> list[SpatialAudioInfo]:
    """Return the SA3D metadata of every audio sample entry that has one."""
    results = []
    for track_index, entry in iter_audio_sample_entries(tree):
        for box in entry:
            if not isinstance(box, SA3DBox):
                continue
            results.append(
                SpatialAudioInfo(
                    track_index=track_index,
                    sample_entry=entry.name,
                    version=box.version,
                    ambisonic_type=box.ambisonic_type_name(),
                    ambisonic_order=box.ambisonic_order,
                    channel_ordering=box.ambisonic_channel_ordering_name(),
                    normalization=box.ambisonic_normalization_name(),
                    num_channels=box.num_channels,
                    channel_map=box.channel_map,
                )
            )
    return results
