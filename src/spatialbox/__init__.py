"""spatialbox - MP4/MOV box tree toolkit with spatial audio support.

Parse a file into a tree of boxes, inject or read SA3D spatial audio
metadata, and write the file back with every untouched byte preserved.

Usage:
    from spatialbox import open_mp4, inject_spatial_audio, write_mp4

    tree = open_mp4("input.mp4")
    print(dump_structure(tree))

    # Mark the 4-channel audio track as first-order ambisonics
    if inject_spatial_audio(tree, 4):
        write_mp4(tree, "input.mp4", "output.mp4")
"""

from spatialbox._version import __version__
from spatialbox.boxes import (
    AudioSampleEntry,
    Box,
    ChunkOffsetBox,
    ContainerBox,
    HandlerBox,
    Mpeg4Container,
    RawBox,
    SA3DBox,
)
from spatialbox.errors import (
    BoundsExceededError,
    BoxError,
    BoxIOError,
    MalformedHeaderError,
    MissingMandatoryBoxError,
    UnsupportedOperationError,
)
from spatialbox.metadata import (
    describe_structure,
    dump_structure,
    get_spatial_audio,
    inject_spatial_audio,
    open_mp4,
    write_mp4,
)
from spatialbox.models import BoxInfo, SpatialAudioInfo

__all__ = [
    # Version
    "__version__",
    # Main functions
    "open_mp4",
    "inject_spatial_audio",
    "write_mp4",
    "dump_structure",
    "describe_structure",
    "get_spatial_audio",
    # Boxes
    "Box",
    "RawBox",
    "ContainerBox",
    "Mpeg4Container",
    "AudioSampleEntry",
    "HandlerBox",
    "ChunkOffsetBox",
    "SA3DBox",
    # Models
    "BoxInfo",
    "SpatialAudioInfo",
    # Errors
    "BoxError",
    "MalformedHeaderError",
    "BoundsExceededError",
    "MissingMandatoryBoxError",
    "UnsupportedOperationError",
    "BoxIOError",
]
