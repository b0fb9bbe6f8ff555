"""Box types for spatialbox.

Importing this package registers every known box type with the ``fourcc``
registry; tags without a registered class load as RawBox.
"""

from spatialbox.boxes.base import (
    BOX_TYPES,
    Box,
    BoxHeader,
    RawBox,
    box_class_for,
    fourcc,
    read_header,
    tag_name,
)
from spatialbox.boxes.chunk_offset import ChunkOffsetBox
from spatialbox.boxes.container import (
    CONTAINER_TAGS,
    SOUND_SAMPLE_DESCRIPTIONS,
    AudioSampleEntry,
    ContainerBox,
    SampleDescriptionBox,
    load_multiple,
)
from spatialbox.boxes.handler import HandlerBox
from spatialbox.boxes.mpeg4 import Mpeg4Container
from spatialbox.boxes.sa3d import (
    AmbisonicChannelOrdering,
    AmbisonicNormalization,
    AmbisonicType,
    SA3DBox,
    ambisonic_order_for,
)

__all__ = [
    # Base
    "Box",
    "BoxHeader",
    "RawBox",
    "BOX_TYPES",
    "box_class_for",
    "fourcc",
    "read_header",
    "tag_name",
    # Containers
    "ContainerBox",
    "SampleDescriptionBox",
    "AudioSampleEntry",
    "Mpeg4Container",
    "load_multiple",
    "CONTAINER_TAGS",
    "SOUND_SAMPLE_DESCRIPTIONS",
    # Leaf boxes
    "HandlerBox",
    "ChunkOffsetBox",
    "SA3DBox",
    "AmbisonicType",
    "AmbisonicChannelOrdering",
    "AmbisonicNormalization",
    "ambisonic_order_for",
]
