"""Top-level container for a whole MP4/MOV file."""

from __future__ import annotations

import logging
from typing import BinaryIO, TextIO

from spatialbox.boxes.base import Box
from spatialbox.boxes.container import ContainerBox, load_multiple
from spatialbox.errors import MissingMandatoryBoxError, UnsupportedOperationError
from spatialbox.stream import stream_size

logger = logging.getLogger(__name__)

TAG_FTYP = b"ftyp"
TAG_MOOV = b"moov"
TAG_MDAT = b"mdat"
TAG_FREE = b"free"


class Mpeg4Container(ContainerBox):
    """The sequence of top-level boxes making up a file.

    Besides owning the top-level boxes, it keeps direct references to the
    ftyp, moov, free and first mdat boxes, and remembers where the first
    mdat's content started in the source so a save can tell how far the
    payload moved.

    Attributes:
        ftyp_box: File type box, if present
        moov_box: Movie metadata box (required)
        free_box: Free space box, if present
        mdat_box: First media data box (required)
        first_mdat_pos: Source offset of the first mdat's content
    """

    tags = ()

    def __init__(self, contents: list[Box] | None = None) -> None:
        super().__init__(b"", position=0, header_size=0, contents=contents)
        self.content_size = sum(box.size() for box in self.contents)
        self.ftyp_box: Box | None = None
        self.moov_box: Box | None = None
        self.free_box: Box | None = None
        self.mdat_box: Box | None = None
        self.first_mdat_pos = 0

    @property
    def name(self) -> str:
        return "mpeg4"

    @classmethod
    def load(cls, fh: BinaryIO, position: int = 0, end: int | None = None) -> Mpeg4Container:
        """Load every box of a file.

        Args:
            fh: Seekable binary stream
            position: Where the first box starts (default: 0)
            end: End of the box range (default: size of the stream)

        Raises:
            MissingMandatoryBoxError: If there is no moov or no mdat box
            MalformedHeaderError: If a box header is unreadable
            BoundsExceededError: If a box extends past its parent or the file
        """
        if end is None:
            end = stream_size(fh)
        container = cls(load_multiple(fh, position, end))

        for box in container.contents:
            if box.tag == TAG_MOOV:
                container.moov_box = box
            elif box.tag == TAG_FREE:
                container.free_box = box
            elif box.tag == TAG_MDAT and container.mdat_box is None:
                container.mdat_box = box
            elif box.tag == TAG_FTYP:
                container.ftyp_box = box

        if container.moov_box is None:
            raise MissingMandatoryBoxError("File does not contain a moov box")
        if container.mdat_box is None:
            raise MissingMandatoryBoxError("File does not contain an mdat box")

        container.first_mdat_pos = container.mdat_box.content_start
        logger.debug(
            "Loaded %d top-level boxes, first mdat content at %d",
            len(container.contents),
            container.first_mdat_pos,
        )
        return container

    def resize(self) -> None:
        for box in self.contents:
            box.resize()
        self.content_size = sum(box.size() for box in self.contents)

    def payload_delta(self) -> int:
        """How far the first mdat's content moves if the tree is saved now.

        Resizes the tree first, so pending edits are taken into account.
        """
        self.resize()
        new_pos = 0
        for box in self.contents:
            if box.tag == TAG_MDAT:
                new_pos += box.header_size
                break
            new_pos += box.size()
        return new_pos - self.first_mdat_pos

    def save(self, fh_in: BinaryIO, fh_out: BinaryIO, delta: int = 0) -> None:
        """Write the whole file, shifting chunk offsets by the payload delta.

        The ``delta`` argument is ignored; it is computed from the tree.
        """
        delta = self.payload_delta()
        logger.debug("Saving %d top-level boxes with payload delta %d", len(self.contents), delta)
        for box in self.contents:
            box.save(fh_in, fh_out, delta)

    def merge(self, other: ContainerBox) -> None:
        raise UnsupportedOperationError(
            "Cannot merge mpeg4 files: payload and chunk indices would need re-indexing"
        )

    def print_structure(self, indent: str = "", file: TextIO | None = None) -> None:
        print(f"{indent}mpeg4 [{self.content_size}]", file=file)
        self.print_children(indent, file)
