"""Handler reference box."""

from __future__ import annotations

from typing import BinaryIO

from spatialbox.boxes.base import BoxHeader, RawBox, fourcc
from spatialbox.stream import read_exact

HANDLER_SOUND = b"soun"


@fourcc(b"hdlr")
class HandlerBox(RawBox):
    """hdlr box, copied verbatim but with its handler type decoded.

    Content layout: version/flags (4), pre_defined (4), handler_type (4),
    reserved (12), name (rest).
    """

    def __init__(
        self,
        tag: bytes = b"hdlr",
        position: int = 0,
        header_size: int = 8,
        content_size: int = 0,
        handler_type: bytes | None = None,
    ) -> None:
        super().__init__(tag, position, header_size, content_size)
        self.handler_type = handler_type

    @classmethod
    def from_header(cls, fh: BinaryIO, header: BoxHeader) -> HandlerBox:
        handler_type = None
        if header.content_size >= 12:
            read_exact(fh, 8)
            handler_type = read_exact(fh, 4)
        return cls(
            header.tag,
            header.position,
            header.header_size,
            header.content_size,
            handler_type=handler_type,
        )

    @property
    def is_audio(self) -> bool:
        return self.handler_type == HANDLER_SOUND
