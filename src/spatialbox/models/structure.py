"""Box structure models."""

from pydantic import BaseModel


class BoxInfo(BaseModel):
    """MP4/MOV box structure information."""

    type: str
    offset: int
    size: int
    header_size: int
    content_size: int
    depth: int = 0
    kind: str = "raw"
