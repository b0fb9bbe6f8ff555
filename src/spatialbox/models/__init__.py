"""Pydantic models for spatialbox."""

from .spatial_audio import SpatialAudioInfo
from .structure import BoxInfo

__all__ = [
    "BoxInfo",
    "SpatialAudioInfo",
]
