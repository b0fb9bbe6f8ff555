"""Spatial audio metadata models."""

from pydantic import BaseModel, Field, model_validator


class SpatialAudioInfo(BaseModel):
    """Contents of an SA3D box, with the codes resolved to names."""

    track_index: int
    sample_entry: str
    version: int = 0
    ambisonic_type: str | None = None
    ambisonic_order: int = 0
    channel_ordering: str | None = None
    normalization: str | None = None
    num_channels: int = 0
    channel_map: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_channel_map(self) -> "SpatialAudioInfo":
        if len(self.channel_map) != self.num_channels:
            raise ValueError(
                f"channel_map has {len(self.channel_map)} entries for {self.num_channels} channels"
            )
        return self

    @property
    def summary(self) -> str:
        """Return a one-line description of the layout."""
        channel_map = ", ".join(str(channel) for channel in self.channel_map)
        return (
            f"{self.normalization}, {self.channel_ordering}, {self.ambisonic_type}, "
            f"Order {self.ambisonic_order}, {self.num_channels} Channel(s), "
            f"Channel Map: {channel_map}"
        )
