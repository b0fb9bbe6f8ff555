"""Default output formatter - box tree plus spatial audio summary."""

import os

from spatialbox.boxes import Mpeg4Container
from spatialbox.metadata import dump_structure, get_spatial_audio


def format_default(path: str, tree: Mpeg4Container) -> str:
    """Format a loaded file as a box tree followed by its SA3D metadata."""
    lines = []

    lines.append("=" * 70)
    lines.append(f"File: {os.path.basename(path)}")
    lines.append("=" * 70)

    lines.append("")
    lines.append("## BOX STRUCTURE")
    lines.append(dump_structure(tree).rstrip("\n"))

    lines.append("")
    lines.append("## SPATIAL AUDIO")
    spatial_audio = get_spatial_audio(tree)
    if not spatial_audio:
        lines.append("  (none)")
    for info in spatial_audio:
        lines.append(f"  Track {info.track_index} ({info.sample_entry}): {info.summary}")

    return "\n".join(lines)
