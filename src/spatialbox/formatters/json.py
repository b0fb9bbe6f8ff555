"""JSON output formatter."""

import json
import os
from typing import Any

from spatialbox.boxes import Mpeg4Container
from spatialbox.metadata import describe_structure, get_spatial_audio


def to_dict(path: str, tree: Mpeg4Container) -> dict[str, Any]:
    """Convert a loaded file to a dictionary.

    Args:
        path: Path the tree was loaded from
        tree: Loaded file

    Returns:
        Dictionary with the flattened box list and any SA3D metadata
    """
    return {
        "path": os.path.abspath(path),
        "size": tree.size(),
        "first_mdat_pos": tree.first_mdat_pos,
        "boxes": [box.model_dump(mode="json") for box in describe_structure(tree)],
        "spatial_audio": [info.model_dump(mode="json") for info in get_spatial_audio(tree)],
    }


def format_json(path: str, tree: Mpeg4Container, indent: int = 2) -> str:
    """Format a loaded file as a JSON string."""
    return json.dumps(to_dict(path, tree), indent=indent, ensure_ascii=False)


def format_json_list(items: list[tuple[str, Mpeg4Container]], indent: int = 2) -> str:
    """Format several loaded files as a JSON array."""
    data = [to_dict(path, tree) for path, tree in items]
    return json.dumps(data, indent=indent, ensure_ascii=False)
