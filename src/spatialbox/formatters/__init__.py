"""Output formatters for spatialbox."""

from .default import format_default
from .json import format_json, format_json_list, to_dict

__all__ = [
    "format_default",
    "format_json",
    "format_json_list",
    "to_dict",
]
