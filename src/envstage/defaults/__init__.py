"""Defaults discovery and property generation."""

from envstage.defaults.base import DEFAULTS_FILE_EXTENSION, DefaultsEntry, MergeOptions
from envstage.defaults.loader import find_defaults, read_defaults
from envstage.defaults.merge import (
    check_structure,
    generate_properties,
    merge_defaults,
    merge_lines,
)

__all__ = [
    "DEFAULTS_FILE_EXTENSION",
    "DefaultsEntry",
    "MergeOptions",
    "check_structure",
    "find_defaults",
    "generate_properties",
    "merge_defaults",
    "merge_lines",
    "read_defaults",
]
