"""Defaults file discovery."""

from __future__ import annotations

import logging
from pathlib import Path

from envstage.defaults.base import DEFAULTS_FILE_EXTENSION, DefaultsEntry
from envstage.properties import read_lines

logger = logging.getLogger(__name__)

# Property comment markers; these lines never reach generated files
COMMENT_PREFIXES = ("#", "!")


def find_defaults(defaults_dir: Path, suffix: str = DEFAULTS_FILE_EXTENSION) -> list[Path]:
    """Find every file below defaults_dir whose name ends with suffix.

    Returns an empty list if defaults_dir does not exist.
    """
    if not defaults_dir.is_dir():
        return []
    return sorted(
        path
        for path in defaults_dir.rglob("*")
        if path.is_file() and path.name.endswith(suffix)
    )


def get_properties_basename(path: Path, suffix: str = DEFAULTS_FILE_EXTENSION) -> str:
    """Strip the defaults suffix to get the basename of the properties it covers."""
    return path.name[: len(path.name) - len(suffix)]


def read_defaults_file(
    path: Path,
    defaults_dir: Path,
    suffix: str = DEFAULTS_FILE_EXTENSION,
) -> DefaultsEntry:
    """Read the non-blank, non-comment lines of a single defaults file."""
    lines = tuple(
        line
        for line in read_lines(path)
        if line.strip() and not line.lstrip().startswith(COMMENT_PREFIXES)
    )
    return DefaultsEntry(
        relative_path=path.relative_to(defaults_dir),
        basename=get_properties_basename(path, suffix),
        lines=lines,
        source=path,
    )


def read_defaults(
    defaults_dir: Path,
    suffix: str = DEFAULTS_FILE_EXTENSION,
) -> dict[Path, DefaultsEntry]:
    """Collect the available defaults keyed on their path relative to defaults_dir."""
    defaults: dict[Path, DefaultsEntry] = {}
    for path in find_defaults(defaults_dir, suffix):
        entry = read_defaults_file(path, defaults_dir, suffix)
        defaults[entry.relative_path] = entry
        logger.debug("Read %d default line(s) from %s", len(entry.lines), path)
    return defaults
