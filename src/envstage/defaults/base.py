"""Defaults entry and merge option definitions."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULTS_FILE_EXTENSION = ".defaults.vtl"


@dataclass(frozen=True)
class MergeOptions:
    """Options controlling how defaults are merged into property templates.

    With ``prepend`` unset the defaults come first, followed by the template's
    own lines. ``trim`` drops blank lines and ``sort`` sorts the merged lines.
    ``structured`` requires every file generated from the same defaults to
    define exactly the same keys.
    """

    sort: bool = False
    trim: bool = False
    prepend: bool = False
    structured: bool = False


@dataclass(frozen=True)
class DefaultsEntry:
    """The default lines read from one defaults file."""

    relative_path: Path  # relative to the defaults root
    basename: str  # file name with the defaults extension stripped
    lines: tuple[str, ...]
    source: Path | None = None
