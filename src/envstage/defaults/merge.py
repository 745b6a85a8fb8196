"""Merge defaults into property templates and check structural consistency."""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Mapping, Sequence
from itertools import combinations
from pathlib import Path

from envstage.defaults.base import DEFAULTS_FILE_EXTENSION, DefaultsEntry, MergeOptions
from envstage.defaults.loader import read_defaults
from envstage.errors import StructuralInconsistencyError
from envstage.properties import read_lines, read_properties_file

logger = logging.getLogger(__name__)


def merge_lines(
    defaults: Sequence[str],
    own: Sequence[str],
    options: MergeOptions,
) -> list[str]:
    """Merge default lines with a template's own lines.

    Sorting applies to the whole merged sequence, so with ``sort`` set the
    defaults and own lines are interleaved.
    """
    # prepend puts the template's own lines before the defaults
    prefix, suffix = (own, defaults) if options.prepend else (defaults, own)
    lines = [*prefix, *suffix]
    if options.trim:
        lines = [line for line in lines if line.strip()]
    if options.sort:
        lines.sort()
    return lines


def check_structure(property_sets: Sequence[Mapping[str, str]]) -> set[str]:
    """Return every key not defined by all of the property sets.

    This is the union of the symmetric differences of every pair of sets;
    an empty result means the sets are structurally consistent.
    """
    difference: set[str] = set()
    for left, right in combinations(property_sets, 2):
        difference |= left.keys() ^ right.keys()
    return difference


def raise_if_not_structured(files: Sequence[Path]) -> None:
    """Parse generated files and fail if they define different keys.

    Raises:
        StructuralInconsistencyError: With the sorted offending keys.
    """
    difference = check_structure([read_properties_file(path) for path in files])
    if difference:
        raise StructuralInconsistencyError(difference)


def generate_file(
    defaults: Sequence[str],
    template: Path,
    output_dir: Path,
    options: MergeOptions,
) -> Path:
    """Write one merged property file into output_dir."""
    own = read_lines(template)
    output = output_dir / template.name
    output.parent.mkdir(parents=True, exist_ok=True)
    # newline="" keeps os.linesep as written
    with output.open("w", encoding="utf-8", newline="") as f:
        f.write(os.linesep.join(merge_lines(defaults, own, options)))
    logger.info("Generated %s", output.absolute())
    return output


def generate_properties(
    entry: DefaultsEntry,
    templates_dir: Path,
    output_dir: Path,
    options: MergeOptions,
) -> list[Path]:
    """Generate every property file covered by a defaults entry.

    The candidates are the files in the entry's directory (resolved under
    templates_dir) whose names start with the entry's basename.
    """
    relative_dir = entry.relative_path.parent
    input_dir = templates_dir / relative_dir
    resolved_output_dir = output_dir / relative_dir
    if not input_dir.is_dir():
        logger.debug("No templates directory for defaults %s", entry.relative_path)
        return []

    candidates = sorted(
        path
        for path in input_dir.iterdir()
        if path.is_file() and path.name.startswith(entry.basename)
    )
    return [
        generate_file(entry.lines, path, resolved_output_dir, options)
        for path in candidates
    ]


def copy_templates(templates_dir: Path, output_dir: Path) -> list[Path]:
    """Copy the templates tree unchanged into output_dir."""
    shutil.copytree(templates_dir, output_dir, dirs_exist_ok=True)
    copied = sorted(
        output_dir / path.relative_to(templates_dir)
        for path in templates_dir.rglob("*")
        if path.is_file()
    )
    logger.info("Copied %d template(s) to %s", len(copied), output_dir)
    return copied


def merge_defaults(
    defaults_dir: Path,
    templates_dir: Path,
    output_dir: Path,
    options: MergeOptions | None = None,
    suffix: str = DEFAULTS_FILE_EXTENSION,
) -> list[Path]:
    """Generate property files from defaults and templates.

    Each defaults entry is merged into its matching templates and, in
    structured mode, the files generated from that entry are checked for
    consistent keys. Without any defaults the templates are copied as-is.

    Args:
        defaults_dir: Root holding the defaults files (may not exist).
        templates_dir: Root holding the property templates.
        output_dir: Root to generate into.
        options: Merge options. Defaults to MergeOptions().
        suffix: File name suffix identifying defaults files.

    Returns:
        List of generated (or copied) files.

    Raises:
        StructuralInconsistencyError: If structured and a batch disagrees on keys.
    """
    options = options or MergeOptions()
    if not templates_dir.is_dir():
        logger.info("Templates directory %s not found, skipping", templates_dir)
        return []

    output_dir.mkdir(parents=True, exist_ok=True)
    defaults = read_defaults(defaults_dir, suffix)

    if not defaults:
        copied = copy_templates(templates_dir, output_dir)
        if options.structured:
            raise_if_not_structured(copied)
        return copied

    generated: list[Path] = []
    for entry in defaults.values():
        batch = generate_properties(entry, templates_dir, output_dir, options)
        if options.structured:
            raise_if_not_structured(batch)
        generated.extend(batch)
    return generated
