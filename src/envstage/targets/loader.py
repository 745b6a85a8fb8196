"""Target discovery from a directory of target definition files."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from envstage.errors import TargetNameParseError, TargetParseError, TargetsDirError
from envstage.targets.base import DEFAULT_TEMPLATES, Target, Template

logger = logging.getLogger(__name__)


def parse_target_name(path: Path, template: Template) -> str:
    """Read the target name from a file name using the template pattern.

    Raises:
        TargetNameParseError: If the pattern yields no (or an empty) name.
    """
    name = template.extract_name(path.name)
    if not name:
        raise TargetNameParseError(path, template.source)
    return name


def parse_target_file(name: str, path: Path, template: Template) -> Target:
    """Load a target definition file through the template's loader.

    Raises:
        TargetParseError: If the file cannot be opened or parsed.
    """
    try:
        with path.open("rb") as stream:
            context = template.load_stream(stream)
    except Exception as e:
        raise TargetParseError(path, e) from e
    return Target(name=name, context=context)


def parse_targets(targets_dir: Path, template: Template) -> dict[str, Target]:
    """Parse every file in a directory matched by a single template."""
    targets: dict[str, Target] = {}
    for path in sorted(targets_dir.iterdir()):
        if not path.is_file() or not template.matches(path.name):
            continue
        name = parse_target_name(path, template)
        targets[name] = parse_target_file(name, path, template)
        logger.debug("Parsed target %s from %s", name, path)
    return targets


def discover_targets(
    targets_dir: Path,
    templates: Sequence[Template] | None = None,
) -> dict[str, Target]:
    """Discover targets in a directory.

    Templates are applied in order; when two templates produce the same
    target name, the later template wins.

    Args:
        targets_dir: Directory holding target definition files.
        templates: Templates to apply. Defaults to the properties and XML
            properties templates.

    Returns:
        Dict mapping target name -> Target.

    Raises:
        TargetsDirError: If targets_dir does not exist or is not a directory.
        TargetNameParseError: If a matched file yields no target name.
        TargetParseError: If a matched file cannot be loaded.
    """
    if not targets_dir.is_dir():
        raise TargetsDirError(targets_dir)

    targets: dict[str, Target] = {}
    for template in templates or DEFAULT_TEMPLATES:
        found = parse_targets(targets_dir, template)
        for name in found.keys() & targets.keys():
            logger.info(
                "Target %s redefined by template %s", name, template.source
            )
        targets.update(found)

    logger.info("Discovered %d target(s) in %s", len(targets), targets_dir)
    return targets
