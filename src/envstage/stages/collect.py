"""Collect target resources into a target-scoped directory."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def resource_destination(
    relative: Path, target: str, include_all: bool
) -> Path | None:
    """Map a resource path to its destination, or None if not selected.

    With include_all every resource keeps its name. Otherwise only resources
    ending in ``.<target>`` are selected, and that suffix is stripped, so
    ``app.conf.dev`` becomes ``app.conf`` for target ``dev``.
    """
    if include_all:
        return relative
    suffix = f".{target}"
    if not relative.name.endswith(suffix) or relative.name == suffix:
        return None
    return relative.with_name(relative.name[: -len(suffix)])


def collect_resources(
    resources_dir: Path,
    output_dir: Path,
    target: str,
    include_all: bool = False,
    rendered_dir: Path | None = None,
) -> list[Path]:
    """Copy a target's resources into output_dir.

    output_dir is emptied first. Rendered templates (already target-specific)
    are copied afterwards without filtering, replacing resources of the same
    name.
    """
    if output_dir.exists():
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True)

    collected: list[Path] = []
    if resources_dir.is_dir():
        for path in sorted(resources_dir.rglob("*")):
            if not path.is_file():
                continue
            destination = resource_destination(
                path.relative_to(resources_dir), target, include_all
            )
            if destination is None:
                continue
            output = output_dir / destination
            output.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, output)
            collected.append(output)

    if rendered_dir is not None and rendered_dir.is_dir():
        shutil.copytree(rendered_dir, output_dir, dirs_exist_ok=True)
        collected.extend(
            output_dir / path.relative_to(rendered_dir)
            for path in sorted(rendered_dir.rglob("*"))
            if path.is_file()
        )

    logger.info("Collected %d resource(s) for %s", len(collected), target)
    return collected
