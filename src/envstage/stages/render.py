"""Render generated templates against a target context with Jinja2."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, Undefined

logger = logging.getLogger(__name__)


def build_environment(strict: bool = False) -> Environment:
    """Create the Jinja environment used for every render stage."""
    return Environment(
        autoescape=False,
        undefined=StrictUndefined if strict else Undefined,
        keep_trailing_newline=True,
        trim_blocks=False,
        lstrip_blocks=False,
    )


def build_variables(context: Mapping[str, str]) -> dict[str, Any]:
    """Expose context keys as template variables.

    Keys that are valid identifiers become variables of their own; every key
    (dotted ones included) is reachable through the ``context`` mapping.
    """
    variables: dict[str, Any] = {k: v for k, v in context.items() if k.isidentifier()}
    variables["context"] = dict(context)
    return variables


def render_templates(
    source_dir: Path,
    output_dir: Path,
    context: Mapping[str, str],
    strict: bool = False,
) -> list[Path]:
    """Render every file below source_dir into output_dir.

    Relative paths are preserved. A missing source_dir renders nothing.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    if not source_dir.is_dir():
        logger.debug("Nothing to render, %s not found", source_dir)
        return []

    env = build_environment(strict)
    variables = build_variables(context)
    rendered: list[Path] = []

    for path in sorted(source_dir.rglob("*")):
        if not path.is_file():
            continue
        text = path.read_text(encoding="utf-8")
        output = output_dir / path.relative_to(source_dir)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(env.from_string(text).render(**variables), encoding="utf-8")
        rendered.append(output)

    logger.info("Rendered %d template(s) into %s", len(rendered), output_dir)
    return rendered
