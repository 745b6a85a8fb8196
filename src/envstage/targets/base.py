"""Target and target-template definitions."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, BinaryIO

from envstage.errors import TemplateError
from envstage.properties import Loader, get_loader, load_properties, load_xml_properties

# Case-insensitive alphanumerics with dashes and underscores. Dots and
# slashes are not allowed in target names.
TARGET_PATTERN = r"([a-zA-Z0-9_\-]*)"

PROPERTIES_MASK = f"{TARGET_PATTERN}.properties"
XML_PROPERTIES_MASK = f"{TARGET_PATTERN}.xml"


@dataclass(frozen=True)
class Target:
    """A named deployment target and its property context."""

    name: str
    context: Mapping[str, str] | None = None

    @property
    def has_context(self) -> bool:
        return self.context is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {"name": self.name}
        if self.context is not None:
            result["context"] = dict(self.context)
        return result

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> Target:
        """Create a target from a configuration entry.

        The entry's own ``name`` wins over the mapping key; an entry without a
        ``context`` key produces a target without context.
        """
        target_name = data.get("name", name)
        context_raw = data.get("context")
        context = (
            {str(k): str(v) for k, v in context_raw.items()}
            if isinstance(context_raw, Mapping)
            else None
        )
        return cls(name="" if target_name is None else str(target_name), context=context)


@dataclass(frozen=True)
class Template:
    """A file-name pattern paired with a loader for target definition files.

    The target name is read from capture group 1 of the first match of the
    pattern against a file name, so every pattern needs at least one group.
    """

    pattern: re.Pattern[str]
    load: Loader = load_properties

    def __post_init__(self) -> None:
        if self.pattern.groups < 1:
            raise TemplateError(
                f"Target pattern must define a capture group: {self.pattern.pattern}"
            )
        if self.load is None:
            object.__setattr__(self, "load", load_properties)

    @classmethod
    def from_mask(cls, mask: str, load: Loader | None = None) -> Template:
        """Create a template from a regular expression mask string."""
        try:
            pattern = re.compile(mask)
        except re.error as e:
            raise TemplateError(f"Not a valid context mask: {mask}") from e
        return cls(pattern, load or load_properties)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Template:
        """Create a template from a mapping.

        Accepts ``pattern`` (compiled) or ``mask`` (string), and optionally
        ``load`` (callable) or ``format`` (a loader name such as ``xml``).
        """
        load: Loader | None = data.get("load")
        fmt = data.get("format")
        if load is None and fmt is not None:
            try:
                load = get_loader(str(fmt))
            except ValueError as e:
                raise TemplateError(str(e)) from e

        pattern = data.get("pattern")
        if isinstance(pattern, re.Pattern):
            return cls(pattern, load or load_properties)

        mask = data.get("mask", pattern)
        if not isinstance(mask, str):
            raise TemplateError("Define a string mask or regular expression pattern")
        return cls.from_mask(mask, load)

    @property
    def source(self) -> str:
        return self.pattern.pattern

    def matches(self, name: str) -> bool:
        """Check whether the pattern occurs anywhere in a file name."""
        return self.pattern.search(name) is not None

    def extract_name(self, name: str) -> str | None:
        """Return capture group 1 of the first match, or None."""
        match = self.pattern.search(name)
        if match is None:
            return None
        return match.group(1)

    def load_stream(self, stream: BinaryIO) -> dict[str, str]:
        """Load a target context from a byte stream."""
        return self.load(stream)


PROPERTIES_TEMPLATE = Template.from_mask(PROPERTIES_MASK, load_properties)
XML_PROPERTIES_TEMPLATE = Template.from_mask(XML_PROPERTIES_MASK, load_xml_properties)

DEFAULT_TEMPLATES: tuple[Template, ...] = (
    PROPERTIES_TEMPLATE,
    XML_PROPERTIES_TEMPLATE,
)
