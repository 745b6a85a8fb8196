"""Target definitions and discovery."""

from envstage.targets.base import (
    DEFAULT_TEMPLATES,
    PROPERTIES_TEMPLATE,
    TARGET_PATTERN,
    XML_PROPERTIES_TEMPLATE,
    Target,
    Template,
)
from envstage.targets.loader import (
    discover_targets,
    parse_target_file,
    parse_target_name,
    parse_targets,
)

__all__ = [
    "DEFAULT_TEMPLATES",
    "PROPERTIES_TEMPLATE",
    "TARGET_PATTERN",
    "XML_PROPERTIES_TEMPLATE",
    "Target",
    "Template",
    "discover_targets",
    "parse_target_file",
    "parse_target_name",
    "parse_targets",
]
