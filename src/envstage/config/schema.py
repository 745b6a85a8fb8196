"""Configuration schema for envstage."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from envstage.defaults.base import DEFAULTS_FILE_EXTENSION, MergeOptions

_BOOL_FIELDS = (
    "include_all_resources",
    "sort",
    "trim",
    "structured",
    "prepend",
    "strict",
)
_STR_FIELDS = (
    "artifact_id",
    "version",
    "group_id",
    "defaults_file_extension",
    "targets_dir",
    "build_dir",
)


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class StagingConfig:
    """envstage configuration schema.

    Field names follow the `envstage` CLI options. None values mean
    "not set" and are filled from lower-precedence layers or defaults.
    """

    # Artifact naming
    artifact_id: str | None = None
    version: str | None = None
    group_id: str | None = None

    # Resource selection
    include_all_resources: bool | None = None

    # Property generation
    sort: bool | None = None
    trim: bool | None = None
    structured: bool | None = None
    prepend: bool | None = None
    defaults_file_extension: str | None = None

    # Rendering
    strict: bool | None = None
    context: dict[str, str] | None = None  # shared by every target

    # Layout, relative to the project directory
    targets_dir: str | None = None
    build_dir: str | None = None

    # Extra target templates ({mask, format}) and inline targets
    templates: tuple[dict[str, Any], ...] | None = None
    targets: dict[str, dict[str, Any]] | None = None

    def merge(self, other: StagingConfig) -> StagingConfig:
        """Merge another config into this one.

        Values from `other` take precedence when they are not None. The
        shared context and inline targets are merged key by key.
        Returns a new StagingConfig instance.
        """
        values: dict[str, Any] = {}
        for f in fields(self):
            mine = getattr(self, f.name)
            theirs = getattr(other, f.name)
            if f.name in ("context", "targets") and mine and theirs:
                values[f.name] = {**mine, **theirs}
            else:
                values[f.name] = theirs if theirs is not None else mine
        return StagingConfig(**values)

    def merge_options(self) -> MergeOptions:
        """Property generation options, unset flags treated as False."""
        return MergeOptions(
            sort=bool(self.sort),
            trim=bool(self.trim),
            prepend=bool(self.prepend),
            structured=bool(self.structured),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary, excluding None values."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name == "templates":
                result[f.name] = [dict(t) for t in value]
            else:
                result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StagingConfig:
        """Create a StagingConfig from a dictionary.

        Unknown keys are ignored. Values are coerced to their field types.
        """
        values: dict[str, Any] = {}
        for name in _STR_FIELDS:
            raw = data.get(name)
            if raw is not None:
                values[name] = str(raw)
        for name in _BOOL_FIELDS:
            raw = data.get(name)
            if raw is not None:
                values[name] = _coerce_bool(raw)

        context_raw = data.get("context")
        if isinstance(context_raw, dict):
            values["context"] = {
                str(k): "" if v is None else str(v) for k, v in context_raw.items()
            }

        templates_raw = data.get("templates")
        if isinstance(templates_raw, list):
            values["templates"] = tuple(
                dict(t) for t in templates_raw if isinstance(t, dict)
            )

        targets_raw = data.get("targets")
        if isinstance(targets_raw, dict):
            values["targets"] = {
                str(name): dict(entry) if isinstance(entry, dict) else {}
                for name, entry in targets_raw.items()
            }

        return cls(**values)


# Default configuration values (used when not specified anywhere)
DEFAULT_CONFIG = StagingConfig(
    version="0.0.0",
    include_all_resources=False,
    sort=False,
    trim=False,
    structured=False,
    prepend=False,
    strict=False,
    defaults_file_extension=DEFAULTS_FILE_EXTENSION,
    targets_dir="targets",
    build_dir="build",
)
