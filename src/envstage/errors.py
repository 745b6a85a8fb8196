"""Exceptions raised while discovering, generating and staging targets."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any


class StagingError(Exception):
    """Base exception for envstage failures."""


class TemplateError(StagingError):
    """Raised when a target template cannot be built from its mask or pattern."""


class TargetsDirError(StagingError):
    """Raised when the targets directory is missing or not a directory."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Targets directory not found: {path}")


class TargetNameParseError(StagingError):
    """Raised when a matched file name yields no target name."""

    def __init__(self, path: Path, pattern: str) -> None:
        self.path = path
        self.pattern = pattern
        super().__init__(
            f"Unable to parse target name {path.name} using pattern {pattern}: {path}"
        )


class TargetParseError(StagingError):
    """Raised when a target file cannot be opened or loaded."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(
            f"Unable to parse target properties file: {path.absolute()} ({cause})"
        )


class InvalidTargetError(StagingError):
    """Raised when a target has no usable name."""

    def __init__(self, target: Any) -> None:
        self.target = target
        super().__init__(f"Missing target name: {target!r}")


class StructuralInconsistencyError(StagingError):
    """Raised when generated property sets define different keys."""

    def __init__(self, keys: Iterable[str]) -> None:
        self.keys: list[str] = sorted(set(keys))
        formatted = "\n\t".join(self.keys)
        super().__init__(f"Detected disjoint property sets: \n\t{formatted}")


class PipelineStageError(StagingError):
    """Raised when a render, collect or archive stage fails."""

    def __init__(self, stage: str, target: str, cause: BaseException) -> None:
        self.stage = stage
        self.target = target
        self.cause = cause
        super().__init__(f"Stage {stage} failed for target {target}: {cause}")

