"""Pipeline stage definitions and the per-run stage registry."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from jinja2 import TemplateError as JinjaTemplateError

from envstage.errors import PipelineStageError


class PipelineStage(Enum):
    """The four steps of a target's pipeline, in order."""

    RENDER = "render"
    COLLECT = "collect"
    ARCHIVE = "archive"
    PUBLISH = "publish"


# Suffix appended to the target name to build stage names
STAGE_SUFFIXES: dict[PipelineStage, str] = {
    PipelineStage.RENDER: "Render",
    PipelineStage.COLLECT: "Resources",
    PipelineStage.ARCHIVE: "Archive",
    PipelineStage.PUBLISH: "Publish",
}


def stage_name(target: str, kind: PipelineStage) -> str:
    """Name of the stage of a given kind for a target, e.g. ``devArchive``."""
    return f"{target}{STAGE_SUFFIXES[kind]}"


@dataclass(frozen=True)
class Stage:
    """A single configured pipeline stage for one target.

    ``output`` is the directory (or file, for archives) the stage produces;
    the next stage in the chain reads from it.
    """

    name: str
    kind: PipelineStage
    target: str
    output: Path
    action: Callable[[], object]
    depends_on: str | None = None

    def run(self) -> None:
        """Run the stage action.

        Raises:
            PipelineStageError: Wrapping I/O, rendering or loading failures.
        """
        try:
            self.action()
        except (OSError, ValueError, JinjaTemplateError) as e:
            raise PipelineStageError(self.name, self.target, e) from e


class StageRegistry:
    """Stages created during one run, looked up by name.

    Stages are created at most once per name; later requests for the same
    name return the existing stage.
    """

    def __init__(self) -> None:
        self._stages: dict[str, Stage] = {}

    def find(self, name: str) -> Stage | None:
        return self._stages.get(name)

    def get_or_create(self, name: str, factory: Callable[[], Stage]) -> Stage:
        """Return the stage registered under name, creating it if missing."""
        existing = self._stages.get(name)
        if existing is not None:
            return existing
        stage = factory()
        if stage.name != name:
            raise ValueError(f"Stage factory for {name} produced {stage.name}")
        self._stages[name] = stage
        return stage

    def chain(self, name: str) -> list[Stage]:
        """Return the stage and its dependencies, first dependency first."""
        stages: list[Stage] = []
        current = self._stages.get(name)
        while current is not None:
            stages.append(current)
            current = self._stages.get(current.depends_on) if current.depends_on else None
        stages.reverse()
        return stages

    def __contains__(self, name: object) -> bool:
        return name in self._stages

    def __iter__(self) -> Iterator[Stage]:
        return iter(self._stages.values())

    def __len__(self) -> int:
        return len(self._stages)
