"""Project layout and the per-run orchestration context."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from envstage.config.schema import DEFAULT_CONFIG, StagingConfig
from envstage.stages.archive import archive_name
from envstage.stages.base import StageRegistry
from envstage.stages.cache import ArtifactCache
from envstage.stages.publish import PublicationRegistry


@dataclass(frozen=True)
class StagingLayout:
    """Source and build directories of a staged project."""

    project_dir: Path
    build_dir: Path
    targets_dir: Path

    @classmethod
    def from_config(cls, project_dir: Path, config: StagingConfig) -> StagingLayout:
        """Resolve the layout, relative paths taken from the project directory."""
        build_dir = config.build_dir or DEFAULT_CONFIG.build_dir or "build"
        targets_dir = config.targets_dir or DEFAULT_CONFIG.targets_dir or "targets"
        return cls(
            project_dir=project_dir,
            build_dir=project_dir / build_dir,
            targets_dir=project_dir / targets_dir,
        )

    @property
    def defaults_dir(self) -> Path:
        return self.project_dir / "src" / "main" / "defaults"

    @property
    def templates_dir(self) -> Path:
        return self.project_dir / "src" / "main" / "templates"

    @property
    def resources_dir(self) -> Path:
        return self.project_dir / "src" / "main" / "resources"

    @property
    def generated_dir(self) -> Path:
        """Merged property templates shared by every target's render stage."""
        return self.build_dir / "vtl"

    @property
    def libs_dir(self) -> Path:
        return self.build_dir / "libs"

    @property
    def publications_file(self) -> Path:
        return self.build_dir / "publications.yaml"

    def rendered_dir(self, target: str) -> Path:
        return self.build_dir / "templates" / target

    def collected_dir(self, target: str) -> Path:
        return self.build_dir / "resources" / target


@dataclass
class RunContext:
    """Everything one orchestration run shares between stages.

    Passed explicitly to stage construction instead of living in module
    globals; a new context starts with empty registries.
    """

    layout: StagingLayout
    config: StagingConfig
    stages: StageRegistry = field(default_factory=StageRegistry)
    cache: ArtifactCache = field(default_factory=ArtifactCache)
    publications: PublicationRegistry = field(init=False)

    def __post_init__(self) -> None:
        self.publications = PublicationRegistry(
            artifact_id=self.artifact_id,
            version=self.version,
            group_id=self.config.group_id,
        )

    @classmethod
    def create(cls, project_dir: Path, config: StagingConfig) -> RunContext:
        return cls(layout=StagingLayout.from_config(project_dir, config), config=config)

    @property
    def artifact_id(self) -> str:
        return self.config.artifact_id or self.layout.project_dir.resolve().name

    @property
    def version(self) -> str:
        return self.config.version or DEFAULT_CONFIG.version or "0.0.0"

    def archive_path(self, target: str) -> Path:
        return self.layout.libs_dir / archive_name(self.artifact_id, self.version, target)
