"""Stage orchestrator: builds and runs each target's staging pipeline.

Every target gets a linear chain of stages:

    render (only with a context) -> collect -> archive -> publish

Configuration is idempotent. Stages are looked up by name in the run's
stage registry before being created, and the artifact cache makes sure each
target gets one archive artifact and one publication, however many times
``configure`` is called.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from envstage.errors import InvalidTargetError, PipelineStageError, StagingError
from envstage.stages.archive import create_archive
from envstage.stages.base import PipelineStage, Stage, stage_name
from envstage.stages.cache import ArtifactHandle
from envstage.stages.collect import collect_resources
from envstage.stages.context import RunContext
from envstage.stages.render import render_templates
from envstage.targets.base import TARGET_PATTERN, Target

logger = logging.getLogger(__name__)

TARGET_NAME = re.compile(TARGET_PATTERN)


@dataclass
class ConfigureReport:
    """Outcome of a configuration pass."""

    configured: list[str] = field(default_factory=list)
    failures: dict[str, StagingError] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failures


class StageOrchestrator:
    """Configures and executes the staging pipeline of every target."""

    def __init__(self, context: RunContext) -> None:
        self.context = context

    @property
    def include_all_resources(self) -> bool:
        return bool(self.context.config.include_all_resources)

    def configure(
        self,
        targets: Mapping[str, Target],
        keep_going: bool = False,
    ) -> ConfigureReport:
        """Configure every target, in mapping order.

        Targets are configured independently: a failure never undoes targets
        configured before it. By default the first failure is raised; with
        keep_going the remaining targets are still configured and failures
        are collected in the report.
        """
        report = ConfigureReport()
        for key, target in targets.items():
            try:
                self.configure_target(target)
            except StagingError as e:
                if not keep_going:
                    raise
                logger.warning("Skipping target %s: %s", key, e)
                report.failures[key] = e
                continue
            report.configured.append(target.name)
        return report

    def configure_target(self, target: Target) -> Stage:
        """Configure one target's stages and publication.

        Returns the last stage of the target's chain.

        Raises:
            InvalidTargetError: If the target has no name.
            PipelineStageError: If a stage cannot be created.
        """
        self.check_target(target)
        logger.info("Configuring staging target %s", target.name)

        render = self.create_render_stage(target) if target.has_context else None
        collect = self.create_collect_stage(target, render)
        archive = self.create_archive_stage(target, collect)
        artifact = self.create_artifact(target, archive)
        self.configure_publishing(target, artifact)
        return self.create_publish_stage(target, archive, artifact)

    @staticmethod
    def check_target(target: object) -> None:
        """Reject targets whose name is empty or not a plain path segment.

        Names are used as directory names below the build directory, so
        dots and slashes are refused.
        """
        name = getattr(target, "name", None)
        if not isinstance(name, str) or not name or not TARGET_NAME.fullmatch(name):
            raise InvalidTargetError(target)

    def _get_or_create(
        self, target: Target, kind: PipelineStage, build: Callable[[], Stage]
    ) -> Stage:
        name = stage_name(target.name, kind)
        try:
            return self.context.stages.get_or_create(name, build)
        except (OSError, ValueError) as e:
            raise PipelineStageError(name, target.name, e) from e

    def create_render_stage(self, target: Target) -> Stage:
        """Render the generated templates with the target's context."""
        layout = self.context.layout
        config = self.context.config
        output = layout.rendered_dir(target.name)
        # Shared context values first, then the target's own
        variables = {**(config.context or {}), **(target.context or {})}

        def build() -> Stage:
            return Stage(
                name=stage_name(target.name, PipelineStage.RENDER),
                kind=PipelineStage.RENDER,
                target=target.name,
                output=output,
                action=lambda: render_templates(
                    layout.generated_dir, output, variables, strict=bool(config.strict)
                ),
            )

        return self._get_or_create(target, PipelineStage.RENDER, build)

    def create_collect_stage(self, target: Target, render: Stage | None) -> Stage:
        """Copy the target's resources (and rendered templates) into one directory."""
        layout = self.context.layout
        output = layout.collected_dir(target.name)
        include_all = self.include_all_resources
        rendered_dir = render.output if render is not None else None

        def build() -> Stage:
            return Stage(
                name=stage_name(target.name, PipelineStage.COLLECT),
                kind=PipelineStage.COLLECT,
                target=target.name,
                output=output,
                action=lambda: collect_resources(
                    layout.resources_dir,
                    output,
                    target.name,
                    include_all=include_all,
                    rendered_dir=rendered_dir,
                ),
                depends_on=render.name if render is not None else None,
            )

        return self._get_or_create(target, PipelineStage.COLLECT, build)

    def create_archive_stage(self, target: Target, collect: Stage) -> Stage:
        """Zip the collected resources into the target's archive."""
        archive_path = self.context.archive_path(target.name)

        def build() -> Stage:
            return Stage(
                name=stage_name(target.name, PipelineStage.ARCHIVE),
                kind=PipelineStage.ARCHIVE,
                target=target.name,
                output=archive_path,
                action=lambda: create_archive(collect.output, archive_path),
                depends_on=collect.name,
            )

        return self._get_or_create(target, PipelineStage.ARCHIVE, build)

    def create_artifact(self, target: Target, archive: Stage) -> ArtifactHandle:
        """Get the target's archive artifact, creating it once per run."""
        artifact = self.context.cache.get_or_create(
            target.name,
            lambda: ArtifactHandle(
                target=target.name, path=archive.output, built_by=archive.name
            ),
        )
        logger.debug("Using artifact %s for %s", artifact.path.name, target.name)
        return artifact

    def configure_publishing(self, target: Target, artifact: ArtifactHandle) -> None:
        """Register the target's publication unless already registered."""
        self.context.cache.register_publication_once(
            target.name,
            artifact,
            lambda: self.context.publications.publish(artifact, classifier=target.name),
        )

    def create_publish_stage(
        self, target: Target, archive: Stage, artifact: ArtifactHandle
    ) -> Stage:
        """Check the published archive exists once the archive stage has run."""

        def verify() -> None:
            if not artifact.path.is_file():
                raise FileNotFoundError(f"Archive not built: {artifact.path}")

        def build() -> Stage:
            return Stage(
                name=stage_name(target.name, PipelineStage.PUBLISH),
                kind=PipelineStage.PUBLISH,
                target=target.name,
                output=artifact.path,
                action=verify,
                depends_on=archive.name,
            )

        return self._get_or_create(target, PipelineStage.PUBLISH, build)

    def execute(self, target_names: Iterable[str] | None = None) -> list[Path]:
        """Run the configured pipelines and write the publication manifest.

        Args:
            target_names: Targets to run. Defaults to every configured target.

        Returns:
            The archive paths, one per target.

        Raises:
            PipelineStageError: If any stage fails.
        """
        if target_names is None:
            target_names = [
                stage.target
                for stage in self.context.stages
                if stage.kind is PipelineStage.PUBLISH
            ]

        archives: list[Path] = []
        for name in target_names:
            publish_name = stage_name(name, PipelineStage.PUBLISH)
            if publish_name not in self.context.stages:
                raise StagingError(f"Target not configured: {name}")
            for stage in self.context.stages.chain(publish_name):
                logger.info("Running %s", stage.name)
                stage.run()
            archives.append(self.context.archive_path(name))

        self.context.publications.write_manifest(self.context.layout.publications_file)
        return archives
