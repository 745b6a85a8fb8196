"""Per-target staging pipeline."""

from envstage.stages.base import PipelineStage, Stage, StageRegistry, stage_name
from envstage.stages.cache import ArtifactCache, ArtifactHandle
from envstage.stages.context import RunContext, StagingLayout
from envstage.stages.orchestrator import ConfigureReport, StageOrchestrator
from envstage.stages.publish import Publication, PublicationRegistry

__all__ = [
    "ArtifactCache",
    "ArtifactHandle",
    "ConfigureReport",
    "PipelineStage",
    "Publication",
    "PublicationRegistry",
    "RunContext",
    "Stage",
    "StageOrchestrator",
    "StageRegistry",
    "StagingLayout",
    "stage_name",
]
