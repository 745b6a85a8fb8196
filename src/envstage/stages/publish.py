"""Publication sink recording one publication per target archive."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from envstage.stages.cache import ArtifactHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Publication:
    """A published archive, identified by coordinates plus a classifier."""

    group_id: str | None
    artifact_id: str
    version: str
    classifier: str
    file: Path

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the manifest."""
        result: dict[str, Any] = {
            "artifact_id": self.artifact_id,
            "version": self.version,
            "classifier": self.classifier,
            "file": str(self.file),
        }
        if self.group_id is not None:
            result["group_id"] = self.group_id
        return result


class PublicationRegistry:
    """Collects publications and writes them out as a YAML manifest."""

    def __init__(self, artifact_id: str, version: str, group_id: str | None = None) -> None:
        self.artifact_id = artifact_id
        self.version = version
        self.group_id = group_id
        self.publications: list[Publication] = []

    def publish(self, artifact: ArtifactHandle, classifier: str) -> Publication:
        """Register an artifact under a classifier."""
        publication = Publication(
            group_id=self.group_id,
            artifact_id=self.artifact_id,
            version=self.version,
            classifier=classifier,
            file=artifact.path,
        )
        self.publications.append(publication)
        logger.info("Registered publication %s (%s)", artifact.path.name, classifier)
        return publication

    def write_manifest(self, path: Path) -> Path:
        """Write every publication to a YAML manifest file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {"publications": [p.to_dict() for p in self.publications]}
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        return path
