"""Per-run artifact cache guarding archive and publication creation."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ArtifactHandle:
    """An archive artifact produced for one target."""

    target: str
    path: Path
    built_by: str  # name of the archive stage


class ArtifactCache:
    """At-most-once artifact and publication registry keyed by target name.

    Lives for one orchestration run. Both operations hold a lock for the
    whole check-and-set, so concurrent calls for one name still create a
    single artifact and register a single publication.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._artifacts: dict[str, ArtifactHandle] = {}
        self._published: set[str] = set()

    def get_or_create(
        self, target: str, factory: Callable[[], ArtifactHandle]
    ) -> ArtifactHandle:
        """Return the cached artifact for target, creating it on first use."""
        with self._lock:
            handle = self._artifacts.get(target)
            if handle is None:
                handle = factory()
                self._artifacts[target] = handle
            return handle

    def register_publication_once(
        self,
        target: str,
        artifact: ArtifactHandle,
        register: Callable[[], object],
    ) -> bool:
        """Run register the first time target is seen; later calls do nothing.

        Returns True if the publication was registered by this call.
        """
        with self._lock:
            if target in self._published:
                return False
            register()
            self._published.add(target)
            self._artifacts.setdefault(target, artifact)
            return True

    def get(self, target: str) -> ArtifactHandle | None:
        with self._lock:
            return self._artifacts.get(target)

    def is_published(self, target: str) -> bool:
        with self._lock:
            return target in self._published

    def __contains__(self, target: object) -> bool:
        with self._lock:
            return target in self._artifacts

    def __len__(self) -> int:
        with self._lock:
            return len(self._artifacts)
