"""Tests for the per-run artifact cache."""

import threading
from pathlib import Path

from envstage.stages import ArtifactCache, ArtifactHandle


def _handle(target: str, name: str = "a.zip") -> ArtifactHandle:
    return ArtifactHandle(target=target, path=Path(name), built_by=f"{target}Archive")


class TestArtifactCache:
    """Tests for ArtifactCache."""

    def test_first_factory_wins(self) -> None:
        """Test that the first factory's artifact is kept for a target."""
        cache = ArtifactCache()
        calls: list[str] = []

        def first() -> ArtifactHandle:
            calls.append("first")
            return _handle("dev", "first.zip")

        def second() -> ArtifactHandle:
            calls.append("second")
            return _handle("dev", "second.zip")

        assert cache.get_or_create("dev", first).path == Path("first.zip")
        assert cache.get_or_create("dev", second).path == Path("first.zip")
        assert calls == ["first"]

    def test_targets_are_independent(self) -> None:
        """Test that each target gets its own artifact."""
        cache = ArtifactCache()
        cache.get_or_create("dev", lambda: _handle("dev"))
        cache.get_or_create("prod", lambda: _handle("prod"))

        assert len(cache) == 2
        assert "dev" in cache
        assert cache.get("prod").target == "prod"
        assert cache.get("qa") is None

    def test_register_publication_once(self) -> None:
        """Test that a target's publication is registered only once."""
        cache = ArtifactCache()
        artifact = _handle("dev")
        registered: list[ArtifactHandle] = []

        assert cache.register_publication_once("dev", artifact, lambda: registered.append(artifact))
        assert not cache.register_publication_once(
            "dev", artifact, lambda: registered.append(artifact)
        )
        assert registered == [artifact]
        assert cache.is_published("dev")
        assert not cache.is_published("prod")

    def test_failed_registration_can_be_retried(self) -> None:
        """Test that a failed registration does not mark the target published."""
        cache = ArtifactCache()
        artifact = _handle("dev")

        def fail() -> None:
            raise RuntimeError("sink unavailable")

        try:
            cache.register_publication_once("dev", artifact, fail)
        except RuntimeError:
            pass

        assert not cache.is_published("dev")
        assert cache.register_publication_once("dev", artifact, lambda: None)

    def test_concurrent_get_or_create(self) -> None:
        """Test that concurrent callers for one target share a single artifact."""
        cache = ArtifactCache()
        barrier = threading.Barrier(8)
        calls: list[int] = []
        results: list[ArtifactHandle] = []

        def factory() -> ArtifactHandle:
            calls.append(1)
            return _handle("dev")

        def worker() -> None:
            barrier.wait()
            results.append(cache.get_or_create("dev", factory))
            cache.register_publication_once("dev", results[-1], lambda: calls.append(2))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert calls == [1, 2]
        assert len(results) == 8
        assert all(result is results[0] for result in results)
