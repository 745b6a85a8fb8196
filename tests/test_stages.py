"""Tests for the individual pipeline stages."""

from pathlib import Path
from zipfile import ZipFile

import pytest
from jinja2 import UndefinedError

from envstage.errors import PipelineStageError
from envstage.stages import PipelineStage, Stage, StageRegistry, stage_name
from envstage.stages.archive import archive_name, create_archive
from envstage.stages.cache import ArtifactHandle
from envstage.stages.collect import collect_resources, resource_destination
from envstage.stages.publish import PublicationRegistry
from envstage.stages.render import build_variables, render_templates


def _stage(name: str, depends_on: str | None = None, action=lambda: None) -> Stage:
    return Stage(
        name=name,
        kind=PipelineStage.COLLECT,
        target="dev",
        output=Path("out"),
        action=action,
        depends_on=depends_on,
    )


class TestStageRegistry:
    """Tests for StageRegistry and stage naming."""

    def test_stage_names(self) -> None:
        """Test that stage names join the target and the stage suffix."""
        assert stage_name("dev", PipelineStage.RENDER) == "devRender"
        assert stage_name("dev", PipelineStage.COLLECT) == "devResources"
        assert stage_name("dev", PipelineStage.ARCHIVE) == "devArchive"
        assert stage_name("dev", PipelineStage.PUBLISH) == "devPublish"

    def test_get_or_create_once(self) -> None:
        """Test that a stage is created once per name."""
        registry = StageRegistry()
        first = registry.get_or_create("a", lambda: _stage("a"))
        second = registry.get_or_create("a", lambda: pytest.fail("factory called twice"))

        assert first is second
        assert len(registry) == 1
        assert "a" in registry

    def test_factory_name_mismatch(self) -> None:
        """Test that a factory must produce the requested name."""
        with pytest.raises(ValueError, match="produced b"):
            StageRegistry().get_or_create("a", lambda: _stage("b"))

    def test_chain_dependencies_first(self) -> None:
        """Test that a chain lists dependencies before the stage."""
        registry = StageRegistry()
        registry.get_or_create("a", lambda: _stage("a"))
        registry.get_or_create("b", lambda: _stage("b", depends_on="a"))
        registry.get_or_create("c", lambda: _stage("c", depends_on="b"))

        assert [stage.name for stage in registry.chain("c")] == ["a", "b", "c"]
        assert registry.chain("missing") == []

    def test_run_wraps_os_errors(self) -> None:
        """Test that I/O failures are wrapped with the stage and target."""
        def fail() -> None:
            raise FileNotFoundError("gone")

        with pytest.raises(PipelineStageError) as exc:
            _stage("devResources", action=fail).run()

        assert exc.value.stage == "devResources"
        assert exc.value.target == "dev"
        assert isinstance(exc.value.cause, FileNotFoundError)


class TestRender:
    """Tests for template rendering."""

    def test_render_with_context(self, tmp_path: Path) -> None:
        """Test that templates render with plain and dotted context keys."""
        source = tmp_path / "vtl"
        (source / "sub").mkdir(parents=True)
        (source / "app.properties").write_text("url=http://{{ host }}:{{ port }}\n")
        (source / "sub" / "db.properties").write_text("url={{ context['db.url'] }}\n")
        output = tmp_path / "rendered"

        rendered = render_templates(
            source, output, {"host": "dev", "port": "8080", "db.url": "jdbc:h2"}
        )

        assert len(rendered) == 2
        assert (output / "app.properties").read_text() == "url=http://dev:8080\n"
        assert (output / "sub" / "db.properties").read_text() == "url=jdbc:h2\n"

    def test_undefined_renders_empty_by_default(self, tmp_path: Path) -> None:
        """Test that undefined variables render empty when not strict."""
        source = tmp_path / "vtl"
        source.mkdir()
        (source / "app.properties").write_text("a={{ missing }}\n")

        render_templates(source, tmp_path / "out", {})

        assert (tmp_path / "out" / "app.properties").read_text() == "a=\n"

    def test_strict_undefined_raises(self, tmp_path: Path) -> None:
        """Test that strict rendering fails on undefined variables."""
        source = tmp_path / "vtl"
        source.mkdir()
        (source / "app.properties").write_text("a={{ missing }}\n")

        with pytest.raises(UndefinedError):
            render_templates(source, tmp_path / "out", {}, strict=True)

    def test_missing_source_renders_nothing(self, tmp_path: Path) -> None:
        """Test that a missing source renders nothing but creates the output."""
        assert render_templates(tmp_path / "missing", tmp_path / "out", {"a": "1"}) == []
        assert (tmp_path / "out").is_dir()

    def test_build_variables(self) -> None:
        """Test that only identifier keys become top-level variables."""
        variables = build_variables({"host": "h", "db.url": "u"})
        assert variables["host"] == "h"
        assert "db.url" not in variables
        assert variables["context"] == {"host": "h", "db.url": "u"}


class TestCollect:
    """Tests for resource collection."""

    @pytest.fixture
    def resources(self, tmp_path: Path) -> Path:
        path = tmp_path / "resources"
        (path / "conf").mkdir(parents=True)
        (path / "app.conf.dev").write_text("level=debug\n")
        (path / "app.conf.prod").write_text("level=warn\n")
        (path / "conf" / "db.xml.dev").write_text("<db/>\n")
        (path / "README.txt").write_text("shared\n")
        return path

    def test_target_suffix_selected_and_stripped(self, resources: Path, tmp_path: Path) -> None:
        """Test that only the target's resources are copied, without the suffix."""
        output = tmp_path / "collected"

        collect_resources(resources, output, "dev")

        assert (output / "app.conf").read_text() == "level=debug\n"
        assert (output / "conf" / "db.xml").read_text() == "<db/>\n"
        assert not (output / "app.conf.prod").exists()
        assert not (output / "README.txt").exists()

    def test_include_all(self, resources: Path, tmp_path: Path) -> None:
        """Test that include_all copies every resource as-is."""
        output = tmp_path / "collected"

        collect_resources(resources, output, "dev", include_all=True)

        names = sorted(p.relative_to(output).as_posix() for p in output.rglob("*") if p.is_file())
        assert names == ["README.txt", "app.conf.dev", "app.conf.prod", "conf/db.xml.dev"]

    def test_rendered_templates_copied(self, resources: Path, tmp_path: Path) -> None:
        """Test that rendered templates are added unfiltered."""
        rendered = tmp_path / "rendered"
        rendered.mkdir()
        (rendered / "app.properties").write_text("host=dev\n")
        output = tmp_path / "collected"

        collected = collect_resources(resources, output, "dev", rendered_dir=rendered)

        assert (output / "app.properties").read_text() == "host=dev\n"
        assert output / "app.properties" in collected

    def test_output_emptied_first(self, resources: Path, tmp_path: Path) -> None:
        """Test that stale files from an earlier run are removed."""
        output = tmp_path / "collected"
        output.mkdir()
        (output / "stale.txt").write_text("old\n")

        collect_resources(resources, output, "dev")

        assert not (output / "stale.txt").exists()

    def test_missing_resources_dir(self, tmp_path: Path) -> None:
        """Test that a missing resources directory collects nothing."""
        output = tmp_path / "collected"
        assert collect_resources(tmp_path / "missing", output, "dev") == []
        assert output.is_dir()

    def test_resource_destination(self) -> None:
        """Test the destination of selected and unselected resources."""
        assert resource_destination(Path("a.conf.dev"), "dev", False) == Path("a.conf")
        assert resource_destination(Path("a.conf.devx"), "dev", False) is None
        assert resource_destination(Path(".dev"), "dev", False) is None
        assert resource_destination(Path("a.conf.prod"), "dev", True) == Path("a.conf.prod")


class TestArchive:
    """Tests for archive creation."""

    def test_archive_name(self) -> None:
        """Test the artifact-version-target archive name."""
        assert archive_name("app", "1.0", "dev") == "app-1.0-dev.zip"

    def test_create_archive(self, tmp_path: Path) -> None:
        """Test that entries are sorted and relative to the source."""
        source = tmp_path / "collected"
        (source / "conf").mkdir(parents=True)
        (source / "app.conf").write_text("level=debug\n")
        (source / "conf" / "db.xml").write_text("<db/>\n")
        archive_path = tmp_path / "libs" / "app-1.0-dev.zip"

        create_archive(source, archive_path)

        with ZipFile(archive_path) as archive:
            assert archive.namelist() == ["app.conf", "conf/db.xml"]
            assert archive.read("app.conf") == b"level=debug\n"

    def test_missing_source(self, tmp_path: Path) -> None:
        """Test that archiving a missing directory fails."""
        with pytest.raises(FileNotFoundError):
            create_archive(tmp_path / "missing", tmp_path / "a.zip")


class TestPublicationRegistry:
    """Tests for the publication sink."""

    def test_publish_and_manifest(self, tmp_path: Path) -> None:
        """Test that publications are recorded and written as YAML."""
        registry = PublicationRegistry("app", "1.0", group_id="org.example")
        artifact = ArtifactHandle(
            target="dev", path=tmp_path / "app-1.0-dev.zip", built_by="devArchive"
        )

        publication = registry.publish(artifact, classifier="dev")
        manifest = registry.write_manifest(tmp_path / "build" / "publications.yaml")

        assert publication.classifier == "dev"
        assert registry.publications == [publication]
        text = manifest.read_text()
        assert "classifier: dev" in text
        assert "group_id: org.example" in text
