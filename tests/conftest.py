"""Shared fixtures for envstage tests."""

from pathlib import Path
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def isolated_home_config(tmp_path: Path):
    """Point the global config at an empty temp location."""
    home_config = tmp_path / "home" / ".envstage" / "config.yaml"
    with patch("envstage.config.loader.get_home_config_path", return_value=home_config):
        yield home_config


def _write(path: Path, text: str) -> Path:
    """Write text to path, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small staging project with two targets.

    - targets/dev.properties and targets/prod.properties
    - one defaults file merged into one property template
    - environment-specific resources for both targets
    """
    root = tmp_path / "project"
    _write(root / "targets" / "dev.properties", "host=dev.example.com\nport=8080\n")
    _write(root / "targets" / "prod.properties", "host=example.com\nport=80\n")
    _write(
        root / "src" / "main" / "defaults" / "app.defaults.vtl",
        "timeout=30\nurl=http://{{ host }}:{{ port }}\n",
    )
    _write(root / "src" / "main" / "templates" / "app.properties", "name=app\n")
    _write(root / "src" / "main" / "resources" / "app.conf.dev", "level=debug\n")
    _write(root / "src" / "main" / "resources" / "app.conf.prod", "level=warn\n")
    _write(root / "src" / "main" / "resources" / "README.txt", "shared\n")
    return root
