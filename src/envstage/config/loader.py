"""Configuration file loading and merging."""

import logging
from pathlib import Path

import yaml

from envstage.config.schema import DEFAULT_CONFIG, StagingConfig

logger = logging.getLogger(__name__)

CONFIG_DIRNAME = ".envstage"
CONFIG_FILENAME = "config.yaml"
CONFIG_HEADER = "# envstage configuration, see `envstage config`\n"


def get_home_config_path() -> Path:
    """Get path to global config: ~/.envstage/config.yaml."""
    return Path.home() / CONFIG_DIRNAME / CONFIG_FILENAME


def get_local_config_path(project_dir: Path | None = None) -> Path:
    """Get path to project config: <project>/.envstage/config.yaml."""
    return (project_dir or Path.cwd()) / CONFIG_DIRNAME / CONFIG_FILENAME


def read_config_layer(path: Path) -> StagingConfig | None:
    """Read one configuration layer.

    A missing or empty file is not a layer. A file that is not valid YAML,
    or whose root is not a mapping, is skipped with a warning so a broken
    global config never blocks a project build.
    """
    if not path.is_file():
        return None

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return None

    if data is None:
        return None
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring config %s: expected a mapping, got %s", path, type(data).__name__
        )
        return None

    logger.debug("Loaded config layer %s", path)
    return StagingConfig.from_dict(data)


def load_config(project_dir: Path | None = None) -> StagingConfig:
    """Load merged configuration for a project.

    Precedence (lowest to highest):
    1. Built-in defaults
    2. Global config (~/.envstage/config.yaml)
    3. Project config (<project>/.envstage/config.yaml)

    The artifact id falls back to the project directory name.
    """
    project_dir = project_dir or Path.cwd()
    config = DEFAULT_CONFIG

    for path in (get_home_config_path(), get_local_config_path(project_dir)):
        layer = read_config_layer(path)
        if layer is not None:
            config = config.merge(layer)

    if config.artifact_id is None:
        config = config.merge(StagingConfig(artifact_id=project_dir.resolve().name))

    return config


def save_config(config: StagingConfig, path: Path) -> Path:
    """Write the set (non-None) values of a config to a YAML file.

    Creates parent directories if needed and returns the written path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    body = yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False)
    path.write_text(CONFIG_HEADER + body, encoding="utf-8")
    logger.info("Saved configuration to %s", path)
    return path
