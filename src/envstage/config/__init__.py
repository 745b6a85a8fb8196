"""Configuration loading."""

from envstage.config.loader import (
    get_home_config_path,
    get_local_config_path,
    load_config,
    save_config,
)
from envstage.config.schema import DEFAULT_CONFIG, StagingConfig

__all__ = [
    "DEFAULT_CONFIG",
    "StagingConfig",
    "get_home_config_path",
    "get_local_config_path",
    "load_config",
    "save_config",
]
