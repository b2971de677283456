"""Workspace configuration for sv-index."""

from config.settings import (
    CONFIG_FILENAME,
    LoggingConfig,
    SvIndexConfig,
    load_config,
    resolve_output_dir,
)

__all__ = [
    "CONFIG_FILENAME",
    "LoggingConfig",
    "SvIndexConfig",
    "load_config",
    "resolve_output_dir",
]
