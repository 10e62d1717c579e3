"""Configuration loading, schema, and defaults."""

from diffreview.config.loader import ConfigError, load_config
from diffreview.config.schema import DiffReviewConfig, OutputConfig, StagesConfig

__all__ = [
    "ConfigError",
    "DiffReviewConfig",
    "OutputConfig",
    "StagesConfig",
    "load_config",
]
