"""Configuration rules for formatcheck."""

from rules.config import (
    CONFIG_FILENAME,
    ConfigError,
    FormatCheckConfig,
    ReportConfig,
    load_config,
)

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "FormatCheckConfig",
    "ReportConfig",
    "load_config",
]
