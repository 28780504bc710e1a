from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = "formatcheck.toml"

ReportFormat = Literal["text", "jsonl"]

_DOTTED_NAME = re.compile(r"[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*")


class ReportConfig(BaseModel):
    """Configuration for diagnostic output."""

    model_config = ConfigDict(extra="forbid")

    format: ReportFormat = Field(
        default="text",
        description="Output format for diagnostics",
    )


class FormatCheckConfig(BaseModel):
    """Configuration for a formatcheck repository scan."""

    model_config = ConfigDict(extra="forbid")

    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to include (empty = all Python files)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to exclude",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )
    format_method_decorators: list[str] = Field(
        default_factory=lambda: ["format_method"],
        description="Decorator names that mark a function as a format method",
    )
    format_string_markers: list[str] = Field(
        default_factory=lambda: ["FormatString"],
        description="Annotation names that mark a parameter as the template",
    )
    report: ReportConfig = Field(
        default_factory=ReportConfig,
        description="Diagnostic output settings",
    )

    @field_validator("format_method_decorators", "format_string_markers")
    @classmethod
    def validate_identifiers(cls, v: Any) -> Any:
        """Require non-empty identifiers; matching uses the last dotted part."""
        if not v:
            msg = "at least one name is required"
            raise ValueError(msg)
        for name in v:
            if not isinstance(name, str) or not _DOTTED_NAME.fullmatch(name):
                msg = f"Invalid name '{name}': expected a (dotted) identifier"
                raise ValueError(msg)
        return v

    @property
    def decorator_names(self) -> frozenset[str]:
        return frozenset(name.rsplit(".", 1)[-1] for name in self.format_method_decorators)

    @property
    def marker_names(self) -> frozenset[str]:
        return frozenset(name.rsplit(".", 1)[-1] for name in self.format_string_markers)


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def load_config(root: Path, config_path: Path | None = None) -> FormatCheckConfig:
    """Load configuration from formatcheck.toml if it exists.

    An explicit ``config_path`` must exist; the default file is optional.
    """
    if config_path is None:
        config_path = Path(root) / CONFIG_FILENAME
        if not config_path.is_file():
            return FormatCheckConfig()
    elif not config_path.is_file():
        msg = f"Config file not found: {config_path}"
        raise ConfigError(msg)

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return FormatCheckConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
