from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.errors import ConfigError
from scan.files import HDL_EXTENSIONS

CONFIG_FILENAME = "svindex.toml"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["console", "json"]


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(extra="forbid")

    level: LogLevel = Field(default="INFO", description="Minimum log level")
    format: LogFormat = Field(
        default="console", description="Render logs for humans or as JSON lines"
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            upper = v.upper()
            return "WARNING" if upper == "WARN" else upper
        return v


class SvIndexConfig(BaseModel):
    """Configuration for indexing a SystemVerilog workspace."""

    model_config = ConfigDict(extra="forbid")

    output_dir: str = Field(
        default=".svindex",
        description="Output directory for index artifacts",
    )
    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to include (empty = all HDL files)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to exclude",
    )
    extensions: list[str] = Field(
        default_factory=lambda: list(HDL_EXTENSIONS),
        description="File suffixes treated as HDL sources",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )
    strict: bool = Field(
        default=True,
        description="Fail a file on the first unsupported construct",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("extensions", mode="before")
    @classmethod
    def validate_extensions(cls, v: Any) -> Any:
        """Require dotted suffixes such as ``.sv``.

        Note: this runs in `mode="before"` so we can report a clear error
        message using the raw TOML values.
        """
        if v is None:
            return list(HDL_EXTENSIONS)

        if not isinstance(v, list):
            msg = "extensions must be a list of file suffixes"
            raise ValueError(msg)

        for suffix in v:
            if not isinstance(suffix, str) or not suffix.startswith("."):
                msg = f"Invalid extension {suffix!r}: expected a suffix like '.sv'"
                raise ValueError(msg)

        return [suffix.lower() for suffix in v]


def resolve_output_dir(root: Path, output_dir: str) -> Path:
    """Resolve a config-provided output_dir safely within the workspace root.

    The config output_dir must be a non-empty relative path that remains
    within the root after resolution. Absolute paths and paths that escape
    the root are rejected.
    """
    if not output_dir:
        raise ConfigError.invalid_value(
            "output_dir", output_dir, "must be a non-empty relative path"
        )

    output_path = Path(output_dir)
    if output_dir.startswith("~") or output_path.is_absolute():
        raise ConfigError.invalid_value(
            "output_dir", output_dir, "must be a relative path within the root"
        )

    try:
        resolved_root = root.resolve()
        resolved_output = (resolved_root / output_path).resolve()
    except OSError as exc:
        raise ConfigError.invalid_value("output_dir", output_dir, str(exc)) from exc

    try:
        resolved_output.relative_to(resolved_root)
    except ValueError as exc:
        raise ConfigError.invalid_value(
            "output_dir", output_dir, "escapes the workspace root"
        ) from exc

    return resolved_output


def load_config(root: Path) -> SvIndexConfig:
    """Load configuration from svindex.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return SvIndexConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError.parse_error(str(config_path), f"invalid TOML: {e}") from e

    try:
        return SvIndexConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError.parse_error(str(config_path), str(e)) from e
