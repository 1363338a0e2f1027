"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (COVERPLANE__SECTION__KEY)
3. Repo YAML (.coverplane/config.yaml)
4. Global YAML (~/.config/coverplane/config.yaml)
5. Built-in defaults (this file)

Examples:
    COVERPLANE__LOGGING__LEVEL=DEBUG
    COVERPLANE__REPORT__FORMAT=yaml
    COVERPLANE__REPORT__VERIFY_FLOW=false
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ReportFormat = Literal["json", "yaml"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        COVERPLANE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. DEBUG logs one event per derived unit.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ReportConfig(BaseModel):
    """Branch report configuration.

    Env vars:
        COVERPLANE__REPORT__FORMAT: Output format (json, yaml)
        COVERPLANE__REPORT__VERIFY_FLOW: Fail on inconsistent flow counts
        COVERPLANE__REPORT__INCLUDE_SUMMARY: Append branch totals to the report
        COVERPLANE__REPORT__INDENT: Indentation for JSON output
    """

    format: ReportFormat = Field(
        default="json",
        description="Serialization format for reports.",
    )
    verify_flow: bool = Field(
        default=True,
        description="Check flow count invariants before reporting. When disabled, "
        "violations are logged as warnings and the report is still produced.",
    )
    include_summary: bool = Field(
        default=False,
        description="Append branch totals to the report.",
    )
    indent: int = Field(
        default=2,
        description="JSON indentation. 0 produces compact single-line output.",
    )

    @field_validator("indent")
    @classmethod
    def validate_indent(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Indent must be >= 0, got {v}")
        return v


class CoverPlaneConfig(BaseModel):
    """Root configuration for CoverPlane."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
