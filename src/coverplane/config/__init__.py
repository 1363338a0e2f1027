"""Config module exports."""

from coverplane.config.loader import load_config
from coverplane.config.models import (
    CoverPlaneConfig,
    LoggingConfig,
    LogOutputConfig,
    ReportConfig,
)

__all__ = [
    "load_config",
    "CoverPlaneConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "ReportConfig",
]
