"""Core module exports."""

from coverplane.core.errors import (
    ConfigError,
    CountError,
    CoverPlaneError,
    ErrorCode,
    TreeError,
)
from coverplane.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "CountError",
    "CoverPlaneError",
    "ErrorCode",
    "TreeError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
