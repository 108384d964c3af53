"""Core recordwatch utilities.

This module exports core utilities for use throughout the package.
"""

from recordwatch.core.config import Settings, get_settings
from recordwatch.core.exceptions import (
    ClockUnavailableError,
    ExtensionsPreventedError,
    InvalidArgument,
    ObservationError,
)
from recordwatch.core.logging import (
    LoggingContext,
    configure_logging,
    get_logger,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggingContext",
    "ObservationError",
    "InvalidArgument",
    "ExtensionsPreventedError",
    "ClockUnavailableError",
]
