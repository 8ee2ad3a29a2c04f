"""Utility functions for medication bot."""

from .errors import MedbotError, StorageError, format_error_for_user
from .logger import log_operation, logger, setup_logger
from .timezone import (
    clock_distance_minutes,
    format_clock,
    get_local_time,
    infer_slot,
    normalize_time,
    parse_timezone_offset,
)

__all__ = [
    # Timezone utilities
    "parse_timezone_offset",
    "get_local_time",
    "format_clock",
    "normalize_time",
    "clock_distance_minutes",
    "infer_slot",
    # Logger utilities
    "setup_logger",
    "log_operation",
    "logger",
    # Error handling utilities
    "MedbotError",
    "StorageError",
    "format_error_for_user",
]
