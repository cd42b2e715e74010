"""Utility functions and helpers."""

from .logger import get_logger, configure_logging, StructuredLogger
from .converters import cell_to_text
from .housekeeping import cleanup_old_artifacts

__all__ = [
    "get_logger",
    "configure_logging",
    "StructuredLogger",
    "cell_to_text",
    "cleanup_old_artifacts",
]
