"""
Structured logging utility.
Single responsibility: provide consistent logging across application.
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
import json


LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40, "CRITICAL": 50}
LEVEL_ALIASES = {"WARNING": "WARN"}


class StructuredLogger:
    """
    Structured logger emitting dotted event names with keyword context.
    """

    def __init__(self, name: str = "tabdiff",
                 log_file: Optional[Path] = None,
                 level: str = "INFO"):
        """
        Initialize logger.

        Args:
            name: Logger name
            log_file: Optional file path for JSON-lines logging
            level: Minimum level echoed to the console
        """
        self.name = name
        self.log_file = Path(log_file) if log_file else None
        self.level = LEVEL_ALIASES.get(level, level)

    def _format_message(self, level: str, message: str,
                       **kwargs) -> Dict[str, Any]:
        """
        Format log message with metadata.

        Args:
            level: Log level (INFO, DEBUG, ERROR, etc.)
            message: Log message
            **kwargs: Additional context fields

        Returns:
            Formatted log entry
        """
        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "logger": self.name,
            "message": message
        }

        if kwargs:
            entry["context"] = kwargs

        return entry

    def _output(self, entry: Dict[str, Any]):
        """
        Output log entry to console and optionally file.

        Args:
            entry: Log entry dictionary
        """
        level = entry["level"]

        # Console output - human readable, filtered by level
        if LEVELS[level] >= LEVELS.get(self.level, 20):
            timestamp = entry["timestamp"].split("T")[1][:8]
            print(f"[{timestamp}] {level:5} | {entry['message']}", file=sys.stderr)

            if "context" in entry:
                for key, value in entry["context"].items():
                    print(f"  {key}={value}", file=sys.stderr)

        # File output - JSON for parsing, every level
        if self.log_file:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")

    def info(self, message: str, **kwargs):
        """Log info message."""
        self._output(self._format_message("INFO", message, **kwargs))

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self._output(self._format_message("DEBUG", message, **kwargs))

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self._output(self._format_message("WARN", message, **kwargs))

    def error(self, message: str, **kwargs):
        """Log error message."""
        self._output(self._format_message("ERROR", message, **kwargs))

    def critical(self, message: str, **kwargs):
        """Log critical message."""
        self._output(self._format_message("CRITICAL", message, **kwargs))


# Global logger instance
_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "tabdiff") -> StructuredLogger:
    """
    Get or create logger instance.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    global _logger
    if _logger is None:
        _logger = StructuredLogger(name)
    return _logger


def configure_logging(log_file: Optional[Path] = None,
                      level: str = "INFO") -> StructuredLogger:
    """
    Reconfigure the shared logger in place.

    Modules bind the instance at import time, so the existing object is
    updated rather than replaced.
    """
    level = str(level).upper()
    level = LEVEL_ALIASES.get(level, level)
    if level not in LEVELS:
        raise ValueError(f"Unknown log level: {level}")

    logger = get_logger()
    logger.log_file = Path(log_file) if log_file else None
    logger.level = level

    if logger.log_file:
        logger.log_file.parent.mkdir(parents=True, exist_ok=True)

    return logger
