"""Terminal presentation."""

from .console import ResultsConsole

__all__ = ["ResultsConsole"]
