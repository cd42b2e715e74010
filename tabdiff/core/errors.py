"""
Exception taxonomy for the comparison engine.
All errors are recoverable at the request boundary.
"""

from typing import Optional


class TabDiffError(Exception):
    """Base class for every error surfaced to callers."""
    pass


class UnsupportedFormatError(TabDiffError):
    """Raised when a file extension is not a supported tabular kind."""

    def __init__(self, filename: str, extension: str):
        self.filename = filename
        self.extension = extension
        super().__init__(
            f"[FORMAT ERROR] Unsupported file type '{extension or '(none)'}' for '{filename}'. "
            f"Suggestion: Upload a CSV (.csv) or Excel (.xlsx, .xls) file."
        )


class EmptyFileError(TabDiffError):
    """Raised when a file has no header row or no data rows."""

    def __init__(self, filename: str, reason: str = "contains no data rows"):
        self.filename = filename
        self.reason = reason
        super().__init__(
            f"[EMPTY FILE ERROR] '{filename}' {reason}. "
            f"Suggestion: Verify the file has a header row followed by at least one data row."
        )


class InvalidMappingError(TabDiffError):
    """
    Raised when a column mapping cannot be resolved.

    Attributes:
        column: Offending column name (None for an empty mapping list)
        side: "A" or "B" for the dataset the column was expected in
    """

    def __init__(self, message: str, column: Optional[str] = None,
                 side: Optional[str] = None):
        self.column = column
        self.side = side
        super().__init__(message)

    @classmethod
    def missing_column(cls, column: str, side: str) -> "InvalidMappingError":
        return cls(
            f"[MAPPING ERROR] Column \"{column}\" not found in file {side}. "
            f"Suggestion: Choose a column that exists in the file {side} header.",
            column=column,
            side=side,
        )

    @classmethod
    def empty(cls) -> "InvalidMappingError":
        return cls(
            "[MAPPING ERROR] At least one column mapping is required. "
            "Suggestion: Map a key column from file A to a column in file B."
        )


class ArtifactNotFoundError(TabDiffError):
    """Raised when a download name does not resolve to a report artifact."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"[DOWNLOAD ERROR] Report '{name}' not found.")
