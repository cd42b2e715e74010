"""
Key uniqueness validation using DuckDB.
Single responsibility: profile candidate key columns of a parsed dataset.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import duckdb

from ..utils.logger import get_logger
from .dataset import Dataset
from .errors import InvalidMappingError, TabDiffError


logger = get_logger()


PROFILE_VIEW = "key_profile_source"


class KeyValidationError(TabDiffError):
    """Exception raised when key validation fails or encounters errors."""
    pass


@dataclass
class KeyValidationResult:
    """Results from key uniqueness validation."""

    is_valid: bool
    total_rows: int
    unique_values: int
    # Rows that share a key with an earlier row and would be collapsed
    duplicate_count: int
    key_columns: List[str] = field(default_factory=list)
    error_message: Optional[str] = None


@dataclass
class KeyCandidate:
    """Uniqueness profile of a single column."""

    column: str
    total_rows: int
    unique_values: int
    blank_values: int

    @property
    def uniqueness(self) -> float:
        if self.total_rows == 0:
            return 0.0
        return round(self.unique_values / self.total_rows, 4)

    @property
    def is_unique(self) -> bool:
        return self.total_rows > 0 and self.unique_values == self.total_rows and self.blank_values == 0


def qident(name: str) -> str:
    """
    Quote SQL identifiers for safe usage in DuckDB queries.

    Args:
        name: Column or table name

    Returns:
        Double-quoted identifier with embedded quotes doubled
    """
    return '"' + name.replace('"', '""') + '"'


class KeyValidator:
    """
    Validates key column uniqueness using DuckDB queries.

    The dataset is registered as an all-text DataFrame, so blank cells are
    empty strings rather than NULLs and take part in uniqueness like any
    other value.
    """

    def __init__(self, con: Optional[duckdb.DuckDBPyConnection] = None):
        """
        Initialize key validator.

        Args:
            con: DuckDB connection (an in-memory one is opened if omitted)
        """
        self._owns_connection = con is None
        self.con = con if con is not None else duckdb.connect(":memory:")

    def close(self) -> None:
        if self._owns_connection:
            self.con.close()

    def __enter__(self) -> "KeyValidator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def validate_key(self, dataset: Dataset, key_columns: Sequence[str]) -> KeyValidationResult:
        """
        Validate uniqueness of key columns in a dataset.

        Args:
            dataset: Parsed dataset
            key_columns: Column names forming the (possibly composite) key

        Returns:
            KeyValidationResult with validation status and statistics

        Raises:
            KeyValidationError: If no key columns are given or the query fails
            InvalidMappingError: If a key column is not in the dataset
        """
        if not key_columns:
            raise KeyValidationError(
                "[KEY VALIDATION ERROR] key_columns cannot be empty. "
                "Suggestion: Provide at least one column name for key validation."
            )

        for col in key_columns:
            if not dataset.has_column(col):
                raise InvalidMappingError(
                    f"[KEY VALIDATION ERROR] Column \"{col}\" not found in '{dataset.name}'. "
                    f"Suggestion: Choose one of: {', '.join(dataset.columns)}.",
                    column=col,
                )

        logger.info("key_validator.validate_start",
                   file=dataset.name,
                   key_columns=list(key_columns))

        # Repeated mapping columns add nothing to uniqueness
        distinct_columns = list(dict.fromkeys(key_columns))

        if dataset.row_count == 0:
            return KeyValidationResult(is_valid=True, total_rows=0, unique_values=0,
                                       duplicate_count=0, key_columns=distinct_columns)

        try:
            with self._registered(dataset) as aliases:
                columns_sql = ", ".join(qident(aliases[col]) for col in distinct_columns)
                sql = f"""
                    SELECT COUNT(*) FROM (
                        SELECT DISTINCT {columns_sql} FROM {PROFILE_VIEW}
                    )
                """
                unique_values = self.con.execute(sql).fetchone()[0]
        except duckdb.Error as e:
            logger.error("key_validator.validate_failed",
                        file=dataset.name,
                        error=str(e))
            raise KeyValidationError(
                f"[KEY VALIDATION ERROR] Failed to validate keys in '{dataset.name}': {e}. "
                f"Suggestion: Verify columns {distinct_columns} are valid."
            ) from e

        total_rows = dataset.row_count
        duplicate_count = total_rows - unique_values
        is_valid = duplicate_count == 0

        error_message = None
        if not is_valid:
            error_message = (f"{duplicate_count} duplicate rows detected for key "
                             f"{distinct_columns}; later rows replace earlier ones.")

        logger.info("key_validator.validate_complete",
                   file=dataset.name,
                   is_valid=is_valid,
                   duplicates=duplicate_count)

        return KeyValidationResult(
            is_valid=is_valid,
            total_rows=total_rows,
            unique_values=unique_values,
            duplicate_count=duplicate_count,
            key_columns=distinct_columns,
            error_message=error_message,
        )

    def suggest_keys(self, dataset: Dataset, limit: int = 5) -> List[KeyCandidate]:
        """
        Rank single columns as key candidates.

        Fully unique, never-blank columns come first, then by uniqueness
        ratio; ties keep file order.

        Args:
            dataset: Parsed dataset
            limit: Maximum number of candidates returned

        Returns:
            Ranked key candidates

        Raises:
            KeyValidationError: If the profiling query fails
        """
        if dataset.row_count == 0 or not dataset.columns:
            return []

        try:
            with self._registered(dataset) as aliases:
                select_parts = []
                for col in dataset.columns:
                    quoted = qident(aliases[col])
                    select_parts.append(f"COUNT(DISTINCT {quoted})")
                    select_parts.append(f"SUM(CASE WHEN TRIM({quoted}) = '' THEN 1 ELSE 0 END)")

                sql = f"SELECT {', '.join(select_parts)} FROM {PROFILE_VIEW}"
                row = self.con.execute(sql).fetchone()
        except duckdb.Error as e:
            logger.error("key_validator.suggest_failed",
                        file=dataset.name,
                        error=str(e))
            raise KeyValidationError(
                f"[KEY VALIDATION ERROR] Failed to profile columns of '{dataset.name}': {e}. "
                f"Suggestion: Check the header row for unusual column names."
            ) from e

        candidates = []
        for index, col in enumerate(dataset.columns):
            candidates.append(KeyCandidate(
                column=col,
                total_rows=dataset.row_count,
                unique_values=int(row[2 * index]),
                blank_values=int(row[2 * index + 1] or 0),
            ))

        ranked = sorted(candidates, key=lambda c: (not c.is_unique, -c.uniqueness))

        logger.info("key_validator.suggestions",
                   file=dataset.name,
                   candidates=[c.column for c in ranked[:limit]])

        return ranked[:limit]

    @contextmanager
    def _registered(self, dataset: Dataset):
        """
        Register the dataset under PROFILE_VIEW for the duration of a query.

        Columns are exposed under positional aliases (c0, c1, ...) so blank
        or unusual header names never reach the SQL text.

        Yields:
            Mapping of dataset column name to its alias in PROFILE_VIEW
        """
        aliases: Dict[str, str] = {col: f"c{i}" for i, col in enumerate(dataset.columns)}
        frame = dataset.to_frame()
        frame.columns = [aliases[col] for col in dataset.columns]

        self.con.register(PROFILE_VIEW, frame)
        try:
            yield aliases
        finally:
            self.con.unregister(PROFILE_VIEW)
