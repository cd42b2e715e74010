"""
Composite key construction.
Single responsibility: derive a deterministic key string per row.
"""

from typing import Callable, List, Sequence

from .dataset import ColumnMapping, Dataset, Record
from .errors import InvalidMappingError


KEY_DELIMITER = "|"
ESCAPE_CHAR = "\\"

SIDE_A = "A"
SIDE_B = "B"


def escape_key_part(value: str) -> str:
    """
    Escape the delimiter and escape character inside one key component.

    Keeps distinct key tuples distinct after joining; values containing
    neither character are returned unchanged.
    """
    if ESCAPE_CHAR not in value and KEY_DELIMITER not in value:
        return value
    return (value.replace(ESCAPE_CHAR, ESCAPE_CHAR * 2)
                 .replace(KEY_DELIMITER, ESCAPE_CHAR + KEY_DELIMITER))


def side_columns(mappings: Sequence[ColumnMapping], side: str) -> List[str]:
    """Columns each mapping contributes on the given side, in mapping order."""
    if side == SIDE_A:
        return [m.source_column for m in mappings]
    if side == SIDE_B:
        return [m.target_column for m in mappings]
    raise ValueError(f"Unknown dataset side: {side}")


def validate_mappings(mappings: Sequence[ColumnMapping],
                      dataset: Dataset, side: str) -> None:
    """
    Check every mapped column exists in the dataset.

    Raises:
        InvalidMappingError: For an empty mapping list or the first
            column missing from ``dataset``
    """
    if not mappings:
        raise InvalidMappingError.empty()

    for column in side_columns(mappings, side):
        if not dataset.has_column(column):
            raise InvalidMappingError.missing_column(column, side)


def build_key_function(mappings: Sequence[ColumnMapping],
                       dataset: Dataset, side: str) -> Callable[[Record], str]:
    """
    Validate once, then return the per-row key function for one side.

    Args:
        mappings: Ordered key mappings; duplicates repeat a field in the key
        dataset: Dataset the key function will be applied to
        side: "A" uses source columns, "B" uses target columns

    Returns:
        Function mapping a row record to its composite key
    """
    validate_mappings(mappings, dataset, side)
    columns = side_columns(mappings, side)

    def derived_key(row: Record) -> str:
        return KEY_DELIMITER.join(
            escape_key_part(Dataset.value(row, col)) for col in columns
        )

    return derived_key
