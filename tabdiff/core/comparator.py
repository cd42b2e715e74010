"""
Core data comparison logic.
Single responsibility: classify the rows of two datasets by composite key.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..config.manager import ComparisonConfig
from ..utils.logger import get_logger
from .dataset import ColumnMapping, Dataset, Record, describe_mappings
from .errors import InvalidMappingError
from .keys import SIDE_A, SIDE_B, build_key_function


logger = get_logger()


@dataclass
class MatchedPair:
    """Rows from both datasets sharing a composite key."""

    key: str
    row_a: Record
    row_b: Record
    differences: List[str] = field(default_factory=list)

    @property
    def is_delta(self) -> bool:
        return bool(self.differences)


@dataclass
class SummaryStats:
    """Derived counts describing a comparison; display data only."""

    file_a_name: str = ""
    file_b_name: str = ""
    file_a_total_rows: int = 0
    file_b_total_rows: int = 0
    unique_to_a_count: int = 0
    unique_to_b_count: int = 0
    # Rows matched without differences; every matched key in reduced mode
    common_count: int = 0
    # None when field differences were not computed
    delta_count: Optional[int] = None
    comparison_columns: List[str] = field(default_factory=list)
    duplicate_keys_a: int = 0
    duplicate_keys_b: int = 0

    @property
    def detect_differences(self) -> bool:
        return self.delta_count is not None

    @property
    def matching_count(self) -> int:
        return self.common_count + (self.delta_count or 0)

    def to_dict(self) -> Dict[str, Any]:
        """Response payload in the portal's camelCase field names."""
        payload: Dict[str, Any] = {
            "file1Name": self.file_a_name,
            "file2Name": self.file_b_name,
            "file1TotalRows": self.file_a_total_rows,
            "file2TotalRows": self.file_b_total_rows,
            "uniqueToFile1Count": self.unique_to_a_count,
            "uniqueToFile2Count": self.unique_to_b_count,
            "commonOrMatchingCount": self.common_count,
        }
        if self.detect_differences:
            payload["deltaCount"] = self.delta_count
        payload["comparisonColumns"] = list(self.comparison_columns)
        payload["duplicateKeysFile1"] = self.duplicate_keys_a
        payload["duplicateKeysFile2"] = self.duplicate_keys_b
        return payload


@dataclass
class ComparisonResult:
    """Classified rows of a comparison."""

    unique_to_a: List[Record] = field(default_factory=list)
    unique_to_b: List[Record] = field(default_factory=list)
    matches: List[MatchedPair] = field(default_factory=list)
    summary: SummaryStats = field(default_factory=SummaryStats)
    columns_a: Tuple[str, ...] = ()
    columns_b: Tuple[str, ...] = ()

    @property
    def common(self) -> List[MatchedPair]:
        return [m for m in self.matches if not m.is_delta]

    @property
    def deltas(self) -> List[MatchedPair]:
        return [m for m in self.matches if m.is_delta]


def union_columns(columns_a: Sequence[str], columns_b: Sequence[str]) -> List[str]:
    """A's columns in order, then B's columns that A lacks."""
    seen = set(columns_a)
    return list(columns_a) + [c for c in columns_b if c not in seen]


def find_differences(row_a: Record, row_b: Record, columns: Sequence[str]) -> List[str]:
    """
    Columns whose string values differ between two rows.

    A column missing from one row compares as an empty string.
    """
    return [
        col for col in columns
        if Dataset.value(row_a, col) != Dataset.value(row_b, col)
    ]


class DatasetComparator:
    """
    Compare two datasets by composite key.
    """

    def __init__(self, config: Optional[ComparisonConfig] = None):
        """
        Initialize comparator.

        Args:
            config: Comparison configuration (full difference detection by default)
        """
        self.config = config or ComparisonConfig()

    def compare(self, dataset_a: Dataset, dataset_b: Dataset,
                mappings: Sequence[ColumnMapping],
                detect_differences: Optional[bool] = None) -> ComparisonResult:
        """
        Compare two datasets.

        Args:
            dataset_a: Left dataset, keyed by each mapping's source column
            dataset_b: Right dataset, keyed by each mapping's target column
            mappings: Non-empty ordered key mappings
            detect_differences: Override the configured mode for this call

        Returns:
            Comparison results

        Raises:
            InvalidMappingError: If mappings are empty or name a missing column
        """
        if not mappings:
            raise InvalidMappingError.empty()

        if detect_differences is None:
            detect_differences = self.config.detect_differences

        # Both sides are validated before any row is touched
        key_a = build_key_function(mappings, dataset_a, SIDE_A)
        key_b = build_key_function(mappings, dataset_b, SIDE_B)

        logger.info("comparator.starting",
                   file_a=dataset_a.name,
                   file_b=dataset_b.name,
                   rows_a=dataset_a.row_count,
                   rows_b=dataset_b.row_count,
                   keys=describe_mappings(mappings),
                   detect_differences=detect_differences)

        map_a, collapsed_a = self._index(dataset_a, key_a)
        map_b, collapsed_b = self._index(dataset_b, key_b)

        result = ComparisonResult(columns_a=dataset_a.columns,
                                  columns_b=dataset_b.columns)
        columns = union_columns(dataset_a.columns, dataset_b.columns)

        for key, row_a in map_a.items():
            row_b = map_b.get(key)
            if row_b is None:
                result.unique_to_a.append(row_a)
                continue

            differences = find_differences(row_a, row_b, columns) if detect_differences else []
            result.matches.append(MatchedPair(key=key, row_a=row_a, row_b=row_b,
                                              differences=differences))

        for key, row_b in map_b.items():
            if key not in map_a:
                result.unique_to_b.append(row_b)

        result.summary = self._calculate_summary(
            result, dataset_a, dataset_b, mappings,
            detect_differences, collapsed_a, collapsed_b
        )

        logger.info("comparator.completed",
                   unique_to_a=result.summary.unique_to_a_count,
                   unique_to_b=result.summary.unique_to_b_count,
                   common=result.summary.common_count,
                   deltas=result.summary.delta_count,
                   duplicate_keys_a=collapsed_a,
                   duplicate_keys_b=collapsed_b)

        return result

    def _index(self, dataset: Dataset,
               key_of: Callable[[Record], str]) -> Tuple[Dict[str, Record], int]:
        """
        Build the key -> row map for one side.

        A repeated key keeps its first position but takes the later row.

        Returns:
            The map and the number of rows collapsed into an existing key
        """
        index: Dict[str, Record] = {}
        for row in dataset.rows:
            index[key_of(row)] = row

        collapsed = dataset.row_count - len(index)
        if collapsed:
            logger.warning("comparator.duplicate_keys",
                          file=dataset.name,
                          collapsed=collapsed,
                          distinct_keys=len(index))
        return index, collapsed

    def _calculate_summary(self, result: ComparisonResult,
                           dataset_a: Dataset, dataset_b: Dataset,
                           mappings: Sequence[ColumnMapping],
                           detect_differences: bool,
                           collapsed_a: int, collapsed_b: int) -> SummaryStats:
        """
        Calculate summary statistics.
        """
        if detect_differences:
            delta_count: Optional[int] = sum(1 for m in result.matches if m.is_delta)
            common_count = len(result.matches) - delta_count
        else:
            delta_count = None
            common_count = len(result.matches)

        return SummaryStats(
            file_a_name=dataset_a.name,
            file_b_name=dataset_b.name,
            file_a_total_rows=dataset_a.row_count,
            file_b_total_rows=dataset_b.row_count,
            unique_to_a_count=len(result.unique_to_a),
            unique_to_b_count=len(result.unique_to_b),
            common_count=common_count,
            delta_count=delta_count,
            comparison_columns=describe_mappings(mappings),
            duplicate_keys_a=collapsed_a,
            duplicate_keys_b=collapsed_b,
        )


def compare(dataset_a: Dataset, dataset_b: Dataset,
            mappings: Sequence[ColumnMapping],
            detect_differences: bool = True) -> ComparisonResult:
    """Convenience wrapper around ``DatasetComparator.compare``."""
    return DatasetComparator(ComparisonConfig(detect_differences=detect_differences)).compare(
        dataset_a, dataset_b, mappings
    )
