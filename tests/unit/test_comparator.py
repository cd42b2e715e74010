"""
Unit tests for DatasetComparator.
"""

import pytest
from pathlib import Path
import sys

# Add project root to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from tabdiff.config.manager import ComparisonConfig
from tabdiff.core.comparator import DatasetComparator, compare, find_differences, union_columns
from tabdiff.core.dataset import ColumnMapping, Dataset
from tabdiff.core.errors import InvalidMappingError


def make_dataset(rows, columns=None, name="data.csv"):
    columns = columns or list(rows[0].keys())
    return Dataset.from_records(columns, rows, name=name)


ID_MAPPING = [ColumnMapping("id", "id")]


class TestDatasetComparatorScenarios:
    """End-to-end classification scenarios."""

    def setup_method(self):
        """Set up test fixtures."""
        self.comparator = DatasetComparator()
        self.dataset_a = make_dataset([{"id": "1", "name": "x"}, {"id": "2", "name": "y"}],
                                      name="a.csv")
        self.dataset_b = make_dataset([{"id": "2", "name": "Y"}, {"id": "3", "name": "z"}],
                                      name="b.csv")

    def test_unique_rows_and_delta_match(self):
        result = self.comparator.compare(self.dataset_a, self.dataset_b, ID_MAPPING)

        assert result.unique_to_a == [{"id": "1", "name": "x"}]
        assert result.unique_to_b == [{"id": "3", "name": "z"}]
        assert len(result.matches) == 1
        match = result.matches[0]
        assert match.key == "2"
        assert match.differences == ["name"]
        assert match.row_a == {"id": "2", "name": "y"}
        assert match.row_b == {"id": "2", "name": "Y"}

    def test_summary_counts(self):
        summary = self.comparator.compare(self.dataset_a, self.dataset_b, ID_MAPPING).summary

        assert summary.file_a_name == "a.csv"
        assert summary.file_b_name == "b.csv"
        assert summary.file_a_total_rows == 2
        assert summary.file_b_total_rows == 2
        assert summary.unique_to_a_count == 1
        assert summary.unique_to_b_count == 1
        assert summary.common_count == 0
        assert summary.delta_count == 1
        assert summary.comparison_columns == ["id→id"]

    def test_summary_payload_uses_portal_field_names(self):
        payload = self.comparator.compare(self.dataset_a, self.dataset_b, ID_MAPPING).summary.to_dict()

        assert payload["file1Name"] == "a.csv"
        assert payload["uniqueToFile1Count"] == 1
        assert payload["uniqueToFile2Count"] == 1
        assert payload["commonOrMatchingCount"] == 0
        assert payload["deltaCount"] == 1
        assert payload["comparisonColumns"] == ["id→id"]

    def test_empty_mapping_list_raises(self):
        with pytest.raises(InvalidMappingError):
            self.comparator.compare(self.dataset_a, self.dataset_b, [])

    def test_mapping_missing_from_a_names_column_and_side(self):
        with pytest.raises(InvalidMappingError) as exc_info:
            self.comparator.compare(self.dataset_a, self.dataset_b,
                                    [ColumnMapping("customer", "id")])

        assert exc_info.value.column == "customer"
        assert exc_info.value.side == "A"

    def test_mapping_missing_from_b_is_detected_before_comparing(self):
        with pytest.raises(InvalidMappingError) as exc_info:
            self.comparator.compare(self.dataset_a, self.dataset_b,
                                    [ColumnMapping("id", "CustomerID")])

        assert exc_info.value.side == "B"

    def test_different_column_names_on_each_side(self):
        dataset_b = make_dataset([{"CustomerID": "1", "name": "x"}])

        result = self.comparator.compare(self.dataset_a, dataset_b,
                                         [ColumnMapping("id", "CustomerID")])

        assert [m.key for m in result.matches] == ["1"]
        # Columns named differently are compared as separate union columns
        assert result.matches[0].differences == ["id", "CustomerID"]


class TestDatasetComparatorEdgeCases:
    """Duplicates, empty sides and union-of-columns behaviour."""

    def setup_method(self):
        """Set up test fixtures."""
        self.comparator = DatasetComparator()

    def test_duplicate_keys_last_write_wins(self):
        dataset_a = make_dataset([
            {"id": "1", "name": "first"},
            {"id": "2", "name": "other"},
            {"id": "1", "name": "second"},
        ])
        dataset_b = make_dataset([{"id": "1", "name": "second"}])

        result = self.comparator.compare(dataset_a, dataset_b, ID_MAPPING)

        assert [m.key for m in result.matches] == ["1"]
        assert result.matches[0].row_a["name"] == "second"
        assert result.matches[0].differences == []
        # Rows consumed into the map equal the distinct keys, not the raw row count
        assert len(result.unique_to_a) + len(result.matches) == 2
        assert result.summary.duplicate_keys_a == 1
        assert result.summary.file_a_total_rows == 3

    def test_duplicate_key_keeps_first_position(self):
        dataset_a = make_dataset([
            {"id": "1", "name": "a"},
            {"id": "2", "name": "b"},
            {"id": "1", "name": "c"},
        ])
        dataset_b = make_dataset([{"id": "9", "name": "z"}])

        result = self.comparator.compare(dataset_a, dataset_b, ID_MAPPING)

        assert result.unique_to_a == [{"id": "1", "name": "c"}, {"id": "2", "name": "b"}]

    def test_empty_dataset_a(self):
        dataset_a = Dataset.from_records(["id", "name"], [])
        dataset_b = make_dataset([{"id": "1", "name": "x"}, {"id": "2", "name": "y"}])

        result = self.comparator.compare(dataset_a, dataset_b, ID_MAPPING)

        assert result.unique_to_a == []
        assert result.unique_to_b == list(dataset_b.rows)
        assert result.summary.common_count == 0
        assert result.summary.delta_count == 0

    def test_column_only_in_b_counts_as_difference_when_non_empty(self):
        dataset_a = make_dataset([{"id": "1", "name": "x"}, {"id": "2", "name": "y"}])
        dataset_b = make_dataset([
            {"id": "1", "name": "x", "extra": "e"},
            {"id": "2", "name": "y", "extra": ""},
        ])

        result = self.comparator.compare(dataset_a, dataset_b, ID_MAPPING)

        assert result.matches[0].differences == ["extra"]
        assert result.matches[1].differences == []
        assert result.summary.common_count == 1
        assert result.summary.delta_count == 1

    def test_composite_key(self):
        dataset_a = make_dataset([
            {"region": "EU", "id": "1", "amount": "10"},
            {"region": "US", "id": "1", "amount": "20"},
        ])
        dataset_b = make_dataset([
            {"Region": "US", "ID": "1", "amount": "20"},
        ])
        mappings = [ColumnMapping("region", "Region"), ColumnMapping("id", "ID")]

        result = self.comparator.compare(dataset_a, dataset_b, mappings)

        assert [m.key for m in result.matches] == ["US|1"]
        assert result.unique_to_a == [{"region": "EU", "id": "1", "amount": "10"}]
        assert result.summary.comparison_columns == ["region→Region", "id→ID"]


class TestDatasetComparatorModes:
    """Full difference detection versus the matching-keys mode."""

    def setup_method(self):
        """Set up test fixtures."""
        self.dataset_a = make_dataset([{"id": "1", "name": "x"}, {"id": "2", "name": "y"}])
        self.dataset_b = make_dataset([{"id": "1", "name": "x"}, {"id": "2", "name": "Y"}])

    def test_reduced_mode_collapses_buckets(self):
        comparator = DatasetComparator(ComparisonConfig(detect_differences=False))

        result = comparator.compare(self.dataset_a, self.dataset_b, ID_MAPPING)

        assert result.summary.delta_count is None
        assert result.summary.common_count == 2
        assert result.summary.matching_count == 2
        assert all(m.differences == [] for m in result.matches)
        assert "deltaCount" not in result.summary.to_dict()

    def test_per_call_override(self):
        comparator = DatasetComparator()

        result = comparator.compare(self.dataset_a, self.dataset_b, ID_MAPPING,
                                    detect_differences=False)

        assert result.summary.delta_count is None


class TestComparisonProperties:
    """Properties that must hold for any input."""

    def setup_method(self):
        """Set up test fixtures."""
        self.dataset_a = make_dataset([
            {"id": str(i), "value": f"v{i}"} for i in range(0, 20)
        ])
        self.dataset_b = make_dataset([
            {"id": str(i), "value": f"v{i}" if i % 3 else "changed"} for i in range(10, 30)
        ])

    def test_every_row_classified_once_per_side(self):
        result = compare(self.dataset_a, self.dataset_b, ID_MAPPING)

        side_a = result.unique_to_a + [m.row_a for m in result.matches]
        side_b = result.unique_to_b + [m.row_b for m in result.matches]
        assert sorted(r["id"] for r in side_a) == sorted(r["id"] for r in self.dataset_a.rows)
        assert sorted(r["id"] for r in side_b) == sorted(r["id"] for r in self.dataset_b.rows)

    def test_compare_is_idempotent(self):
        first = compare(self.dataset_a, self.dataset_b, ID_MAPPING)
        second = compare(self.dataset_a, self.dataset_b, ID_MAPPING)

        assert first.summary == second.summary
        assert first.unique_to_a == second.unique_to_a
        assert first.unique_to_b == second.unique_to_b
        assert [(m.key, m.differences) for m in first.matches] == \
               [(m.key, m.differences) for m in second.matches]

    def test_identical_datasets_have_no_unique_or_delta_rows(self):
        mappings = [ColumnMapping("id", "id"), ColumnMapping("value", "value")]

        result = compare(self.dataset_a, self.dataset_a, mappings)

        assert result.unique_to_a == []
        assert result.unique_to_b == []
        assert result.summary.delta_count == 0
        assert result.summary.common_count == self.dataset_a.row_count

    def test_buckets_follow_file_order(self):
        result = compare(self.dataset_a, self.dataset_b, ID_MAPPING)

        assert [r["id"] for r in result.unique_to_a] == [str(i) for i in range(0, 10)]
        assert [m.key for m in result.matches] == [str(i) for i in range(10, 20)]
        assert [r["id"] for r in result.unique_to_b] == [str(i) for i in range(20, 30)]


class TestHelpers:
    """Test cases for column helpers."""

    def test_union_columns_keeps_a_order_then_b_only(self):
        assert union_columns(["id", "b", "a"], ["a", "z", "id"]) == ["id", "b", "a", "z"]

    def test_find_differences_treats_missing_as_empty(self):
        assert find_differences({"id": "1"}, {"id": "1", "x": ""}, ["id", "x"]) == []
        assert find_differences({"id": "1"}, {"id": "1", "x": "v"}, ["id", "x"]) == ["x"]
