"""
Comparison request orchestration.
Single responsibility: run one stateless parse -> compare -> serialize cycle.
"""

import json
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .adapters.file_reader import TabularFileReader
from .config.manager import AppConfig
from .core.comparator import ComparisonResult, DatasetComparator
from .core.dataset import ColumnMapping
from .core.errors import InvalidMappingError, TabDiffError
from .core.key_validator import KeyCandidate, KeyValidationResult, KeyValidator
from .reports.serializer import (
    KIND_COMBINED, KIND_DIFFERENCES, KIND_MATCHING, KIND_SUMMARY,
    KIND_UNIQUE_A, KIND_UNIQUE_B, ReportArtifact, ReportSerializer, artifact_names,
)
from .utils.housekeeping import cleanup_old_artifacts
from .utils.logger import get_logger
from .utils.metrics import MetricsCollector


logger = get_logger()


# Response field names used by the portal's download links
REPORT_FIELDS = {
    KIND_COMBINED: "combined",
    KIND_SUMMARY: "summary",
    KIND_UNIQUE_A: "uniqueToFile1",
    KIND_UNIQUE_B: "uniqueToFile2",
    KIND_MATCHING: "matchingKeys",
    KIND_DIFFERENCES: "differences",
}


@dataclass
class ComparisonResponse:
    """Outcome of one comparison request."""

    result: ComparisonResult
    artifacts: List[ReportArtifact] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def downloads(self) -> Dict[str, str]:
        return artifact_names(self.artifacts)

    @property
    def message(self) -> str:
        summary = self.result.summary
        message = (f"Found {summary.unique_to_a_count} only in file 1, "
                   f"{summary.unique_to_b_count} only in file 2, and "
                   f"{summary.matching_count} matching keys")
        if summary.detect_differences:
            message += f" ({summary.delta_count} with differences)"
        return message

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready payload for the request boundary."""
        summary = self.result.summary
        reports = {field_name: None for field_name in REPORT_FIELDS.values()}
        for kind, name in self.downloads.items():
            reports[REPORT_FIELDS[kind]] = name

        return {
            "summary": summary.to_dict(),
            "uniqueToFile1Count": summary.unique_to_a_count,
            "uniqueToFile2Count": summary.unique_to_b_count,
            "matchingKeysCount": summary.matching_count,
            "deltaCount": summary.delta_count,
            "reports": reports,
            "message": self.message,
        }


def parse_mappings(payload: Union[str, Sequence[Dict[str, Any]]]) -> List[ColumnMapping]:
    """
    Validate the mapping payload of a request.

    Args:
        payload: JSON text or already-decoded list of mapping objects

    Returns:
        Ordered column mappings

    Raises:
        InvalidMappingError: If the payload is malformed or empty
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise InvalidMappingError(
                f"[MAPPING ERROR] Column mappings are not valid JSON: {e.msg}. "
                f"Suggestion: Send a JSON array of {{\"sourceColumn\", \"targetColumn\"}} objects."
            ) from e

    if not isinstance(payload, list):
        raise InvalidMappingError(
            "[MAPPING ERROR] Column mappings must be a JSON array. "
            "Suggestion: Send a JSON array of {\"sourceColumn\", \"targetColumn\"} objects."
        )

    if not payload:
        raise InvalidMappingError.empty()

    mappings = []
    for item in payload:
        if not isinstance(item, dict):
            raise InvalidMappingError(f"[MAPPING ERROR] Invalid mapping entry: {item!r}.")
        try:
            mappings.append(ColumnMapping.from_dict(item))
        except ValueError as e:
            raise InvalidMappingError(
                f"[MAPPING ERROR] {e}. Suggestion: Select a column on both sides of every mapping."
            ) from e

    return mappings


class ComparisonService:
    """
    Entry point used by the request boundary (web handler or CLI).

    Holds configuration only; every call allocates its own datasets, maps
    and buffers, so one service may serve concurrent requests.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        """
        Initialize service.

        Args:
            config: Application configuration
        """
        self.config = config or AppConfig()
        self.reader = TabularFileReader()
        self.comparator = DatasetComparator(self.config.comparison)
        self.serializer = ReportSerializer(self.config.reports)

    def analyze_columns(self, file_path: Union[str, Path], name: Optional[str] = None) -> List[str]:
        """Column names of an uploaded file, for building mappings."""
        return self.reader.read_columns(file_path, name)

    def validate_key(self, file_path: Union[str, Path], key_columns: Sequence[str],
                     name: Optional[str] = None) -> KeyValidationResult:
        """
        Check whether key columns identify every row of a file.

        Duplicates reported here are the rows a comparison would collapse
        into one key.
        """
        dataset = self.reader.read(file_path, name)
        with KeyValidator() as validator:
            return validator.validate_key(dataset, key_columns)

    def suggest_keys(self, file_path: Union[str, Path], limit: int = 5,
                     name: Optional[str] = None) -> Tuple[str, List[KeyCandidate]]:
        """Display name of a file and its ranked single-column key candidates."""
        dataset = self.reader.read(file_path, name)
        with KeyValidator() as validator:
            return dataset.name, validator.suggest_keys(dataset, limit=limit)

    def run(self, file_a: Union[str, Path], file_b: Union[str, Path],
            mappings: Union[str, Sequence[ColumnMapping], Sequence[Dict[str, Any]]],
            name_a: Optional[str] = None, name_b: Optional[str] = None,
            strategy: Optional[str] = None,
            detect_differences: Optional[bool] = None) -> ComparisonResponse:
        """
        Compare two uploaded files and publish the report artifacts.

        Args:
            file_a: Path of the first upload
            file_b: Path of the second upload
            mappings: Column mappings (objects, JSON text or ColumnMapping list)
            name_a: Original name of the first upload
            name_b: Original name of the second upload
            strategy: Report strategy override
            detect_differences: Comparison mode override

        Returns:
            Comparison response with the published artifacts

        Raises:
            TabDiffError: For unsupported, empty or badly mapped input
        """
        metrics = MetricsCollector()

        try:
            if mappings and all(isinstance(m, ColumnMapping) for m in mappings):
                column_mappings = list(mappings)
            else:
                column_mappings = parse_mappings(mappings)

            metrics.start_operation("parse")
            try:
                dataset_a = self.reader.read(file_a, name_a)
                dataset_b = self.reader.read(file_b, name_b)
            finally:
                if self.config.cleanup_inputs:
                    self._delete_inputs(file_a, file_b)
            metrics.end_operation("parse", rows_processed=dataset_a.row_count + dataset_b.row_count)

            metrics.start_operation("compare")
            result = self.comparator.compare(dataset_a, dataset_b, column_mappings,
                                             detect_differences=detect_differences)
            metrics.end_operation("compare", rows_processed=len(result.matches))

            metrics.start_operation("serialize")
            artifacts = self.serializer.serialize(result, strategy)
            metrics.end_operation("serialize", rows_processed=len(artifacts))

        except TabDiffError as e:
            logger.error("service.comparison_failed", error=str(e))
            raise
        except Exception as e:
            logger.error("service.comparison_crashed",
                        error=str(e),
                        traceback=traceback.format_exc())
            raise

        return ComparisonResponse(result=result, artifacts=artifacts,
                                  metrics=metrics.generate_report())

    def download(self, name: str) -> Path:
        """Path of a published artifact; rejects anything outside the output directory."""
        return self.serializer.resolve_download(name)

    def cleanup(self, max_age_hours: Optional[float] = None) -> int:
        """Purge artifacts older than the retention window."""
        return cleanup_old_artifacts(
            self.serializer.output_dir,
            self.config.reports.retention_hours if max_age_hours is None else max_age_hours,
        )

    def _delete_inputs(self, *paths: Union[str, Path]) -> None:
        for path in paths:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning("service.input_cleanup_failed",
                              file=str(path),
                              error=str(e))
