"""
Report serialization.
Single responsibility: write comparison results as downloadable CSV artifacts.
"""

import os
import tempfile
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..config.manager import ReportConfig, STRATEGY_COMBINED, STRATEGIES
from ..core.comparator import ComparisonResult, MatchedPair, SummaryStats
from ..core.dataset import Dataset, Record
from ..core.errors import ArtifactNotFoundError
from ..utils.logger import get_logger


logger = get_logger()


KIND_COMBINED = "combined"
KIND_SUMMARY = "summary"
KIND_UNIQUE_A = "unique_to_file1"
KIND_UNIQUE_B = "unique_to_file2"
KIND_MATCHING = "matching_keys"
KIND_DIFFERENCES = "differences"

DIFFERENCE_HEADER = ["Key", "Column", "File 1 Value", "File 2 Value"]


def escape_field(value: str) -> str:
    """
    Escape one delimited field.

    Fields containing a comma, double quote or line break are wrapped in
    double quotes with embedded quotes doubled; others are returned as is.
    """
    if any(ch in value for ch in ',"\n\r'):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_row(values: Iterable[object]) -> str:
    """Escape and join one record, newline-terminated."""
    return ",".join(escape_field(str(v)) for v in values) + "\n"


@dataclass(frozen=True)
class ReportArtifact:
    """A published report file."""

    kind: str
    name: str
    path: Path


class ReportSerializer:
    """
    Render comparison results into CSV artifacts in the output directory.

    Every artifact is written to a hidden temporary file first and renamed
    into place only after all artifacts of the request were written.
    """

    def __init__(self, config: Optional[ReportConfig] = None):
        """
        Initialize serializer.

        Args:
            config: Report configuration holding the output directory
        """
        self.config = config or ReportConfig()
        self.output_dir = Path(self.config.output_directory)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def serialize(self, result: ComparisonResult,
                  strategy: Optional[str] = None) -> List[ReportArtifact]:
        """
        Write the artifacts for one comparison.

        Args:
            result: Comparison results
            strategy: "combined" or "separate" (configured strategy if None)

        Returns:
            Published artifacts, summary or combined file first

        Raises:
            ValueError: If the strategy is unknown
            OSError: If writing fails; no artifact is published in that case
        """
        strategy = strategy or self.config.strategy
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown report strategy: {strategy}")

        stamp = self._stamp()

        if strategy == STRATEGY_COMBINED:
            planned = [(KIND_COMBINED, f"comparison_{stamp}.csv", self._combined_lines(result))]
        else:
            planned = self._separate_plan(result, stamp)

        logger.info("serializer.writing",
                   strategy=strategy,
                   artifacts=[name for _, name, _ in planned],
                   output_dir=str(self.output_dir))

        artifacts = self._write_atomic(planned)

        logger.info("serializer.completed",
                   strategy=strategy,
                   artifacts=len(artifacts))

        return artifacts

    def resolve_download(self, name: str) -> Path:
        """
        Resolve a download name to an artifact path.

        Only plain, visible base file names that resolve directly inside the
        output directory are accepted.

        Raises:
            ArtifactNotFoundError: If the name is rejected or does not exist
        """
        if (not name or name in (".", "..") or name.startswith(".")
                or "/" in name or "\\" in name or "\x00" in name
                or Path(name).name != name):
            logger.warning("serializer.download.rejected", name=repr(name))
            raise ArtifactNotFoundError(name)

        base = self.output_dir.resolve()
        candidate = (base / name).resolve()

        if candidate.parent != base:
            logger.warning("serializer.download.rejected", name=repr(name))
            raise ArtifactNotFoundError(name)

        if not candidate.is_file():
            raise ArtifactNotFoundError(name)

        return candidate

    def _separate_plan(self, result: ComparisonResult,
                       stamp: str) -> List[Tuple[str, str, Iterator[str]]]:
        """One artifact per non-empty bucket; the summary is always written."""
        plan = [(KIND_SUMMARY, f"summary_{stamp}.csv", self._summary_lines(result.summary))]

        if result.unique_to_a:
            plan.append((KIND_UNIQUE_A, f"unique_to_file1_{stamp}.csv",
                         self._table_lines(result.columns_a, result.unique_to_a)))
        if result.unique_to_b:
            plan.append((KIND_UNIQUE_B, f"unique_to_file2_{stamp}.csv",
                         self._table_lines(result.columns_b, result.unique_to_b)))
        if result.matches:
            plan.append((KIND_MATCHING, f"matching_keys_{stamp}.csv",
                         self._matching_lines(result)))
        if result.summary.detect_differences and result.summary.delta_count:
            plan.append((KIND_DIFFERENCES, f"differences_{stamp}.csv",
                         self._difference_lines(result.deltas)))

        return plan

    def _combined_lines(self, result: ComparisonResult) -> Iterator[str]:
        """Summary, unique tables and the delta (or matching) table in one file."""
        yield "=== COMPARISON SUMMARY ===\n"
        yield from self._summary_lines(result.summary, header=False)

        if result.unique_to_a:
            yield "\n\n=== UNIQUE TO FILE 1 ===\n"
            yield from self._table_lines(result.columns_a, result.unique_to_a)

        if result.unique_to_b:
            yield "\n\n=== UNIQUE TO FILE 2 ===\n"
            yield from self._table_lines(result.columns_b, result.unique_to_b)

        if result.summary.detect_differences:
            deltas = result.deltas
            if deltas:
                yield "\n\n=== ROWS WITH DIFFERENCES ===\n"
                yield from self._difference_lines(deltas)
        elif result.matches:
            yield "\n\n=== MATCHING KEYS ===\n"
            yield from self._matching_lines(result)

    def _summary_lines(self, summary: SummaryStats, header: bool = True) -> Iterator[str]:
        if header:
            yield format_row(["Metric", "Value"])

        rows = [
            ("File 1", summary.file_a_name),
            ("File 2", summary.file_b_name),
            ("Total Rows in File 1", summary.file_a_total_rows),
            ("Total Rows in File 2", summary.file_b_total_rows),
            ("Only in File 1", summary.unique_to_a_count),
            ("Only in File 2", summary.unique_to_b_count),
        ]
        if summary.detect_differences:
            rows.append(("Common Rows (no differences)", summary.common_count))
            rows.append(("Rows with Differences", summary.delta_count))
        else:
            rows.append(("Matching Keys (in both files)", summary.common_count))
        rows.append(("Duplicate Keys Collapsed in File 1", summary.duplicate_keys_a))
        rows.append(("Duplicate Keys Collapsed in File 2", summary.duplicate_keys_b))
        rows.append(("Comparison Key Columns", ", ".join(summary.comparison_columns)))

        for metric, value in rows:
            yield format_row([metric, value])

    def _table_lines(self, columns: Sequence[str], rows: Sequence[Record]) -> Iterator[str]:
        yield format_row(columns)
        for row in rows:
            yield format_row(Dataset.value(row, col) for col in columns)

    def _matching_lines(self, result: ComparisonResult) -> Iterator[str]:
        """Side-by-side rows of every matched key."""
        with_differences = result.summary.detect_differences

        header = ["Key"]
        header += [f"File1_{col}" for col in result.columns_a]
        header += [f"File2_{col}" for col in result.columns_b]
        if with_differences:
            header.append("Differing Columns")
        yield format_row(header)

        for match in result.matches:
            values = [match.key]
            values += [Dataset.value(match.row_a, col) for col in result.columns_a]
            values += [Dataset.value(match.row_b, col) for col in result.columns_b]
            if with_differences:
                values.append("; ".join(match.differences))
            yield format_row(values)

    def _difference_lines(self, deltas: Sequence[MatchedPair]) -> Iterator[str]:
        """Long format: one line per differing field of every delta match."""
        yield format_row(DIFFERENCE_HEADER)
        for match in deltas:
            for col in match.differences:
                yield format_row([
                    match.key,
                    col,
                    Dataset.value(match.row_a, col),
                    Dataset.value(match.row_b, col),
                ])

    def _write_atomic(self, planned: Sequence[Tuple[str, str, Iterable[str]]]) -> List[ReportArtifact]:
        """
        Write every planned artifact to a temporary file, then publish all.

        Temporary files are hidden (dot-prefixed) so the download lookup never
        resolves them, and they are removed if any write fails.
        """
        staged: List[Tuple[str, str, Path]] = []
        published: List[Path] = []
        try:
            for kind, name, lines in planned:
                fd, tmp_name = tempfile.mkstemp(dir=self.output_dir, prefix=f".{name}.", suffix=".tmp")
                staged.append((kind, name, Path(tmp_name)))
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                    handle.writelines(lines)

            artifacts = []
            for kind, name, tmp_path in staged:
                final_path = self.output_dir / name
                os.replace(tmp_path, final_path)
                published.append(final_path)
                artifacts.append(ReportArtifact(kind=kind, name=name, path=final_path))
            return artifacts

        except Exception as e:
            logger.error("serializer.write_failed",
                        output_dir=str(self.output_dir),
                        error=str(e))
            for _, _, tmp_path in staged:
                tmp_path.unlink(missing_ok=True)
            # Roll back artifacts already renamed into place
            for final_path in published:
                final_path.unlink(missing_ok=True)
            raise

    def _stamp(self) -> str:
        """Timestamp plus random suffix shared by one request's artifacts."""
        now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        return f"{now}_{uuid.uuid4().hex[:8]}"


def artifact_names(artifacts: Sequence[ReportArtifact]) -> Dict[str, str]:
    """Map artifact kind to its download name."""
    return {artifact.kind: artifact.name for artifact in artifacts}
