"""
Rich terminal output.
Single responsibility: present comparison results and diagnostics.
"""

from typing import Any, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.comparator import SummaryStats
from ..core.key_validator import KeyCandidate, KeyValidationResult
from ..reports.serializer import ReportArtifact


class ResultsConsole:
    """
    Rich-based presentation of comparison output.
    """

    def __init__(self, console: Optional[Console] = None):
        """
        Initialize console.

        Args:
            console: Rich console (stdout by default)
        """
        self.console = console or Console()

    def show_comparison_results(self, summary: SummaryStats):
        """
        Display comparison results in a formatted table.

        Args:
            summary: Summary statistics of a comparison
        """
        table = Table(title="Comparison Results", box=box.ROUNDED)

        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Value", style="magenta")
        table.add_column("Percentage", style="green")

        def share(count: int, total: int) -> str:
            return f"{100 * count / total:.1f}%" if total else "—"

        metrics = [
            (f"Total Rows in {summary.file_a_name or 'File 1'}", summary.file_a_total_rows, "—"),
            (f"Total Rows in {summary.file_b_name or 'File 2'}", summary.file_b_total_rows, "—"),
            ("Only in File 1", summary.unique_to_a_count,
             share(summary.unique_to_a_count, summary.file_a_total_rows)),
            ("Only in File 2", summary.unique_to_b_count,
             share(summary.unique_to_b_count, summary.file_b_total_rows)),
        ]

        if summary.detect_differences:
            metrics.append(("Common Rows", summary.common_count,
                            share(summary.common_count, summary.matching_count)))
            metrics.append(("Rows with Differences", summary.delta_count or 0,
                            share(summary.delta_count or 0, summary.matching_count)))
        else:
            metrics.append(("Matching Keys", summary.common_count,
                            share(summary.common_count, summary.file_a_total_rows)))

        if summary.duplicate_keys_a or summary.duplicate_keys_b:
            metrics.append(("Duplicate Keys Collapsed (File 1)", summary.duplicate_keys_a, "—"))
            metrics.append(("Duplicate Keys Collapsed (File 2)", summary.duplicate_keys_b, "—"))

        for metric, value, percentage in metrics:
            table.add_row(metric, f"{value:,}", percentage)

        self.console.print()
        self.console.print(table)
        self.console.print(f"Key: {', '.join(summary.comparison_columns)}", style="dim")
        self.console.print()

    def show_artifacts(self, artifacts: Sequence[ReportArtifact]):
        """
        Display the published report files.

        Args:
            artifacts: Artifacts returned by the serializer
        """
        table = Table(title="Reports", box=box.SIMPLE)
        table.add_column("Report", style="cyan")
        table.add_column("Download Name", style="green")

        for artifact in artifacts:
            table.add_row(artifact.kind, artifact.name)

        self.console.print(table)

    def show_columns(self, name: str, columns: List[str]):
        """List the columns of one file."""
        table = Table(title=f"Columns in {name}", box=box.SIMPLE)
        table.add_column("#", style="dim", justify="right")
        table.add_column("Column", style="cyan")

        for index, column in enumerate(columns, start=1):
            table.add_row(str(index), column)

        self.console.print(table)

    def show_key_candidates(self, name: str, candidates: Sequence[KeyCandidate]):
        """Display ranked key candidates of one file."""
        table = Table(title=f"Key Candidates for {name}", box=box.SIMPLE)
        table.add_column("Column", style="cyan")
        table.add_column("Unique Values", style="magenta", justify="right")
        table.add_column("Blank", style="yellow", justify="right")
        table.add_column("Uniqueness", style="green", justify="right")

        for candidate in candidates:
            table.add_row(
                candidate.column,
                f"{candidate.unique_values:,}",
                f"{candidate.blank_values:,}",
                f"{100 * candidate.uniqueness:.1f}%",
            )

        self.console.print(table)

    def show_key_validation(self, name: str, result: KeyValidationResult):
        """Display the uniqueness check of one key."""
        table = Table(title=f"Key Check for {name}", box=box.SIMPLE)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="magenta", justify="right")

        table.add_row("Key Columns", ", ".join(result.key_columns))
        table.add_row("Total Rows", f"{result.total_rows:,}")
        table.add_row("Distinct Keys", f"{result.unique_values:,}")
        table.add_row("Duplicate Rows", f"{result.duplicate_count:,}")

        self.console.print(table)
        if result.is_valid:
            self.log_success("Key is unique")
        else:
            self.log_warning(result.error_message)

    def log_warning(self, message: str):
        """Display warning message."""
        self.console.print(f"⚠ {message}", style="yellow")

    def show_metrics(self, metrics: Dict[str, Any]):
        """
        Display performance metrics.

        Args:
            metrics: Metrics dictionary
        """
        table = Table(title="Performance Metrics", box=box.SIMPLE)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="magenta")

        for key, value in metrics.items():
            if isinstance(value, float):
                table.add_row(key, f"{value:.2f}")
            elif isinstance(value, int):
                table.add_row(key, f"{value:,}")
            else:
                table.add_row(key, str(value))

        self.console.print(table)

    def log_error(self, message: str):
        """Display an error panel."""
        self.console.print(Panel(Text(message), title="Error", border_style="red", expand=False))

    def log_success(self, message: str):
        """Display success message."""
        self.console.print(f"✓ {message}", style="green")
