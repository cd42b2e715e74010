"""
Performance metrics collection.
Single responsibility: track timing, row counts and memory per request.
"""

import time
import psutil
import os
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
from datetime import datetime

from .logger import get_logger


logger = get_logger()


@dataclass
class OperationMetrics:
    """Metrics for a single operation."""

    name: str
    start_time: float
    end_time: Optional[float] = None
    duration_seconds: Optional[float] = None
    rows_processed: int = 0
    memory_mb_start: float = 0
    memory_mb_end: float = 0
    success: bool = True
    error: Optional[str] = None


@dataclass
class RequestMetrics:
    """Metrics for one comparison request."""

    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    total_duration_seconds: float = 0
    operations: List[OperationMetrics] = field(default_factory=list)
    memory_mb_peak: float = 0
    total_rows_processed: int = 0
    errors_encountered: int = 0


class MetricsCollector:
    """
    Collect and track performance metrics.
    """

    def __init__(self):
        """Initialize metrics collector."""
        self.request_metrics = RequestMetrics()
        self.current_operations: Dict[str, OperationMetrics] = {}
        self.process = psutil.Process(os.getpid())

    def start_operation(self, name: str) -> None:
        """
        Start tracking an operation.

        Args:
            name: Operation name
        """
        memory_mb = self._get_memory_usage()

        self.current_operations[name] = OperationMetrics(
            name=name,
            start_time=time.time(),
            memory_mb_start=memory_mb
        )

        logger.debug("metrics.operation.start",
                    operation=name,
                    memory_mb=round(memory_mb, 2))

    def end_operation(self, name: str, rows_processed: int = 0,
                     success: bool = True, error: Optional[str] = None) -> None:
        """
        End tracking an operation.

        Args:
            name: Operation name
            rows_processed: Number of rows processed
            success: Whether operation succeeded
            error: Error message if failed
        """
        if name not in self.current_operations:
            logger.warning("metrics.operation.not_found", operation=name)
            return

        operation = self.current_operations.pop(name)
        operation.end_time = time.time()
        operation.duration_seconds = operation.end_time - operation.start_time
        operation.rows_processed = rows_processed
        operation.memory_mb_end = self._get_memory_usage()
        operation.success = success
        operation.error = error

        metrics = self.request_metrics
        metrics.operations.append(operation)
        metrics.total_rows_processed += rows_processed
        metrics.memory_mb_peak = max(metrics.memory_mb_peak,
                                     operation.memory_mb_start,
                                     operation.memory_mb_end)
        if not success:
            metrics.errors_encountered += 1

        logger.debug("metrics.operation.end",
                    operation=name,
                    duration=round(operation.duration_seconds, 3),
                    rows=rows_processed,
                    success=success)

    def finalize(self) -> RequestMetrics:
        """
        Finalize metrics collection.

        Returns:
            Final request metrics
        """
        metrics = self.request_metrics
        metrics.end_time = datetime.now()
        metrics.total_duration_seconds = (
            metrics.end_time - metrics.start_time
        ).total_seconds()

        logger.info("metrics.request.finalized",
                   duration=round(metrics.total_duration_seconds, 3),
                   rows=metrics.total_rows_processed,
                   memory_mb_peak=round(metrics.memory_mb_peak, 2),
                   errors=metrics.errors_encountered)

        return metrics

    def generate_report(self) -> Dict[str, Any]:
        """
        Generate a flat metrics report suitable for display.

        Returns:
            Metrics report dictionary
        """
        metrics = self.finalize()

        report: Dict[str, Any] = {
            "total_duration": self._format_duration(metrics.total_duration_seconds),
            "rows_processed": metrics.total_rows_processed,
            "memory_mb_peak": round(metrics.memory_mb_peak, 2),
            "errors": metrics.errors_encountered,
        }
        for operation in metrics.operations:
            report[f"{operation.name}_seconds"] = round(operation.duration_seconds or 0, 3)

        return report

    def _get_memory_usage(self) -> float:
        """
        Get current memory usage in MB.

        Returns:
            Memory usage in MB
        """
        return self.process.memory_info().rss / (1024 * 1024)

    def _format_duration(self, seconds: float) -> str:
        """
        Format duration in human-readable format.

        Args:
            seconds: Duration in seconds

        Returns:
            Formatted duration string
        """
        if seconds < 60:
            return f"{seconds:.1f} seconds"
        elif seconds < 3600:
            return f"{seconds / 60:.1f} minutes"
        else:
            return f"{seconds / 3600:.1f} hours"
