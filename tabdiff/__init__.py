"""
Tabular Diff - key-based comparison of CSV and spreadsheet files.
"""

__version__ = "1.0.0"

from .core.comparator import DatasetComparator, ComparisonResult, MatchedPair, SummaryStats, compare
from .core.dataset import Dataset, ColumnMapping
from .core.errors import (
    TabDiffError,
    UnsupportedFormatError,
    EmptyFileError,
    InvalidMappingError,
    ArtifactNotFoundError,
)
from .config.manager import ConfigManager, AppConfig, ComparisonConfig, ReportConfig
from .adapters.file_reader import TabularFileReader
from .reports.serializer import ReportSerializer, ReportArtifact
from .service import ComparisonService, ComparisonResponse, parse_mappings
from .utils.logger import get_logger

__all__ = [
    "DatasetComparator",
    "ComparisonResult",
    "MatchedPair",
    "SummaryStats",
    "compare",
    "Dataset",
    "ColumnMapping",
    "TabDiffError",
    "UnsupportedFormatError",
    "EmptyFileError",
    "InvalidMappingError",
    "ArtifactNotFoundError",
    "ConfigManager",
    "AppConfig",
    "ComparisonConfig",
    "ReportConfig",
    "TabularFileReader",
    "ReportSerializer",
    "ReportArtifact",
    "ComparisonService",
    "ComparisonResponse",
    "parse_mappings",
    "get_logger",
]
