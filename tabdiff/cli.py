"""
Command line interface.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config.manager import AppConfig, ConfigManager, STRATEGIES
from .core.dataset import ColumnMapping
from .core.errors import InvalidMappingError, TabDiffError
from .service import ComparisonService, parse_mappings
from .ui.console import ResultsConsole
from .utils.logger import configure_logging, get_logger


logger = get_logger()


SAMPLE_CONFIG = """# Tabular Diff Configuration
# ===========================

comparison:
  # false collapses common and changed rows into one "matching keys" bucket
  detect_differences: true

reports:
  output_directory: "data/comparison_results"
  strategy: "separate"     # or "combined"
  retention_hours: 24

logging:
  log_file: null           # e.g. "data/logs/tabdiff.jsonl"
  level: "INFO"

# delete uploaded inputs after parsing
cleanup_inputs: false
"""


def create_sample_config(output_path: Path):
    """
    Create a sample configuration file.

    Args:
        output_path: Where to save the config
    """
    output_path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    print(f"Sample configuration created: {output_path}")


def parse_map_option(values: List[str]) -> List[ColumnMapping]:
    """
    Convert repeated ``--map SOURCE=TARGET`` options into mappings.

    A bare ``COLUMN`` maps a column to the same name in file B.
    """
    mappings = []
    for value in values:
        source, sep, target = value.partition("=")
        source, target = source.strip(), target.strip()
        if not sep:
            target = source
        if not source or not target:
            raise InvalidMappingError(
                f"[MAPPING ERROR] Invalid --map value '{value}'. "
                f"Suggestion: Use SOURCE=TARGET, e.g. --map customer_id=CustomerID."
            )
        mappings.append(ColumnMapping(source_column=source, target_column=target))
    return mappings


def load_config(config_file: Optional[str]) -> AppConfig:
    """Load YAML configuration, or defaults when no file is given."""
    if not config_file:
        return AppConfig()
    return ConfigManager(Path(config_file)).load()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tabdiff",
        description="Compare two CSV or Excel files by mapped key columns"
    )

    parser.add_argument(
        "--config", "-c",
        help="Configuration file (YAML)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--create-sample",
        action="store_true",
        help="Create sample configuration file"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Tabular Diff v{__version__}"
    )

    subparsers = parser.add_subparsers(dest="command")

    compare = subparsers.add_parser("compare", help="Compare two files")
    compare.add_argument("file_a", help="First file (CSV, XLSX or XLS)")
    compare.add_argument("file_b", help="Second file (CSV, XLSX or XLS)")
    compare.add_argument(
        "--map", "-m",
        action="append",
        default=[],
        metavar="SOURCE=TARGET",
        help="Key column mapping; repeat for composite keys"
    )
    compare.add_argument(
        "--mappings",
        help="JSON array of {\"sourceColumn\", \"targetColumn\"} objects"
    )
    compare.add_argument(
        "--strategy",
        choices=STRATEGIES,
        help="Write one combined report or separate reports per bucket"
    )
    compare.add_argument(
        "--no-diff",
        action="store_true",
        help="Only match keys; skip field-level difference detection"
    )
    compare.add_argument(
        "--output-dir",
        help="Directory for report files"
    )
    compare.add_argument(
        "--show-metrics",
        action="store_true",
        help="Print timing and memory metrics"
    )

    columns = subparsers.add_parser("columns", help="List the columns of a file")
    columns.add_argument("file", help="CSV, XLSX or XLS file")

    suggest = subparsers.add_parser("suggest-keys", help="Rank columns as key candidates")
    suggest.add_argument("file", help="CSV, XLSX or XLS file")
    suggest.add_argument("--limit", type=int, default=5, help="Candidates to show")

    validate = subparsers.add_parser("validate-key", help="Check that key columns identify every row")
    validate.add_argument("file", help="CSV, XLSX or XLS file")
    validate.add_argument("columns", nargs="+", metavar="COLUMN", 
                          help="Key column(s); several form a composite key")

    cleanup = subparsers.add_parser("cleanup", help="Delete reports past the retention window")
    cleanup.add_argument("--max-age-hours", type=float, help="Override retention window")

    return parser


def run_compare(args, config: AppConfig, ui: ResultsConsole) -> int:
    if args.output_dir:
        config.reports.output_directory = Path(args.output_dir)

    if args.mappings:
        mappings = parse_mappings(args.mappings)
    else:
        mappings = parse_map_option(args.map)
        if not mappings:
            raise InvalidMappingError.empty()

    service = ComparisonService(config)
    response = service.run(
        args.file_a, args.file_b, mappings,
        strategy=args.strategy,
        detect_differences=False if args.no_diff else None,
    )

    ui.show_comparison_results(response.result.summary)
    ui.show_artifacts(response.artifacts)
    if args.show_metrics:
        ui.show_metrics(response.metrics)
    ui.log_success(response.message)
    return 0


def run_columns(args, config: AppConfig, ui: ResultsConsole) -> int:
    service = ComparisonService(config)
    ui.show_columns(Path(args.file).name, service.analyze_columns(args.file))
    return 0


def run_suggest_keys(args, config: AppConfig, ui: ResultsConsole) -> int:
    name, candidates = ComparisonService(config).suggest_keys(args.file, limit=args.limit)
    ui.show_key_candidates(name, candidates)
    return 0


def run_validate_key(args, config: AppConfig, ui: ResultsConsole) -> int:
    result = ComparisonService(config).validate_key(args.file, args.columns)
    ui.show_key_validation(Path(args.file).name, result)
    return 0 if result.is_valid else 1


def run_cleanup(args, config: AppConfig, ui: ResultsConsole) -> int:
    removed = ComparisonService(config).cleanup(args.max_age_hours)
    ui.log_success(f"Removed {removed} expired report file(s)")
    return 0


COMMANDS = {
    "compare": run_compare,
    "columns": run_columns,
    "suggest-keys": run_suggest_keys,
    "validate-key": run_validate_key,
    "cleanup": run_cleanup,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.create_sample:
        create_sample_config(Path("tabdiff_sample.yaml"))
        return 0

    if not args.command:
        parser.print_help()
        return 1

    ui = ResultsConsole()

    try:
        config = load_config(args.config)
        configure_logging(config.logging.log_file,
                          "DEBUG" if args.verbose else config.logging.level)
        return COMMANDS[args.command](args, config, ui)
    except FileNotFoundError as e:
        ui.log_error(str(e))
        return 1
    except (TabDiffError, ValueError) as e:
        ui.log_error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
