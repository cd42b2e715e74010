"""
Configuration management.
Single responsibility: load, validate, and manage configuration.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from ..utils.logger import get_logger


logger = get_logger()


STRATEGY_COMBINED = "combined"
STRATEGY_SEPARATE = "separate"
STRATEGIES = (STRATEGY_COMBINED, STRATEGY_SEPARATE)


@dataclass
class ComparisonConfig:
    """Configuration for the comparison engine."""

    # False selects the reduced-fidelity mode: one matching bucket, no field diffs
    detect_differences: bool = True


@dataclass
class ReportConfig:
    """Configuration for report artifacts."""

    output_directory: Path = field(default_factory=lambda: Path("data/comparison_results"))
    strategy: str = STRATEGY_SEPARATE
    retention_hours: float = 24

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.output_directory = Path(self.output_directory)
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown report strategy: {self.strategy} "
                f"(expected one of {', '.join(STRATEGIES)})"
            )
        if self.retention_hours <= 0:
            raise ValueError("retention_hours must be positive")


@dataclass
class LoggingConfig:
    """Configuration for the structured logger."""

    log_file: Optional[Path] = None
    level: str = "INFO"


@dataclass
class AppConfig:
    """Complete application configuration."""

    comparison: ComparisonConfig = field(default_factory=ComparisonConfig)
    reports: ReportConfig = field(default_factory=ReportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    cleanup_inputs: bool = False


class ConfigManager:
    """
    Manage application configuration.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = Path(config_path or "tabdiff.yaml")
        self.config: Dict[str, Any] = {}
        self.app_config = AppConfig()

    def load(self) -> AppConfig:
        """
        Load configuration from file.

        Returns:
            Parsed application configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If config is invalid YAML
            ValueError: If a section holds invalid values
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config not found: {self.config_path}")

        logger.info("config.loading", file=str(self.config_path))

        with open(self.config_path, encoding="utf-8") as f:
            self.config = yaml.safe_load(f) or {}

        try:
            self.app_config = AppConfig(
                comparison=self._parse_comparison(),
                reports=self._parse_reports(),
                logging=self._parse_logging(),
                cleanup_inputs=bool(self.config.get("cleanup_inputs", False)),
            )
        except (TypeError, ValueError) as e:
            logger.error("config.invalid",
                        file=str(self.config_path),
                        error=str(e))
            raise

        logger.info("config.loaded",
                   output_directory=str(self.app_config.reports.output_directory),
                   strategy=self.app_config.reports.strategy,
                   detect_differences=self.app_config.comparison.detect_differences)

        return self.app_config

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.config.get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(f"Section '{name}' must be a mapping")
        return section

    def _parse_comparison(self) -> ComparisonConfig:
        """Parse comparison engine configuration."""
        cfg = self._section("comparison")
        return ComparisonConfig(
            detect_differences=bool(cfg.get("detect_differences", True))
        )

    def _parse_reports(self) -> ReportConfig:
        """Parse report configuration."""
        cfg = self._section("reports")
        defaults = ReportConfig()
        return ReportConfig(
            output_directory=Path(cfg.get("output_directory", defaults.output_directory)),
            strategy=cfg.get("strategy", defaults.strategy),
            retention_hours=cfg.get("retention_hours", defaults.retention_hours),
        )

    def _parse_logging(self) -> LoggingConfig:
        """Parse logging configuration."""
        cfg = self._section("logging")
        log_file = cfg.get("log_file")
        return LoggingConfig(
            log_file=Path(log_file) if log_file else None,
            level=str(cfg.get("level", "INFO")).upper(),
        )

    def save(self, path: Optional[Path] = None):
        """
        Save configuration to file.

        Args:
            path: Output path (uses original path if not specified)
        """
        output_path = Path(path or self.config_path)

        logger.info("config.saving", file=str(output_path))

        app = self.app_config
        config_dict = {
            "comparison": {
                "detect_differences": app.comparison.detect_differences,
            },
            "reports": {
                "output_directory": str(app.reports.output_directory),
                "strategy": app.reports.strategy,
                "retention_hours": app.reports.retention_hours,
            },
            "logging": {
                "log_file": str(app.logging.log_file) if app.logging.log_file else None,
                "level": app.logging.level,
            },
            "cleanup_inputs": app.cleanup_inputs,
        }

        with open(output_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

        logger.info("config.saved", file=str(output_path))
