"""Configuration management."""

from .manager import ConfigManager, AppConfig, ComparisonConfig, ReportConfig, LoggingConfig

__all__ = ["ConfigManager", "AppConfig", "ComparisonConfig", "ReportConfig", "LoggingConfig"]
