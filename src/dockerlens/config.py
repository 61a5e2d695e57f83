"""
Configuration management for dockerlens.

This module provides configuration file support with YAML format and
default settings for the cache, the ranking chart, search and logging.

Features:
- YAML configuration file at ~/.config/dockerlens/config.yaml
  (override with DOCKERLENS_CONFIG or the constructor argument)
- Default values with user overrides
- Invalid values are logged and replaced by defaults

Architecture:
- ConfigManager: Main configuration interface
- Merges user config with defaults
- Provides typed access to settings
- Handles missing/invalid config gracefully; the file is only read, never written
"""

import os
import yaml
import logging
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, fields
from pathlib import Path

from .cache import RUNNING_SET_TTL
from .ranking import OK_THRESHOLD, TOP_N_OPTIONS, WARN_THRESHOLD, SortDimension, is_valid_top_n

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DOCKERLENS_CONFIG"


@dataclass
class CacheConfig:
    """Derived-cache configuration."""
    running_ttl_seconds: float = RUNNING_SET_TTL


@dataclass
class ChartConfig:
    """Resource ranking chart defaults."""
    sort_by: str = SortDimension.CPU.value
    top_n: int = 5
    ok_threshold: float = OK_THRESHOLD
    warn_threshold: float = WARN_THRESHOLD


@dataclass
class FilterConfig:
    """Search/filter configuration."""
    search_debounce_ms: int = 250


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file_path: Optional[str] = None  # None for default


@dataclass
class AppConfig:
    """Main application configuration."""
    cache: CacheConfig = field(default_factory=CacheConfig)
    chart: ChartConfig = field(default_factory=ChartConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    logging: LogConfig = field(default_factory=LogConfig)


def default_config_path() -> Path:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.home() / ".config" / "dockerlens" / "config.yaml"


class ConfigManager:
    """Configuration manager with YAML file support."""

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        self.config_file = Path(config_file) if config_file else default_config_path()
        self._config: AppConfig = AppConfig()

        # Load configuration
        self.load_config()

    def load_config(self) -> None:
        """Load configuration from YAML file."""
        if not self.config_file.exists():
            logger.debug(f"No config file at {self.config_file}, using defaults")
            self._config = AppConfig()
            return

        try:
            with open(self.config_file, 'r') as f:
                user_config = yaml.safe_load(f) or {}
            if not isinstance(user_config, dict):
                raise ValueError("top level must be a mapping")
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.error(f"Failed to load config: {e}, using defaults")
            self._config = AppConfig()
            return

        # Merge with defaults
        self._config = self._merge_configs(AppConfig(), user_config)
        self._validate(self._config)
        logger.debug(f"Loaded configuration from {self.config_file}")

    def get_config(self) -> AppConfig:
        """Get current configuration."""
        return self._config

    def _merge_configs(self, default: AppConfig, user: Dict[str, Any]) -> AppConfig:
        """Merge user config with defaults."""
        for section in ('cache', 'chart', 'filters', 'logging'):
            if isinstance(user.get(section), dict):
                self._merge_dataclass(getattr(default, section), user[section])
        return default

    def _merge_dataclass(self, obj: Any, updates: Dict[str, Any]) -> None:
        """Merge updates into dataclass object."""
        known = {f.name for f in fields(obj)}
        for key, value in updates.items():
            if key in known:
                setattr(obj, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: {key}")

    def _validate(self, config: AppConfig) -> None:
        defaults = AppConfig()

        try:
            ttl = float(config.cache.running_ttl_seconds)
        except (TypeError, ValueError):
            ttl = 0.0
        if ttl <= 0:
            logger.warning(f"Invalid cache.running_ttl_seconds {config.cache.running_ttl_seconds!r}, using default")
            ttl = defaults.cache.running_ttl_seconds
        config.cache.running_ttl_seconds = ttl

        if not is_valid_top_n(config.chart.top_n):
            logger.warning(f"Invalid chart.top_n {config.chart.top_n!r}, expected one of {TOP_N_OPTIONS}")
            config.chart.top_n = defaults.chart.top_n

        try:
            config.chart.sort_by = SortDimension(config.chart.sort_by).value
        except ValueError:
            logger.warning(f"Invalid chart.sort_by {config.chart.sort_by!r}, using default")
            config.chart.sort_by = defaults.chart.sort_by

        try:
            ok = float(config.chart.ok_threshold)
            warn = float(config.chart.warn_threshold)
        except (TypeError, ValueError):
            ok, warn = -1.0, -1.0
        if not 0 <= ok <= warn:
            logger.warning("Invalid chart thresholds, using defaults")
            ok, warn = defaults.chart.ok_threshold, defaults.chart.warn_threshold
        config.chart.ok_threshold, config.chart.warn_threshold = ok, warn

        debounce_ms = config.filters.search_debounce_ms
        if not isinstance(debounce_ms, int) or isinstance(debounce_ms, bool) or debounce_ms < 0:
            logger.warning(f"Invalid filters.search_debounce_ms {debounce_ms!r}, using default")
            config.filters.search_debounce_ms = defaults.filters.search_debounce_ms

    def get_log_level(self) -> str:
        """Get configured log level."""
        return str(self._config.logging.level).upper()

    def get_custom_log_path(self) -> Optional[str]:
        """Get custom log file path if configured."""
        return self._config.logging.file_path

    def get_running_ttl(self) -> float:
        return self._config.cache.running_ttl_seconds

    def get_search_debounce(self) -> float:
        """Get search debounce window in seconds."""
        return self._config.filters.search_debounce_ms / 1000.0


# Global config instance
config_manager = ConfigManager()
