"""
Analyzer Configuration

Loads configuration from a YAML file, then applies environment overrides.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Any

import yaml

from exoraven.errors import ConfigError

logger = logging.getLogger(__name__)


# Default configuration file locations (checked in order)
CONFIG_SEARCH_PATHS = [
    Path(".exoraven.yaml"),
    Path.home() / ".exoraven" / "config.yaml",
]


DEFAULT_CONFIG = {
    "max_problems": 100,        # Diagnostics kept per document
    "disabled_rules": [],       # Lint rule codes to skip
    "workers": 4,               # Threads for multi-file analysis
    "file_patterns": ["*.exo", "*.txt"],
    "log_level": "WARNING",
}


class AnalyzerConfig:
    """Configuration for document analysis."""

    def __init__(self, config_path: Optional[Path] = None, search: bool = True):
        self._config: Dict[str, Any] = {
            key: list(value) if isinstance(value, list) else value
            for key, value in DEFAULT_CONFIG.items()
        }
        self._config_path: Optional[Path] = None

        if config_path is not None or search:
            self._load_config(config_path)

        self._apply_env_overrides()
        self._validate()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "AnalyzerConfig":
        """Defaults overlaid with `values`; no file search, no environment."""
        config = cls.__new__(cls)
        config._config = {
            key: list(value) if isinstance(value, list) else value
            for key, value in DEFAULT_CONFIG.items()
        }
        config._config.update(values)
        config._config_path = None
        config._validate()
        return config

    def _load_config(self, explicit_path: Optional[Path] = None) -> None:
        """Load configuration from YAML file."""
        if explicit_path is not None:
            if not explicit_path.exists():
                raise ConfigError(f"Config file not found: {explicit_path}")
            self._read(explicit_path)
            return

        for config_path in CONFIG_SEARCH_PATHS:
            if config_path.exists():
                try:
                    self._read(config_path)
                    return
                except ConfigError as e:
                    logger.warning(f"Failed to load config from {config_path}: {e}")

    def _read(self, config_path: Path) -> None:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                user_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"{config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigError(f"{config_path}: top level must be a mapping")

        unknown = set(user_config) - set(DEFAULT_CONFIG)
        if unknown:
            logger.warning(f"Ignoring unknown config keys in {config_path}: {sorted(unknown)}")
            for key in unknown:
                del user_config[key]

        self._config.update(user_config)
        self._config_path = config_path
        logger.debug(f"Loaded config from {config_path}")

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        if "EXORAVEN_MAX_PROBLEMS" in os.environ:
            value = os.environ["EXORAVEN_MAX_PROBLEMS"]
            try:
                self._config["max_problems"] = int(value)
            except ValueError:
                raise ConfigError(f"EXORAVEN_MAX_PROBLEMS must be an integer, got {value!r}")

        if "EXORAVEN_DISABLED_RULES" in os.environ:
            codes = os.environ["EXORAVEN_DISABLED_RULES"].split(",")
            self._config["disabled_rules"] = [c.strip() for c in codes if c.strip()]

        if "EXORAVEN_LOG_LEVEL" in os.environ:
            self._config["log_level"] = os.environ["EXORAVEN_LOG_LEVEL"].upper()

    def _validate(self) -> None:
        max_problems = self._config["max_problems"]
        if not isinstance(max_problems, int) or isinstance(max_problems, bool) or max_problems < 0:
            raise ConfigError(f"max_problems must be a non-negative integer, got {max_problems!r}")

        workers = self._config["workers"]
        if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
            raise ConfigError(f"workers must be a positive integer, got {workers!r}")

        rules = self._config["disabled_rules"]
        if isinstance(rules, str):
            rules = [rules]
        if not isinstance(rules, list):
            raise ConfigError(f"disabled_rules must be a list, got {rules!r}")
        self._config["disabled_rules"] = [str(r) for r in rules]

        patterns = self._config["file_patterns"]
        if isinstance(patterns, str):
            self._config["file_patterns"] = [patterns]

    @property
    def config_path(self) -> Optional[Path]:
        """Path to loaded config file, or None if using defaults."""
        return self._config_path

    @property
    def max_problems(self) -> int:
        """Maximum diagnostics reported per document."""
        return self._config["max_problems"]

    @property
    def disabled_rules(self) -> List[str]:
        """Lint rule codes that are not run."""
        return self._config["disabled_rules"]

    @property
    def workers(self) -> int:
        return self._config["workers"]

    @property
    def file_patterns(self) -> List[str]:
        """Glob patterns used when a directory is analyzed."""
        return self._config["file_patterns"]

    @property
    def log_level(self) -> str:
        return str(self._config["log_level"]).upper()

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as dict."""
        return {
            "max_problems": self.max_problems,
            "disabled_rules": list(self.disabled_rules),
            "workers": self.workers,
            "file_patterns": list(self.file_patterns),
            "log_level": self.log_level,
            "config_file": str(self._config_path) if self._config_path else None,
        }


# Global config instance (lazy-loaded)
_config: Optional[AnalyzerConfig] = None


def get_config(config_path: Optional[Path] = None) -> AnalyzerConfig:
    """Get the global config instance, loading if needed."""
    global _config
    if _config is None or config_path is not None:
        _config = AnalyzerConfig(config_path)
    return _config


def reset_config() -> None:
    """Forget the global config so the next get_config() reloads it."""
    global _config
    _config = None


def write_default_config(path: Optional[Path] = None) -> Path:
    """
    Write a default configuration file.

    Returns the path where config was written.
    """
    if path is None:
        path = Path.home() / ".exoraven" / "config.yaml"

    path.parent.mkdir(parents=True, exist_ok=True)

    config_content = """# exoraven configuration
#
# Any setting here can also be overridden via environment variables:
#   EXORAVEN_MAX_PROBLEMS, EXORAVEN_DISABLED_RULES, EXORAVEN_LOG_LEVEL

# Diagnostics kept per document
max_problems: 100

# Lint rule codes to skip, e.g. [unmatched-quote, unknown-prefix]
disabled_rules: []

# Threads used when checking many files
workers: 4

# Files picked up when a directory is checked
file_patterns:
  - "*.exo"
  - "*.txt"

log_level: WARNING
"""

    with open(path, 'w', encoding='utf-8') as f:
        f.write(config_content)

    return path
