"""
Parser Configuration

Loads parser settings from a YAML file, falling back to built-in defaults.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


# Default configuration file locations (checked in order)
CONFIG_SEARCH_PATHS = [
    Path.home() / ".pdxtree" / "config.yaml",
]


DEFAULT_CONFIG = {
    # Include preprocessing
    "max_include_depth": 10,

    # Code page used when a file is neither BOM-marked nor valid UTF-8
    "legacy_encoding": "cp1252",

    # Stop recording diagnostics (and parsing) after this many errors
    "max_errors": 100,

    # Blocks nested deeper than this are reported and skipped
    "max_nesting_depth": 100,

    # Turn repeated keys into lists instead of keeping the last one
    "accumulate_repeated_keys": False,

    # Threads used by batch parsing
    "batch_workers": min(os.cpu_count() or 2, 4),
}


class ConfigError(Exception):
    """Raised when a configuration file cannot be loaded or holds invalid values."""


class ParserConfig:
    """Configuration for the script parsers."""

    def __init__(self, config_path: Optional[Path] = None, search: bool = True,
                 overrides: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config_path: Optional[Path] = None

        if config_path is not None:
            self._load_explicit(Path(config_path))
        elif search:
            self._load_from_search_paths()

        if overrides:
            self._apply(overrides, source="overrides")

        self._validate()

    @classmethod
    def defaults(cls) -> "ParserConfig":
        """Built-in defaults only, without looking at any file."""
        return cls(search=False)

    def _load_explicit(self, config_path: Path) -> None:
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        self._apply(self._read_yaml(config_path), source=str(config_path))
        self._config_path = config_path

    def _load_from_search_paths(self) -> None:
        for config_path in CONFIG_SEARCH_PATHS:
            if not config_path.exists():
                continue
            try:
                user_config = self._read_yaml(config_path)
            except ConfigError as e:
                logger.warning(f"Failed to load config from {config_path}: {e}")
                continue
            self._apply(user_config, source=str(config_path))
            self._config_path = config_path
            return

    @staticmethod
    def _read_yaml(config_path: Path) -> Dict[str, Any]:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a mapping, got {type(data).__name__}")
        return data

    def _apply(self, values: Dict[str, Any], source: str) -> None:
        for key, value in values.items():
            if key not in DEFAULT_CONFIG:
                logger.warning(f"Ignoring unknown config key '{key}' from {source}")
                continue
            self._config[key] = value

    def _validate(self) -> None:
        for key in ("max_include_depth", "max_errors", "max_nesting_depth", "batch_workers"):
            value = self._config[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"'{key}' must be a positive integer, got {value!r}")
        if not isinstance(self._config["legacy_encoding"], str):
            raise ConfigError("'legacy_encoding' must be a codec name")
        if not isinstance(self._config["accumulate_repeated_keys"], bool):
            raise ConfigError("'accumulate_repeated_keys' must be true or false")

    @property
    def config_path(self) -> Optional[Path]:
        """Path to loaded config file, or None if using defaults."""
        return self._config_path

    @property
    def max_include_depth(self) -> int:
        return self._config["max_include_depth"]

    @property
    def legacy_encoding(self) -> str:
        return self._config["legacy_encoding"]

    @property
    def max_errors(self) -> int:
        return self._config["max_errors"]

    @property
    def max_nesting_depth(self) -> int:
        return self._config["max_nesting_depth"]

    @property
    def accumulate_repeated_keys(self) -> bool:
        return self._config["accumulate_repeated_keys"]

    @property
    def batch_workers(self) -> int:
        return self._config["batch_workers"]

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as dict."""
        return {
            **self._config,
            "config_file": str(self._config_path) if self._config_path else None,
        }


# Global config instance (lazy-loaded)
_config: Optional[ParserConfig] = None


def get_config(config_path: Optional[Path] = None) -> ParserConfig:
    """Get the shared config instance, loading if needed."""
    global _config
    if _config is None or config_path is not None:
        _config = ParserConfig(config_path)
    return _config


def write_default_config(path: Optional[Path] = None) -> Path:
    """
    Write a default configuration file.

    Returns the path where config was written.
    """
    if path is None:
        path = CONFIG_SEARCH_PATHS[0]

    path.parent.mkdir(parents=True, exist_ok=True)

    config_content = """# pdxtree parser configuration

# Maximum nesting of @include directives
max_include_depth: 10

# Code page for files that are neither BOM-marked nor valid UTF-8
legacy_encoding: cp1252

# Give up after this many parse errors in one document
max_errors: 100

# Blocks nested deeper than this are reported and skipped
max_nesting_depth: 100

# Collect repeated keys (add_core = FRA / add_core = ENG) into lists
accumulate_repeated_keys: false

# Threads used when parsing many files at once
batch_workers: 4
"""

    with open(path, 'w', encoding='utf-8') as f:
        f.write(config_content)

    return path
