"""
Configuration Management for demosnap

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables

Configuration precedence (highest to lowest):
1. Command line arguments (applied by the CLI on top of the loaded config)
2. Environment variables (DEMOSNAP_*)
3. Configuration file
4. Default values
"""

import json
import logging
import logging.handlers
import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from demosnap.core.constants import DEFAULT_ROUND_DURATION

logger = logging.getLogger(__name__)

# Default to CPU count - 1, minimum 1
DEFAULT_WORKERS = max(1, (os.cpu_count() or 4) - 1)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class AggregationConfig:
    """Configuration for the per-second aggregation engine."""

    # Length of the round timer used for the ClockTime countdown
    round_duration: float = DEFAULT_ROUND_DURATION

    # Force a tick rate instead of the one reported by the decoder
    tick_rate: float | None = None


@dataclass
class ExportConfig:
    """Configuration for the CSV output sink."""

    csv_delimiter: str = ","
    output_suffix: str = ".csv"
    include_header: bool = True


@dataclass
class BatchConfig:
    """Configuration for batch (directory) processing."""

    workers: int = DEFAULT_WORKERS
    recursive: bool = False
    demo_glob: str = "*.dem"


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None
    file_max_bytes: int = 10 * 1024 * 1024  # 10MB
    file_backup_count: int = 5


@dataclass
class DemosnapConfig:
    """Main configuration container."""

    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Version of the config format
    config_version: str = "1.0"


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    home = Path.home()
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(home / ".config"))

    return [
        Path.cwd() / "demosnap.yaml",
        Path.cwd() / "demosnap.toml",
        Path.cwd() / "demosnap.json",
        Path(xdg_config) / "demosnap" / "config.yaml",
        Path(xdg_config) / "demosnap" / "config.toml",
        home / ".demosnap.yaml",
    ]


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a YAML file."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    with open(path) as f:
        return json.load(f)


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file, detecting format from extension."""
    if not path.exists():
        return {}

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return load_yaml_config(path)
    elif suffix == ".toml":
        return load_toml_config(path)
    elif suffix == ".json":
        return load_json_config(path)
    else:
        logger.warning(f"Unknown config file format: {suffix}")
        return {}


ENV_MAPPINGS = {
    "DEMOSNAP_ROUND_DURATION": ("aggregation", "round_duration"),
    "DEMOSNAP_TICK_RATE": ("aggregation", "tick_rate"),
    "DEMOSNAP_CSV_DELIMITER": ("export", "csv_delimiter"),
    "DEMOSNAP_WORKERS": ("batch", "workers"),
    "DEMOSNAP_RECURSIVE": ("batch", "recursive"),
    "DEMOSNAP_LOG_LEVEL": ("logging", "level"),
    "DEMOSNAP_LOG_FILE": ("logging", "file"),
}

# Passed through as text, never coerced to numbers or booleans
STRING_ENV_VARS = {"DEMOSNAP_CSV_DELIMITER", "DEMOSNAP_LOG_LEVEL", "DEMOSNAP_LOG_FILE"}


def _convert_env_value(value: str) -> Any:
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    for env_var, (section, key) in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is not None:
            if env_var not in STRING_ENV_VARS:
                value = _convert_env_value(value)
            config.setdefault(section, {})[key] = value

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> DemosnapConfig:
    """Convert a dictionary to DemosnapConfig, ignoring unknown keys."""
    config = DemosnapConfig()
    sections = {f.name for f in fields(config) if f.name != "config_version"}

    for section, values in data.items():
        if section not in sections or not isinstance(values, dict):
            if section != "config_version":
                logger.warning(f"Ignoring unknown config section: {section}")
            continue
        target = getattr(config, section)
        for key, value in values.items():
            if hasattr(target, key):
                setattr(target, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: {section}.{key}")

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> DemosnapConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged DemosnapConfig
    """
    config_data: dict[str, Any] = {}

    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    if include_env:
        config_data = merge_configs(config_data, load_env_config())

    return dict_to_config(config_data)


# ============================================================================
# Logging Setup
# ============================================================================


def setup_logging(config: LoggingConfig) -> None:
    """Configure the root logger from a LoggingConfig."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                config.file,
                maxBytes=config.file_max_bytes,
                backupCount=config.file_backup_count,
            )
        )

    # Accepts a level name or a numeric level ("DEBUG", "10" or 10)
    level: int | str = config.level
    if isinstance(level, str):
        level = int(level) if level.isdigit() else level.upper()

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
        force=True,
    )
