"""
Configuration Management for fpstrack

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables
- Command line arguments

Configuration precedence (highest to lowest):
1. Command line arguments
2. Environment variables (FPSTRACK_*)
3. Configuration file
4. Default values
"""

import json
import logging
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from fpstrack.core.constants import (
    DEFAULT_BASE_PREFIX,
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_SMOOTHING_RADIUS,
    DEFAULT_WINDOW_MS,
    MAX_AGGREGATE_SAMPLES,
    MAX_SAMPLE_STEP_MS,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class ParserConfig:
    """Configuration for log parsing."""

    # Combined with "FPS" / "PlayerCount" to form the bracketed tags
    base_prefix: str = DEFAULT_BASE_PREFIX
    encoding: str = "utf-8"


@dataclass
class AggregationConfig:
    """Configuration for the cross-player running average."""

    window_ms: float = float(DEFAULT_WINDOW_MS)
    smoothing_radius: int = DEFAULT_SMOOTHING_RADIUS

    # Bounds the number of sample centers on long logs
    max_samples: int = MAX_AGGREGATE_SAMPLES
    max_step_ms: float = MAX_SAMPLE_STEP_MS


@dataclass
class SessionConfig:
    """Configuration for interactive sessions."""

    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    auto_select_first_player: bool = True


@dataclass
class ExportConfig:
    """Configuration for data export."""

    default_format: str = "json"
    json_indent: int = 2
    csv_delimiter: str = ","
    include_raw_values: bool = True


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None


@dataclass
class FpstrackConfig:
    """Main configuration container."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Version of the config format
    config_version: str = "1.0"


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    paths = []

    # Current directory
    paths.append(Path.cwd() / "fpstrack.yaml")
    paths.append(Path.cwd() / "fpstrack.toml")
    paths.append(Path.cwd() / "fpstrack.json")
    paths.append(Path.cwd() / ".fpstrack.yaml")

    # User home directory
    home = Path.home()
    paths.append(home / ".config" / "fpstrack" / "config.yaml")
    paths.append(home / ".config" / "fpstrack" / "config.toml")
    paths.append(home / ".fpstrack.yaml")

    # XDG config directory
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(home / ".config"))
    paths.append(Path(xdg_config) / "fpstrack" / "config.yaml")

    return paths


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


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    env_mappings = {
        "FPSTRACK_PREFIX": ("parser", "base_prefix"),
        "FPSTRACK_ENCODING": ("parser", "encoding"),
        "FPSTRACK_WINDOW_MS": ("aggregation", "window_ms"),
        "FPSTRACK_SMOOTHING": ("aggregation", "smoothing_radius"),
        "FPSTRACK_MAX_SAMPLES": ("aggregation", "max_samples"),
        "FPSTRACK_DEBOUNCE_SECONDS": ("session", "debounce_seconds"),
        "FPSTRACK_EXPORT_FORMAT": ("export", "default_format"),
        "FPSTRACK_LOG_LEVEL": ("logging", "level"),
        "FPSTRACK_LOG_FILE": ("logging", "file"),
    }

    # Values that must stay strings even when they look numeric
    string_keys = {("parser", "base_prefix"), ("parser", "encoding"), ("logging", "file")}

    for env_var, (section, key) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            if section not in config:
                config[section] = {}

            if (section, key) not in string_keys:
                # Type conversion
                if value.lower() in ("true", "false"):
                    value = value.lower() == "true"
                elif value.isdigit():
                    value = int(value)
                else:
                    try:
                        value = float(value)
                    except ValueError:
                        pass

            config[section][key] = value

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


def dict_to_config(data: dict[str, Any]) -> FpstrackConfig:
    """Convert a dictionary to FpstrackConfig. Unknown keys are ignored."""
    config = FpstrackConfig()

    for section_name in ("parser", "aggregation", "session", "export", "logging"):
        section_data = data.get(section_name)
        if not isinstance(section_data, dict):
            continue
        section = getattr(config, section_name)
        for key, value in section_data.items():
            if hasattr(section, key):
                setattr(section, key, value)
            else:
                logger.debug(f"Ignoring unknown config key: {section_name}.{key}")

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> FpstrackConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged FpstrackConfig
    """
    config_data: dict[str, Any] = {}

    # Try to find and load a config file
    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    # Merge environment variables
    if include_env:
        env_config = load_env_config()
        config_data = merge_configs(config_data, env_config)

    return dict_to_config(config_data)


# ============================================================================
# Configuration Saving
# ============================================================================


def config_to_dict(config: FpstrackConfig) -> dict[str, Any]:
    """Convert FpstrackConfig to a dictionary."""
    return asdict(config)


def save_config(config: FpstrackConfig, path: Path) -> None:
    """
    Save configuration to a file.

    Args:
        config: Configuration to save
        path: Path to save to (format detected from extension)

    Raises:
        ValueError: If the extension is not .yaml, .yml or .json
    """
    data = config_to_dict(config)
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    elif suffix == ".json":
        with open(path, "w") as f:
            json.dump(data, f, indent=2)

    else:
        # tomllib is read-only
        raise ValueError(f"Unknown config format: {suffix}")

    logger.info(f"Saved config to: {path}")


# ============================================================================
# Global Configuration
# ============================================================================

_global_config: FpstrackConfig | None = None


def get_config() -> FpstrackConfig:
    """Get the global configuration, loading it if necessary."""
    global _global_config

    if _global_config is None:
        _global_config = load_config()

    return _global_config


def set_config(config: FpstrackConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _global_config
    _global_config = None


# ============================================================================
# Configuration Templates
# ============================================================================

DEFAULT_CONFIG_YAML = """# fpstrack Configuration

# Parser settings
parser:
  # Tags are <base_prefix>FPS and <base_prefix>PlayerCount
  base_prefix: MWG_
  encoding: utf-8

# Running average settings
aggregation:
  window_ms: 30000.0
  smoothing_radius: 0
  max_samples: 200
  max_step_ms: 2000.0

# Interactive session settings
session:
  debounce_seconds: 0.2
  auto_select_first_player: true

# Export settings
export:
  default_format: json
  json_indent: 2
  csv_delimiter: ","
  include_raw_values: true

# Logging settings
logging:
  level: INFO
  # file: /path/to/fpstrack.log
"""


def generate_default_config(path: Path) -> None:
    """Generate a default configuration file."""
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        path.write_text(DEFAULT_CONFIG_YAML)
    else:
        config = FpstrackConfig()
        save_config(config, path)

    logger.info(f"Generated default config at: {path}")
