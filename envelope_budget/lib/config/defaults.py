"""Configuration loader for engine settings."""

from __future__ import annotations

import copy
import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

# Configuration directory
CONFIG_DIR = Path(__file__).parent


def _config_dir() -> Path:
    override = os.getenv('ENVBUDGET_CONFIG_DIR')
    return Path(override) if override else CONFIG_DIR


def load_config(config_name: str) -> Dict[str, Any]:
    """Load a configuration file by name.

    ``ENVBUDGET_CONFIG_DIR`` points the loader at an alternate directory;
    otherwise the JSON files shipped next to this module are used.

    Args:
        config_name: Name of the config file (without .json extension)

    Returns:
        Dictionary containing the configuration (a fresh copy on every call,
        so callers may modify it freely)

    Raises:
        FileNotFoundError: If the configuration file doesn't exist
        json.JSONDecodeError: If the configuration file is invalid JSON

    Example:
        >>> config = load_config('engine')
        >>> config['tolerances']['epsilon']
        '0.01'
    """
    return copy.deepcopy(_load_config_cached(str(_config_dir()), config_name))


@lru_cache(maxsize=None)
def _load_config_cached(directory: str, config_name: str) -> Dict[str, Any]:
    config_path = Path(directory) / f"{config_name}.json"

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def clear_config_cache() -> None:
    """Forget previously loaded files (used after changing ``ENVBUDGET_CONFIG_DIR``)."""
    _load_config_cached.cache_clear()


def get_engine_config() -> Dict[str, Any]:
    """Get the engine configuration.

    Returns:
        Engine configuration dictionary with tolerances, thresholds and labels
    """
    return load_config('engine')


def get_config_value(config_name: str, *keys: str, default: Any = None) -> Any:
    """Get a nested configuration value by key path.

    Args:
        config_name: Name of the config file
        *keys: Path to the nested value (e.g., 'tolerances', 'epsilon')
        default: Default value if key path doesn't exist

    Returns:
        The configuration value at the specified path, or default if not found

    Example:
        >>> get_config_value('engine', 'gap_analysis', 'on_track_ratio')
        '0.05'
    """
    try:
        value = load_config(config_name)
        for key in keys:
            value = value[key]
        return value
    except (KeyError, FileNotFoundError):
        return default
