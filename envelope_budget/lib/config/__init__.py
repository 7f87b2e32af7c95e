"""Engine configuration files and loaders.

Tolerances, thresholds and display labels are stored in JSON files so they
can be tuned without code changes.
"""

from .defaults import clear_config_cache, get_config_value, get_engine_config, load_config

__all__ = ['clear_config_cache', 'get_config_value', 'get_engine_config', 'load_config']
