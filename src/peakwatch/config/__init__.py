"""
Configuration management for the peakwatch package.

This module provides a clean interface for loading, validating, and accessing
configuration data from a TOML file with singleton pattern management.
"""

from .manager import (
    clear_config_cache,
    get_config,
    get_config_path,
    is_config_loaded,
    set_config_path,
)
from .loader import check_layout, load_main_config, read_config_file
from .validators import validate_watchdog_config

__all__ = [
    "get_config",
    "get_config_path",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "read_config_file",
    "check_layout",
    "load_main_config",
    "validate_watchdog_config",
]
