"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..models.config import WatchdogConfig
from ..validation import handle_config_error, ErrorSeverity
from .loader import load_main_config
from .validators import validate_watchdog_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[WatchdogConfig] = None

# Default location of the configuration file, relative to the source tree.
# Overridden by set_config_path() or the PEAKWATCH_CONFIG environment variable.
_DEFAULT_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"
_CONFIG_FILE_PATH: Optional[Path] = None

CONFIG_ENV_VAR = "PEAKWATCH_CONFIG"


def set_config_path(config_path: Optional[Path]) -> None:
    """
    Set a custom configuration file path and drop any cached configuration.

    Passing None restores the default lookup.
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path) if config_path is not None else None
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def get_config_path() -> Path:
    """
    Resolve which configuration file is in effect.

    Precedence: set_config_path() > $PEAKWATCH_CONFIG > conf/config.toml.
    """
    if _CONFIG_FILE_PATH is not None:
        return _CONFIG_FILE_PATH
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return _DEFAULT_CONFIG_FILE_PATH


def _load_config(config_path: Path, explicit: bool) -> WatchdogConfig:
    """
    Load and validate the configuration.

    A missing file is only an error when the path was chosen explicitly;
    otherwise the built-in defaults are used.
    """
    if not config_path.exists() and not explicit:
        logger.debug(f"No configuration file at {config_path}; using defaults")
        return validate_watchdog_config({})

    try:
        config_data = load_main_config(config_path)
        config = validate_watchdog_config(config_data)
        logger.info(f"Successfully loaded configuration from {config_path}")
        return config
    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> WatchdogConfig:
    """
    Get the global watchdog configuration, loading it if necessary.

    Returns:
        The singleton WatchdogConfig instance

    Raises:
        FileNotFoundError: If an explicitly chosen configuration file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the TOML file is malformed
    """
    global _CONFIG
    if _CONFIG is None:
        explicit = _CONFIG_FILE_PATH is not None or bool(os.environ.get(CONFIG_ENV_VAR))
        _CONFIG = _load_config(get_config_path(), explicit)
    return _CONFIG


def is_config_loaded() -> bool:
    """Check if configuration has been loaded and cached."""
    return _CONFIG is not None
