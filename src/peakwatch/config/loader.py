"""
Reading config.toml from disk.

Parses the file and checks its table layout: ``[watchdog.sampling]``,
``[watchdog.handshake]``, ``[watchdog.teardown]``, ``[watchdog.workload]``
and ``[logging]``. Values are checked later by `validators`.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import ErrorSeverity, ValidationError, handle_config_error

logger = logging.getLogger(__name__)

TOP_LEVEL_SECTIONS = ("watchdog", "logging")
WATCHDOG_SECTIONS = ("sampling", "handshake", "teardown", "workload")


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Parse a configuration file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is not valid TOML
    """
    logger.info(f"Loading configuration from: {config_path}")

    if not config_path.is_file():
        logger.error(f"Configuration file not found: {config_path}")
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {config_path}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def _require_table(data: Dict[str, Any], key: str, name: str) -> None:
    if key in data and not isinstance(data[key], dict):
        raise ValidationError(
            f"[{name}] must be a table, got {type(data[key]).__name__}",
            field_name=name,
            value=data[key],
        )


def check_layout(config_data: Dict[str, Any], source: str = "configuration") -> Dict[str, Any]:
    """
    Check that the known sections are tables and warn about unknown ones.

    Unknown sections are left in place and ignored by the validators;
    a misspelled table name would otherwise silently fall back to defaults.

    Returns:
        ``config_data`` unchanged

    Raises:
        ValidationError: If a known section is not a table
    """
    for key in config_data:
        if key not in TOP_LEVEL_SECTIONS:
            logger.warning(f"Ignoring unknown section [{key}] in {source}")
    for key in TOP_LEVEL_SECTIONS:
        _require_table(config_data, key, key)

    watchdog_data = config_data.get("watchdog", {})
    for key in watchdog_data:
        if key not in WATCHDOG_SECTIONS:
            logger.warning(f"Ignoring unknown section [watchdog.{key}] in {source}")
    for key in WATCHDOG_SECTIONS:
        _require_table(watchdog_data, key, f"watchdog.{key}")
    return config_data


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """Read config.toml and check its layout."""
    return check_layout(read_config_file(config_path), source=str(config_path))
