"""
Configuration validation utilities.

Turns the raw dictionary parsed from `config.toml` into a validated
WatchdogConfig, filling in defaults for anything left out.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from ..models.config import WatchdogConfig
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_positive_float,
    validate_sampling_interval,
)

logger = logging.getLogger(__name__)

METRIC_TYPES = ["rss_psutil", "rss_procfs"]
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _validate_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a boolean", field_name=field_name, value=value
        )
    return value


def validate_watchdog_config(config_data: Dict[str, Any]) -> WatchdogConfig:
    """
    Validate and create a WatchdogConfig from raw configuration data.

    Args:
        config_data: The whole parsed TOML document (``[watchdog.*]`` and
                     ``[logging]`` tables are read; others are ignored)

    Returns:
        Validated WatchdogConfig instance

    Raises:
        ValidationError: If validation fails
    """
    watchdog_data = config_data.get("watchdog", {})
    sampling = watchdog_data.get("sampling", {})
    handshake = watchdog_data.get("handshake", {})
    teardown = watchdog_data.get("teardown", {})
    workload = watchdog_data.get("workload", {})
    logging_settings = config_data.get("logging", {})

    defaults = WatchdogConfig()

    interval_seconds = validate_sampling_interval(
        sampling.get("interval_seconds", defaults.interval_seconds),
        field_name="watchdog.sampling.interval_seconds",
    )
    if interval_seconds < 0.0001 or interval_seconds > 60.0:
        raise ValidationError(
            f"watchdog.sampling.interval_seconds must be within [0.0001, 60], got {interval_seconds}",
            field_name="watchdog.sampling.interval_seconds",
            value=interval_seconds,
        )
    if interval_seconds < 0.001:
        logger.warning(
            f"Sampling interval {interval_seconds}s is below typical scheduler "
            "granularity; samples will be less regular than requested."
        )

    metric_type = validate_enum_choice(
        sampling.get("metric_type", defaults.metric_type),
        valid_choices=METRIC_TYPES,
        field_name="watchdog.sampling.metric_type",
    )

    handshake_timeout = validate_positive_float(
        handshake.get("timeout_seconds", defaults.handshake_timeout),
        min_value=0.01,
        max_value=300.0,
        field_name="watchdog.handshake.timeout_seconds",
    )
    handshake_poll_interval = validate_positive_float(
        handshake.get("poll_interval_seconds", defaults.handshake_poll_interval),
        min_value=0.001,
        max_value=1.0,
        field_name="watchdog.handshake.poll_interval_seconds",
    )

    artifact_dir_raw = handshake.get("artifact_dir", "")
    if not isinstance(artifact_dir_raw, str):
        raise ValidationError(
            "watchdog.handshake.artifact_dir must be a string",
            field_name="watchdog.handshake.artifact_dir",
            value=artifact_dir_raw,
        )
    artifact_dir = Path(artifact_dir_raw).expanduser() if artifact_dir_raw.strip() else None

    report_timeout = validate_positive_float(
        teardown.get("report_timeout_seconds", defaults.report_timeout),
        min_value=0.01,
        max_value=60.0,
        field_name="watchdog.teardown.report_timeout_seconds",
    )
    kill_timeout = validate_positive_float(
        teardown.get("kill_timeout_seconds", defaults.kill_timeout),
        min_value=0.01,
        max_value=60.0,
        field_name="watchdog.teardown.kill_timeout_seconds",
    )

    collect_garbage = _validate_bool(
        workload.get("collect_garbage", defaults.collect_garbage),
        "watchdog.workload.collect_garbage",
    )
    trace_allocations = _validate_bool(
        workload.get("trace_allocations", defaults.trace_allocations),
        "watchdog.workload.trace_allocations",
    )

    log_level = validate_enum_choice(
        logging_settings.get("level", defaults.log_level),
        valid_choices=LOG_LEVELS,
        field_name="logging.level",
        case_sensitive=False,
    )

    return WatchdogConfig(
        interval_seconds=interval_seconds,
        metric_type=metric_type,
        handshake_timeout=handshake_timeout,
        handshake_poll_interval=handshake_poll_interval,
        artifact_dir=artifact_dir,
        report_timeout=report_timeout,
        kill_timeout=kill_timeout,
        collect_garbage=collect_garbage,
        trace_allocations=trace_allocations,
        log_level=log_level,
    )
