"""
Configuration data models.

This module contains the configuration structure loaded from `config.toml`.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .runtime import TimeoutConstants


@dataclass
class WatchdogConfig:
    """
    Configuration for the watchdog's behavior, loaded from `config.toml`.
    """

    # [watchdog.sampling]
    interval_seconds: float = 0.01
    metric_type: str = "rss_psutil"  # "rss_psutil" or "rss_procfs"

    # [watchdog.handshake]
    handshake_timeout: float = TimeoutConstants.HANDSHAKE_TIMEOUT
    handshake_poll_interval: float = TimeoutConstants.HANDSHAKE_POLL_INTERVAL
    # Directory for handshake/report artifacts; None means the system temp dir.
    artifact_dir: Optional[Path] = None

    # [watchdog.teardown]
    report_timeout: float = TimeoutConstants.REPORT_TIMEOUT
    kill_timeout: float = TimeoutConstants.KILL_TIMEOUT

    # [watchdog.workload]
    collect_garbage: bool = True
    trace_allocations: bool = False

    # [logging]
    log_level: str = "INFO"
