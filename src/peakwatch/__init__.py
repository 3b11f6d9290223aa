"""
peakwatch: peak resident-memory watchdog.

A companion process attaches to a running target, samples its resident
memory at a chosen interval and reports the largest growth observed above
the size it had at attach time.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Input validation, exceptions and error handling
- collectors: Resident-memory probes
- sampler: The sampler process (loop, handshake artifact, signals)
- orchestration: Spawning, handshake and guaranteed teardown of the sampler
- cli: Command-line interface

Usage:
    From command line:
        peakwatch -- python3 script.py

    Programmatically:
        from peakwatch import measure_workload
        result = measure_workload(lambda: build_big_thing(), interval=0.01)
        print(result.report.peak_delta_kb)
"""

from .config import get_config, clear_config_cache, set_config_path
from .orchestration import PeakWatchdog, measure_workload

from .models import (
    MeasurementResult,
    Report,
    SamplerPhase,
    SamplingSession,
    WatchdogConfig,
    WatchdogPhase,
)

from .validation import (
    HandshakeTimeoutError,
    SamplerExitedError,
    StartupError,
    TargetNotFoundError,
    ValidationError,
    WatchdogError,
    WorkloadError,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "measure_workload",
    "PeakWatchdog",
    "get_config",
    "clear_config_cache",
    "set_config_path",
    # Models
    "MeasurementResult",
    "Report",
    "SamplerPhase",
    "SamplingSession",
    "WatchdogConfig",
    "WatchdogPhase",
    # Errors
    "HandshakeTimeoutError",
    "SamplerExitedError",
    "StartupError",
    "TargetNotFoundError",
    "ValidationError",
    "WatchdogError",
    "WorkloadError",
]
