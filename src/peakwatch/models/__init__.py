"""
Data models for the watchdog.

Configuration Models:
- WatchdogConfig: sampling, handshake, teardown and workload settings

Sampler Models:
- SamplingSession: baseline and running maximum of one sampler run
- Report: the sampler's terminal (peak delta, baseline) pair
- SamplerPhase: Sampling -> Reporting -> Exited

Orchestrator Models:
- WatchdogPhase: per-invocation lifecycle of a watchdog
- MeasurementResult: workload outcome merged with the sampler report
"""

from .config import WatchdogConfig
from .results import MeasurementResult
from .runtime import ALLOWED_TRANSITIONS, SamplerExitCode, TimeoutConstants, WatchdogPhase
from .session import Report, SamplerPhase, SamplingSession

__all__ = [
    "WatchdogConfig",
    "MeasurementResult",
    "ALLOWED_TRANSITIONS",
    "SamplerExitCode",
    "TimeoutConstants",
    "WatchdogPhase",
    "Report",
    "SamplerPhase",
    "SamplingSession",
]
