"""
Orchestration of a measurement.

Components:
- PeakWatchdog: the sampler as a scoped resource (spawn, handshake, teardown)
- measure_workload: run a callable under a PeakWatchdog
- SamplerProcessManager: sampler process lifecycle and termination
"""

from .process_manager import SamplerProcessManager
from .watchdog import PeakWatchdog, measure_workload

__all__ = [
    "PeakWatchdog",
    "SamplerProcessManager",
    "measure_workload",
]
