"""
Measurement result model.

A MeasurementResult merges what the workload produced (its return value,
wall-clock time and optional allocation statistics) with the sampler's report.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .session import Report


@dataclass
class MeasurementResult:
    """
    Outcome of one "measure workload under watchdog" call.

    ``report`` is None only when the sampler could not deliver one, e.g. it
    had to be force-killed during teardown.
    """

    # Whatever the workload returned (None if it raised).
    value: Any
    # Wall-clock time spent inside the workload, in seconds.
    elapsed_seconds: float
    # The sampler's terminal report.
    report: Optional[Report]
    # Peak traced Python allocations during the workload, when tracing is enabled.
    traced_peak_kb: Optional[int] = None
    # Pid of the sampler that produced the report.
    sampler_pid: Optional[int] = None
    # Pid of the process that was watched.
    target_pid: Optional[int] = None

    @property
    def peak_delta_kb(self) -> Optional[int]:
        return self.report.peak_delta_kb if self.report else None

    @property
    def baseline_kb(self) -> Optional[int]:
        return self.report.baseline_kb if self.report else None
