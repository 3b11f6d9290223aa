"""
The orchestrator: runs a workload under a peak-memory watchdog.

`PeakWatchdog` is the sampler treated as a scoped resource. Entering it
spawns the sampler and completes the handshake; leaving it, on every exit
path, signals the sampler, collects its report and deletes the artifact.
`measure_workload` wraps a callable in one such scope and merges the
workload's own statistics with the sampler's report.
"""

import gc
import logging
import os
import time
import tracemalloc
from pathlib import Path
from typing import Any, Callable, Optional

from ..collectors import PROBE_TYPES, create_probe
from ..config import get_config
from ..models.config import WatchdogConfig
from ..models.results import MeasurementResult
from ..models.runtime import ALLOWED_TRANSITIONS, SamplerExitCode, WatchdogPhase
from ..models.session import Report
from ..sampler.handshake import HandshakeArtifact
from ..validation import (
    StartupError,
    WorkloadError,
    validate_enum_choice,
    validate_pid,
    validate_positive_float,
    validate_sampling_interval,
)
from .process_manager import SamplerProcessManager

logger = logging.getLogger(__name__)

# Smallest wait accepted for a handshake or teardown step, in seconds.
MIN_TIMEOUT = 0.001


def _timeout(override: Optional[float], configured: float, field_name: str) -> float:
    if override is None:
        return configured
    return validate_positive_float(override, min_value=MIN_TIMEOUT, field_name=field_name)


class PeakWatchdog:
    """
    Watches the resident memory of ``target_pid`` (default: this process)
    through a separate sampler process.

    Usage:
        with PeakWatchdog(interval=0.01) as watchdog:
            run_something()
        print(watchdog.report)

    Explicit arguments override the loaded configuration.
    """

    def __init__(
        self,
        interval: Optional[float] = None,
        target_pid: Optional[int] = None,
        config: Optional[WatchdogConfig] = None,
        metric_type: Optional[str] = None,
        handshake_timeout: Optional[float] = None,
        report_timeout: Optional[float] = None,
        kill_timeout: Optional[float] = None,
        artifact_dir: Optional[Path] = None,
    ):
        self.config = config or get_config()
        self.interval = validate_sampling_interval(
            interval if interval is not None else self.config.interval_seconds,
            field_name="interval",
        )
        self.target_pid = validate_pid(
            target_pid if target_pid is not None else os.getpid(), field_name="target_pid"
        )
        self.metric_type = validate_enum_choice(
            metric_type or self.config.metric_type,
            valid_choices=sorted(PROBE_TYPES),
            field_name="metric_type",
        )
        self.handshake_timeout = _timeout(
            handshake_timeout, self.config.handshake_timeout, "handshake_timeout"
        )
        self.report_timeout = _timeout(report_timeout, self.config.report_timeout, "report_timeout")
        self.kill_timeout = _timeout(kill_timeout, self.config.kill_timeout, "kill_timeout")
        self.artifact_dir = artifact_dir if artifact_dir is not None else self.config.artifact_dir

        self._phase = WatchdogPhase.IDLE
        self.artifact: Optional[HandshakeArtifact] = None
        self.process_manager: Optional[SamplerProcessManager] = None
        self.sampler_pid: Optional[int] = None
        self.report: Optional[Report] = None

    @property
    def phase(self) -> WatchdogPhase:
        return self._phase

    def _transition(self, new_phase: WatchdogPhase) -> None:
        if new_phase not in ALLOWED_TRANSITIONS[self._phase]:
            raise RuntimeError(
                f"Illegal watchdog transition {self._phase.value} -> {new_phase.value}"
            )
        logger.debug(f"Watchdog phase {self._phase.value} -> {new_phase.value}")
        self._phase = new_phase

    def start(self) -> int:
        """
        Spawn the sampler and wait for its handshake.

        Returns:
            The sampler's pid

        Raises:
            StartupError: The target could not be resolved, or the sampler
                          did not complete the handshake. No sampler is left
                          running in that case.
        """
        self._transition(WatchdogPhase.SPAWNING)

        try:
            create_probe(self.metric_type, self.target_pid).resolve()
        except BaseException:
            self._transition(WatchdogPhase.FAILED)
            raise

        self.artifact = HandshakeArtifact.allocate(self.artifact_dir)
        self.process_manager = SamplerProcessManager(self.artifact)
        command = self.process_manager.build_sampler_command(
            target_pid=self.target_pid,
            interval=self.interval,
            metric_type=self.metric_type,
            log_level=logging.getLevelName(logging.getLogger("peakwatch").getEffectiveLevel()),
        )
        try:
            self.process_manager.spawn(command)
        except OSError as e:
            self._transition(WatchdogPhase.FAILED)
            raise StartupError(f"Could not start sampler: {e}") from e
        except BaseException:
            self._abort_startup()
            raise
        self._transition(WatchdogPhase.AWAITING_HANDSHAKE)

        try:
            self.sampler_pid = self.process_manager.wait_for_handshake(
                timeout=self.handshake_timeout,
                poll_interval=self.config.handshake_poll_interval,
            )
        except BaseException as e:
            # Whatever interrupted the handshake, the sampler must not outlive it.
            logger.error(f"Sampler startup failed: {type(e).__name__}: {e}")
            self._abort_startup()
            raise

        self._transition(WatchdogPhase.RUNNING)
        logger.info(
            f"Watchdog running: sampler PID {self.sampler_pid} watching PID {self.target_pid}"
        )
        return self.sampler_pid

    def _abort_startup(self) -> None:
        """Kill whatever was spawned, delete the artifact and mark the watchdog FAILED."""
        self.process_manager.force_kill()
        self.artifact.remove()
        self._transition(WatchdogPhase.FAILED)

    def stop(self) -> Optional[Report]:
        """
        Signal the sampler, collect its report and delete the artifact.

        Safe to call more than once; later calls return the report collected
        by the first one.

        Returns:
            The sampler's Report, or None if it could not produce one
        """
        if self._phase in (WatchdogPhase.DONE, WatchdogPhase.FAILED, WatchdogPhase.IDLE):
            return self.report

        self._transition(WatchdogPhase.TERMINATING)
        try:
            graceful = self.process_manager.terminate(self.report_timeout, self.kill_timeout)
            self.report = self.artifact.read_report()
            if self.report is None and (
                self.process_manager.returncode == SamplerExitCode.TARGET_NOT_FOUND
            ):
                logger.error(
                    f"Sampler exited without a report: target PID {self.target_pid} "
                    "could not be read (target not found)"
                )
            elif self.report is None:
                logger.warning(
                    "Sampler exited without a report"
                    + ("" if graceful else " (it had to be killed)")
                )
            else:
                logger.info(
                    f"Peak delta {self.report.peak_delta_kb} KB over baseline "
                    f"{self.report.baseline_kb} KB"
                )
        finally:
            self.artifact.remove()
            self._transition(WatchdogPhase.DONE)
        return self.report

    def __enter__(self) -> "PeakWatchdog":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def measure_workload(
    workload: Callable[[], Any],
    interval: Optional[float] = None,
    *,
    target_pid: Optional[int] = None,
    config: Optional[WatchdogConfig] = None,
    **watchdog_options,
) -> MeasurementResult:
    """
    Run ``workload`` under a peak-memory watchdog.

    Args:
        workload: Zero-argument callable to measure
        interval: Sampling interval in seconds (default from configuration)
        target_pid: Process to watch (default: this process)
        config: Configuration to use instead of the global one
        **watchdog_options: Further PeakWatchdog overrides

    Returns:
        MeasurementResult with the workload's value, timing and the report

    Raises:
        StartupError: The watchdog could not be started; the workload did not run
        WorkloadError: The workload raised; the original exception is chained
                       and the partial result is attached
    """
    config = config or get_config()

    if config.collect_garbage:
        collected = gc.collect()
        logger.debug(f"Garbage collection before measurement freed {collected} objects")

    watchdog = PeakWatchdog(interval=interval, target_pid=target_pid, config=config, **watchdog_options)
    watchdog.start()

    tracing = config.trace_allocations
    started_tracing = False
    value = None
    error: Optional[Exception] = None
    traced_peak_kb: Optional[int] = None
    start_time = time.perf_counter()
    try:
        if tracing:
            started_tracing = not tracemalloc.is_tracing()
            if started_tracing:
                tracemalloc.start()
            tracemalloc.reset_peak()
        start_time = time.perf_counter()
        value = workload()
    except Exception as e:
        error = e
    finally:
        elapsed = time.perf_counter() - start_time
        if tracing:
            _, peak = tracemalloc.get_traced_memory()
            traced_peak_kb = peak // 1024
            if started_tracing:
                tracemalloc.stop()
        report = watchdog.stop()

    result = MeasurementResult(
        value=value,
        elapsed_seconds=elapsed,
        report=report,
        traced_peak_kb=traced_peak_kb,
        sampler_pid=watchdog.sampler_pid,
        target_pid=watchdog.target_pid,
    )

    if error is not None:
        logger.error(f"Workload failed after {elapsed:.3f}s: {type(error).__name__}: {error}")
        raise WorkloadError(error, result) from error
    return result
