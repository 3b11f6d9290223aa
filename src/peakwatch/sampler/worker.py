"""
The sampler: a standalone loop that watches another process's resident size.

The sampler publishes its own pid, captures a baseline reading of the target,
then samples at a fixed interval, keeping the largest delta above the
baseline. It has no idea when the workload is done; it stops only when asked
to (SIGINT/SIGTERM) or when the target disappears, and in both cases emits
exactly one Report before returning.
"""

import logging
import os
import sys
import time
from typing import Optional, TextIO

from ..collectors import AbstractRssProbe, create_probe
from ..models.runtime import TimeoutConstants
from ..models.session import Report, SamplerPhase, SamplingSession
from ..validation import (
    ErrorSeverity,
    TargetNotFoundError,
    TargetVanishedError,
    handle_file_error,
)
from .handshake import HandshakeArtifact

logger = logging.getLogger(__name__)


class Sampler:
    """
    Samples the resident memory of ``target_pid`` every ``interval`` seconds.

    Attributes:
        session: Sampling state, available once `start` has captured the baseline.
        report: The emitted report, available once `run` has returned.
        phase: Current SamplerPhase (None before `start`).
    """

    def __init__(
        self,
        target_pid: int,
        interval: float,
        artifact: HandshakeArtifact,
        probe: Optional[AbstractRssProbe] = None,
        metric_type: str = "rss_psutil",
        report_stream: Optional[TextIO] = None,
    ):
        self.target_pid = target_pid
        self.interval = interval
        self.artifact = artifact
        self.probe = probe or create_probe(metric_type, target_pid)
        self.report_stream = report_stream
        self.session: Optional[SamplingSession] = None
        self.report: Optional[Report] = None
        self.phase: Optional[SamplerPhase] = None
        self._stop_requested: bool = False
        """Set from the signal handler; checked at the top of every iteration."""
        self.target_vanished: bool = False

    def request_stop(self) -> None:
        """Ask the loop to stop. Safe to call from a signal handler."""
        self._stop_requested = True

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def start(self) -> SamplingSession:
        """
        Publish our pid, capture the baseline, then publish the baseline.

        The pid goes out first so the orchestrator is never kept waiting on
        anything the target does. The baseline line marks the end of startup.

        Raises:
            TargetNotFoundError: If the target cannot be resolved or read
        """
        own_pid = os.getpid()
        self.artifact.publish_pid(own_pid)

        self.probe.resolve()
        try:
            baseline_kb = self.probe.read_kb()
        except TargetVanishedError as e:
            raise TargetNotFoundError(self.target_pid, "exited before the baseline was taken") from e

        self.session = SamplingSession(
            target_pid=self.target_pid,
            interval=self.interval,
            baseline_kb=baseline_kb,
            sampler_pid=own_pid,
        )
        self.artifact.publish_baseline(own_pid, baseline_kb)
        self.phase = SamplerPhase.SAMPLING
        logger.info(
            f"Sampler {own_pid} watching PID {self.target_pid} every {self.interval}s "
            f"(baseline {baseline_kb} KB)"
        )
        return self.session

    def run(self) -> Report:
        """
        Sample until stopped or until the target exits, then emit the report.

        Returns:
            The emitted Report
        """
        if self.session is None:
            raise RuntimeError("Sampler.start() must be called before run()")

        session = self.session
        while not self._stop_requested:
            iteration_start = time.monotonic()
            try:
                current_kb = self.probe.read_kb()
            except TargetVanishedError:
                self.target_vanished = True
                logger.info(f"Target PID {self.target_pid} exited; reporting what was observed")
                break

            delta = session.observe(current_kb)
            logger.debug(f"Sample {session.samples_taken}: {current_kb} KB (delta {delta} KB)")

            elapsed = time.monotonic() - iteration_start
            self._sleep(self.interval - elapsed)

        if self._stop_requested:
            logger.info(f"Termination requested after {session.samples_taken} samples")

        return self._emit_report()

    def _sleep(self, duration: float) -> None:
        """Sleep for ``duration`` seconds, waking early if a stop is requested."""
        if duration <= 0:
            return
        end_time = time.monotonic() + duration
        while not self._stop_requested:
            remaining = end_time - time.monotonic()
            if remaining <= 0:
                break
            time.sleep(min(TimeoutConstants.SLEEP_CHUNK, remaining))

    def _emit_report(self) -> Report:
        self.phase = SamplerPhase.REPORTING
        report = self.session.to_report()

        try:
            self.artifact.write_report(report)
        except OSError as e:
            handle_file_error(
                error=e,
                context=f"writing report to {self.artifact.path}",
                severity=ErrorSeverity.ERROR,
                reraise=False,
                logger=logger,
            )

        stream = self.report_stream or sys.stdout
        try:
            print(report.to_line(), file=stream, flush=True)
        except (OSError, ValueError):
            # stdout may already be closed by the parent; the file is the contract.
            pass

        logger.info(
            f"Peak delta {report.peak_delta_kb} KB over baseline {report.baseline_kb} KB "
            f"({self.session.samples_taken} samples)"
        )
        self.report = report
        self.phase = SamplerPhase.EXITED
        return report
