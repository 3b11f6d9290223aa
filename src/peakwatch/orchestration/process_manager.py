"""
Sampler process management for the orchestrator.

This module handles the sampler's process lifecycle: building its command
line, spawning it, waiting for the handshake, and terminating it with
escalating force.
"""

import logging
import os
import subprocess
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

import psutil

from ..sampler.handshake import HandshakeArtifact
from ..models.runtime import SamplerExitCode
from ..validation import HandshakeTimeoutError, SamplerExitedError, TargetNotFoundError

logger = logging.getLogger(__name__)

# Directory that contains the ``peakwatch`` package, so the child interpreter
# can import it even when the package is not installed.
_PACKAGE_ROOT = Path(__file__).resolve().parent.parent.parent


class SamplerProcessManager:
    """
    Spawns, discovers and terminates one sampler process.

    The manager keeps the Popen handle so the child is always reaped, even
    when the pid published through the handshake is used for signaling.
    """

    def __init__(self, artifact: HandshakeArtifact):
        self.artifact = artifact
        self.process: Optional[subprocess.Popen] = None
        self.sampler_pid: Optional[int] = None
        self.target_pid: Optional[int] = None

    def build_sampler_command(
        self,
        target_pid: int,
        interval: float,
        metric_type: str,
        log_level: str = "WARNING",
    ) -> List[str]:
        """Command line that starts the sampler under the current interpreter."""
        self.target_pid = target_pid
        return [
            sys.executable,
            "-m",
            "peakwatch.sampler",
            str(target_pid),
            repr(float(interval)),
            str(self.artifact.path),
            "--metric-type",
            metric_type,
            "--log-level",
            log_level,
        ]

    def _child_env(self) -> Dict[str, str]:
        env = os.environ.copy()
        existing = env.get("PYTHONPATH")
        env["PYTHONPATH"] = (
            str(_PACKAGE_ROOT) + (os.pathsep + existing if existing else "")
        )
        return env

    def spawn(self, command: List[str]) -> subprocess.Popen:
        """
        Start the sampler in the background.

        Its stdout (the duplicate report line) is discarded; stderr is
        inherited so sampler log messages reach the same console.
        """
        logger.info("Starting sampler process...")
        logger.debug(f"Sampler command: {' '.join(command)}")
        self.process = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            env=self._child_env(),
        )
        logger.info(f"Sampler process started with PID: {self.process.pid}")
        return self.process

    def wait_for_handshake(self, timeout: float, poll_interval: float) -> int:
        """
        Block until the sampler has published its pid and its baseline, the
        sampler dies, or ``timeout`` expires.

        The pid alone is not enough: the sampler publishes it before it has
        looked at the target, and may still fail to take a baseline.

        Returns:
            The sampler pid

        Raises:
            HandshakeTimeoutError: The sampler did not finish starting in time
            TargetNotFoundError: The sampler exited because it could not read the target
            SamplerExitedError: The sampler exited for any other reason
        """
        if self.process is None:
            raise ValueError("No sampler process to wait for")

        deadline = time.monotonic() + timeout
        polls = 0
        while True:
            polls += 1
            contents = self.artifact.read()
            if contents.pid is not None and self.sampler_pid != contents.pid:
                if contents.pid != self.process.pid:
                    logger.warning(
                        f"Sampler published PID {contents.pid} but was spawned as "
                        f"PID {self.process.pid}; signaling the published PID"
                    )
                self.sampler_pid = contents.pid
                logger.debug(f"Sampler PID {contents.pid} seen after {polls} polls")
            if contents.baseline_kb is not None:
                logger.debug(
                    f"Handshake completed after {polls} polls (baseline {contents.baseline_kb} KB)"
                )
                return self.sampler_pid
            if contents.report is not None:
                # The target vanished before we got here and the sampler has
                # already reported; the handshake is implied.
                logger.info("Sampler reported before the handshake was observed")
                self.sampler_pid = self.sampler_pid or self.process.pid
                return self.sampler_pid

            returncode = self.process.poll()
            if returncode is not None:
                if returncode == SamplerExitCode.TARGET_NOT_FOUND:
                    raise TargetNotFoundError(
                        self.target_pid, "the sampler could not take a baseline reading"
                    )
                raise SamplerExitedError(returncode)

            if time.monotonic() >= deadline:
                raise HandshakeTimeoutError(timeout, self.artifact.path)
            time.sleep(poll_interval)

    def terminate(self, report_timeout: float, kill_timeout: float) -> bool:
        """
        Stop the sampler: SIGTERM, then SIGKILL if it does not exit in time.

        A sampler that is already gone is not an error.

        Returns:
            True if the sampler exited on its own or after SIGTERM (so it had
            the chance to write its report), False if it had to be killed.
        """
        pid = self.sampler_pid or (self.process.pid if self.process else None)
        if pid is None:
            logger.debug("No sampler to terminate")
            return True

        if self.process is not None and self.process.pid == pid and self.process.poll() is not None:
            # Already exited and reaped; the pid may belong to someone else by now.
            logger.info(f"Sampler (PID: {pid}) already exited with code {self.process.returncode}")
            return True

        graceful = True
        try:
            proc = psutil.Process(pid)
        except psutil.NoSuchProcess:
            logger.info(f"Sampler (PID: {pid}) already terminated")
            self._reap(kill_timeout)
            return True

        try:
            proc.terminate()
            logger.debug(f"Sent SIGTERM to sampler PID {pid}")
        except psutil.NoSuchProcess:
            logger.info(f"Sampler (PID: {pid}) already terminated")
            self._reap(kill_timeout)
            return True
        except psutil.AccessDenied:
            logger.warning(f"Access denied sending SIGTERM to sampler PID {pid}")

        if not self._wait_exit(proc, report_timeout):
            graceful = False
            logger.warning(f"Sampler PID {pid} ignored SIGTERM for {report_timeout}s; killing it")
            try:
                proc.kill()
            except psutil.NoSuchProcess:
                pass
            except psutil.AccessDenied:
                logger.error(f"Access denied sending SIGKILL to sampler PID {pid}")
            if not self._wait_exit(proc, kill_timeout):
                logger.error(f"Sampler PID {pid} survived SIGKILL")

        self._reap(kill_timeout)
        return graceful

    @property
    def returncode(self) -> Optional[int]:
        """Exit status of the spawned sampler, None while it runs or before spawn."""
        return self.process.returncode if self.process is not None else None

    def force_kill(self) -> None:
        """Kill the spawned process outright. Used when startup failed."""
        if self.process is None or self.process.poll() is not None:
            return
        try:
            self.process.kill()
        except ProcessLookupError:
            pass
        self._reap(5.0)

    def _wait_exit(self, proc: psutil.Process, timeout: float) -> bool:
        """Wait for ``proc`` to exit; True if it did."""
        # Our own child must be waited through Popen, otherwise it lingers as
        # a zombie and looks alive to psutil.
        if self.process is not None and self.process.pid == proc.pid:
            try:
                self.process.wait(timeout=timeout)
                return True
            except subprocess.TimeoutExpired:
                return False
        try:
            _, alive = psutil.wait_procs([proc], timeout=timeout)
        except psutil.NoSuchProcess:
            return True
        return not alive

    def _reap(self, timeout: float) -> None:
        if self.process is None:
            return
        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.error(f"Sampler process {self.process.pid} could not be reaped")
