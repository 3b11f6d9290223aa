"""
The handshake/report artifact shared by the sampler and the orchestrator.

A small text file with a single writer (the sampler) and a single reader
(the orchestrator):

- on startup the sampler writes its own pid as the first line;
- once the baseline is captured it adds the baseline (kB) as a second line,
  which tells the orchestrator the sampler is actually sampling;
- on termination it rewrites the content as ``<peak_delta_kb>\\t<baseline_kb>``.

Every write goes to a sibling temporary file which is then renamed over the
artifact, so a reader sees either the old content or the new one, never a
partial line.
"""

import logging
import os
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..models.session import Report
from ..validation import ErrorSeverity, handle_file_error

logger = logging.getLogger(__name__)

ARTIFACT_PREFIX = "peakwatch-"
ARTIFACT_SUFFIX = ".handshake"


@dataclass(frozen=True)
class ArtifactContents:
    """What the artifact held at the time it was read."""

    pid: Optional[int] = None
    baseline_kb: Optional[int] = None
    report: Optional[Report] = None


class HandshakeArtifact:
    """Reads and writes the handshake/report file at ``path``."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"HandshakeArtifact({str(self.path)!r})"

    @classmethod
    def allocate(cls, directory: Optional[Path] = None) -> "HandshakeArtifact":
        """
        Pick a fresh, unique artifact path. The file itself is created by the sampler.
        """
        base_dir = Path(directory) if directory else Path(tempfile.gettempdir())
        base_dir.mkdir(parents=True, exist_ok=True)
        name = f"{ARTIFACT_PREFIX}{os.getpid()}-{uuid.uuid4().hex[:12]}{ARTIFACT_SUFFIX}"
        return cls(base_dir / name)

    @property
    def _tmp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def _atomic_write(self, content: str) -> None:
        tmp_path = self._tmp_path
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, self.path)

    # --- sampler side ---

    def publish_pid(self, pid: int) -> None:
        self._atomic_write(f"{pid}\n")
        logger.debug(f"Published sampler PID {pid} to {self.path}")

    def publish_baseline(self, pid: int, baseline_kb: int) -> None:
        self._atomic_write(f"{pid}\n{baseline_kb}\n")
        logger.debug(f"Published baseline {baseline_kb} KB to {self.path}")

    def write_report(self, report: Report) -> None:
        self._atomic_write(report.to_line() + "\n")
        logger.debug(f"Wrote report '{report.to_line()}' to {self.path}")

    # --- orchestrator side ---

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> ArtifactContents:
        """
        Read whatever the artifact currently holds.

        Returns empty contents when the file does not exist yet or holds
        something unparseable.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ArtifactContents()

        lines = [line.strip() for line in text.splitlines() if line.strip()]
        if not lines:
            return ArtifactContents()

        try:
            if "\t" in lines[0]:
                return ArtifactContents(report=Report.from_line(lines[0]))
            pid = int(lines[0])
        except ValueError:
            logger.warning(f"Ignoring unparseable artifact content in {self.path}: {lines[0]!r}")
            return ArtifactContents()

        baseline_kb = None
        if len(lines) > 1:
            try:
                baseline_kb = int(lines[1])
            except ValueError:
                logger.warning(f"Ignoring unparseable baseline in {self.path}: {lines[1]!r}")
        return ArtifactContents(pid=pid, baseline_kb=baseline_kb)

    def read_pid(self) -> Optional[int]:
        return self.read().pid

    def read_report(self) -> Optional[Report]:
        return self.read().report

    def remove(self) -> bool:
        """
        Delete the artifact and any leftover temporary file.

        Failures are logged, never raised: a stale file is a nuisance, not a
        correctness problem.

        Returns:
            True if nothing is left behind
        """
        clean = True
        for path in (self.path, self._tmp_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                clean = False
                handle_file_error(
                    error=e,
                    context=f"removing artifact {path}",
                    severity=ErrorSeverity.WARNING,
                    reraise=False,
                    logger=logger,
                )
        return clean
