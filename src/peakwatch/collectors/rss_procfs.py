"""
Resident-memory probe reading ``/proc/<pid>/status`` directly.

Linux only. Cheaper per read than psutil, and reports the kernel's own
``VmRSS`` figure, which is already in kilobytes.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from ..validation import TargetNotFoundError, TargetVanishedError
from .base import AbstractRssProbe

logger = logging.getLogger(__name__)

VMRSS_PATTERN = re.compile(r"^VmRSS:\s+(?P<kb>\d+)\s+kB", re.MULTILINE)


class RssProcfsProbe(AbstractRssProbe):
    """Parses the VmRSS line of the target's procfs status file."""

    def __init__(self, pid: int, proc_root: Path = Path("/proc"), **kwargs):
        super().__init__(pid, **kwargs)
        self.status_path = Path(proc_root) / str(pid) / "status"

    def _read_vmrss(self) -> Optional[int]:
        """Return VmRSS in kB, or None if the line is absent (zombies, kernel threads)."""
        text = self.status_path.read_text()
        match = VMRSS_PATTERN.search(text)
        return int(match.group("kb")) if match else None

    def resolve(self) -> None:
        try:
            value = self._read_vmrss()
        except FileNotFoundError:
            raise TargetNotFoundError(self.pid, f"{self.status_path} does not exist")
        except PermissionError:
            raise TargetNotFoundError(self.pid, f"cannot read {self.status_path}")
        if value is None:
            raise TargetNotFoundError(self.pid, "no VmRSS entry (zombie or kernel thread)")
        logger.debug(f"Resolved target PID {self.pid} via {self.status_path}")

    def read_kb(self) -> int:
        try:
            value = self._read_vmrss()
        except (FileNotFoundError, ProcessLookupError):
            raise TargetVanishedError(self.pid)
        except PermissionError:
            logger.warning(f"Lost read access to {self.status_path}; treating target as gone")
            raise TargetVanishedError(self.pid)
        if value is None:
            raise TargetVanishedError(self.pid)
        return value
