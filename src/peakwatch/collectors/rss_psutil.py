"""
Resident-memory probe implemented with the 'psutil' library.

Portable across the platforms psutil supports; reads ``memory_info().rss``.
"""

import logging
from typing import Optional

import psutil

from ..validation import TargetNotFoundError, TargetVanishedError
from .base import AbstractRssProbe

logger = logging.getLogger(__name__)


class RssPsutilProbe(AbstractRssProbe):
    """Reads RSS of one process through a cached psutil.Process handle."""

    def __init__(self, pid: int, **kwargs):
        super().__init__(pid, **kwargs)
        self._process: Optional[psutil.Process] = None

    def resolve(self) -> None:
        try:
            self._process = psutil.Process(self.pid)
            # A first read proves we are allowed to inspect the target.
            if self._process.memory_info().rss == 0 and self._process.status() == psutil.STATUS_ZOMBIE:
                raise TargetNotFoundError(self.pid, "process is a zombie")
        except psutil.ZombieProcess:
            raise TargetNotFoundError(self.pid, "process is a zombie")
        except psutil.NoSuchProcess:
            raise TargetNotFoundError(self.pid, "no such process")
        except psutil.AccessDenied:
            raise TargetNotFoundError(self.pid, "access denied")
        logger.debug(f"Resolved target PID {self.pid} ({self._safe_name()})")

    def read_kb(self) -> int:
        if self._process is None:
            self.resolve()
        try:
            rss = self._process.memory_info().rss
            # Only zombies and kernel threads report an empty resident set.
            if rss == 0 and self._process.status() == psutil.STATUS_ZOMBIE:
                raise TargetVanishedError(self.pid)
            return int(rss // 1024)
        except psutil.NoSuchProcess:
            # ZombieProcess is a NoSuchProcess as well: an exited, unreaped
            # target has no memory left to measure.
            raise TargetVanishedError(self.pid)
        except psutil.AccessDenied:
            logger.warning(f"Access to PID {self.pid} was revoked; treating target as gone")
            raise TargetVanishedError(self.pid)

    def _safe_name(self) -> str:
        try:
            return self._process.name() if self._process else "?"
        except psutil.Error:
            return "?"
