"""
Defines the abstract interface for resident-memory probes.

A probe is bound to one process and answers a single question: how many
kilobytes of that process are resident right now.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class AbstractRssProbe(ABC):
    """
    Abstract base class for resident-memory probes.

    Subclasses implement `resolve` (called once, before the baseline reading)
    and `read_kb` (called once per sample).
    """

    METRIC_NAME: str = "RSS_KB"

    def __init__(self, pid: int, **kwargs):
        """
        Args:
            pid: Process identifier of the target.
            **kwargs: Additional keyword arguments specific to a probe implementation.
        """
        self.pid = pid
        self.probe_kwargs = kwargs
        logger.debug(f"Initializing {self.__class__.__name__} for PID {pid}, extra_args: {kwargs}")

    @abstractmethod
    def resolve(self) -> None:
        """
        Check that the target exists and its memory can be read.

        Raises:
            TargetNotFoundError: If the target cannot be resolved.
        """

    @abstractmethod
    def read_kb(self) -> int:
        """
        Read the target's current resident size in kilobytes.

        Raises:
            TargetVanishedError: If the target no longer exists.
        """

    def get_metric_field(self) -> str:
        return self.METRIC_NAME
