"""
Probe factory.

Maps the configured ``metric_type`` to a probe implementation.
"""

import logging
from typing import Dict, Type

from .base import AbstractRssProbe
from .rss_procfs import RssProcfsProbe
from .rss_psutil import RssPsutilProbe

logger = logging.getLogger(__name__)

PROBE_TYPES: Dict[str, Type[AbstractRssProbe]] = {
    "rss_psutil": RssPsutilProbe,
    "rss_procfs": RssProcfsProbe,
}


def create_probe(metric_type: str, pid: int, **kwargs) -> AbstractRssProbe:
    """
    Create a probe for ``pid``.

    Raises:
        ValueError: If ``metric_type`` is not a known probe type
    """
    try:
        probe_class = PROBE_TYPES[metric_type]
    except KeyError:
        raise ValueError(
            f"Unknown metric type: {metric_type}. Available: {sorted(PROBE_TYPES)}"
        ) from None
    logger.debug(f"Creating {probe_class.__name__} for PID {pid}")
    return probe_class(pid, **kwargs)
