"""
Resident-memory probes.

- AbstractRssProbe: interface shared by all probes
- RssPsutilProbe: psutil based, portable
- RssProcfsProbe: reads /proc/<pid>/status, Linux only
- create_probe: factory keyed by the configured metric type
"""

from .base import AbstractRssProbe
from .factory import PROBE_TYPES, create_probe
from .rss_procfs import RssProcfsProbe
from .rss_psutil import RssPsutilProbe

__all__ = [
    "AbstractRssProbe",
    "PROBE_TYPES",
    "create_probe",
    "RssProcfsProbe",
    "RssPsutilProbe",
]
