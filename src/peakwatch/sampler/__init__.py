"""
The sampler side of the watchdog.

- Sampler: publish pid, capture baseline, sample until told to stop, report
- HandshakeArtifact: the file shared with the orchestrator
- SignalHandler: turns SIGINT/SIGTERM into a stop request
"""

from .handshake import ArtifactContents, HandshakeArtifact
from .signal_handler import SignalHandler
from .worker import Sampler

__all__ = [
    "ArtifactContents",
    "HandshakeArtifact",
    "SignalHandler",
    "Sampler",
]
