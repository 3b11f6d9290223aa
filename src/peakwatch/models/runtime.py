"""
Runtime data models for the orchestrator.

This module contains the per-invocation state machine of a watchdog and the
timeout constants used while waiting on the sampler process.
"""

from enum import Enum, IntEnum
from typing import Dict, FrozenSet


class SamplerExitCode(IntEnum):
    """Exit statuses of the sampler process."""
    REPORTED = 0
    USAGE = 1
    TARGET_NOT_FOUND = 2


class WatchdogPhase(Enum):
    """
    Lifecycle of a single watchdog invocation.

    There is no edge from RUNNING to DONE: a running measurement
    always passes through TERMINATING.
    """
    IDLE = "idle"
    SPAWNING = "spawning"
    AWAITING_HANDSHAKE = "awaiting_handshake"
    RUNNING = "running"
    TERMINATING = "terminating"
    DONE = "done"
    FAILED = "failed"


ALLOWED_TRANSITIONS: Dict[WatchdogPhase, FrozenSet[WatchdogPhase]] = {
    WatchdogPhase.IDLE: frozenset({WatchdogPhase.SPAWNING}),
    WatchdogPhase.SPAWNING: frozenset({WatchdogPhase.AWAITING_HANDSHAKE, WatchdogPhase.FAILED}),
    WatchdogPhase.AWAITING_HANDSHAKE: frozenset({WatchdogPhase.RUNNING, WatchdogPhase.FAILED}),
    WatchdogPhase.RUNNING: frozenset({WatchdogPhase.TERMINATING}),
    WatchdogPhase.TERMINATING: frozenset({WatchdogPhase.DONE}),
    WatchdogPhase.DONE: frozenset(),
    WatchdogPhase.FAILED: frozenset(),
}


class TimeoutConstants:
    """
    Centralized timeout configuration.

    These are the defaults of the matching WatchdogConfig fields; the
    configured ``[watchdog.*]`` settings take precedence.
    """
    # Handshake
    HANDSHAKE_TIMEOUT = 5.0
    HANDSHAKE_POLL_INTERVAL = 0.01

    # Teardown
    REPORT_TIMEOUT = 2.0
    KILL_TIMEOUT = 2.0

    # Sampler loop
    SLEEP_CHUNK = 0.05
