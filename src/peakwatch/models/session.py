"""
Sampler-side data models.

This module defines the state owned by a running sampler and the report it
emits when it stops:

- SamplerPhase: the sampler's small state machine (Sampling -> Reporting -> Exited)
- Report: the terminal (peak_delta_kb, baseline_kb) pair
- SamplingSession: baseline, running maximum and bookkeeping for one sampler run
"""

import os
from dataclasses import dataclass, field
from enum import Enum


class SamplerPhase(Enum):
    """Lifecycle phases of a sampler process."""
    SAMPLING = "sampling"
    REPORTING = "reporting"
    EXITED = "exited"


@dataclass(frozen=True)
class Report:
    """
    The sampler's terminal output.

    Both values are in kilobytes. ``peak_delta_kb`` is never negative.
    """

    peak_delta_kb: int
    baseline_kb: int

    @property
    def peak_kb(self) -> int:
        """Absolute resident size at the observed peak."""
        return self.baseline_kb + self.peak_delta_kb

    def to_line(self) -> str:
        return f"{self.peak_delta_kb}\t{self.baseline_kb}"

    @classmethod
    def from_line(cls, line: str) -> "Report":
        """
        Parse a report line of two tab-separated numeric fields.

        Raises:
            ValueError: If the line does not hold exactly two numeric fields
        """
        fields = line.strip().split("\t")
        if len(fields) != 2:
            raise ValueError(f"Malformed report line: {line!r}")
        return cls(peak_delta_kb=int(fields[0]), baseline_kb=int(fields[1]))


@dataclass
class SamplingSession:
    """
    Internal state of one sampler run.

    The baseline is captured once and cannot be reassigned afterwards.
    ``maximum_delta_kb`` starts at 0 and only ever moves up, so a target that
    never grows past its baseline reports a peak delta of exactly 0.
    """

    target_pid: int
    interval: float
    baseline_kb: int
    sampler_pid: int = field(default_factory=os.getpid)
    maximum_delta_kb: int = 0
    samples_taken: int = 0

    def __setattr__(self, name, value):
        if name == "baseline_kb" and "baseline_kb" in self.__dict__:
            raise AttributeError("baseline_kb is fixed once captured")
        super().__setattr__(name, value)

    def observe(self, current_kb: int) -> int:
        """
        Fold one reading into the session.

        Args:
            current_kb: The target's resident size at this sample

        Returns:
            The delta of this sample against the baseline (may be negative)
        """
        delta = current_kb - self.baseline_kb
        self.samples_taken += 1
        if delta > self.maximum_delta_kb:
            self.maximum_delta_kb = delta
        return delta

    def to_report(self) -> Report:
        return Report(peak_delta_kb=self.maximum_delta_kb, baseline_kb=self.baseline_kb)
