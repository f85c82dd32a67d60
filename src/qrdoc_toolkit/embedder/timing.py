"""
Module: embedder.timing

Purpose:
    Timing instrumentation for embed runs, recording how long each pass
    (font load, grid placement, index, save) took.

Key Classes:
    - TimingLog: Collects phase durations for one run

Key Functions:
    - timed_phase: Context manager for timing code blocks

Dependencies:
    - time (std)
    - contextlib (std)
    - dataclasses (std)

Used By:
    - embedder.controller: Run orchestration
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Generator


@dataclass
class TimingLog:
    """
    Phase timings for one embed run.

    A phase timed more than once accumulates.

    Example:
        >>> log = TimingLog()
        >>> log.log_phase("grid", 0.234)
        >>> log.total
        0.234
    """
    phases: Dict[str, float] = field(default_factory=dict)

    def log_phase(self, phase: str, duration: float) -> None:
        """Add ``duration`` seconds to ``phase``."""
        self.phases[phase] = self.phases.get(phase, 0.0) + duration

    @property
    def total(self) -> float:
        """Sum of all recorded phases."""
        return sum(self.phases.values())

    def summary(self) -> str:
        """Generate human-readable timing summary."""
        lines = ["", "=== Embed Timing Summary ==="]
        for phase, duration in sorted(self.phases.items(), key=lambda x: -x[1]):
            lines.append(f"  {phase:25s} {duration:.3f}s")
        lines.append(f"  {'total':25s} {self.total:.3f}s")
        lines.append("")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Export timing data as dictionary."""
        return {
            "phases": dict(self.phases),
            "total": self.total,
        }


@contextmanager
def timed_phase(log: TimingLog, phase: str) -> Generator[None, None, None]:
    """
    Context manager for timing a code phase.

    The duration is recorded even when the block raises.

    Example:
        >>> log = TimingLog()
        >>> with timed_phase(log, "grid"):
        ...     placer.place_all(sink, marker_set)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        log.log_phase(phase, time.perf_counter() - start)
