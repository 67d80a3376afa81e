"""
burstcounter — Correlation Types

Data types for the event ledger, the pair counters and the export results.

EventRecord and PairCounter are plain dataclasses, not Pydantic models,
because they are mutated in place on every update. Export results are
Pydantic models since they cross the boundary back to the host.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

from pydantic import Field

from burstcounter.primitives.common import Identified, Timestamped

# ─── Windows ──────────────────────────────────────────────────────────────────

# Ascending cycle boundaries. A gap belongs to the smallest boundary
# strictly greater than it.
WINDOW_SIZES: tuple[int, ...] = (16, 32, 64, 128, 256)


def cycle_of(time: int, cycle_length: int) -> int:
    """Ceiling division of a host tick count into a cycle index."""
    return (time + cycle_length - 1) // cycle_length


def match_window(gap: int) -> int | None:
    """
    Return the window a positive gap falls into, or None.

    Non-positive gaps and gaps of 256 or more match nothing.
    """
    if gap <= 0:
        return None
    for window in WINDOW_SIZES:
        if gap < window:
            return window
    return None


# ─── Enums ────────────────────────────────────────────────────────────────────


class CountingPolicy(int, enum.Enum):
    """How a qualifying pair is credited. Values are the artifact discriminators."""

    CUMULATIVE = 1  # Every qualifying update counts
    DEBOUNCED = 2   # At most once per window span per pair


# ─── Ledger / Counter State ──────────────────────────────────────────────────


@dataclass
class EventRecord:
    """Latest reported value of one event and the cycle it was reported at."""

    value: float = 0.0
    last_cycle: int = 0


@dataclass
class PairCounter:
    """
    Qualification count for one (earlier, later, window, policy).

    last_increment_cycle is only read by the debounced policy; None means
    the counter has never advanced.
    """

    count: int = 0
    last_increment_cycle: int | None = None


# earlier_name → later_name → PairCounter
PairTable = dict[str, dict[str, PairCounter]]

# ─── Export Results ───────────────────────────────────────────────────────────


class ArtifactResult(Timestamped):
    """Outcome of writing one matrix artifact."""

    window: int
    policy: CountingPolicy
    path: Path
    dimension: int = 0
    written: bool = False
    error: str = ""


class ExportReport(Identified, Timestamped):
    """Outcome of one full export cycle (all windows, both policies)."""

    run_id: str = ""
    event_names: list[str] = Field(default_factory=list)
    artifacts: list[ArtifactResult] = Field(default_factory=list)

    @property
    def failures(self) -> list[ArtifactResult]:
        return [a for a in self.artifacts if not a.written]

    @property
    def ok(self) -> bool:
        return not self.failures


class CounterStats(Timestamped):
    """Service-level counters for diagnostics."""

    events: int = 0
    updates: int = 0
    aborted_passes: int = 0
    export_cycles: int = 0
    failed_artifacts: int = 0
