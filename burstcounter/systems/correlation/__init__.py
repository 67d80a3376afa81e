"""
burstcounter — Correlation (Event Ledger, Correlation Engine, Matrix Exporter)

Counts how often one named event's update is followed by another's within
16/32/64/128/256 cycles, under a cumulative and a debounced policy, and
exports each of the ten pair tables as a dense name-sorted matrix.

Public interface:
  BurstCounterService — owned per-run state object and host facade
  EventLedger         — latest value / last cycle per event
  CorrelationEngine   — the ten sparse pair tables
  MatrixExporter      — dense conversion and artifact writing
"""

from burstcounter.systems.correlation.engine import CorrelationEngine
from burstcounter.systems.correlation.errors import BurstCounterError, ExportError
from burstcounter.systems.correlation.exporter import MatrixExporter
from burstcounter.systems.correlation.ledger import EventLedger
from burstcounter.systems.correlation.service import BurstCounterService
from burstcounter.systems.correlation.types import (
    WINDOW_SIZES,
    ArtifactResult,
    CounterStats,
    CountingPolicy,
    EventRecord,
    ExportReport,
    PairCounter,
    PairTable,
    cycle_of,
    match_window,
)

__all__ = [
    "BurstCounterService",
    "EventLedger",
    "CorrelationEngine",
    "MatrixExporter",
    "BurstCounterError",
    "ExportError",
    "ArtifactResult",
    "CounterStats",
    "CountingPolicy",
    "EventRecord",
    "ExportReport",
    "PairCounter",
    "PairTable",
    "WINDOW_SIZES",
    "cycle_of",
    "match_window",
]
