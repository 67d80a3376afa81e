"""
burstcounter — Burst Counter Service

The owned state object a host simulation constructs once per run and holds
for the run's lifetime. It wires the ledger, the correlation engine and the
exporter together and exposes the host-facing operations.

Interface:
  update()             — ingress: an event had this value at this host time
  export()             — write all 10 matrix artifacts, counters untouched
  on_simulation_exit() — export, then print the event names and values
  table() / count()    — direct access to the sparse counters
  stats                — service-level diagnostics

All calls are synchronous and must be serialised by the host.

Typical host wiring:
  config = load_config("config/default.yaml")
  service = BurstCounterService(config.counter)
  setup_logging(config.logging, run_id=service.run_id)
  ...
  service.update("l2.miss", 3, cur_tick)     # from the event loop
  service.on_simulation_exit()               # from each exit event
"""

from __future__ import annotations

import sys
from typing import TextIO

import structlog

from burstcounter.config import CounterConfig
from burstcounter.primitives.common import new_id
from burstcounter.systems.correlation import reporting
from burstcounter.systems.correlation.engine import CorrelationEngine
from burstcounter.systems.correlation.exporter import MatrixExporter
from burstcounter.systems.correlation.ledger import EventLedger
from burstcounter.systems.correlation.types import (
    CounterStats,
    CountingPolicy,
    ExportReport,
    PairTable,
)

logger = structlog.get_logger()


class BurstCounterService:
    system_id: str = "burstcounter"

    def __init__(self, config: CounterConfig | None = None, run_id: str | None = None) -> None:
        self._config = config or CounterConfig()
        self._run_id = run_id or new_id()
        self._logger = logger.bind(system="burstcounter", run_id=self._run_id)

        self._engine = CorrelationEngine(
            abort_pass_on_zero_gap=self._config.abort_pass_on_zero_gap,
        )
        self._ledger = EventLedger(self._config.cycle_length, engine=self._engine)
        self._exporter = MatrixExporter(
            output_dir=self._config.output_dir,
            artifact_prefix=self._config.artifact_prefix,
        )

        self._total_updates: int = 0
        self._export_cycles: int = 0
        self._failed_artifacts: int = 0

        self._logger.info(
            "burst_counter_initialized",
            cycle_length=self._config.cycle_length,
            output_dir=str(self._config.output_dir),
            abort_pass_on_zero_gap=self._config.abort_pass_on_zero_gap,
        )

    # ─── Ingress ──────────────────────────────────────────────────────────────

    def update(self, name: str, value: float, time: int) -> int:
        """Record one metric update. Returns the cycle it was bucketed into."""
        self._total_updates += 1
        return self._ledger.update(name, value, time)

    # ─── Egress ───────────────────────────────────────────────────────────────

    def export(self) -> ExportReport:
        """
        Snapshot every pair table to disk. Safe to call repeatedly; the
        counters are never reset.
        """
        report = self._exporter.export_all(
            self._engine.table,
            self._ledger.names(),
            run_id=self._run_id,
        )
        self._export_cycles += 1
        self._failed_artifacts += len(report.failures)
        if not report.ok:
            self._logger.warning(
                "burst_counter_export_incomplete",
                failed=[str(a.path) for a in report.failures],
            )
        return report

    def on_simulation_exit(self, out: TextIO | None = None) -> ExportReport:
        """The host's exit hook: export, then print the name and value reports."""
        out = out or sys.stdout
        report = self.export()
        self.print_event_names(out)
        self.print_all_counters(out)
        return report

    # ─── Reporting ────────────────────────────────────────────────────────────

    def event_names(self) -> list[str]:
        return self._ledger.names()

    def print_event_names(self, out: TextIO | None = None) -> None:
        reporting.print_event_names(self._ledger, out)

    def print_counter(self, name: str, out: TextIO | None = None) -> None:
        reporting.print_counter(self._ledger, name, out)

    def print_all_counters(self, out: TextIO | None = None) -> None:
        reporting.print_all_counters(self._ledger, out)

    # ─── Queries ──────────────────────────────────────────────────────────────

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def ledger(self) -> EventLedger:
        return self._ledger

    @property
    def exporter(self) -> MatrixExporter:
        return self._exporter

    def get_value(self, name: str) -> float:
        return self._ledger.get_value(name)

    def get_last_cycle(self, name: str) -> int:
        return self._ledger.get_last_cycle(name)

    def table(self, window: int, policy: CountingPolicy) -> PairTable:
        return self._engine.table(window, policy)

    def count(self, earlier: str, later: str, window: int, policy: CountingPolicy) -> int:
        return self._engine.count(earlier, later, window, policy)

    @property
    def stats(self) -> CounterStats:
        return CounterStats(
            events=len(self._ledger),
            updates=self._total_updates,
            aborted_passes=self._engine.aborted_passes,
            export_cycles=self._export_cycles,
            failed_artifacts=self._failed_artifacts,
        )
