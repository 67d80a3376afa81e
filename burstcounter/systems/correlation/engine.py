"""
burstcounter — Correlation Engine

On every ledger update, compares the updating event against every other
known event and credits the ordered pair (other → updating) in the window
its cycle gap falls into.

Two independent policies, each with one PairTable per window:
  CUMULATIVE — every qualifying update increments
  DEBOUNCED  — increments only when the pair's counter for that window has
               not advanced within the last `window` cycles

Tie rule: if any other event was last updated in the same cycle (gap 0),
the whole pass for this update is abandoned and nothing is credited under
either policy. The decision is taken before any increment, so the outcome
never depends on the order records are visited in. Construct the engine
with abort_pass_on_zero_gap=False to skip only the zero-gap pairs instead.
"""

from __future__ import annotations

from collections.abc import Mapping

import structlog

from burstcounter.systems.correlation.types import (
    WINDOW_SIZES,
    CountingPolicy,
    EventRecord,
    PairCounter,
    PairTable,
    match_window,
)

logger = structlog.get_logger()

# (earlier_name, gap) pairs for one update
_Gaps = list[tuple[str, int]]


class CorrelationEngine:
    """
    Owns the ten sparse pair tables.

    Counters are created on their first increment and never reset.
    """

    def __init__(self, abort_pass_on_zero_gap: bool = True) -> None:
        self._abort_pass_on_zero_gap = abort_pass_on_zero_gap
        self._tables: dict[CountingPolicy, dict[int, PairTable]] = {
            policy: {window: {} for window in WINDOW_SIZES}
            for policy in CountingPolicy
        }
        self._aborted_passes: int = 0
        self._logger = logger.bind(system="burstcounter.engine")

    # ─── Observation ──────────────────────────────────────────────────────────

    def observe(self, name: str, cycle: int, records: Mapping[str, EventRecord]) -> bool:
        """
        Run both policies for one update. Returns False if the pass was
        abandoned by the tie rule.
        """
        gaps = self._collect_gaps(name, cycle, records, record_abort=True)
        if gaps is None:
            return False
        self._apply_cumulative(name, gaps)
        self._apply_debounced(name, cycle, gaps)
        return True

    def check_cumulative(self, name: str, cycle: int, records: Mapping[str, EventRecord]) -> bool:
        """
        Cumulative half of one update. An abandoned pass is counted here,
        so a host calling both checks per update counts each tie once.
        """
        gaps = self._collect_gaps(name, cycle, records, record_abort=True)
        if gaps is None:
            return False
        self._apply_cumulative(name, gaps)
        return True

    def check_debounced(self, name: str, cycle: int, records: Mapping[str, EventRecord]) -> bool:
        gaps = self._collect_gaps(name, cycle, records, record_abort=False)
        if gaps is None:
            return False
        self._apply_debounced(name, cycle, gaps)
        return True

    def _collect_gaps(
        self,
        name: str,
        cycle: int,
        records: Mapping[str, EventRecord],
        *,
        record_abort: bool,
    ) -> _Gaps | None:
        gaps: _Gaps = []
        for other, record in records.items():
            if other == name:
                continue
            gap = cycle - record.last_cycle
            if gap == 0:
                if self._abort_pass_on_zero_gap:
                    if record_abort:
                        self._aborted_passes += 1
                        self._logger.debug(
                            "correlation_pass_aborted", name=name, tied_with=other, cycle=cycle
                        )
                    return None
                continue
            gaps.append((other, gap))
        return gaps

    def _apply_cumulative(self, name: str, gaps: _Gaps) -> None:
        tables = self._tables[CountingPolicy.CUMULATIVE]
        for other, gap in gaps:
            window = match_window(gap)
            if window is None:
                continue
            counter = _counter(tables[window], other, name)
            counter.count += 1

    def _apply_debounced(self, name: str, cycle: int, gaps: _Gaps) -> None:
        tables = self._tables[CountingPolicy.DEBOUNCED]
        for other, gap in gaps:
            # Only the first window whose boundary exceeds the gap is a
            # candidate; a failed debounce check does not fall through.
            window = match_window(gap)
            if window is None:
                continue
            existing = tables[window].get(other, {}).get(name)
            if (
                existing is not None
                and existing.last_increment_cycle is not None
                and cycle - existing.last_increment_cycle <= window
            ):
                continue
            counter = existing if existing is not None else _counter(tables[window], other, name)
            counter.count += 1
            counter.last_increment_cycle = cycle

    # ─── Queries ──────────────────────────────────────────────────────────────

    @property
    def aborted_passes(self) -> int:
        return self._aborted_passes

    def table(self, window: int, policy: CountingPolicy) -> PairTable:
        """The live sparse table for one window and policy."""
        try:
            return self._tables[CountingPolicy(policy)][window]
        except KeyError:
            raise ValueError(f"unknown window {window}; expected one of {WINDOW_SIZES}") from None

    def count(self, earlier: str, later: str, window: int, policy: CountingPolicy) -> int:
        counter = self.table(window, policy).get(earlier, {}).get(later)
        return counter.count if counter is not None else 0


def _counter(table: PairTable, earlier: str, later: str) -> PairCounter:
    row = table.setdefault(earlier, {})
    counter = row.get(later)
    if counter is None:
        counter = PairCounter()
        row[later] = counter
    return counter
