"""
burstcounter — Event Ledger

Holds the latest value and last-update cycle of every named event and hands
each update to the correlation engine.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING

import structlog

from burstcounter.systems.correlation.types import EventRecord, cycle_of

if TYPE_CHECKING:
    from burstcounter.systems.correlation.engine import CorrelationEngine

logger = structlog.get_logger()


class EventLedger:
    """
    One EventRecord per distinct event name.

    Records are created on first update and never removed. Reads of unknown
    names return a zero record without creating one, so diagnostics can never
    change the set of names that exports are built from.
    """

    def __init__(self, cycle_length: int, engine: CorrelationEngine | None = None) -> None:
        if cycle_length <= 0:
            raise ValueError(f"cycle_length must be positive, got {cycle_length}")
        self._cycle_length = cycle_length
        self._engine = engine
        self._records: dict[str, EventRecord] = {}
        self._logger = logger.bind(system="burstcounter.ledger")

    @property
    def cycle_length(self) -> int:
        return self._cycle_length

    @property
    def records(self) -> Mapping[str, EventRecord]:
        return self._records

    def update(self, name: str, value: float, current_time: int) -> int:
        """
        Record that `name` had `value` at host time `current_time`.

        Returns the cycle the update was bucketed into.
        """
        cycle = cycle_of(current_time, self._cycle_length)

        record = self._records.get(name)
        if record is None:
            record = EventRecord()
            self._records[name] = record
            self._logger.debug("event_record_created", name=name, cycle=cycle)

        record.value = value
        record.last_cycle = cycle

        if self._engine is not None:
            self._engine.observe(name, cycle, self._records)
        return cycle

    def get(self, name: str) -> EventRecord:
        """Unknown names read as a fresh zero record; unlike a lazily inserting map, nothing is stored."""
        record = self._records.get(name)
        if record is None:
            return EventRecord()
        return record

    def get_value(self, name: str) -> float:
        return self.get(name).value

    def get_last_cycle(self, name: str) -> int:
        return self.get(name).last_cycle

    def names(self) -> list[str]:
        """All known event names in ascending lexical order."""
        return sorted(self._records)

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)
